"""
Blueprint Service - price maintenance for the custom setup blueprint.
Handles reading/writing the blueprint JSON and applying admin price updates.
"""
import logging
from pathlib import Path
from typing import Any, Optional
from dataclasses import dataclass, field

from ..data.blueprint_loader import read_blueprint_document, write_blueprint_document
from ..engine.blueprint import Blueprint, find_template, parse_blueprint, summarize_template
from ..engine.metadata import parse_leading_float, read_numeric, to_finite_float
from ..engine.price_rules import SALE_PRICE_METADATA_KEYS

logger = logging.getLogger(__name__)

UPDATE_TARGETS = ('option', 'component', 'system')

NUMERIC_FIELDS = ('unitPrice', 'basePrice', 'baseFee', 'salePrice', 'defaultQuantity')

# Fields each target accepts, as (camelCase, snake_case) spellings
COMPONENT_FIELDS = (
    ('unitPrice', 'unit_price'),
    ('basePrice', 'base_price'),
    ('defaultQuantity', 'default_quantity'),
)
SYSTEM_FIELDS = (('baseFee', 'base_fee'),)

# Sentinel for "field not present in the update payload"
UNSET = object()


def sanitize_number(value: Any = UNSET) -> Any:
    """
    Coerce an admin-entered price.

    Returns UNSET when the field was not supplied, None for an explicit null
    or an unparseable value, otherwise a finite float.
    """
    if value is UNSET:
        return UNSET
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return to_finite_float(value)
    if isinstance(value, str) and value.strip():
        return parse_leading_float(value)
    return None


@dataclass
class ValidationResult:
    """Result of update validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    update_count: int = 0


@dataclass
class AppliedUpdate:
    """One update written to the blueprint."""
    target: str
    id: str
    fields: list[str] = field(default_factory=list)


def _set_key(node: dict, camel: str, snake: str, value: Any):
    """Write using whichever spelling the document already uses."""
    if snake in node and camel not in node:
        node[snake] = value
    else:
        node[camel] = value


def _formula_key(node: dict) -> str:
    # Component rows store the formula as price_formula, system rows as pricing_formula
    return 'price_formula' if 'price_formula' in node else 'pricing_formula'


class BlueprintService:
    """Service for maintaining blueprint prices."""

    def __init__(self, blueprint_path: Path, template_slug: Optional[str] = None):
        self.blueprint_path = Path(blueprint_path)
        self.template_slug = template_slug

    def _read(self) -> tuple[Optional[dict], Optional[dict]]:
        """Stored file contents and the template node inside them."""
        stored = read_blueprint_document(self.blueprint_path)
        if stored is None:
            return None, None
        return stored, find_template(stored, self.template_slug)

    def load_document(self) -> Optional[dict]:
        """Raw template document (unwrapped from any admin envelope)."""
        return self._read()[1]

    def get_blueprint(self) -> Optional[Blueprint]:
        return parse_blueprint(self.load_document())

    def get_summary(self) -> Optional[dict]:
        """camelCase summary of the stored blueprint."""
        document = self.load_document()
        if document is None:
            return None
        return summarize_template(document)

    def _iter_nodes(self, document: dict):
        for system in document.get('systems') or []:
            if not isinstance(system, dict):
                continue
            yield 'system', system
            for component in system.get('components') or []:
                if not isinstance(component, dict):
                    continue
                yield 'component', component
                for option in component.get('options') or []:
                    if isinstance(option, dict):
                        yield 'option', option

    def _find_node(self, document: dict, target: str, node_id: str) -> Optional[dict]:
        for kind, node in self._iter_nodes(document):
            if kind == target and str(node.get('id')) == node_id:
                return node
        return None

    def validate_updates(self, updates: Any) -> ValidationResult:
        """Validate a batch of updates before applying it."""
        result = ValidationResult(valid=True)

        if not isinstance(updates, list) or not updates:
            result.errors.append("No updates provided")
            result.valid = False
            return result

        result.update_count = len(updates)
        for index, update in enumerate(updates):
            if not isinstance(update, dict):
                result.errors.append(f"Update {index} is not an object")
                result.valid = False
                continue

            target = update.get('target')
            if target not in UPDATE_TARGETS:
                result.errors.append(f"Update {index}: unsupported update target '{target}'")
                result.valid = False
                continue

            if not update.get('id'):
                result.errors.append(f"Missing {target} id")
                result.valid = False
                continue

            for key in NUMERIC_FIELDS:
                if key not in update:
                    continue
                value = sanitize_number(update[key])
                if update[key] is not None and value is None:
                    result.errors.append(f"Update {index}: {key} must be a number")
                    result.valid = False
                elif value is not None and value < 0:
                    result.errors.append(f"Update {index}: {key} cannot be negative")
                    result.valid = False

            formula = update.get('pricingFormula')
            if formula is not None and not isinstance(formula, str):
                result.errors.append(f"Update {index}: pricingFormula must be text")
                result.valid = False

            if target == 'option':
                if 'metadata' in update and update['metadata'] is not None and not isinstance(update['metadata'], dict):
                    result.errors.append(f"Update {index}: metadata must be an object")
                    result.valid = False

                mrp = sanitize_number(update.get('unitPrice', UNSET))
                sale = sanitize_number(update.get('salePrice', UNSET))
                if isinstance(mrp, float) and isinstance(sale, float) and mrp > 0 and sale > mrp:
                    result.warnings.append(
                        f"Option '{update['id']}': sale price above MRP will be capped at MRP"
                    )

        return result

    def apply_updates(self, updates: list[dict]) -> list[AppliedUpdate]:
        """
        Apply validated updates and persist the blueprint.

        Nothing is written unless every update finds its target.

        Raises:
            FileNotFoundError: no blueprint file to update
            ValueError: an update references an unknown id
        """
        stored, document = self._read()
        if document is None:
            raise FileNotFoundError(f"Blueprint not found at {self.blueprint_path}")

        applied = []
        for update in updates:
            target = update['target']
            node_id = str(update['id'])
            node = self._find_node(document, target, node_id)
            if node is None:
                raise ValueError(f"{target.title()} '{node_id}' not found")

            if target == 'option':
                fields = self._apply_option(node, update)
            elif target == 'component':
                fields = self._apply_prices(node, update, COMPONENT_FIELDS)
                fields += self._apply_formula(node, update)
            else:
                fields = self._apply_prices(node, update, SYSTEM_FIELDS)
                fields += self._apply_formula(node, update)

            applied.append(AppliedUpdate(target=target, id=node_id, fields=fields))
            logger.info("Updated %s %s: %s", target, node_id, ", ".join(fields) or "no changes")

        # The template node is part of the stored document, so envelopes survive
        write_blueprint_document(self.blueprint_path, stored)
        return applied

    def _apply_prices(self, node: dict, update: dict, keys) -> list[str]:
        fields = []
        for camel, snake in keys:
            value = sanitize_number(update.get(camel, UNSET))
            if value is UNSET:
                continue
            _set_key(node, camel, snake, value)
            fields.append(camel)
        return fields

    def _apply_formula(self, node: dict, update: dict) -> list[str]:
        if 'pricingFormula' not in update:
            return []
        _set_key(node, 'pricingFormula', _formula_key(node), update['pricingFormula'])
        return ['pricingFormula']

    def _apply_option(self, node: dict, update: dict) -> list[str]:
        fields = self._apply_prices(node, update, (('unitPrice', 'unit_price'),))

        if 'label' in update and update['label'] is not None:
            node['label'] = str(update['label'])
            fields.append('label')

        if 'metadata' in update:
            node['metadata'] = dict(update['metadata']) if update['metadata'] else None
            fields.append('metadata')

        sale = sanitize_number(update.get('salePrice', UNSET))
        if sale is not UNSET:
            metadata = dict(node.get('metadata') or {})
            # Drop alternate spellings so the new sale price is the one read
            for key in SALE_PRICE_METADATA_KEYS:
                metadata.pop(key, None)
            if sale is not None:
                metadata['sale_price'] = sale
            node['metadata'] = metadata or None
            fields.append('salePrice')

        return fields

    def get_stats(self) -> dict:
        """Counts of systems, components and priced options."""
        document = self.load_document()
        if document is None:
            return {'systems': 0, 'components': 0, 'options': 0, 'options_with_sale_price': 0}

        counts = {'system': 0, 'component': 0, 'option': 0}
        with_sale = 0
        for kind, node in self._iter_nodes(document):
            counts[kind] += 1
            if kind == 'option':
                metadata = node.get('metadata')
                if any(read_numeric(metadata, key) is not None for key in SALE_PRICE_METADATA_KEYS):
                    with_sale += 1

        return {
            'systems': counts['system'],
            'components': counts['component'],
            'options': counts['option'],
            'options_with_sale_price': with_sale,
        }
