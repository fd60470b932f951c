"""
Blueprint models - the admin-configured systems / components / options tree.

A blueprint reaches the configurator as plain JSON, either as an already
summarized document (camelCase keys) or as raw template rows straight from
the storefront database (snake_case keys with ``sort_order`` / ``is_default``).
``parse_blueprint`` accepts both and never trusts the types it is handed.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .metadata import to_finite_float


logger = logging.getLogger(__name__)

_MISSING_ORDER = 9999

# Admin API responses wrap the template in one of these keys
ENVELOPE_KEYS = ('summary', 'template', 'data')


@dataclass(frozen=True)
class BlueprintOption:
    """A single selectable option of a component."""
    id: str
    label: str
    value: Optional[str] = None
    unit_price: Optional[float] = None
    metadata: Optional[dict[str, Any]] = None
    is_default: bool = False


@dataclass(frozen=True)
class BlueprintComponent:
    """A component slot (recorder, camera, cable, ...) inside a system."""
    id: str
    slug: str
    name: str
    options: tuple[BlueprintOption, ...] = ()
    unit_price: Optional[float] = None
    base_price: Optional[float] = None
    metadata: Optional[dict[str, Any]] = None
    pricing_mode: str = "fixed"
    pricing_formula: Optional[str] = None
    default_quantity: Optional[float] = None
    is_required: bool = False

    @property
    def default_option(self) -> Optional[BlueprintOption]:
        for option in self.options:
            if option.is_default:
                return option
        return self.options[0] if self.options else None


@dataclass(frozen=True)
class BlueprintSystem:
    """A recorder system (``dvr-system`` / ``nvr-system``) and its components."""
    id: str
    slug: str
    name: str
    components: tuple[BlueprintComponent, ...] = ()
    base_fee: Optional[float] = None
    is_default: bool = False
    pricing_formula: Optional[str] = None

    def find_component(self, slug: str) -> Optional[BlueprintComponent]:
        """Find a component by exact slug."""
        for component in self.components:
            if component.slug == slug:
                return component
        return None

    def find_component_containing(self, fragment: str) -> Optional[BlueprintComponent]:
        """Find the first component whose slug contains ``fragment``."""
        for component in self.components:
            if fragment in component.slug:
                return component
        return None


@dataclass(frozen=True)
class Blueprint:
    """A custom setup template as consumed by the catalog resolver."""
    id: str
    slug: str
    name: str
    systems: tuple[BlueprintSystem, ...] = ()
    currency: Optional[str] = None
    base_price: Optional[float] = None
    metadata: Optional[dict[str, Any]] = field(default=None, compare=False)

    def find_system(self, slug: str) -> Optional[BlueprintSystem]:
        """Find a system by slug."""
        for system in self.systems:
            if system.slug == slug:
                return system
        return None


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    """Return the first key present (camelCase or snake_case spelling)."""
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _metadata(value: Any) -> Optional[dict[str, Any]]:
    if isinstance(value, Mapping):
        return {str(k): v for k, v in value.items()}
    return None


def _rows(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, (list, tuple)):
        return []
    return [row for row in value if isinstance(row, Mapping)]


def _sort_order(row: Mapping[str, Any]) -> float:
    order = to_finite_float(_pick(row, 'sort_order', 'sortOrder'))
    return _MISSING_ORDER if order is None else order


def _parse_option(raw: Mapping[str, Any]) -> BlueprintOption:
    return BlueprintOption(
        id=_text(raw.get('id')),
        label=_text(raw.get('label')),
        value=_optional_text(raw.get('value')),
        unit_price=to_finite_float(_pick(raw, 'unitPrice', 'unit_price')),
        metadata=_metadata(raw.get('metadata')),
        is_default=bool(_pick(raw, 'isDefault', 'is_default')),
    )


def _parse_component(raw: Mapping[str, Any]) -> BlueprintComponent:
    # Options keep their stored order; components and systems follow sort_order
    options = tuple(_parse_option(row) for row in _rows(raw.get('options')))
    return BlueprintComponent(
        id=_text(raw.get('id')),
        slug=_text(raw.get('slug')),
        name=_text(raw.get('name')),
        options=options,
        unit_price=to_finite_float(_pick(raw, 'unitPrice', 'unit_price')),
        base_price=to_finite_float(_pick(raw, 'basePrice', 'base_price')),
        metadata=_metadata(raw.get('metadata')),
        pricing_mode=_text(_pick(raw, 'pricingMode', 'pricing_mode'), "fixed"),
        is_required=bool(_pick(raw, 'isRequired', 'is_required')),
        pricing_formula=_optional_text(_pick(raw, 'pricingFormula', 'pricing_formula', 'price_formula')),
        default_quantity=to_finite_float(_pick(raw, 'defaultQuantity', 'default_quantity')),
    )


def _parse_system(raw: Mapping[str, Any]) -> BlueprintSystem:
    component_rows = sorted(_rows(raw.get('components')), key=_sort_order)
    return BlueprintSystem(
        id=_text(raw.get('id')),
        slug=_text(raw.get('slug')),
        name=_text(raw.get('name')),
        components=tuple(_parse_component(row) for row in component_rows),
        base_fee=to_finite_float(_pick(raw, 'baseFee', 'base_fee')),
        is_default=bool(_pick(raw, 'isDefault', 'is_default')),
        pricing_formula=_optional_text(_pick(raw, 'pricingFormula', 'pricing_formula')),
    )


def find_template(payload: Any, template_slug: Optional[str] = None) -> Optional[Mapping[str, Any]]:
    """
    Locate the template node inside a stored document.

    Accepts a bare template, an admin envelope (``{"summary": {...}}``) or a
    multi-template document (``{"templates": [...]}``). With several
    templates, the one whose slug equals ``template_slug`` wins, else the
    first. The returned node is the document's own object, not a copy.
    """
    if not isinstance(payload, Mapping):
        return None

    for envelope in ENVELOPE_KEYS:
        inner = payload.get(envelope)
        if isinstance(inner, Mapping) and ('systems' in inner or 'templates' in inner):
            payload = inner
            break

    templates = _rows(payload.get('templates'))
    if templates:
        for template in templates:
            if template_slug and template.get('slug') == template_slug:
                return template
        if template_slug:
            logger.warning(
                "Template '%s' not in blueprint document; using '%s'",
                template_slug, _text(templates[0].get('slug')),
            )
        return templates[0]

    slug = _text(payload.get('slug'))
    if template_slug and slug and slug != template_slug:
        logger.warning("Blueprint slug '%s' does not match configured template '%s'", slug, template_slug)
    return payload


def parse_blueprint(payload: Any, template_slug: Optional[str] = None) -> Optional[Blueprint]:
    """
    Build a Blueprint from untrusted JSON.

    Returns None when the payload is not an object. Unknown keys are ignored,
    non-list collections become empty, and non-numeric prices become None.
    """
    if isinstance(payload, Blueprint):
        return payload
    payload = find_template(payload, template_slug)
    if payload is None:
        return None

    system_rows = sorted(_rows(payload.get('systems')), key=_sort_order)
    return Blueprint(
        id=_text(payload.get('id')),
        slug=_text(payload.get('slug')),
        name=_text(payload.get('name')),
        systems=tuple(_parse_system(row) for row in system_rows),
        currency=_optional_text(payload.get('currency')),
        base_price=to_finite_float(_pick(payload, 'basePrice', 'base_price')),
        metadata=_metadata(payload.get('metadata')),
    )


def summarize_template(template: Any) -> Optional[dict[str, Any]]:
    """
    Convert raw template rows into the camelCase summary document.

    This is the shape the storefront caches and the admin screen edits:
    systems and components ordered by ``sort_order``, each component carrying
    its option count and default option.
    """
    blueprint = parse_blueprint(template)
    if blueprint is None:
        return None

    def option_summary(option: BlueprintOption) -> dict[str, Any]:
        return {
            "id": option.id,
            "label": option.label,
            "value": option.value,
            "unitPrice": option.unit_price,
            "metadata": option.metadata,
            "isDefault": option.is_default,
        }

    systems = []
    for system in blueprint.systems:
        components = []
        for component in system.components:
            default_option = component.default_option
            components.append({
                "id": component.id,
                "slug": component.slug,
                "name": component.name,
                "isRequired": component.is_required,
                "pricingMode": component.pricing_mode,
                "optionCount": len(component.options),
                "defaultOption": option_summary(default_option) if default_option else None,
                "options": [option_summary(option) for option in component.options],
                "metadata": component.metadata,
                "basePrice": component.base_price,
                "unitPrice": component.unit_price,
                "pricingFormula": component.pricing_formula,
                "defaultQuantity": component.default_quantity,
            })
        systems.append({
            "id": system.id,
            "slug": system.slug,
            "name": system.name,
            "isDefault": system.is_default,
            "baseFee": system.base_fee,
            "pricingFormula": system.pricing_formula,
            "components": components,
        })

    return {
        "id": blueprint.id,
        "slug": blueprint.slug,
        "name": blueprint.name,
        "currency": blueprint.currency,
        "basePrice": blueprint.base_price,
        "metadata": blueprint.metadata,
        "systems": systems,
    }
