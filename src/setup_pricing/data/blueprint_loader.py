"""
Blueprint loader - reads the admin blueprint JSON from disk.

A missing or unreadable file is not an error for the configurator: the
loader logs a warning and returns None so the built-in pricing is used.
"""
import json
import logging
from pathlib import Path
from typing import Any, Optional

from ..engine.blueprint import Blueprint, parse_blueprint

logger = logging.getLogger(__name__)


def read_blueprint_document(path: Path) -> Optional[dict[str, Any]]:
    """Read the raw JSON document, or None when it is missing or invalid."""
    path = Path(path)
    if not path.exists():
        logger.warning("Blueprint file not found at %s; using built-in pricing", path)
        return None

    try:
        with open(path, 'r', encoding='utf-8') as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read blueprint %s: %s; using built-in pricing", path, e)
        return None

    if not isinstance(document, dict):
        logger.warning("Blueprint %s is not a JSON object; using built-in pricing", path)
        return None
    return document


def load_blueprint(path: Path, template_slug: Optional[str] = None) -> Optional[Blueprint]:
    """Load and parse a blueprint file, picking ``template_slug`` when it holds several."""
    document = read_blueprint_document(path)
    if document is None:
        return None
    blueprint = parse_blueprint(document, template_slug)
    if blueprint is not None:
        logger.info("Loaded blueprint '%s' with %d systems", blueprint.slug or blueprint.id, len(blueprint.systems))
    return blueprint


def write_blueprint_document(path: Path, document: dict[str, Any]):
    """Persist a blueprint document as indented JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(document, f, indent=2, ensure_ascii=False)
