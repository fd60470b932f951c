"""
Centralized settings and path configuration for the setup pricing tool.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_TEMPLATE_SLUG = "cctv-custom-setup"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _to_path(value: object | None) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value.expanduser().resolve()
    text = str(value).strip()
    if not text:
        return None
    return Path(text).expanduser().resolve()


def _to_text(value: object | None) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Input files
    blueprint_path: Path

    # Output files
    export_dir: Path
    catalog_export: Path
    build_report: Path

    # Blueprint template served by the storefront
    template_slug: str = DEFAULT_TEMPLATE_SLUG

    log_level: str = "INFO"

    @classmethod
    def load(cls, project_root: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Load settings from the project structure and environment overrides."""
        root = project_root or get_project_root()
        env = os.environ if env is None else env

        data_dir = root / 'src' / 'setup_pricing' / 'data'
        blueprint_path = _to_path(env.get('SETUP_PRICING_BLUEPRINT')) or data_dir / 'blueprint.json'
        export_dir = _to_path(env.get('SETUP_PRICING_EXPORT_DIR')) or data_dir / 'outputs'

        return cls(
            project_root=root,
            blueprint_path=blueprint_path,
            export_dir=export_dir,
            catalog_export=export_dir / 'pricing_catalog.csv',
            build_report=export_dir / 'build_report.json',
            template_slug=_to_text(env.get('SETUP_PRICING_TEMPLATE')) or DEFAULT_TEMPLATE_SLUG,
            log_level=(_to_text(env.get('SETUP_PRICING_LOG_LEVEL')) or "INFO").upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def configure_logging(level: str | int = "INFO") -> None:
    """Attach a basic stream handler to the root logger if none is present."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logging.getLogger("setup_pricing").setLevel(level)
