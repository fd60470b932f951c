"""
Shared API state - one pricing engine per process, rebuilt on reload.
"""
import logging
from typing import Optional

from ..config.settings import Settings, configure_logging, get_settings
from ..data.blueprint_loader import load_blueprint
from ..engine.blueprint import Blueprint
from ..engine.catalog_resolver import build_pricing_catalog
from ..engine.fallback_pricing import FallbackPricing, SizingRules
from ..engine.pricing_engine import SetupPricingEngine
from ..services.blueprint_service import BlueprintService

logger = logging.getLogger(__name__)


class EngineState:
    """Holds the loaded blueprint and the engine built from it."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.fallback = FallbackPricing.builtin()
        self.rules = SizingRules()
        self.blueprint_service = BlueprintService(self.settings.blueprint_path, self.settings.template_slug)
        self.blueprint: Optional[Blueprint] = None
        self.engine = SetupPricingEngine(build_pricing_catalog(None, self.fallback), self.rules)
        self.reload()

    def reload(self) -> int:
        """Re-read the blueprint file and swap in a fresh catalog.

        Returns the number of catalog slots served from fallback pricing.
        """
        self.blueprint = load_blueprint(self.settings.blueprint_path, self.settings.template_slug)
        catalog = build_pricing_catalog(self.blueprint, self.fallback)
        self.engine.reload(catalog)
        logger.info("Pricing engine reloaded (%d fallback notes)", len(catalog.notes))
        return len(catalog.notes)

    @property
    def catalog(self):
        return self.engine.catalog


configure_logging(get_settings().log_level)
state = EngineState()
engine = state.engine
