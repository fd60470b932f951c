"""Engine subpackage - catalog resolution, recommendations and totals."""
from .blueprint import Blueprint, parse_blueprint, summarize_template
from .catalog_resolver import build_pricing_catalog
from .fallback_pricing import FallbackPricing, SizingRules
from .models import ConfiguratorState, PricingCatalog, Totals
from .pricing_engine import SetupPricingEngine, compute_totals
from .session import ConfiguratorSession, clamp_camera_count, default_state, reconcile_selections

__all__ = [
    'Blueprint',
    'parse_blueprint',
    'summarize_template',
    'build_pricing_catalog',
    'FallbackPricing',
    'SizingRules',
    'ConfiguratorState',
    'PricingCatalog',
    'Totals',
    'SetupPricingEngine',
    'compute_totals',
    'ConfiguratorSession',
    'clamp_camera_count',
    'default_state',
    'reconcile_selections',
]
