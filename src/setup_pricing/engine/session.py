"""
Configurator session - selection state for one quoting session.

The session owns a resolved catalog and an immutable ConfiguratorState.
Every change produces a new state, re-applies capacity recommendations and
leaves totals to be recomputed from scratch.
"""
import logging
import re
from dataclasses import replace
from typing import Any, Optional

from .blueprint import Blueprint
from .catalog_resolver import build_pricing_catalog
from .fallback_pricing import FallbackPricing, SizingRules
from .metadata import to_finite_float
from .models import (
    SYSTEMS,
    AnalogSelections,
    ConfiguratorState,
    IpSelections,
    OptionState,
    PricingCatalog,
    SetupSystem,
    Totals,
)
from .price_rules import round_half_up
from .pricing_engine import compute_totals
from .recommendation import (
    apply_recommendations,
    cable_option_states,
    capacity_option_states,
    recommended_power_capacity,
    recommended_recorder_capacity,
)

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r'\s*([+-]?\d+)')


def clamp_camera_count(value: Any, previous: int = 4, rules: Optional[SizingRules] = None) -> int:
    """
    Normalize a camera count into [min_cameras, max_cameras].

    Numbers are rounded half-up, strings use their leading integer. Anything
    unparseable (or non-finite) keeps the previous count.
    """
    rules = rules or SizingRules()
    if isinstance(value, bool):
        return previous

    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if not match:
            return previous
        number = int(match.group(1))
    elif isinstance(value, int):
        number = value
    else:
        parsed = to_finite_float(value)
        if parsed is None:
            return previous
        number = round_half_up(parsed)

    return min(rules.max_cameras, max(rules.min_cameras, number))


def _default_hdd_id(catalog: PricingCatalog) -> str:
    options = catalog.hdd_options
    return options[1].id if len(options) > 1 else options[0].id


def default_state(catalog: PricingCatalog, rules: Optional[SizingRules] = None) -> ConfiguratorState:
    """Initial state: analog, default camera count, first entries, recommended tiers."""
    rules = rules or SizingRules()
    analog = catalog.analog
    ip = catalog.ip
    state = ConfiguratorState(
        analog=AnalogSelections(dvr_id=analog.dvr[0].id, smps_id=analog.smps[0].id, cable_id=analog.cable[0].id),
        ip=IpSelections(nvr_id=ip.nvr[0].id, poe_id=ip.poe[0].id, cable_id=ip.cable[0].id),
        hdd_id=_default_hdd_id(catalog),
        system='analog',
        camera_count=rules.default_cameras,
        monitor_included=False,
        installation_included=True,
    )
    return apply_recommendations(catalog, state, rules)


def _keep_or_first(entries, entry_id: str) -> str:
    if any(entry.id == entry_id for entry in entries):
        return entry_id
    return entries[0].id


def reconcile_selections(catalog: PricingCatalog, previous: ConfiguratorState) -> ConfiguratorState:
    """
    Carry a state over to a rebuilt catalog.

    Ids that no longer exist fall back to the first entry of their list;
    everything else (counts, toggles, resolution) is preserved.
    """
    analog = previous.analog
    ip = previous.ip
    reconciled = replace(
        previous,
        analog=replace(
            analog,
            dvr_id=_keep_or_first(catalog.analog.dvr, analog.dvr_id),
            smps_id=_keep_or_first(catalog.analog.smps, analog.smps_id),
            cable_id=_keep_or_first(catalog.analog.cable, analog.cable_id),
        ),
        ip=replace(
            ip,
            nvr_id=_keep_or_first(catalog.ip.nvr, ip.nvr_id),
            poe_id=_keep_or_first(catalog.ip.poe, ip.poe_id),
            cable_id=_keep_or_first(catalog.ip.cable, ip.cable_id),
        ),
        hdd_id=_keep_or_first(catalog.hdd_options, previous.hdd_id),
    )
    if reconciled != previous:
        logger.debug("Reconciled selections against rebuilt catalog")
    return reconciled


class ConfiguratorSession:
    """
    One user's configurator: catalog + current selections.

    All mutators return None except ``select_recorder`` / ``select_power``,
    which return False when the requested tier is unknown or under capacity.
    """

    def __init__(
        self,
        blueprint: Optional[Blueprint] = None,
        fallback: Optional[FallbackPricing] = None,
        rules: Optional[SizingRules] = None,
    ):
        self.fallback = fallback or FallbackPricing.builtin()
        self.rules = rules or SizingRules()
        self.blueprint = blueprint
        self.catalog = build_pricing_catalog(blueprint, self.fallback)
        self.state = default_state(self.catalog, self.rules)

    def _commit(self, state: ConfiguratorState):
        self.state = apply_recommendations(self.catalog, state, self.rules)

    def _update_selections(self, system: SetupSystem, **changes):
        selections = replace(getattr(self.state, system), **changes)
        self._commit(replace(self.state, **{system: selections}))

    def set_blueprint(self, blueprint: Optional[Blueprint]):
        """Rebuild the catalog when a different blueprint arrives."""
        if blueprint is self.blueprint:
            return
        self.blueprint = blueprint
        self.catalog = build_pricing_catalog(blueprint, self.fallback)
        self._commit(reconcile_selections(self.catalog, self.state))
        logger.info("Configurator catalog rebuilt (%d fallback notes)", len(self.catalog.notes))

    def set_system(self, system: str):
        if system not in SYSTEMS:
            logger.debug("Ignoring unknown system %r", system)
            return
        self._commit(replace(self.state, system=system))

    def set_camera_count(self, value: Any):
        count = clamp_camera_count(value, self.state.camera_count, self.rules)
        self._commit(replace(self.state, camera_count=count))

    def _select_capacity(self, system: SetupSystem, entry_id: str, power: bool) -> bool:
        pricing = self.catalog.system_pricing(system)
        options = pricing.power if power else pricing.recorder
        entry = next((option for option in options if option.id == entry_id), None)
        if entry is None:
            return False

        count = self.state.camera_count
        if power:
            minimum = recommended_power_capacity(system, count, self.rules)
        else:
            minimum = recommended_recorder_capacity(system, count, self.rules)
        if entry.capacity < minimum:
            logger.debug("Refusing %s: capacity %d below recommended %d", entry_id, entry.capacity, minimum)
            return False

        selections = getattr(self.state, system)
        field_name = selections.POWER_FIELD if power else selections.RECORDER_FIELD
        self._update_selections(system, **{field_name: entry_id})
        return True

    def select_recorder(self, entry_id: str, system: Optional[SetupSystem] = None) -> bool:
        return self._select_capacity(system or self.state.system, entry_id, power=False)

    def select_power(self, entry_id: str, system: Optional[SetupSystem] = None) -> bool:
        return self._select_capacity(system or self.state.system, entry_id, power=True)

    def select_cable(self, entry_id: str, system: Optional[SetupSystem] = None):
        system = system or self.state.system
        cables = self.catalog.system_pricing(system).cable
        if any(cable.id == entry_id for cable in cables):
            self._update_selections(system, cable_id=entry_id)

    def set_resolution(self, resolution: str, system: Optional[SetupSystem] = None):
        system = system or self.state.system
        selections = getattr(self.state, system)
        if resolution not in selections.RESOLUTIONS:
            return
        self._update_selections(system, resolution=resolution)

    def set_dual_light(self, enabled: bool, system: Optional[SetupSystem] = None):
        self._update_selections(system or self.state.system, dual_light=bool(enabled))

    def select_hdd(self, hdd_id: str):
        if any(entry.id == hdd_id for entry in self.catalog.hdd_options):
            self._commit(replace(self.state, hdd_id=hdd_id))

    def set_monitor_included(self, included: bool):
        self._commit(replace(self.state, monitor_included=bool(included)))

    def set_installation_included(self, included: bool):
        self._commit(replace(self.state, installation_included=bool(included)))

    def totals(self) -> Totals:
        """Totals for the current state."""
        state = self.state
        return compute_totals(
            system=state.system,
            camera_count=state.camera_count,
            selections=state.selections,
            catalog=self.catalog,
            hdd_id=state.hdd_id,
            monitor_included=state.monitor_included,
            installation_included=state.installation_included,
            rules=self.rules,
        )

    def recorder_options(self, system: Optional[SetupSystem] = None) -> list[OptionState]:
        system = system or self.state.system
        count = self.state.camera_count
        return capacity_option_states(
            self.catalog.system_pricing(system).recorder,
            recommended_recorder_capacity(system, count, self.rules),
            count,
        )

    def power_options(self, system: Optional[SetupSystem] = None) -> list[OptionState]:
        system = system or self.state.system
        count = self.state.camera_count
        return capacity_option_states(
            self.catalog.system_pricing(system).power,
            recommended_power_capacity(system, count, self.rules),
            count,
        )

    def cable_options(self, system: Optional[SetupSystem] = None) -> list[OptionState]:
        system = system or self.state.system
        return cable_option_states(self.catalog.system_pricing(system).cable, self.state.camera_count, self.rules)
