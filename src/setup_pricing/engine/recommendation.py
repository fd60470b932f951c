"""
Recommendation Engine - capacity tiers and unit quantities for a camera count.

Selections are never left under-provisioned: when the camera count grows past
the selected recorder or power tier, ``apply_recommendations`` moves the
selection up to the smallest adequate tier. Smaller tiers stay visible in the
option lists but are flagged as disabled.
"""
import logging
import math
from dataclasses import replace
from typing import Optional, Sequence

from .fallback_pricing import SizingRules
from .models import (
    CablePriceEntry,
    CapacityPriceEntry,
    ConfiguratorState,
    OptionState,
    PricingCatalog,
    SetupSystem,
)

logger = logging.getLogger(__name__)

_DEFAULT_RULES = SizingRules()


def recommend_capacity(camera_count: int, tiers: Sequence[int]) -> int:
    """Smallest tier that covers the camera count, else the largest tier."""
    ordered = sorted(tiers)
    for tier in ordered:
        if camera_count <= tier:
            return tier
    return ordered[-1]


def recommended_analog_dvr_capacity(camera_count: int, rules: SizingRules = _DEFAULT_RULES) -> int:
    """4 / 8 / 16 / 32 channel DVR."""
    return recommend_capacity(camera_count, rules.analog_recorder_tiers)


def recommended_analog_smps_capacity(camera_count: int, rules: SizingRules = _DEFAULT_RULES) -> int:
    """4 / 8 / 16 channel SMPS."""
    return recommend_capacity(camera_count, rules.analog_power_tiers)


def recommended_ip_capacity(camera_count: int, rules: SizingRules = _DEFAULT_RULES) -> int:
    """8 / 16 / 32 channel NVR and port PoE switch."""
    return recommend_capacity(camera_count, rules.ip_tiers)


def recommended_recorder_capacity(system: SetupSystem, camera_count: int, rules: SizingRules = _DEFAULT_RULES) -> int:
    return recommend_capacity(camera_count, rules.recorder_tiers(system))


def recommended_power_capacity(system: SetupSystem, camera_count: int, rules: SizingRules = _DEFAULT_RULES) -> int:
    return recommend_capacity(camera_count, rules.power_tiers(system))


def pick_capacity_option(
    options: Sequence[CapacityPriceEntry],
    target_capacity: int,
) -> Optional[CapacityPriceEntry]:
    """
    Pick the first option (by ascending capacity) that meets the target.

    Falls back to the largest tier when the target exceeds every option.
    Returns None only for an empty option list.
    """
    if not options:
        return None
    ordered = sorted(options, key=lambda entry: entry.capacity)
    for entry in ordered:
        if entry.capacity >= target_capacity:
            return entry
    return ordered[-1]


def calculate_quantity(camera_count: int, capacity: int) -> int:
    """Units needed when one unit serves ``capacity`` cameras."""
    if capacity <= 0:
        return 1
    return max(1, math.ceil(camera_count / capacity))


def calculate_cable_quantity(
    camera_count: int,
    cable: CablePriceEntry,
    run_meters: float = _DEFAULT_RULES.average_run_meters,
) -> int:
    """Cable units for an average run of ``run_meters`` per camera."""
    total_run = max(1, camera_count) * run_meters
    coverage = max(1, cable.coverage_meters)
    return max(1, math.ceil(total_run / coverage))


def capacity_option_states(
    options: Sequence[CapacityPriceEntry],
    recommended_capacity: int,
    camera_count: int,
) -> list[OptionState]:
    """Describe each capacity option for a selection list."""
    states = []
    for entry in options:
        quantity = calculate_quantity(camera_count, entry.capacity)
        states.append(OptionState(
            entry=entry,
            quantity=quantity,
            total_sale=entry.sale * quantity,
            recommended=entry.capacity == recommended_capacity,
            disabled=entry.capacity < recommended_capacity,
        ))
    return states


def cable_option_states(
    cables: Sequence[CablePriceEntry],
    camera_count: int,
    rules: SizingRules = _DEFAULT_RULES,
) -> list[OptionState]:
    """Describe each cable option with its estimated unit count."""
    states = []
    for cable in cables:
        quantity = calculate_cable_quantity(camera_count, cable, rules.average_run_meters)
        states.append(OptionState(entry=cable, quantity=quantity, total_sale=cable.sale_per_unit * quantity))
    return states


def _find(options: Sequence[CapacityPriceEntry], entry_id: str) -> Optional[CapacityPriceEntry]:
    for entry in options:
        if entry.id == entry_id:
            return entry
    return None


def _enforce_minimum(
    options: Sequence[CapacityPriceEntry],
    current_id: str,
    minimum: int,
) -> str:
    current = _find(options, current_id)
    if current is not None and current.capacity >= minimum:
        return current_id
    recommended = pick_capacity_option(options, minimum)
    if recommended is None:
        return current_id
    return recommended.id


def apply_recommendations(
    catalog: PricingCatalog,
    state: ConfiguratorState,
    rules: SizingRules = _DEFAULT_RULES,
) -> ConfiguratorState:
    """
    Bump under-provisioned recorder / power selections for both systems.

    Selections that already meet the recommended tier (including deliberate
    upgrades) are left alone.
    """
    count = state.camera_count
    updated = {}

    for system in ('analog', 'ip'):
        pricing = catalog.system_pricing(system)
        selections = getattr(state, system)

        recorder_id = _enforce_minimum(
            pricing.recorder, selections.recorder_id, recommended_recorder_capacity(system, count, rules)
        )
        power_id = _enforce_minimum(
            pricing.power, selections.power_id, recommended_power_capacity(system, count, rules)
        )

        if recorder_id != selections.recorder_id or power_id != selections.power_id:
            logger.debug(
                "Auto-selected %s tiers for %d cameras: recorder %s -> %s, power %s -> %s",
                system, count, selections.recorder_id, recorder_id, selections.power_id, power_id,
            )
            updated[system] = selections.with_recorder(recorder_id).with_power(power_id)

    if not updated:
        return state

    return replace(state, **updated)
