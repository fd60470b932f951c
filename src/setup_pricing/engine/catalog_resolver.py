"""
Catalog Resolver - merges an admin blueprint with built-in fallback pricing.

Resolution order for every slot:
1. Locate the system by slug (dvr-system / nvr-system)
2. Locate the component by its fixed slug
3. Transform matching options into catalog entries (price pair validated)
4. Fall back to the built-in entry for anything missing or unreadable

The resolver never raises; the result is always fully populated.
"""
import logging
import math
import re
from typing import Optional, Sequence

from .blueprint import Blueprint, BlueprintComponent, BlueprintOption, BlueprintSystem
from .fallback_pricing import FallbackPricing
from .metadata import (
    parse_channel_capacity,
    parse_megapixels,
    read_boolean,
    read_numeric,
)
from .models import (
    AnalogPricing,
    CablePriceEntry,
    CameraPriceMatrix,
    CapacityPriceEntry,
    IpPricing,
    PriceEntry,
    PricingCatalog,
)
from .price_rules import resolve_price_pair, round_half_up

logger = logging.getLogger(__name__)


ANALOG_SYSTEM_SLUG = 'dvr-system'
IP_SYSTEM_SLUG = 'nvr-system'

ANALOG_COMPONENT_SLUGS = {
    'recorder': 'dvr-recorder',
    'power': 'smps-power',
    'camera': 'analog-camera',
    'cable': 'coaxial-cable',
    'storage': 'dvr-storage',
}

IP_COMPONENT_SLUGS = {
    'recorder': 'nvr-recorder',
    'power': 'poe-switch',
    'camera': 'ip-camera',
    'cable': 'cat6-cable',
    'storage': 'nvr-storage',
}

MONITOR_SLUG_FRAGMENT = 'monitor'
INSTALLATION_SLUG = 'installation-service'

# Megapixel readings within this distance of a tier belong to it
MEGAPIXEL_TOLERANCE = 0.11

_STORAGE_CAPACITY = re.compile(r'(\d+(?:\.\d+)?)\s*(tb|gb)', re.IGNORECASE)


class _Notes:
    """Collects fallback notes while a catalog is being built."""

    def __init__(self):
        self.items: list[str] = []

    def add(self, slot: str, reason: str):
        message = f"{slot}: {reason}"
        self.items.append(message)
        logger.debug("Catalog fallback - %s", message)


def _component(system: Optional[BlueprintSystem], slug: str) -> Optional[BlueprintComponent]:
    if system is None:
        return None
    return system.find_component(slug)


def normalize_capacity(option: Optional[BlueprintOption], fallback_capacity: int) -> float:
    """Channel count from metadata, else from the label, else the fallback."""
    if option is not None:
        metadata_capacity = read_numeric(option.metadata, 'channel_count')
        if metadata_capacity:
            return metadata_capacity
        parsed = parse_channel_capacity(option.label)
        if parsed:
            return parsed
    return fallback_capacity


def normalize_megapixels(option: Optional[BlueprintOption], fallback: float) -> float:
    """Megapixels from metadata, else from the label, else the fallback."""
    if option is not None:
        metadata_mp = read_numeric(option.metadata, 'megapixels')
        if metadata_mp:
            return metadata_mp
        parsed = parse_megapixels(option.label)
        if parsed is not None:
            return parsed
    return fallback


def build_capacity_entries(
    component: Optional[BlueprintComponent],
    fallback: Sequence[CapacityPriceEntry],
) -> tuple[CapacityPriceEntry, ...]:
    """
    Build recorder or power/switch entries sorted by capacity.

    Blueprint options come first; any fallback tier whose capacity the
    blueprint does not cover is appended so every tier stays purchasable.
    """
    if component is None:
        return tuple(fallback)

    fallback_by_capacity: dict[int, CapacityPriceEntry] = {}
    for entry in fallback:
        # Later duplicates win, matching a capacity -> entry map
        fallback_by_capacity[entry.capacity] = entry

    entries: list[CapacityPriceEntry] = []
    for index, option in enumerate(component.options):
        fallback_by_index = fallback[index] if index < len(fallback) else (fallback[0] if fallback else None)
        fallback_capacity = fallback_by_index.capacity if fallback_by_index else 1
        capacity = max(1, round_half_up(normalize_capacity(option, fallback_capacity)))
        fallback_entry = fallback_by_capacity.get(capacity, fallback_by_index)

        fallback_mrp = fallback_entry.mrp if fallback_entry and fallback_entry.mrp is not None else 0
        fallback_sale = fallback_entry.sale if fallback_entry else 0
        pair = resolve_price_pair(option, component, fallback_mrp, fallback_sale)

        entries.append(CapacityPriceEntry(
            id=option.id,
            label=option.label or (fallback_entry.label if fallback_entry else '') or component.name,
            capacity=capacity,
            mrp=pair.mrp,
            sale=pair.sale,
        ))

    covered = {entry.capacity for entry in entries}
    for entry in fallback:
        if entry.capacity not in covered:
            entries.append(entry)

    return tuple(sorted(entries, key=lambda entry: entry.capacity))


def _matches_cable(option: BlueprintOption, fallback: CablePriceEntry) -> bool:
    label = (option.label or '').lower()
    fallback_lower = fallback.label.lower()
    if 'lan' in fallback_lower and 'lan' in label:
        return True
    if 'coaxial' in fallback_lower and ('coax' in label or 'rg59' in label):
        return True
    return False


def build_cable_entries(
    component: Optional[BlueprintComponent],
    fallback: Sequence[CablePriceEntry],
) -> tuple[CablePriceEntry, ...]:
    """Replace each fallback cable with its matching blueprint option, if any."""
    if component is None:
        return tuple(fallback)

    entries = []
    for entry in fallback:
        option = next((candidate for candidate in component.options if _matches_cable(candidate, entry)), None)
        if option is None:
            entries.append(entry)
            continue

        coverage = read_numeric(option.metadata, 'coverage_m')
        if coverage is None:
            coverage = entry.coverage_meters
        pair = resolve_price_pair(option, component, entry.mrp_per_unit, entry.sale_per_unit)

        entries.append(CablePriceEntry(
            id=option.id,
            label=option.label or entry.label,
            coverage_meters=coverage,
            mrp_per_unit=pair.mrp,
            sale_per_unit=pair.sale,
        ))
    return tuple(entries)


def _is_dual_light(option: BlueprintOption) -> bool:
    metadata_dual = read_boolean(option.metadata, 'dual_light')
    if metadata_dual is not None:
        return metadata_dual
    label = (option.label or '').lower()
    return 'dual' in label or 'two light' in label


def _priced_camera(
    option: Optional[BlueprintOption],
    component: BlueprintComponent,
    fallback: PriceEntry,
) -> PriceEntry:
    if option is None:
        return fallback
    pair = resolve_price_pair(option, component, fallback.mrp if fallback.mrp is not None else 0, fallback.sale)
    return PriceEntry(id=option.id, label=option.label or fallback.label, mrp=pair.mrp, sale=pair.sale)


def build_camera_matrix(
    component: Optional[BlueprintComponent],
    resolution_key: str,
    fallback: CameraPriceMatrix,
) -> CameraPriceMatrix:
    """Pick the standard and dual-light options for one megapixel tier."""
    if component is None:
        return fallback

    target_mp = float(resolution_key.lower().replace('mp', ''))

    def find_option(dual: bool) -> Optional[BlueprintOption]:
        for option in component.options:
            megapixels = normalize_megapixels(option, target_mp)
            if abs(megapixels - target_mp) > MEGAPIXEL_TOLERANCE:
                continue
            if _is_dual_light(option) == dual:
                return option
        return None

    standard_option = find_option(False) or find_option(True)
    dual_option = find_option(True) or standard_option

    return CameraPriceMatrix(
        standard=_priced_camera(standard_option, component, fallback.standard),
        dual_light=_priced_camera(dual_option, component, fallback.dual_light),
    )


def _own_price(option: BlueprintOption, component: BlueprintComponent) -> float:
    for value in (option.unit_price, component.unit_price, component.base_price):
        if value is not None:
            return value
    return 0


def build_storage_entries(
    components: Sequence[Optional[BlueprintComponent]],
    fallback: Sequence[PriceEntry],
) -> tuple[PriceEntry, ...]:
    """Merge storage options from both systems, one entry per drive size."""
    entries: list[PriceEntry] = []
    seen: set[str] = set()

    for component in components:
        if component is None:
            continue
        for option in component.options:
            label = option.label or ''
            capacity_match = _STORAGE_CAPACITY.search(label)
            key = capacity_match.group(0).lower() if capacity_match else option.id
            if key in seen:
                continue
            price = _own_price(option, component)
            pair = resolve_price_pair(option, component, price, price)
            entries.append(PriceEntry(id=option.id, label=label or 'Storage option', mrp=pair.mrp, sale=pair.sale))
            seen.add(key)

    if not entries:
        return tuple(fallback)

    return tuple(sorted(entries, key=lambda entry: entry.label.casefold()))


def pick_first_option(component: Optional[BlueprintComponent]) -> Optional[PriceEntry]:
    """Price the first option of a single-choice component (monitor, service)."""
    if component is None or not component.options:
        return None
    option = component.options[0]
    price = _own_price(option, component)
    pair = resolve_price_pair(option, component, price, price)
    return PriceEntry(id=option.id, label=option.label or component.name, mrp=pair.mrp, sale=pair.sale)


def _first_component(
    systems: Sequence[Optional[BlueprintSystem]],
    slug: Optional[str] = None,
    fragment: Optional[str] = None,
) -> Optional[BlueprintComponent]:
    for system in systems:
        if system is None:
            continue
        component = system.find_component(slug) if slug else system.find_component_containing(fragment)
        if component is not None:
            return component
    return None


def _build_analog(system: Optional[BlueprintSystem], fallback: AnalogPricing, notes: _Notes) -> AnalogPricing:
    slugs = ANALOG_COMPONENT_SLUGS
    for slot in ('recorder', 'power', 'camera', 'cable'):
        if _component(system, slugs[slot]) is None:
            notes.add(f"analog.{slot}", f"component '{slugs[slot]}' not in blueprint")

    camera = _component(system, slugs['camera'])
    return AnalogPricing(
        dvr=build_capacity_entries(_component(system, slugs['recorder']), fallback.dvr),
        smps=build_capacity_entries(_component(system, slugs['power']), fallback.smps),
        camera={
            key: build_camera_matrix(camera, key, matrix)
            for key, matrix in fallback.camera.items()
        },
        cable=build_cable_entries(_component(system, slugs['cable']), fallback.cable),
    )


def _build_ip(system: Optional[BlueprintSystem], fallback: IpPricing, notes: _Notes) -> IpPricing:
    slugs = IP_COMPONENT_SLUGS
    for slot in ('recorder', 'power', 'camera', 'cable'):
        if _component(system, slugs[slot]) is None:
            notes.add(f"ip.{slot}", f"component '{slugs[slot]}' not in blueprint")

    camera = _component(system, slugs['camera'])
    return IpPricing(
        nvr=build_capacity_entries(_component(system, slugs['recorder']), fallback.nvr),
        poe=build_capacity_entries(_component(system, slugs['power']), fallback.poe),
        camera={
            key: build_camera_matrix(camera, key, matrix)
            for key, matrix in fallback.camera.items()
        },
        cable=build_cable_entries(_component(system, slugs['cable']), fallback.cable),
    )


def build_pricing_catalog(
    blueprint: Optional[Blueprint],
    fallback: Optional[FallbackPricing] = None,
) -> PricingCatalog:
    """
    Build the pricing catalog for a configurator session.

    Args:
        blueprint: Parsed admin blueprint, or None to use built-in pricing
        fallback: Fallback tables; a fresh copy of the built-in tables when None

    Returns:
        PricingCatalog with every slot populated
    """
    fallback = fallback or FallbackPricing.builtin()

    if blueprint is None:
        return PricingCatalog(
            analog=fallback.analog,
            ip=fallback.ip,
            hdd_options=fallback.hdd_options,
            monitor_option=fallback.monitor_option,
            installation_option=fallback.installation_option,
            notes=("blueprint: not supplied, using built-in pricing",),
        )

    notes = _Notes()
    analog_system = blueprint.find_system(ANALOG_SYSTEM_SLUG)
    ip_system = blueprint.find_system(IP_SYSTEM_SLUG)
    if analog_system is None:
        notes.add("analog", f"system '{ANALOG_SYSTEM_SLUG}' not in blueprint")
    if ip_system is None:
        notes.add("ip", f"system '{IP_SYSTEM_SLUG}' not in blueprint")

    analog = _build_analog(analog_system, fallback.analog, notes)
    ip = _build_ip(ip_system, fallback.ip, notes)

    hdd_options = build_storage_entries(
        [
            _component(analog_system, ANALOG_COMPONENT_SLUGS['storage']),
            _component(ip_system, IP_COMPONENT_SLUGS['storage']),
        ],
        fallback.hdd_options,
    )
    if hdd_options == tuple(fallback.hdd_options):
        notes.add("storage", "no storage options in blueprint")

    systems = [analog_system, ip_system]
    monitor_option = pick_first_option(_first_component(systems, fragment=MONITOR_SLUG_FRAGMENT))
    if monitor_option is None:
        notes.add("monitor", "no monitor component in blueprint")
        monitor_option = fallback.monitor_option

    installation_option = pick_first_option(_first_component(systems, slug=INSTALLATION_SLUG))
    if installation_option is None:
        notes.add("installation", f"component '{INSTALLATION_SLUG}' not in blueprint")
        installation_option = fallback.installation_option

    catalog = PricingCatalog(
        analog=analog,
        ip=ip,
        hdd_options=hdd_options,
        monitor_option=monitor_option,
        installation_option=installation_option,
        notes=tuple(notes.items),
    )
    logger.info(
        "Built pricing catalog from blueprint '%s' (%d fallback slots)",
        blueprint.slug or blueprint.id, len(notes.items),
    )
    return catalog


def catalog_is_consistent(catalog: PricingCatalog) -> bool:
    """True when every entry satisfies sale >= 0 and mrp >= sale."""
    def ok(mrp: Optional[float], sale: float) -> bool:
        if not math.isfinite(sale) or sale < 0:
            return False
        return mrp is None or mrp >= sale

    for pricing in (catalog.analog, catalog.ip):
        for entry in (*pricing.recorder, *pricing.power):
            if not ok(entry.mrp, entry.sale):
                return False
        for matrix in pricing.camera.values():
            if not ok(matrix.standard.mrp, matrix.standard.sale) or not ok(matrix.dual_light.mrp, matrix.dual_light.sale):
                return False
        for cable in pricing.cable:
            if not ok(cable.mrp_per_unit, cable.sale_per_unit):
                return False
    for entry in (*catalog.hdd_options, catalog.monitor_option, catalog.installation_option):
        if not ok(entry.mrp, entry.sale):
            return False
    return True
