"""
Pricing Engine - system subtotal, add-ons and overall totals with traceability.

Resolution order:
1. Resolve the selected recorder, power unit, camera variant and cable
   (unknown ids fall back to the first catalog entry)
2. Size power and cable quantities from the camera count
3. Add storage, monitor and installation
4. Apply the aggregate MRP floor and derive the discount
"""
import logging
from typing import Mapping, Optional, Sequence, TypeVar

from .fallback_pricing import SizingRules
from .models import (
    AddOnTotal,
    AnalogSelections,
    CablePriceEntry,
    CameraPriceMatrix,
    ConfiguratorState,
    IpSelections,
    PriceEntry,
    PricingCatalog,
    QuoteLine,
    SetupSystem,
    SystemSummary,
    Totals,
)
from .price_rules import apply_mrp_floor, format_inr, summarize_overall
from .recommendation import calculate_cable_quantity, calculate_quantity

logger = logging.getLogger(__name__)

MRP_FLOOR_WARNING = "MRP floor applied: combined sale price exceeded combined MRP"

_Entry = TypeVar('_Entry')


def _find_or_first(entries: Sequence[_Entry], entry_id: str) -> _Entry:
    for entry in entries:
        if entry.id == entry_id:
            return entry
    return entries[0]


def _camera_matrix(camera: Mapping[str, CameraPriceMatrix], resolution: str) -> CameraPriceMatrix:
    if resolution in camera:
        return camera[resolution]
    return next(iter(camera.values()))


def _mrp(entry: PriceEntry) -> float:
    return entry.mrp or 0


def compute_system_summary(
    system: SetupSystem,
    camera_count: int,
    selections: AnalogSelections | IpSelections,
    catalog: PricingCatalog,
    rules: Optional[SizingRules] = None,
) -> SystemSummary:
    """Recorder + power + cameras + cable for the active system."""
    rules = rules or SizingRules()
    pricing = catalog.system_pricing(system)

    recorder = _find_or_first(pricing.recorder, selections.recorder_id)
    power = _find_or_first(pricing.power, selections.power_id)
    camera = _camera_matrix(pricing.camera, selections.resolution).variant(selections.dual_light)
    cable: CablePriceEntry = _find_or_first(pricing.cable, selections.cable_id)

    power_qty = calculate_quantity(camera_count, power.capacity)
    cable_qty = calculate_cable_quantity(camera_count, cable, rules.average_run_meters)

    lines = [
        QuoteLine(
            component='recorder', entry_id=recorder.id, label=recorder.label, quantity=1,
            unit_mrp=_mrp(recorder), unit_sale=recorder.sale,
            mrp=_mrp(recorder), sale=recorder.sale,
        ),
        QuoteLine(
            component='power', entry_id=power.id, label=power.label, quantity=power_qty,
            unit_mrp=_mrp(power), unit_sale=power.sale,
            mrp=_mrp(power) * power_qty, sale=power.sale * power_qty,
        ),
        QuoteLine(
            component='camera', entry_id=camera.id, label=camera.label, quantity=camera_count,
            unit_mrp=_mrp(camera), unit_sale=camera.sale,
            mrp=_mrp(camera) * camera_count, sale=camera.sale * camera_count,
        ),
        QuoteLine(
            component='cable', entry_id=cable.id, label=cable.label, quantity=cable_qty,
            unit_mrp=cable.mrp_per_unit, unit_sale=cable.sale_per_unit,
            mrp=cable.mrp_per_unit * cable_qty, sale=cable.sale_per_unit * cable_qty,
        ),
    ]

    breakdown = [f"{recorder.label} ({format_inr(recorder.sale)})"]
    for line in lines[1:]:
        breakdown.append(f"{line.quantity} × {line.label} ({format_inr(line.sale)})")

    return SystemSummary(
        mrp=sum(line.mrp for line in lines),
        sale=sum(line.sale for line in lines),
        breakdown=breakdown,
        lines=lines,
    )


def compute_totals(
    system: SetupSystem,
    camera_count: int,
    selections: AnalogSelections | IpSelections,
    catalog: PricingCatalog,
    hdd_id: str,
    monitor_included: bool,
    installation_included: bool,
    rules: Optional[SizingRules] = None,
) -> Totals:
    """
    Compute the full quote for one configuration.

    Args:
        system: 'analog' or 'ip'
        camera_count: Number of cameras (already clamped by the caller)
        selections: Selections of the active system
        catalog: Resolved pricing catalog
        hdd_id: Selected storage option id
        monitor_included: Whether the monitor add-on is part of the order
        installation_included: Whether installation is part of the order

    Returns:
        Totals with subtotals, overall discount, warnings and a trace
    """
    summary = compute_system_summary(system, camera_count, selections, catalog, rules)

    hdd_entry = catalog.find_hdd(hdd_id)
    hdd = AddOnTotal(label=hdd_entry.label, mrp=_mrp(hdd_entry), sale=hdd_entry.sale)

    monitor_entry = catalog.monitor_option
    monitor = AddOnTotal(
        label=monitor_entry.label,
        mrp=_mrp(monitor_entry) if monitor_included else 0,
        sale=monitor_entry.sale if monitor_included else 0,
        included=monitor_included,
    )

    installation_entry = catalog.installation_option
    installation_mrp = installation_entry.mrp if installation_entry.mrp is not None else installation_entry.sale
    installation = AddOnTotal(
        label=installation_entry.label,
        mrp=installation_mrp if installation_included else 0,
        sale=installation_entry.sale if installation_included else 0,
        included=installation_included,
    )

    raw_mrp = summary.mrp + hdd.mrp + monitor.mrp + installation.mrp
    raw_sale = summary.sale + hdd.sale + monitor.sale + installation.sale
    overall = summarize_overall(raw_mrp, raw_sale)

    totals = Totals(
        system=summary,
        hdd=hdd,
        monitor=monitor,
        installation=installation,
        overall=overall,
    )

    totals.add_trace("System", f"{system} setup for {camera_count} cameras", format_inr(summary.sale))
    for line in summary.lines:
        totals.add_trace(
            line.component.title(),
            f"{line.quantity} × {line.label}",
            format_inr(line.sale),
        )
    totals.add_trace("Storage", hdd.label, format_inr(hdd.sale))
    if monitor.included:
        totals.add_trace("Monitor", monitor.label, format_inr(monitor.sale))
    if installation.included:
        totals.add_trace("Installation", installation.label, format_inr(installation.sale))

    validated_mrp, _ = apply_mrp_floor(raw_mrp, raw_sale)
    if validated_mrp > raw_mrp:
        totals.add_warning(MRP_FLOOR_WARNING)
        totals.add_trace("MRP Floor", f"Combined MRP raised from {format_inr(raw_mrp)}", format_inr(validated_mrp))
        logger.info("MRP floor applied: %s -> %s", raw_mrp, validated_mrp)

    totals.add_trace("Total", f"MRP {format_inr(overall.mrp)}, discount {format_inr(overall.discount_amount)}",
                     format_inr(overall.sale))
    return totals


class SetupPricingEngine:
    """
    Computes quotes against one resolved catalog.

    The catalog is replaced wholesale on reload; calculations never mutate it.
    """

    def __init__(self, catalog: PricingCatalog, rules: Optional[SizingRules] = None):
        self.catalog = catalog
        self.rules = rules or SizingRules()

    def reload(self, catalog: PricingCatalog):
        """Swap in a freshly resolved catalog."""
        self.catalog = catalog

    def calculate(self, state: ConfiguratorState) -> Totals:
        """Calculate totals for a configurator state."""
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
