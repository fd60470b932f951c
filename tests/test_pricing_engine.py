"""Totals: system subtotal, add-ons, aggregate floor and discount."""
from dataclasses import replace

import pytest

from setup_pricing.engine.models import IpSelections, PriceEntry
from setup_pricing.engine.pricing_engine import (
    MRP_FLOOR_WARNING,
    SetupPricingEngine,
    compute_totals,
)
from setup_pricing.engine.session import default_state


def totals_for(catalog, state):
    return SetupPricingEngine(catalog).calculate(state)


def test_default_fallback_quote(fallback_catalog):
    totals = totals_for(fallback_catalog, default_state(fallback_catalog))

    assert totals.system.mrp == 17993
    assert totals.system.sale == 11443
    assert totals.hdd.label == "1 TB Surveillance HDD"
    assert (totals.hdd.mrp, totals.hdd.sale) == (4499, 3399)
    assert totals.monitor.included is False
    assert (totals.monitor.mrp, totals.monitor.sale) == (0, 0)
    assert (totals.installation.mrp, totals.installation.sale) == (4500, 4500)

    overall = totals.overall
    assert overall.mrp == 26992
    assert overall.sale == 19342
    assert overall.discount_amount == 7650
    assert overall.discount_percent == pytest.approx(28.3417, abs=1e-3)
    assert totals.warnings == []


def test_breakdown_strings(fallback_catalog):
    totals = totals_for(fallback_catalog, default_state(fallback_catalog))
    assert totals.system.breakdown == [
        "4 Channel DVR (2MP Model) (₹2,499)",
        "1 × 4 Channel SMPS (5A) (₹1,249)",
        "4 × 2.4 MP Standard (₹5,196)",
        "1 × CCTV Coaxial Cable (100m Roll) (₹2,499)",
    ]


def test_ip_twenty_cameras(fallback_catalog):
    selections = IpSelections(nvr_id="nvr-32", poe_id="poe-32", cable_id="cable-lan-100m")
    totals = compute_totals(
        system='ip',
        camera_count=20,
        selections=selections,
        catalog=fallback_catalog,
        hdd_id="hdd-2tb",
        monitor_included=True,
        installation_included=False,
    )

    lines = {line.component: line for line in totals.system.lines}
    assert lines['power'].quantity == 1
    assert lines['camera'].quantity == 20
    assert lines['cable'].quantity == 5
    assert totals.system.sale == 11499 + 6999 + 20 * 2399 + 5 * 2699
    assert totals.system.mrp == 18999 + 10999 + 20 * 3299 + 5 * 3399
    assert (totals.monitor.mrp, totals.monitor.sale) == (9999, 7499)
    assert (totals.installation.mrp, totals.installation.sale) == (0, 0)
    assert totals.overall.sale == totals.system.sale + 4699 + 7499


def test_power_units_multiply_when_tier_too_small(fallback_catalog):
    state = default_state(fallback_catalog)
    # Analog SMPS tops out at 16 channels
    state = replace(state, camera_count=32, analog=state.analog.with_recorder("dvr-32").with_power("smps-16"))
    totals = totals_for(fallback_catalog, state)
    power = next(line for line in totals.system.lines if line.component == 'power')
    assert power.quantity == 2
    assert power.sale == 2599 * 2


def test_dual_light_and_resolution_choose_camera(fallback_catalog):
    state = default_state(fallback_catalog)
    state = replace(state, analog=replace(state.analog, resolution='5mp', dual_light=True))
    camera = next(line for line in totals_for(fallback_catalog, state).system.lines if line.component == 'camera')
    assert camera.entry_id == "analog-5-dual"
    assert camera.unit_sale == 2149


def test_unknown_ids_use_first_entries(fallback_catalog):
    state = default_state(fallback_catalog)
    state = replace(
        state,
        analog=replace(state.analog, dvr_id="gone", smps_id="gone", cable_id="gone", resolution='8mp'),
        hdd_id="gone",
    )
    totals = totals_for(fallback_catalog, state)
    entry_ids = [line.entry_id for line in totals.system.lines]
    assert entry_ids == ["dvr-4-2mp", "smps-4", "analog-2.4-standard", "cable-coaxial-100m"]
    assert totals.hdd.label == "500 GB Surveillance HDD"


def test_installation_without_mrp_uses_sale(fallback_catalog):
    catalog = replace(
        fallback_catalog,
        installation_option=PriceEntry(id="svc", label="Install", mrp=None, sale=3000),
    )
    totals = totals_for(catalog, default_state(catalog))
    assert (totals.installation.mrp, totals.installation.sale) == (3000, 3000)


def test_aggregate_floor_raises_mrp_and_warns(fallback_catalog):
    catalog = replace(
        fallback_catalog,
        hdd_options=(PriceEntry(id="hdd-x", label="Vault", mrp=None, sale=20000),),
    )
    totals = totals_for(catalog, default_state(catalog))

    assert totals.overall.mrp == totals.overall.sale
    assert totals.overall.discount_amount == 0
    assert totals.overall.discount_percent == 0
    assert MRP_FLOOR_WARNING in totals.warnings
    assert "MRP Floor" in totals.get_trace_text()


def test_sample_blueprint_quote(blueprint_catalog):
    totals = totals_for(blueprint_catalog, default_state(blueprint_catalog))
    assert totals.system.mrp == 21192
    assert totals.system.sale == 13942
    assert totals.hdd.label == "2 TB Surveillance HDD"
    assert totals.overall.mrp == 31691
    assert totals.overall.sale == 23141
    assert totals.overall.discount_amount == 8550


def test_trace_lists_every_line(fallback_catalog):
    totals = totals_for(fallback_catalog, default_state(fallback_catalog))
    steps = [step.step for step in totals.trace]
    assert steps[:5] == ["System", "Recorder", "Power", "Camera", "Cable"]
    assert steps[-1] == "Total"
    assert "Installation" in steps
    assert "Monitor" not in steps


def test_engine_reload_swaps_catalog(fallback_catalog, blueprint_catalog):
    engine = SetupPricingEngine(fallback_catalog)
    engine.reload(blueprint_catalog)
    assert engine.calculate(default_state(blueprint_catalog)).overall.sale == 23141
