"""
Catalog Export - flattens a resolved pricing catalog into pandas frames.

Writes the catalog CSV used by merchandising and a JSON build report with
input hashes, fallback notes and per-component metrics.
"""
import hashlib
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import Settings, get_settings
from ..engine.blueprint import Blueprint
from ..engine.catalog_resolver import build_pricing_catalog, catalog_is_consistent
from ..engine.models import PricingCatalog, Totals
from ..engine.price_rules import format_inr
from .blueprint_loader import load_blueprint

logger = logging.getLogger(__name__)

CATALOG_COLUMNS = ['System', 'Component', 'ID', 'Label', 'Capacity', 'Coverage_m', 'MRP', 'Sale', 'Discount']


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def catalog_to_frame(catalog: PricingCatalog) -> pd.DataFrame:
    """One row per priced entry in the catalog."""
    rows = []

    def add(system, component, entry_id, label, mrp, sale, capacity=None, coverage=None):
        rows.append({
            'System': system,
            'Component': component,
            'ID': entry_id,
            'Label': label,
            'Capacity': capacity,
            'Coverage_m': coverage,
            'MRP': mrp,
            'Sale': sale,
        })

    for system in ('analog', 'ip'):
        pricing = catalog.system_pricing(system)
        for entry in pricing.recorder:
            add(system, 'recorder', entry.id, entry.label, entry.mrp, entry.sale, capacity=entry.capacity)
        for entry in pricing.power:
            add(system, 'power', entry.id, entry.label, entry.mrp, entry.sale, capacity=entry.capacity)
        for resolution, matrix in pricing.camera.items():
            add(system, f'camera {resolution}', matrix.standard.id, matrix.standard.label,
                matrix.standard.mrp, matrix.standard.sale)
            add(system, f'camera {resolution} dual-light', matrix.dual_light.id, matrix.dual_light.label,
                matrix.dual_light.mrp, matrix.dual_light.sale)
        for cable in pricing.cable:
            add(system, 'cable', cable.id, cable.label, cable.mrp_per_unit, cable.sale_per_unit,
                coverage=cable.coverage_meters)

    for entry in catalog.hdd_options:
        add('shared', 'storage', entry.id, entry.label, entry.mrp, entry.sale)
    add('shared', 'monitor', catalog.monitor_option.id, catalog.monitor_option.label,
        catalog.monitor_option.mrp, catalog.monitor_option.sale)
    add('shared', 'installation', catalog.installation_option.id, catalog.installation_option.label,
        catalog.installation_option.mrp, catalog.installation_option.sale)

    df = pd.DataFrame(rows, columns=CATALOG_COLUMNS[:-1])
    df['Discount'] = (df['MRP'].fillna(df['Sale']) - df['Sale']).clip(lower=0)
    return df[CATALOG_COLUMNS]


def totals_to_frame(totals: Totals) -> pd.DataFrame:
    """Quote lines plus add-ons as a table (for CSV download in the UI)."""
    rows = [
        {
            'Item': line.label,
            'Qty': line.quantity,
            'Unit MRP': line.unit_mrp,
            'Unit Sale': line.unit_sale,
            'MRP': line.mrp,
            'Sale': line.sale,
        }
        for line in totals.system.lines
    ]
    rows.append({'Item': totals.hdd.label, 'Qty': 1, 'Unit MRP': totals.hdd.mrp,
                 'Unit Sale': totals.hdd.sale, 'MRP': totals.hdd.mrp, 'Sale': totals.hdd.sale})
    for add_on in (totals.monitor, totals.installation):
        if add_on.included:
            rows.append({'Item': add_on.label, 'Qty': 1, 'Unit MRP': add_on.mrp,
                         'Unit Sale': add_on.sale, 'MRP': add_on.mrp, 'Sale': add_on.sale})
    return pd.DataFrame(rows, columns=['Item', 'Qty', 'Unit MRP', 'Unit Sale', 'MRP', 'Sale'])


def export_catalog(
    settings: Optional[Settings] = None,
    blueprint: Optional[Blueprint] = None,
    verbose: bool = True,
) -> dict:
    """
    Resolve the catalog and write the CSV export plus a build report.

    Args:
        settings: Optional settings override
        blueprint: Already-loaded blueprint; read from settings.blueprint_path when None
        verbose: Print progress messages

    Returns:
        Build report dictionary
    """
    settings = settings or get_settings()

    report = {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "input_files": {},
        "metrics": {},
        "warnings": [],
        "errors": [],
    }

    blueprint_path = settings.blueprint_path
    if blueprint is None:
        blueprint = load_blueprint(blueprint_path, settings.template_slug)
        if blueprint_path.exists():
            report["input_files"]["blueprint"] = {
                "path": str(blueprint_path),
                "hash": get_file_hash(blueprint_path),
            }
        else:
            report["warnings"].append(f"WARNING: {blueprint_path} not found, exported built-in pricing")

    catalog = build_pricing_catalog(blueprint)
    report["warnings"].extend(catalog.notes)

    if not catalog_is_consistent(catalog):
        msg = "ERROR: Resolved catalog has entries with sale above MRP"
        report["errors"].append(msg)
        report["status"] = "failed"
        if verbose:
            print(msg)
        return report

    df = catalog_to_frame(catalog)
    report["metrics"]["entry_count"] = len(df)
    report["metrics"]["fallback_slots"] = len(catalog.notes)
    report["metrics"]["components"] = {
        component: int(count) for component, count in df.groupby('Component').size().items()
    }
    report["metrics"]["max_discount"] = format_inr(df['Discount'].max())

    output_path = settings.catalog_export
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    report["output_file"] = str(output_path)
    report["status"] = "success"

    if verbose:
        print(f"\nEXPORT COMPLETE: {output_path} generated with {len(df)} catalog entries.")

    report_path = settings.build_report
    report_path.parent.mkdir(parents=True, exist_ok=True)
    with open(report_path, 'w') as f:
        json.dump(report, f, indent=2)

    logger.info("Catalog export written to %s (%d entries)", output_path, len(df))
    if verbose:
        print(f"Build report saved to: {report_path}")

    return report
