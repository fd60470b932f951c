"""Catalog CSV export and build report."""
import importlib.util
import json
import sys
from pathlib import Path

import pandas as pd
import pytest

from setup_pricing.config.settings import Settings
from setup_pricing.data.catalog_export import (
    CATALOG_COLUMNS,
    catalog_to_frame,
    export_catalog,
    totals_to_frame,
)
from setup_pricing.engine import SetupPricingEngine, default_state


@pytest.fixture
def export_settings(tmp_path, blueprint_file):
    return Settings.load(project_root=tmp_path, env={
        'SETUP_PRICING_BLUEPRINT': str(blueprint_file),
        'SETUP_PRICING_EXPORT_DIR': str(tmp_path / 'out'),
    })


def test_catalog_frame_fallback(fallback_catalog):
    df = catalog_to_frame(fallback_catalog)

    assert list(df.columns) == CATALOG_COLUMNS
    assert len(df) == 29
    assert set(df['System']) == {'analog', 'ip', 'shared'}

    dvr = df[df['ID'] == 'dvr-4-2mp'].iloc[0]
    assert dvr['Component'] == 'recorder'
    assert dvr['Capacity'] == 4
    assert dvr['Discount'] == 2700

    cable = df[df['ID'] == 'cable-lan-100m'].iloc[0]
    assert cable['Coverage_m'] == 100
    assert cable['System'] == 'ip'

    install = df[df['Component'] == 'installation'].iloc[0]
    assert install['Discount'] == 0
    assert (df['Discount'] >= 0).all()


def test_catalog_frame_camera_rows(blueprint_catalog):
    df = catalog_to_frame(blueprint_catalog)
    assert len(df) == 28
    dual = df[(df['System'] == 'analog') & (df['Component'] == 'camera 5mp dual-light')].iloc[0]
    assert dual['ID'] == 'opt-cam-5'


def test_totals_frame(fallback_catalog):
    totals = SetupPricingEngine(fallback_catalog).calculate(default_state(fallback_catalog))
    df = totals_to_frame(totals)

    assert list(df.columns) == ['Item', 'Qty', 'Unit MRP', 'Unit Sale', 'MRP', 'Sale']
    # Four system lines, storage, installation (monitor not included)
    assert len(df) == 6
    assert df['Sale'].sum() == totals.overall.sale
    assert df.iloc[2]['Qty'] == 4


def test_export_writes_csv_and_report(export_settings):
    report = export_catalog(settings=export_settings, verbose=False)

    assert report['status'] == 'success'
    assert report['errors'] == []
    assert report['warnings'] == []
    assert report['input_files']['blueprint']['hash']
    assert report['metrics']['entry_count'] == 28
    assert report['metrics']['fallback_slots'] == 0
    assert report['metrics']['components']['recorder'] == 7

    exported = pd.read_csv(export_settings.catalog_export)
    assert list(exported.columns) == CATALOG_COLUMNS
    assert len(exported) == 28

    with open(export_settings.build_report, 'r') as f:
        saved = json.load(f)
    assert saved['status'] == 'success'
    assert saved['output_file'] == str(export_settings.catalog_export)


def test_export_without_blueprint_uses_builtin_pricing(tmp_path):
    settings = Settings.load(project_root=tmp_path, env={
        'SETUP_PRICING_BLUEPRINT': str(tmp_path / 'missing.json'),
        'SETUP_PRICING_EXPORT_DIR': str(tmp_path / 'out'),
    })
    report = export_catalog(settings=settings, verbose=False)

    assert report['status'] == 'success'
    assert report['input_files'] == {}
    assert report['warnings'][0].startswith("WARNING:")
    assert report['metrics']['entry_count'] == 29
    assert report['metrics']['max_discount'] == "₹19,000"
    assert settings.catalog_export.exists()


def test_settings_env_overrides(tmp_path):
    settings = Settings.load(project_root=tmp_path, env={
        'SETUP_PRICING_TEMPLATE': ' cctv-pro ',
        'SETUP_PRICING_LOG_LEVEL': 'debug',
    })
    assert settings.template_slug == 'cctv-pro'
    assert settings.log_level == 'DEBUG'
    assert settings.blueprint_path == tmp_path / 'src' / 'setup_pricing' / 'data' / 'blueprint.json'
    assert settings.catalog_export.name == 'pricing_catalog.csv'


def load_export_script():
    path = Path(__file__).parent.parent / 'scripts' / 'export_catalog.py'
    spec = importlib.util.spec_from_file_location('export_catalog_script', path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_export_script_prints_each_error_once(monkeypatch, capsys):
    script = load_export_script()
    message = "ERROR: Resolved catalog has entries with sale above MRP"
    monkeypatch.setattr(script, 'export_catalog', lambda settings, verbose: {"status": "failed", "errors": [message]})
    monkeypatch.setattr(sys, 'argv', ['export_catalog.py'])

    with pytest.raises(SystemExit) as exit_info:
        script.main()

    assert exit_info.value.code == 1
    out = capsys.readouterr().out
    assert "EXPORT FAILED" in out
    assert "ERROR: ERROR" not in out
    assert out.count(message) == 1
