#!/usr/bin/env python
"""
Export pipeline - resolves the pricing catalog and writes the CSV + build report.

Usage:
    python scripts/export_catalog.py [--blueprint path/to/blueprint.json]
"""
import argparse
import sys
from dataclasses import replace
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from setup_pricing.config.settings import configure_logging, get_settings
from setup_pricing.data.catalog_export import export_catalog


def main():
    parser = argparse.ArgumentParser(description="Export the resolved setup pricing catalog")
    parser.add_argument("--blueprint", type=Path, help="Blueprint JSON to resolve (defaults to settings)")
    args = parser.parse_args()

    settings = get_settings()
    if args.blueprint:
        settings = replace(settings, blueprint_path=args.blueprint.resolve())
    configure_logging(settings.log_level)

    print("=" * 60)
    print("SETUP PRICING CATALOG EXPORT")
    print("=" * 60)
    print()
    print(f"Blueprint: {settings.blueprint_path}")

    report = export_catalog(settings, verbose=True)

    if report["status"] != "success":
        print("\n❌ EXPORT FAILED")
        for error in report["errors"]:
            print(f"  {error}")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ EXPORT COMPLETE")
    print("=" * 60)
    print()
    print("Summary:")
    print(f"  Entries: {report['metrics']['entry_count']}")
    print(f"  Fallback slots: {report['metrics']['fallback_slots']}")
    print(f"  Largest discount: {report['metrics']['max_discount']}")
    print()
    print("Components:")
    for component, count in report['metrics'].get('components', {}).items():
        print(f"  {component}: {count}")
    if report["warnings"]:
        print()
        print("Notes:")
        for warning in report["warnings"]:
            print(f"  {warning}")


if __name__ == "__main__":
    main()
