import copy
import json
import os
import shutil
import sys
import tempfile
from pathlib import Path

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

SAMPLE_BLUEPRINT = Path(src_path) / 'setup_pricing' / 'data' / 'blueprint.json'

# The API reads settings at import time; point it at a scratch copy so
# PATCH tests never touch the packaged sample.
_workdir = Path(tempfile.mkdtemp(prefix="setup_pricing_tests_"))
_api_blueprint = _workdir / 'blueprint.json'
shutil.copy(SAMPLE_BLUEPRINT, _api_blueprint)
os.environ['SETUP_PRICING_BLUEPRINT'] = str(_api_blueprint)
os.environ['SETUP_PRICING_EXPORT_DIR'] = str(_workdir / 'outputs')

from setup_pricing.engine import FallbackPricing, build_pricing_catalog, parse_blueprint


@pytest.fixture(scope="session")
def api_blueprint_path() -> Path:
    return _api_blueprint


@pytest.fixture(scope="session")
def _sample_document_master() -> dict:
    with open(SAMPLE_BLUEPRINT, 'r', encoding='utf-8') as f:
        return json.load(f)


@pytest.fixture
def sample_document(_sample_document_master) -> dict:
    """Fresh copy of the sample blueprint JSON."""
    return copy.deepcopy(_sample_document_master)


@pytest.fixture
def sample_blueprint(sample_document):
    return parse_blueprint(sample_document)


@pytest.fixture
def fallback():
    return FallbackPricing.builtin()


@pytest.fixture
def fallback_catalog():
    return build_pricing_catalog(None)


@pytest.fixture
def blueprint_catalog(sample_blueprint):
    return build_pricing_catalog(sample_blueprint)


@pytest.fixture
def blueprint_file(tmp_path, sample_document) -> Path:
    path = tmp_path / 'blueprint.json'
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample_document, f)
    return path


@pytest.fixture
def make_blueprint():
    """Build a single-system blueprint for focused resolver tests."""
    def build(components: list[dict], system_slug: str = 'dvr-system'):
        return parse_blueprint({
            "id": "tpl-test",
            "slug": "test",
            "name": "Test",
            "systems": [{"id": "sys", "slug": system_slug, "name": "System", "components": components}],
        })
    return build
