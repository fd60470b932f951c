"""HTTP API: quotes, catalog listing, option lists and blueprint maintenance."""
import json

import pytest
from fastapi.testclient import TestClient

from setup_pricing.api.main import app
from setup_pricing.api.state import EngineState, state
from setup_pricing.config.settings import Settings

client = TestClient(app)


@pytest.fixture
def restore_blueprint(api_blueprint_path):
    """Put the API's blueprint back after a test that edits it."""
    original = api_blueprint_path.read_bytes()
    yield api_blueprint_path
    api_blueprint_path.write_bytes(original)
    state.reload()


def test_root():
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "online"


def test_status():
    data = client.get("/system/status").json()
    assert data["engine_active"] is True
    assert data["blueprint_loaded"] is True
    assert data["fallback_notes"] == []


class TestQuote:
    def test_default_quote(self):
        response = client.post("/quote", json={})
        assert response.status_code == 200
        data = response.json()

        assert data["state"]["analog"]["dvr_id"] == "opt-dvr-4"
        assert data["state"]["hdd_id"] == "opt-hdd-2tb"
        assert data["totals"]["overall"]["mrp"] == 31691
        assert data["totals"]["overall"]["sale"] == 23141
        assert data["display"] == {
            "mrp": "₹31,691",
            "sale": "₹23,141",
            "discount": "₹8,550",
            "discount_percent": "27%",
        }

    def test_small_recorder_is_upgraded(self):
        data = client.post("/quote", json={
            "camera_count": "10",
            "analog": {"recorder_id": "opt-dvr-4", "dual_light": True},
        }).json()
        assert data["state"]["camera_count"] == 10
        assert data["state"]["analog"]["dvr_id"] == "opt-dvr-16"

        lines = {line["component"]: line for line in data["totals"]["system"]["lines"]}
        assert lines["camera"]["entry_id"] == "opt-cam-24-dual"
        assert lines["camera"]["quantity"] == 10

    def test_ip_quote_with_monitor(self):
        data = client.post("/quote", json={
            "system": "ip",
            "camera_count": 40,
            "ip": {"resolution": "4mp"},
            "monitor_included": True,
            "installation_included": False,
        }).json()
        assert data["state"]["camera_count"] == 32
        assert data["state"]["ip"]["nvr_id"] == "nvr-32"
        assert data["totals"]["monitor"]["sale"] == 7499
        assert data["totals"]["installation"]["sale"] == 0

    def test_unknown_system(self):
        response = client.post("/quote", json={"system": "hybrid"})
        assert response.status_code == 400

    def test_huge_camera_count_is_clamped(self):
        response = client.post("/quote", json={"camera_count": 10**400})
        assert response.status_code == 200
        assert response.json()["state"]["camera_count"] == 32


class TestCatalog:
    def test_full_listing(self):
        data = client.get("/catalog").json()
        assert len(data["entries"]) == 28
        assert data["notes"] == []

    def test_filtered_listing(self):
        entries = client.get("/catalog", params={"system": "ip", "search": "hdd"}).json()["entries"]
        assert [e["ID"] for e in entries] == ["opt-hdd-1tb", "opt-hdd-2tb", "opt-nvr-hdd-4tb"]

        poe = client.get("/catalog", params={"search": "poe"}).json()["entries"]
        assert {e["ID"] for e in poe} == {"opt-poe-8", "poe-16", "poe-32"}
        assert poe[0]["Coverage_m"] is None

    def test_options(self):
        response = client.get("/catalog/ip/options", params={"camera_count": "10"})
        assert response.status_code == 200
        data = response.json()

        assert data["recommended"] == {"recorder": 16, "power": 16}
        flags = [(o["entry"]["id"], o["disabled"], o["recommended"]) for o in data["recorder"]]
        assert flags == [
            ("opt-nvr-8", True, False),
            ("opt-nvr-16", False, True),
            ("nvr-32", False, False),
        ]
        assert data["cable"][0]["quantity"] == 1
        assert set(data["camera"]) == {"2mp", "4mp"}

    def test_options_unknown_system(self):
        assert client.get("/catalog/hybrid/options").status_code == 404


class TestBlueprintApi:
    def test_get(self):
        data = client.get("/api/blueprint").json()
        assert data["success"] is True
        assert data["data"]["summary"]["slug"] == "cctv-custom-setup"
        assert data["data"]["stats"]["options"] == 21

    def test_patch_updates_quotes(self, restore_blueprint):
        response = client.patch("/api/blueprint", json={
            "updates": [{"target": "option", "id": "opt-dvr-4", "salePrice": 2299}],
        })
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["applied"] == [{"target": "option", "id": "opt-dvr-4", "fields": ["salePrice"]}]
        assert data["fallback_notes"] == 0

        quote = client.post("/quote", json={}).json()
        assert quote["totals"]["overall"]["sale"] == 23141 - 200

    def test_patch_reports_sale_above_mrp(self, restore_blueprint):
        data = client.patch("/api/blueprint", json={
            "updates": [{"target": "option", "id": "opt-cam-24", "unitPrice": 1000, "salePrice": 1200}],
        }).json()
        assert data["warnings"] == ["Option 'opt-cam-24': sale price above MRP will be capped at MRP"]

        quote = client.post("/quote", json={}).json()
        camera = next(line for line in quote["totals"]["system"]["lines"] if line["component"] == "camera")
        assert (camera["unit_mrp"], camera["unit_sale"]) == (1000, 1000)

    def test_patch_validation_error(self, restore_blueprint):
        response = client.patch("/api/blueprint", json={
            "updates": [{"target": "component", "id": "cmp-dvr", "unitPrice": -5}],
        })
        assert response.status_code == 400
        assert response.json()["detail"]["errors"] == ["Update 0: unitPrice cannot be negative"]

    def test_patch_unknown_id(self, restore_blueprint):
        before = restore_blueprint.read_bytes()
        response = client.patch("/api/blueprint", json={
            "updates": [{"target": "system", "id": "sys-missing", "baseFee": 1}],
        })
        assert response.status_code == 404
        assert restore_blueprint.read_bytes() == before

    def test_patch_rejects_unknown_target(self):
        response = client.patch("/api/blueprint", json={"updates": [{"target": "template", "id": "x"}]})
        assert response.status_code == 422

    def test_reload(self):
        data = client.post("/api/blueprint/reload").json()
        assert data == {"success": True, "blueprint_loaded": True, "fallback_notes": 0}

    def test_patch_formula_and_default_quantity(self, restore_blueprint):
        response = client.patch("/api/blueprint", json={
            "updates": [
                {"target": "component", "id": "cmp-coax", "defaultQuantity": 2, "pricingFormula": "unit * rolls"},
                {"target": "system", "id": "sys-dvr", "pricingFormula": "base"},
            ],
        })
        assert response.status_code == 200
        assert [a["fields"] for a in response.json()["applied"]] == [
            ["defaultQuantity", "pricingFormula"],
            ["pricingFormula"],
        ]

        dvr = client.get("/api/blueprint").json()["data"]["summary"]["systems"][0]
        assert dvr["pricingFormula"] == "base"
        coax = next(c for c in dvr["components"] if c["id"] == "cmp-coax")
        assert (coax["defaultQuantity"], coax["pricingFormula"]) == (2, "unit * rolls")

    def test_patch_rejects_non_text_formula(self):
        response = client.patch("/api/blueprint", json={
            "updates": [{"target": "system", "id": "sys-dvr", "pricingFormula": 7}],
        })
        assert response.status_code == 400
        assert response.json()["detail"]["errors"] == ["Update 0: pricingFormula must be text"]


def test_engine_state_serves_configured_template(tmp_path, sample_document):
    pro = dict(sample_document, id="tpl-pro", slug="cctv-pro")
    basic = {"id": "tpl-basic", "slug": "cctv-custom-setup", "systems": []}
    path = tmp_path / 'templates.json'
    with open(path, 'w', encoding='utf-8') as f:
        json.dump({"templates": [basic, pro]}, f)

    settings = Settings.load(project_root=tmp_path, env={
        "SETUP_PRICING_BLUEPRINT": str(path),
        "SETUP_PRICING_EXPORT_DIR": str(tmp_path / 'outputs'),
        "SETUP_PRICING_TEMPLATE": "cctv-pro",
    })
    engine_state = EngineState(settings)

    assert engine_state.blueprint.slug == "cctv-pro"
    assert engine_state.catalog.notes == ()
    assert engine_state.blueprint_service.get_summary()["id"] == "tpl-pro"
