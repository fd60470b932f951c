"""Blueprint parsing from summary documents and raw template rows."""
import logging

from setup_pricing.engine.blueprint import Blueprint, find_template, parse_blueprint, summarize_template


def template_rows():
    """Raw template rows as stored by the storefront (snake_case, sort_order)."""
    return {
        "id": "tpl-1",
        "slug": "cctv-custom-setup",
        "name": "CCTV",
        "base_price": "0",
        "systems": [
            {
                "id": "sys-nvr", "slug": "nvr-system", "name": "IP", "sort_order": 2,
                "components": [],
            },
            {
                "id": "sys-dvr", "slug": "dvr-system", "name": "Analog", "sort_order": 1, "is_default": True,
                "base_fee": 500,
                "components": [
                    {
                        "id": "c-cam", "slug": "analog-camera", "name": "Camera", "sort_order": 3,
                        "pricing_mode": "per_camera",
                        "options": [{"id": "o-1", "label": "2.4 MP", "unit_price": "1899"}],
                    },
                    {
                        "id": "c-dvr", "slug": "dvr-recorder", "name": "DVR", "sort_order": 1,
                        "unit_price": 5000, "is_required": True,
                        "options": [
                            {"id": "o-4", "label": "4 Channel DVR", "unit_price": 5199},
                            {"id": "o-8", "label": "8 Channel DVR", "unit_price": None, "is_default": True},
                        ],
                    },
                    {"id": "c-x", "slug": "unordered", "name": "No order", "options": "not-a-list"},
                ],
            },
        ],
    }


def test_parse_snake_case_rows_sorted_by_sort_order():
    blueprint = parse_blueprint(template_rows())

    assert [s.slug for s in blueprint.systems] == ["dvr-system", "nvr-system"]
    dvr = blueprint.find_system("dvr-system")
    assert dvr.is_default
    assert dvr.base_fee == 500
    assert [c.slug for c in dvr.components] == ["dvr-recorder", "analog-camera", "unordered"]

    recorder = dvr.find_component("dvr-recorder")
    assert recorder.unit_price == 5000
    assert recorder.is_required
    assert recorder.options[0].unit_price == 5199
    assert recorder.options[1].unit_price is None
    assert recorder.default_option.id == "o-8"

    camera = dvr.find_component("analog-camera")
    assert camera.pricing_mode == "per_camera"
    assert camera.options[0].unit_price == 1899
    assert dvr.find_component("unordered").options == ()


def test_parse_unwraps_admin_envelope(sample_document):
    blueprint = parse_blueprint({"success": True, "summary": sample_document})
    assert blueprint.slug == "cctv-custom-setup"
    assert len(blueprint.systems) == 2


def test_parse_rejects_non_objects():
    assert parse_blueprint(None) is None
    assert parse_blueprint([1, 2]) is None
    assert parse_blueprint("blueprint") is None


def test_parse_passes_blueprint_through(sample_blueprint):
    assert parse_blueprint(sample_blueprint) is sample_blueprint


def test_parse_ignores_malformed_rows():
    blueprint = parse_blueprint({"id": 7, "systems": [None, "x", {"slug": "dvr-system", "components": [3]}]})
    assert isinstance(blueprint, Blueprint)
    assert blueprint.id == "7"
    assert len(blueprint.systems) == 1
    assert blueprint.systems[0].components == ()


def test_find_component_containing(sample_blueprint):
    dvr = sample_blueprint.find_system("dvr-system")
    assert dvr.find_component_containing("monitor").slug == "cctv-monitor"
    assert dvr.find_component_containing("projector") is None


def test_summarize_template_builds_camel_case_summary():
    summary = summarize_template(template_rows())

    assert summary["slug"] == "cctv-custom-setup"
    assert summary["basePrice"] == 0
    dvr = summary["systems"][0]
    assert dvr["slug"] == "dvr-system"
    assert dvr["isDefault"] is True

    recorder = dvr["components"][0]
    assert recorder["optionCount"] == 2
    assert recorder["defaultOption"]["id"] == "o-8"
    assert recorder["isRequired"] is True
    assert recorder["options"][0]["unitPrice"] == 5199


def test_summary_round_trips_through_parser():
    summary = summarize_template(template_rows())
    assert parse_blueprint(summary) == parse_blueprint(template_rows())


def test_summarize_template_none():
    assert summarize_template(None) is None


def two_templates():
    return {
        "templates": [
            {"id": "t-1", "slug": "cctv-custom-setup", "systems": [{"id": "s-1", "slug": "dvr-system"}]},
            {"id": "t-2", "slug": "cctv-pro", "systems": [{"id": "s-2", "slug": "nvr-system"}]},
        ],
    }


def test_find_template_picks_configured_slug():
    document = two_templates()
    assert find_template(document, "cctv-pro") is document["templates"][1]
    assert parse_blueprint(document, "cctv-pro").id == "t-2"
    assert parse_blueprint({"data": document}, "cctv-pro").systems[0].slug == "nvr-system"


def test_find_template_unknown_slug_uses_first(caplog):
    with caplog.at_level(logging.WARNING):
        blueprint = parse_blueprint(two_templates(), "cctv-lite")
    assert blueprint.id == "t-1"
    assert "Template 'cctv-lite' not in blueprint document" in caplog.text
    assert parse_blueprint(two_templates()).id == "t-1"


def test_single_template_slug_mismatch_is_logged(caplog, sample_document):
    with caplog.at_level(logging.WARNING):
        blueprint = parse_blueprint(sample_document, "cctv-pro")
    assert blueprint.slug == "cctv-custom-setup"
    assert "does not match configured template 'cctv-pro'" in caplog.text


def test_formulas_and_default_quantity_parsed_and_summarized():
    rows = template_rows()
    dvr = rows["systems"][1]
    dvr["pricing_formula"] = "base_fee + cameras * 100"
    dvr["components"][0]["price_formula"] = "unit_price * cameras"
    dvr["components"][0]["default_quantity"] = "4"

    system = parse_blueprint(rows).find_system("dvr-system")
    camera = system.find_component("analog-camera")
    assert system.pricing_formula == "base_fee + cameras * 100"
    assert camera.pricing_formula == "unit_price * cameras"
    assert camera.default_quantity == 4.0
    assert system.find_component("dvr-recorder").default_quantity is None

    summary = summarize_template(rows)["systems"][0]
    assert summary["pricingFormula"] == "base_fee + cameras * 100"
    assert summary["components"][1]["pricingFormula"] == "unit_price * cameras"
    assert summary["components"][1]["defaultQuantity"] == 4.0
    assert parse_blueprint(summarize_template(rows)) == parse_blueprint(rows)
