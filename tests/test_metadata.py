"""Metadata coercion: admin JSON values never raise and fall through to None."""
import pytest

from setup_pricing.engine.metadata import (
    parse_channel_capacity,
    parse_leading_float,
    parse_megapixels,
    read_boolean,
    read_numeric,
    to_finite_float,
)


@pytest.mark.parametrize("raw, expected", [
    (1499, 1499.0),
    (12.5, 12.5),
    ("3,799", 3799.0),
    ("₹1,499", 1499.0),
    ("1499.50/-", 1499.5),
    ("-20", -20.0),
])
def test_read_numeric_parses_numbers_and_formatted_strings(raw, expected):
    assert read_numeric({"sale_price": raw}, "sale_price") == expected


@pytest.mark.parametrize("raw", ["abc", "", "   ", None, True, float('nan'), float('inf'), [1], {"a": 1}])
def test_read_numeric_rejects_unusable_values(raw):
    assert read_numeric({"sale_price": raw}, "sale_price") is None


def test_read_numeric_tolerates_non_mapping_metadata():
    assert read_numeric(None, "sale_price") is None
    assert read_numeric(["sale_price"], "sale_price") is None
    assert read_numeric({}, "sale_price") is None


@pytest.mark.parametrize("raw, expected", [
    (True, True),
    (False, False),
    ("yes", True),
    (" TRUE ", True),
    ("1", True),
    ("no", False),
    ("0", False),
    (1, True),
    (0, False),
    ("maybe", None),
    (2, None),
    ("", None),
    (None, None),
])
def test_read_boolean(raw, expected):
    assert read_boolean({"dual_light": raw}, "dual_light") is expected


def test_to_finite_float():
    assert to_finite_float(5) == 5.0
    assert to_finite_float("12.5 mm") == 12.5
    assert to_finite_float(True) is None
    assert to_finite_float(float('-inf')) is None
    assert to_finite_float("n/a") is None


def test_parse_leading_float_matches_leading_digits_only():
    assert parse_leading_float("4.5TB") == 4.5
    assert parse_leading_float("  .5") == 0.5
    assert parse_leading_float("TB4") is None


def test_label_parsers():
    assert parse_channel_capacity("16 Channel NVR") == 16
    assert parse_channel_capacity("4channel dvr") == 4
    assert parse_channel_capacity("8 Port PoE Switch") is None
    assert parse_channel_capacity(None) is None

    assert parse_megapixels("2.4 MP Dome") == 2.4
    assert parse_megapixels("5MP Bullet") == 5.0
    assert parse_megapixels("HD Camera") is None


def test_huge_integers_are_not_finite_floats():
    assert to_finite_float(10**400) is None
    assert to_finite_float(-10**400) is None
    assert read_numeric({"sale_price": 10**400}, "sale_price") is None
