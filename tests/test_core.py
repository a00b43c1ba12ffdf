import pytest

from zenalyst.core import (
    build_filter_spec,
    coerce_amount,
    coerce_flag,
    coerce_positive_int,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 10),
        ("5", 5),
        (" 7 ", 7),
        ("abc", 10),
        ("0", 10),
        ("-4", 10),
        ("2.5", 2),
        ("2.0", 2),
        ("20.5", 20),
        ("12abc", 12),
        ("x12", 10),
    ],
)
def test_coerce_positive_int(raw, expected):
    assert coerce_positive_int(raw, 10) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0.0),
        ("150", 150.0),
        ("12.5", 12.5),
        ("250abc", 250.0),
        (" .5kg", 0.5),
        ("-3e2x", -300.0),
        ("lots", 0.0),
        ("nan", 0.0),
        ("inf", 0.0),
        ("1e999", 0.0),
    ],
)
def test_coerce_amount(raw, expected):
    assert coerce_amount(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [(None, False), ("true", True), ("TRUE", True), ("1", False), ("false", False)],
)
def test_coerce_flag(raw, expected):
    assert coerce_flag(raw) is expected


def test_build_filter_spec_defaults():
    spec = build_filter_spec(None, None, None, None)
    assert spec.min_q4_revenue == 0.0
    assert spec.positive_growth_only is False
    assert spec.page == 1
    assert spec.page_size == 50


def test_build_filter_spec_parses_values():
    spec = build_filter_spec("200", "true", "5", "3")
    assert (spec.min_q4_revenue, spec.positive_growth_only, spec.page_size, spec.page) == (
        200.0,
        True,
        5,
        3,
    )
