"""Unit tests for display formatting and value parsing."""

from __future__ import annotations

import math

import pytest

from towers.formatting import format_number, format_value, parse_numeric, parse_value_text

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0"),
        (1234.56, "1235"),
        (123.456, "123.46"),
        (2.0, "2"),
        (4 / 1.5, "2.667"),
        (0.5, "0.5"),
        (0.001234, "0.001234"),
        (0.0000012345, "1.2345e-06"),
        (-12.5, "-12.5"),
    ],
)
def test_format_number_uses_magnitude_based_precision(value: float, expected: str) -> None:
    assert format_number(value) == expected


def test_format_number_passes_through_non_finite_values() -> None:
    assert format_number(math.inf) == "inf"


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, "-"), (True, "true"), (3, "3"), ("text", "text"), ({"Tick": 2}, '{"Tick":2}')],
)
def test_format_value(value: object, expected: str) -> None:
    assert format_value(value) == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [("true", True), ("FALSE", False), ("1,200", 1200), ("1.5", 1.5), (" Long Shot ", "Long Shot"), ("", "")],
)
def test_parse_value_text(text: str, expected: object) -> None:
    assert parse_value_text(text) == expected


def test_parse_numeric() -> None:
    assert parse_numeric("1,234.5") == 1234.5
    assert parse_numeric(7) == 7.0
    assert math.isnan(parse_numeric("abc"))
