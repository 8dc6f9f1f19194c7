"""Unit tests for rendering variables and tables."""

from __future__ import annotations

import pytest

from wikitext.parser import parse_table, parse_wikitext
from wikitext.serializer import (
    TABLE_OPEN,
    format_cell,
    format_money,
    serialize_table,
    serialize_variables,
)

pytestmark = pytest.mark.unit


def test_money_cells_render_with_thousands_separators() -> None:
    assert format_cell(1234.5, money=True) == "{{Money|1,234.5}}"
    assert format_cell(2500.0, money=True) == "{{Money|2,500}}"
    assert format_money(1_000_000) == "1,000,000"


def test_money_cell_parses_back_as_number_and_money_column() -> None:
    markup = serialize_table(["Level", "Income"], [{"Level": 1, "Income": 1234.5}], {"Income"})

    table = parse_table(markup)

    assert table is not None
    assert table.rows == [{"Level": 1, "Income": 1234.5}]
    assert table.money_columns == {"Income"}


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, ""), (True, "true"), (False, "false"), (2.0, "2"), (1.5, "1.5"), ({"a": 1}, '{"a":1}'), ("$Dps$", "$Dps$")],
)
def test_format_cell(value: object, expected: str) -> None:
    assert format_cell(value) == expected


def test_serialize_table_sorts_rows_by_level() -> None:
    markup = serialize_table(
        ["Level", "Damage"],
        [{"Level": 2, "Damage": 3}, {"Level": 0, "Damage": 1}, {"Level": 1}],
    )

    assert markup == (
        f"{TABLE_OPEN}\n"
        "! Level !! Damage\n"
        "|-\n"
        "| 0 || 1\n"
        "|-\n"
        "| 1 || \n"
        "|-\n"
        "| 2 || 3\n"
        "|}\n"
    )


def test_serialize_table_without_headers_is_empty() -> None:
    assert serialize_table([], [{"Level": 0}]) == ""


def test_serialize_variables_keeps_order_and_quotes_multiline_values() -> None:
    block = serialize_variables({"$B$": "2", "$A$": "first\nsecond"})

    assert block == '<var>\n$B$ = 2\n$A$ = "first\nsecond"\n</var>'
    assert parse_wikitext(block).variables == {"$B$": "2", "$A$": "first\nsecond"}
