"""Unit tests for wikitext parsing (variables, tabs, tables, cells)."""

from __future__ import annotations

import pytest

from wikitext.parser import DEFAULT_TAB_NAME, coerce_number, parse_table, parse_wikitext, strip_refs

pytestmark = pytest.mark.unit


def test_parse_wikitext_reads_variables_and_tabs(scout_wikitext: str) -> None:
    """A tabbed page yields one table per tab, in document order."""

    parsed = parse_wikitext(scout_wikitext)

    assert list(parsed.tabs) == ["Default", "PVP"]
    assert parsed.variables["$DPS$"] == "Damage / Cooldown"
    assert parsed.variables["$Dps$"] == "$DPS$"
    assert parsed.variables["$PVP-1Cost$"] == "250"
    assert len(parsed.variables) == 13


def test_parse_wikitext_coerces_cells_and_tracks_money_columns(scout_wikitext: str) -> None:
    """Numeric cells become numbers; template-wrapped tokens stay token strings."""

    table = parse_wikitext(scout_wikitext).tabs["Default"]

    assert table.headers == ["Level", "Damage", "Cooldown", "Range", "DPS", "Total Price"]
    assert table.rows[0] == {
        "Level": 0,
        "Damage": 3,
        "Cooldown": 1.5,
        "Range": 12,
        "DPS": "$Dps$",
        "Total Price": "$FNC-TOTALPRICE$",
    }
    assert table.money_columns == {"Total Price"}


def test_parse_wikitext_without_tabber_uses_default_tab(farm_wikitext: str) -> None:
    """A page without `<tabber>` exposes its single table as the Default tab."""

    parsed = parse_wikitext(farm_wikitext)

    assert list(parsed.tabs) == [DEFAULT_TAB_NAME]
    table = parsed.tabs[DEFAULT_TAB_NAME]
    assert table.rows[1]["Income"] == 1234.5
    assert table.rows[1]["Cost"] == 1500
    assert table.money_columns == {"Income", "Cost"}


def test_parse_wikitext_reads_quoted_multiline_variable(farm_wikitext: str) -> None:
    """A quoted value spanning lines is collected up to its closing quote."""

    parsed = parse_wikitext(farm_wikitext)

    assert parsed.variables["$Note$"] == "Income is paid at the end\nof every wave."


def test_parse_variables_quote_and_merge_rules() -> None:
    """Single-line quotes are unwrapped, unclosed quotes are kept, later blocks win."""

    text = (
        "<var>\n"
        '$A$ = "quoted"\n'
        "not a variable line\n"
        "$B$ = 1 = 2\n"
        "</var>\n"
        "<var>\n"
        "$A$ = replaced\n"
        '$C$ = "never closed\n'
        "more\n"
        "</var>\n"
    )

    variables = parse_wikitext(text).variables

    assert variables["$A$"] == "replaced"
    assert variables["$B$"] == "1 = 2"
    assert variables["$C$"] == '"never closed\nmore'
    assert "not a variable line" not in variables


def test_parse_wikitext_normalizes_crlf() -> None:
    """Windows line endings parse like LF."""

    text = "<var>\r\n$A$ = 1\r\n</var>\r\n{|\r\n! Level !! Damage\r\n|-\r\n| 0 || 5\r\n|}\r\n"

    parsed = parse_wikitext(text)

    assert parsed.variables == {"$A$": "1"}
    assert parsed.tabs[DEFAULT_TAB_NAME].rows == [{"Level": 0, "Damage": 5}]


def test_parse_wikitext_without_table_or_variables_is_empty() -> None:
    """Missing sections are absent, not errors."""

    parsed = parse_wikitext("Just some prose.")

    assert parsed.variables == {}
    assert parsed.tabs == {}


def test_parse_table_strips_refs_and_unwraps_header_templates() -> None:
    """Reference markup contributes nothing to headers or cells."""

    table = parse_table(
        "{|\n! Level !! {{Tooltip|Damage}}<ref>note</ref>\n|-\n| 0 || 5<ref name=\"a\"/>\n|}"
    )

    assert table is not None
    assert table.headers == ["Level", "Damage"]
    assert table.rows == [{"Level": 0, "Damage": 5}]
    assert table.money_columns == set()


def test_strip_refs_removes_paired_and_self_closing_refs() -> None:
    assert strip_refs("a<ref>x</ref>b<ref name='y' />c") == "abc"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1,200", 1200), ("1.5", 1.5), ("-3e2", -300), (".5", 0.5), ("12s", None), ("", None), ("inf", None)],
)
def test_coerce_number(raw: str, expected: int | float | None) -> None:
    """Only finite decimal literals (with optional `,` grouping) are numbers."""

    assert coerce_number(raw) == expected
