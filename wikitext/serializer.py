"""Render variables and tables back into wikitext.

This is the inverse of `wikitext.parser`. Output is canonical (one header
line, `|-` + one cell line per row) rather than a copy of the source layout;
`wikitext.patcher` decides where regenerated markup is spliced.
"""

from __future__ import annotations

import json
from collections.abc import Collection, Iterable, Mapping, Sequence

TABLE_OPEN = '{| class="article-table" style="width:100%"'
TABLE_CLOSE = "|}"


def format_number(value: int | float) -> str:
    """Render a number the way the wiki stores it (integral floats as ints)."""

    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float):
        return repr(value)
    return str(value)


def format_money(value: int | float) -> str:
    """Render a number with `,` thousands separators (e.g. `1,234.5`)."""

    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return format(value, ",")


def format_cell(value: object, *, money: bool = False) -> str:
    """Render one table cell.

    Args:
        value: Cell value from a raw row.
        money: Whether the column is a `{{Money|...}}` column.

    Returns:
        The cell's wikitext.
    """

    if value is None:
        text = ""
    elif isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, (int, float)):
        text = format_money(value) if money else format_number(value)
    elif isinstance(value, (dict, list)):
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    else:
        text = str(value)

    if money:
        return f"{{{{Money|{text}}}}}"
    return text


def serialize_row(
    row: Mapping[str, object], headers: Sequence[str], money_columns: Collection[str]
) -> str:
    """Render a row's cell line in header order."""

    cells = [format_cell(row.get(header), money=header in money_columns) for header in headers]
    return f"| {' || '.join(cells)}"


def _level_sort_key(row: Mapping[str, object]) -> float:
    """Sort rows by numeric `Level`; rows without one keep their place at 0."""

    level = row.get("Level")
    if isinstance(level, (int, float)) and not isinstance(level, bool):
        return float(level)
    try:
        return float(str(level))
    except ValueError:
        return 0.0


def serialize_table(
    headers: Sequence[str],
    rows: Iterable[Mapping[str, object]],
    money_columns: Collection[str] = (),
) -> str:
    """Render a full pipe-table.

    Args:
        headers: Column names in output order.
        rows: Raw rows (sorted ascending by `Level` on output).
        money_columns: Columns rendered as `{{Money|...}}`.

    Returns:
        Table markup ending with `|}` and a trailing newline, or an empty
        string when there are no headers.
    """

    if not headers:
        return ""

    lines = [TABLE_OPEN, f"! {' !! '.join(headers)}"]
    for row in sorted(rows, key=_level_sort_key):
        lines.append("|-")
        lines.append(serialize_row(row, headers, money_columns))
    lines.append(TABLE_CLOSE + "\n")
    return "\n".join(lines)


def _format_variable_value(value: str) -> str:
    """Quote multi-line values so they parse back as one variable."""

    if "\n" in value and not (value.startswith('"') or value.startswith("'")):
        return f'"{value}"'
    return value


def serialize_variables(variables: Mapping[str, str]) -> str:
    """Render a `<var>` block with one `key = value` line per entry, in map order."""

    lines = ["<var>"]
    lines.extend(f"{key} = {_format_variable_value(value)}" for key, value in variables.items())
    lines.append("</var>")
    return "\n".join(lines)
