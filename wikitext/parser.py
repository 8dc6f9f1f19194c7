"""Best-effort parsing of tower statistics wikitext.

The supported grammar is intentionally narrow:
- one or more `<var>...</var>` blocks of `key = value` lines,
- an optional `<tabber>...</tabber>` container of `Name = <table>` segments,
- one pipe-table (`{| ... |}`) per tab.

Parsing never raises for malformed input. Sections that cannot be located are
simply absent from the result.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field

DEFAULT_TAB_NAME = "Default"
TAB_DELIMITER = "|-|"

CellValue = int | float | str

_REF_PAIR_RE = re.compile(r"<ref\b[^>]*>[\s\S]*?</ref>", re.IGNORECASE)
_REF_SELF_CLOSING_RE = re.compile(r"<ref\b[^>]*/>", re.IGNORECASE)
_VAR_BLOCK_RE = re.compile(r"<var>([\s\S]*?)</var>")
_TABBER_RE = re.compile(r"<tabber>([\s\S]*?)</tabber>")
_TABLE_RE = re.compile(r"\{\|[\s\S]*?\|\}")
_TEMPLATE_RE = re.compile(r"{{([^|{}]+)\|([^}]+)}}")
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

MONEY_TEMPLATE = "Money"


@dataclass(slots=True)
class TableData:
    """A parsed pipe-table.

    Attributes:
        headers: Column names in document order.
        rows: One mapping of header -> cell value per table row.
        money_columns: Headers whose cells were wrapped in `{{Money|...}}`.
    """

    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, CellValue]] = field(default_factory=list)
    money_columns: set[str] = field(default_factory=set)


@dataclass(slots=True)
class ParsedWikitext:
    """Parsed output for a tower page.

    Attributes:
        variables: Mapping of `$Token$` -> raw value string.
        tabs: Mapping of tab (skin) name -> parsed table.
    """

    variables: dict[str, str] = field(default_factory=dict)
    tabs: dict[str, TableData] = field(default_factory=dict)


def strip_refs(value: str) -> str:
    """Remove `<ref>...</ref>` and `<ref/>` markup from a value.

    Args:
        value: Raw wikitext fragment.

    Returns:
        The fragment with reference markup removed.
    """

    return _REF_SELF_CLOSING_RE.sub("", _REF_PAIR_RE.sub("", value))


def coerce_number(value: str) -> int | float | None:
    """Parse a comma-grouped decimal literal.

    Args:
        value: Candidate text (e.g. `"1,200"`, `"1.5"`, `"-3e2"`).

    Returns:
        An int for integral values, a float otherwise, or None when the text is
        not a finite decimal literal.
    """

    cleaned = value.replace(",", "").strip()
    if not _NUMBER_RE.match(cleaned):
        return None
    number = float(cleaned)
    if not math.isfinite(number):
        return None
    if number.is_integer():
        return int(number)
    return number


def parse_wikitext(content: str) -> ParsedWikitext:
    """Parse a tower page into variables and tabbed tables.

    Args:
        content: Raw wikitext as stored on the wiki (or in a profile override).

    Returns:
        ParsedWikitext with any variables and tables that could be located.
    """

    text = content.replace("\r\n", "\n")
    parsed = ParsedWikitext(variables=_parse_variables(text))

    tabber_match = _TABBER_RE.search(text)
    if tabber_match is None:
        table = parse_table(text)
        if table is not None:
            parsed.tabs[DEFAULT_TAB_NAME] = table
        return parsed

    for part in tabber_match.group(1).split(TAB_DELIMITER):
        if not part.strip():
            continue
        name, separator, body = part.partition("=")
        if not separator:
            continue
        table = parse_table(body.strip())
        if table is not None:
            parsed.tabs[name.strip()] = table
    return parsed


def _parse_variables(text: str) -> dict[str, str]:
    """Collect `key = value` pairs from every `<var>` block."""

    variables: dict[str, str] = {}
    for block in _VAR_BLOCK_RE.finditer(text):
        lines = block.group(1).split("\n")
        index = 0
        while index < len(lines):
            trimmed = lines[index].strip()
            index += 1
            if not trimmed or "=" not in trimmed:
                continue
            key, _, raw_value = trimmed.partition("=")
            value = raw_value.strip()

            quote = value[:1]
            if quote in {'"', "'"} and not value.endswith(quote):
                collected = value[1:]
                closed = False
                while index < len(lines):
                    next_line = lines[index]
                    index += 1
                    collected += "\n" + next_line
                    if next_line.strip().endswith(quote):
                        collected = collected[: collected.rfind(quote)]
                        closed = True
                        break
                value = collected if closed else quote + collected
            elif quote in {'"', "'"}:
                value = value[1:-1]

            variables[key.strip()] = strip_refs(value).strip()
    return variables


def parse_table(content: str) -> TableData | None:
    """Parse the first pipe-table found in `content`.

    Args:
        content: Wikitext containing a `{| ... |}` table.

    Returns:
        TableData, or None when no table is present.
    """

    match = _TABLE_RE.search(content)
    if match is None:
        return None

    table = TableData()
    current_row: dict[str, CellValue] = {}
    column = 0

    for raw_line in match.group(0).split("\n"):
        line = raw_line.strip()
        if line.startswith("{|") or line.startswith("|}"):
            continue
        if line.startswith("|-"):
            if current_row:
                table.rows.append(current_row)
            current_row = {}
            column = 0
            continue
        if line.startswith("!"):
            table.headers.extend(_clean_header(part) for part in line[1:].split("!!"))
            continue
        if line.startswith("|"):
            for part in line[1:].split("||"):
                if column < len(table.headers) and table.headers[column]:
                    header = table.headers[column]
                    current_row[header] = _clean_cell(part, header, table.money_columns)
                column += 1

    if current_row:
        table.rows.append(current_row)
    return table


def _unwrap_template(value: str) -> tuple[str, str | None]:
    """Return (inner value, template name) for a `{{Name|value}}` wrapper."""

    template = _TEMPLATE_RE.search(value)
    if template is None:
        return value, None
    return template.group(2).strip(), template.group(1).strip()


def _clean_header(value: str) -> str:
    """Normalize a header cell to plain text."""

    inner, _template = _unwrap_template(strip_refs(value.strip()))
    return inner.strip()


def _clean_cell(value: str, header: str, money_columns: set[str]) -> CellValue:
    """Strip markup from a data cell and coerce numeric text."""

    inner, template = _unwrap_template(strip_refs(value.strip()))
    if template == MONEY_TEMPLATE:
        money_columns.add(header)
    inner = inner.strip()
    number = coerce_number(inner) if inner else None
    return number if number is not None else inner
