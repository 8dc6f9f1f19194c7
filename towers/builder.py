"""Build a `Tower` model from parsed wikitext.

Per tab (skin):
- rows are sorted by level and copied (the parsed document is not mutated),
- the skin's formula-token map is assembled (PVP skins overlay `$PVP-X$` onto
  `$X$`),
- every single-token cell is resolved; resolved cells are recorded as derived,
- detection flags are read forward through the levels,
- level 0 becomes the defaults and each later level becomes an upgrade record.
"""

from __future__ import annotations

import re
from typing import Any

from towers.skin import TOTAL_PRICE_COLUMN, SkinData, parse_price, row_level
from towers.stats import DETECTION_TYPES
from towers.tower import Tower, WikitextSource
from wikitext.parser import CellValue, ParsedWikitext, TableData
from wikitext.tokens import is_resolved, is_token, resolve_token

_PVP_SKIN_RE = re.compile(r"pvp", re.IGNORECASE)
_PVP_VARIABLE_RE = re.compile(r"^\$PVP-(.+)\$$")


def is_pvp_skin(skin_name: str) -> bool:
    return _PVP_SKIN_RE.search(skin_name) is not None


def skin_formula_tokens(variables: dict[str, str], *, is_pvp: bool) -> dict[str, str]:
    """Return the token map a skin resolves formulas against.

    Args:
        variables: Document variables.
        is_pvp: Whether the skin is a PVP variant.

    Returns:
        Every non-`$PVP-` variable; for PVP skins, each `$PVP-X$` value
        replaces the value of `$X$`.
    """

    tokens = {key: value for key, value in variables.items() if not key.startswith("$PVP-")}
    if is_pvp:
        for key, value in variables.items():
            match = _PVP_VARIABLE_RE.match(key)
            if match:
                tokens[f"${match.group(1)}$"] = value
    return tokens


def pvp_owned_detections(variables: dict[str, str]) -> set[str]:
    """Return detection flags with at least one `$PVP-<n><Flag>$` variable."""

    owned: set[str] = set()
    for flag in DETECTION_TYPES:
        pattern = re.compile(rf"^\$PVP-\d+{flag}\$$")
        if any(pattern.match(key) for key in variables):
            owned.add(flag)
    return owned


def _upgrade_label(
    variables: dict[str, str], level: int, suffix: str, *, is_pvp: bool
) -> str | None:
    """Read an upgrade title/image, falling back to the regular variable for PVP."""

    if is_pvp and variables.get(f"$PVP-{level}{suffix}$"):
        return variables[f"$PVP-{level}{suffix}$"]
    return variables.get(f"${level}{suffix}$") or None


def build_skin(
    skin_name: str, table: TableData, variables: dict[str, str]
) -> SkinData:
    """Build one skin from its parsed table.

    Args:
        skin_name: Tab name.
        table: Parsed table for the tab.
        variables: Document variables (shared by every skin of the tower).

    Returns:
        The constructed SkinData.
    """

    is_pvp = is_pvp_skin(skin_name)
    formula_tokens = skin_formula_tokens(variables, is_pvp=is_pvp)
    owned = pvp_owned_detections(variables) if is_pvp else set()

    rows: list[dict[str, CellValue]] = sorted(
        (dict(row) for row in table.rows), key=row_level
    )
    has_total_price = TOTAL_PRICE_COLUMN in table.headers

    defaults: dict[str, Any] = {}
    upgrades: list[dict[str, Any]] = []
    read_only: list[str] = []
    cell_formula_tokens: dict[int, dict[str, str]] = {}
    current_detections = {flag: False for flag in DETECTION_TYPES}
    previous_total = 0.0

    for row in rows:
        level = row_level(row)
        derived = cell_formula_tokens.setdefault(level, {})

        for column, value in list(row.items()):
            if not is_token(value):
                continue
            result = resolve_token(value, level, row, formula_tokens, variables, is_pvp)
            if not is_resolved(result):
                continue
            if column not in read_only:
                read_only.append(column)
            derived[column] = str(value)
            row[column] = result

        for flag in DETECTION_TYPES:
            if is_pvp and flag in owned:
                raw = variables.get(f"$PVP-{level}{flag}$")
            else:
                raw = variables.get(f"${level}{flag}$")
            if raw:
                current_detections[flag] = raw == "true"
        detections = dict(current_detections)

        total = parse_price(row.get(TOTAL_PRICE_COLUMN)) if has_total_price else None

        if level == 0:
            defaults.update(row)
            if total is not None:
                defaults["Price"] = total
            defaults["Detections"] = detections
            previous_total = total or 0
            continue

        if total is not None:
            cost: Any = total - previous_total
            previous_total = total
        else:
            cost = parse_price(row.get("Cost")) or 0

        stats = dict(row)
        stats["Detections"] = detections
        upgrade: dict[str, Any] = {"Cost": cost, "Stats": stats}

        title = _upgrade_label(variables, level, "Upgrade", is_pvp=is_pvp)
        if title:
            upgrade["Title"] = title
        image = _upgrade_label(variables, level, "UpgradeI", is_pvp=is_pvp)
        if image:
            upgrade["Image"] = image
        upgrades.append(upgrade)

    return SkinData(
        skin_name,
        defaults=defaults,
        upgrades=upgrades,
        headers=list(table.headers),
        raw_rows=rows,
        money_columns=set(table.money_columns),
        formula_tokens=formula_tokens,
        cell_formula_tokens=cell_formula_tokens,
        read_only_attributes=read_only,
        variables=variables,
        is_pvp=is_pvp,
        pvp_owned_detection_types=owned,
    )


def build_tower(
    name: str,
    parsed: ParsedWikitext,
    *,
    source_wikitext: str | None = None,
    wikitext_source: WikitextSource = "",
) -> Tower:
    """Build a Tower with one skin per parsed tab.

    Args:
        name: Tower name.
        parsed: Output of `wikitext.parser.parse_wikitext`.
        source_wikitext: The text `parsed` came from (needed for patching).
        wikitext_source: Where `source_wikitext` came from.

    Returns:
        The constructed Tower.
    """

    variables = dict(parsed.variables)
    skins = {
        skin_name: build_skin(skin_name, table, variables)
        for skin_name, table in parsed.tabs.items()
    }
    return Tower(
        name,
        skins,
        variables=variables,
        source_wikitext=source_wikitext,
        wikitext_source=wikitext_source,
    )
