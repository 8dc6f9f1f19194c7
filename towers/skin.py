"""Skin model: one named variant of a tower's statistics table.

A skin owns its Locator, defaults (level 0), upgrades (levels 1..N), derived
level projections, formula-token maps, and the table's raw rows (kept for
lossless re-serialization).

Every mutation follows the same order:
1. write into the level's stat bag,
2. mirror the value into the level's raw row,
3. recompute formula-derived cells (raw rows and stat bags),
4. rebuild the Locator, stat projections, and level projections.

Rebuilding is not incremental; it always starts from the raw data.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from towers.levels import Levels
from towers.locator import AttributePath, Locator, PathSegment
from towers.stats import DETECTION_TYPES, LevelStats
from wikitext.parser import CellValue, coerce_number
from wikitext.serializer import format_cell, serialize_table
from wikitext.tokens import is_resolved, resolve_token

_log = logging.getLogger(__name__)

TOTAL_PRICE_COLUMN = "Total Price"
TOTAL_PRICE_TOKEN = "$FNC-TOTALPRICE$"
PRICE_ATTRIBUTES = frozenset({"Cost", "Price"})


def row_level(row: Mapping[str, Any]) -> int:
    """Return a raw row's integer `Level`, or 0 when it has none."""

    value = row.get("Level")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    number = coerce_number(str(value)) if value is not None else None
    return int(number) if number is not None else 0


class SkinData:
    """Editable model for one skin of a tower.

    Attributes:
        name: Skin (tab) name.
        defaults_data: Raw level 0 attribute mapping.
        upgrades_data: Raw upgrade records `{Cost, Stats, Title?, Image?}`.
        headers: Table headers in document order.
        raw_rows: Table rows sorted by level, with derived cells resolved.
        money_columns: Columns rendered as `{{Money|...}}`.
        formula_tokens: Token -> expression/alias map for this skin.
        cell_formula_tokens: Level -> column -> token for derived cells.
        read_only_attributes: Columns holding a derived cell at any level.
        variables: Document variables shared by all skins of the tower.
        is_pvp: Whether this skin is a PVP variant.
        pvp_owned_detection_types: Detection flags this PVP skin overrides.
        locator: Shared attribute Locator (rebuilt on every mutation).
        defaults: Level 0 projection.
        upgrades: Level 1..N projections.
        levels: Inherited per-level projections.
    """

    def __init__(
        self,
        name: str,
        *,
        defaults: dict[str, Any] | None = None,
        upgrades: list[dict[str, Any]] | None = None,
        headers: list[str] | None = None,
        raw_rows: list[dict[str, CellValue]] | None = None,
        money_columns: set[str] | None = None,
        formula_tokens: dict[str, str] | None = None,
        cell_formula_tokens: dict[int, dict[str, str]] | None = None,
        read_only_attributes: list[str] | None = None,
        variables: dict[str, str] | None = None,
        is_pvp: bool = False,
        pvp_owned_detection_types: set[str] | None = None,
    ) -> None:
        self.name = name
        self.defaults_data: dict[str, Any] = defaults if defaults is not None else {}
        self.upgrades_data: list[dict[str, Any]] = upgrades if upgrades is not None else []
        self.headers: list[str] = headers or []
        self.raw_rows: list[dict[str, CellValue]] = raw_rows or []
        self.money_columns: set[str] = money_columns or set()
        self.formula_tokens: dict[str, str] = formula_tokens or {}
        self.cell_formula_tokens: dict[int, dict[str, str]] = cell_formula_tokens or {}
        self.read_only_attributes: list[str] = read_only_attributes or []
        self.variables: dict[str, str] = variables if variables is not None else {}
        self.is_pvp = is_pvp
        self.pvp_owned_detection_types: set[str] = pvp_owned_detection_types or set()

        self.create_data()
        self._source_table = self.table_markup()

    def create_data(self) -> None:
        """Rebuild the Locator, stat projections, and level projections."""

        self.locator = Locator()
        self.defaults = LevelStats.defaults(self.defaults_data, self.locator)
        self.upgrades = [LevelStats.upgrade(upgrade, self.locator) for upgrade in self.upgrades_data]
        self.levels = Levels(self)

    @property
    def level_count(self) -> int:
        return 1 + len(self.upgrades)

    def stats_for(self, level: int) -> LevelStats | None:
        """Return the projection owning `level`, or None when out of range."""

        if level == 0:
            return self.defaults
        if 0 < level <= len(self.upgrades):
            return self.upgrades[level - 1]
        _log.warning("Skin %s has no level %s (levels: %s).", self.name, level, self.level_count)
        return None

    def get(self, level: int, attribute: str) -> Any:
        stats = self.stats_for(level)
        return stats.get(attribute) if stats is not None else None

    def raw_row_for(self, level: int) -> dict[str, CellValue] | None:
        for row in self.raw_rows:
            if row_level(row) == level:
                return row
        return None

    def set(self, level: int, attribute: str, value: Any) -> bool:
        """Set an attribute at a level, then recompute and rebuild.

        Table columns are always single names, even when the header contains
        a `.`; other names containing `.` are nested paths. When prices come
        from `$FNC-TOTALPRICE$`, `Cost` and `Price` are written to the level's
        `$<level>Cost$` variable.

        Args:
            level: 0 for defaults, otherwise the upgrade level.
            attribute: Plain or dotted attribute name.
            value: New value.

        Returns:
            True when the level exists and the write was applied; False for
            a price derived by any other formula.

        Raises:
            UnsafeAttributeError: When the attribute path contains an unsafe
                key. The model is left unmodified.
        """

        is_column = attribute in self.headers or self.locator.has_location(attribute)
        if is_column:
            PathSegment(attribute)
            dotted = False
        else:
            dotted = AttributePath.parse(attribute).is_dotted
        stats = self.stats_for(level)
        if stats is None:
            return False

        if attribute in PRICE_ATTRIBUTES and self.prices_derived():
            token = self.price_token(level, attribute)
            if token is None:
                _log.warning(
                    "Skin %s level %s: %s is derived from %s; edit its formula instead.",
                    self.name,
                    level,
                    attribute,
                    TOTAL_PRICE_COLUMN,
                )
                return False
            self.set_formula_token(token, format_cell(value))
            return True

        if attribute in self.headers:
            self.locator.add_location(attribute)
        stats.set(attribute, value)

        row = self.raw_row_for(level)
        if row is not None and not dotted and attribute not in DETECTION_TYPES:
            if attribute in row or attribute in self.headers:
                row[attribute] = value
            derived = self.cell_formula_tokens.get(level, {})
            if attribute in derived:
                _log.info(
                    "Skin %s level %s: %s is now literal (was %s).",
                    self.name,
                    level,
                    attribute,
                    derived.pop(attribute),
                )

        self.recompute_derived_cells()
        self.create_data()
        return True

    def set_detection(self, level: int, name: str, value: bool, *, rebuild: bool = True) -> bool:
        """Set a detection flag at a level.

        PVP skins record the flag as PVP-owned so that serialization writes
        `$PVP-<level><Flag>$` for it.

        Raises:
            UnsafeAttributeError: When the flag name is an unsafe key.
        """

        AttributePath.parse(name)
        stats = self.stats_for(level)
        if stats is None:
            return False
        stats.set_detection(name, value)
        if self.is_pvp:
            self.pvp_owned_detection_types.add(name)
        if rebuild:
            self.create_data()
        return True

    def set_formula_token(self, token: str, value: str, *, inherited: bool = False) -> None:
        """Replace a formula token's expression, then recompute and rebuild.

        The document variables are updated too (`$PVP-...$` for PVP skins), so
        per-level reads and `$FNC-...$` functions see the new value. An
        `inherited` change only follows an edit already recorded by another
        skin and leaves the variables alone.
        """

        self.formula_tokens[token] = value
        if not inherited:
            key = f"$PVP-{token[1:-1]}$" if self.is_pvp else token
            self.variables[key] = value
        self.recompute_derived_cells()
        self.create_data()

    def prices_derived(self) -> bool:
        return any(TOTAL_PRICE_COLUMN in tokens for tokens in self.cell_formula_tokens.values())

    def price_token(self, level: int, attribute: str) -> str | None:
        """Return the `$<level>Cost$` variable behind a computed price, or None.

        Only prices computed by `$FNC-TOTALPRICE$` have one; their `Cost`
        (and level 0 `Price`) is edited through that variable.
        """

        if attribute not in PRICE_ATTRIBUTES:
            return None
        if not any(
            tokens.get(TOTAL_PRICE_COLUMN) == TOTAL_PRICE_TOKEN
            for tokens in self.cell_formula_tokens.values()
        ):
            return None
        return f"${level}Cost$"

    def recompute_derived_cells(self) -> None:
        """Re-resolve every formula-derived cell into raw rows and stat bags."""

        for row in self.raw_rows:
            level = row_level(row)
            for column, token in self.cell_formula_tokens.get(level, {}).items():
                result = resolve_token(
                    token, level, row, self.formula_tokens, self.variables, self.is_pvp
                )
                if not is_resolved(result):
                    _log.warning(
                        "Skin %s level %s: %s (%s) did not resolve; keeping %r.",
                        self.name,
                        level,
                        column,
                        token,
                        row.get(column),
                    )
                    continue
                row[column] = result
                self._write_stat_cell(level, column, result)

        if self.prices_derived():
            self.refresh_prices()

    def _write_stat_cell(self, level: int, column: str, value: Any) -> None:
        if level == 0:
            self.defaults_data[column] = value
        elif 0 < level <= len(self.upgrades_data):
            self.upgrades_data[level - 1].setdefault("Stats", {})[column] = value

    def refresh_prices(self) -> None:
        """Derive level 0 `Price` and upgrade `Cost` from the `Total Price` column."""

        previous = 0.0
        for row in self.raw_rows:
            total = parse_price(row.get(TOTAL_PRICE_COLUMN))
            if total is None:
                continue
            level = row_level(row)
            if level == 0:
                self.defaults_data["Price"] = total
            elif 0 < level <= len(self.upgrades_data):
                self.upgrades_data[level - 1]["Cost"] = total - previous
            previous = total

    def serialization_rows(self) -> list[dict[str, CellValue]]:
        """Copy raw rows with derived cells replaced by their tokens."""

        rows = [dict(row) for row in self.raw_rows]
        for row in rows:
            for column, token in self.cell_formula_tokens.get(row_level(row), {}).items():
                row[column] = token
        return rows

    def table_markup(self) -> str:
        return serialize_table(self.headers, self.serialization_rows(), self.money_columns)

    def table_changed(self) -> bool:
        """Return True when the regenerated table differs from the loaded source."""

        return self.table_markup() != self._source_table

    def mark_saved(self) -> None:
        self._source_table = self.table_markup()

    def detection_states(self) -> list[dict[str, bool]]:
        """Return the explicit detection flags recorded at each level (may be partial)."""

        states: list[dict[str, bool]] = []
        for stats in [self.defaults, *self.upgrades]:
            detections = stats.bag.detections() or {}
            states.append(
                {name: detections[name] is True for name in DETECTION_TYPES if name in detections}
            )
        return states


def parse_price(value: object) -> float | None:
    """Parse a `Total Price` cell (numbers, or text with money characters)."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    cleaned = "".join(ch for ch in str(value) if ch.isdigit() or ch in ".-")
    return coerce_number(cleaned) if cleaned else None
