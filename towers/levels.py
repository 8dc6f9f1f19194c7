"""Level projections: the fully inherited attribute set for every level.

`Levels` is derived data. It is rebuilt from a skin's defaults and upgrades
whenever the skin changes and is never mutated in place.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from towers.skin import SkinData

_log = logging.getLogger(__name__)


@dataclass(slots=True)
class Level:
    """Flat attribute values for one level.

    Attributes:
        level: Zero-based level index.
        values: Attribute name (dotted for nested leaves) -> value.
    """

    level: int
    values: dict[str, Any] = field(default_factory=dict)

    def get(self, attribute: str, default: Any = None) -> Any:
        if attribute == "Level":
            return self.level
        return self.values.get(attribute, default)

    def __getitem__(self, attribute: str) -> Any:
        if attribute == "Level":
            return self.level
        return self.values[attribute]

    def __contains__(self, attribute: object) -> bool:
        return attribute == "Level" or attribute in self.values


def _own_value(data: Mapping[str, Any], attribute: str) -> Any:
    """Read an attribute (walking dotted names) from one level's own values."""

    if attribute in data:
        return data[attribute]
    if "." not in attribute:
        return None
    target: Any = data
    for key in attribute.split("."):
        if not isinstance(target, Mapping):
            return None
        target = target.get(key)
    return target


class Levels:
    """Inherited per-level projections for a skin.

    Attributes:
        attributes: Every tracked attribute name (`Level` first, then plain
            names and dotted leaf names in discovery order).
        complex_attributes: Names whose values are nested mappings.
        complex_values: Dotted leaf names found under nested mappings.
        levels: One `Level` per skin level, level 0 first.
    """

    def __init__(self, skin: SkinData) -> None:
        self.skin = skin
        self.complex_attributes: list[str] = []
        self.complex_values: list[str] = []
        self.attributes: list[str] = self._collect_attributes()
        self.levels: list[Level] = []

        self.add_level(skin.defaults.attributes)
        for upgrade in skin.upgrades:
            self.add_level(upgrade.attributes)

    def _collect_attributes(self) -> list[str]:
        """Scan level 0 then each upgrade for attribute names, flattening mappings."""

        attributes = ["Level"]

        def add_complex(value: Mapping[str, Any], prefix: str) -> None:
            for name, nested in value.items():
                combined = f"{prefix}{name}"
                if isinstance(nested, Mapping):
                    if combined not in self.complex_attributes:
                        self.complex_attributes.append(combined)
                    add_complex(nested, combined + ".")
                elif combined not in self.complex_values:
                    self.complex_values.append(combined)
                    attributes.append(combined)

        def process(name: str, level: int) -> None:
            value = self.skin.get(level, name)
            if isinstance(value, Mapping):
                if name not in self.complex_attributes:
                    self.complex_attributes.append(name)
                add_complex(value, name + ".")
            elif name not in attributes:
                attributes.append(name)

        for name in self.skin.defaults.attribute_names:
            process(name, 0)
        for index, upgrade in enumerate(self.skin.upgrades, start=1):
            for name in upgrade.attribute_names:
                process(name, index)
        return attributes

    def add_level(self, data: Mapping[str, Any]) -> None:
        """Materialize the next level, inheriting missing values from the previous one."""

        level = Level(level=len(self.levels))
        for attribute in self.attributes:
            if attribute == "Level":
                continue
            value = _own_value(data, attribute)
            if value is not None:
                level.values[attribute] = value
            elif level.level > 0:
                inherited = self.levels[level.level - 1].get(attribute)
                if inherited is not None:
                    level.values[attribute] = inherited
        self.levels.append(level)

    def __len__(self) -> int:
        return len(self.levels)

    def has_level(self, level: int) -> bool:
        return 0 <= level < len(self.levels)

    def get_level(self, level: int) -> Level | None:
        """Return the projection for `level`, or None (with a warning) when out of range."""

        if not self.has_level(level):
            _log.warning(
                "Invalid level index %s requested. Available levels: %s", level, len(self.levels)
            )
            return None
        return self.levels[level]

    def get_cell(self, level: int, attribute: str) -> Any:
        """Return one attribute at one level, or None when the level does not exist."""

        projection = self.get_level(level)
        if projection is None:
            return None
        return projection.get(attribute)
