"""Per-level stat projections.

A level's raw attribute bag is wrapped by `AttributeBag`, which discovers the
bag's attribute vocabulary through the skin's shared `Locator` and exposes
generic get/set. `LevelStats` adds the variant-specific behaviour:

- `StatsVariant.DEFAULTS` (level 0): detection flags default to False.
- `StatsVariant.UPGRADE` (levels 1..N): the bag is the upgrade's `Stats`
  mapping, while `Cost`, `Title`, and `Image` live on the enclosing upgrade
  record, which is kept in sync on writes.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Final

from towers.locator import (
    ATTRIBUTES,
    DETECTIONS_CONTAINER,
    AttributeLocation,
    AttributePath,
    Locator,
    PathSegment,
)

_log = logging.getLogger(__name__)

DETECTION_TYPES: Final[tuple[str, ...]] = ("Hidden", "Flying", "Lead")
NUMERIC_ATTRIBUTES: Final[tuple[str, ...]] = ("Damage", "Cooldown", "Range")
RESERVED_KEYS: Final[frozenset[str]] = frozenset(
    {"Damage", "Cooldown", "Range", "Attributes", "Detections", "Price", "Extras"}
)
UPGRADE_RECORD_KEYS: Final[frozenset[str]] = frozenset({"Cost", "Title", "Image"})


class StatsVariant(Enum):
    """Which level a stat projection represents."""

    DEFAULTS = "defaults"
    UPGRADE = "upgrade"


class AttributeBag:
    """Generic attribute access over one level's untyped data.

    Attributes:
        data: The raw, mutable attribute mapping for the level.
        locator: The owning skin's shared Locator.
        attribute_names: Discovered attribute names in discovery order.
        attributes: Flat snapshot of discovered attribute values.
    """

    def __init__(self, data: dict[str, Any] | None, locator: Locator) -> None:
        self.data: dict[str, Any] = data if data is not None else {}
        self.locator = locator
        self.attribute_names: list[str] = [*NUMERIC_ATTRIBUTES, *DETECTION_TYPES, "Cost"]
        self.attributes: dict[str, Any] = {}
        self._discover()

    def _discover(self) -> None:
        """Register every attribute present in the bag with the Locator."""

        for name in NUMERIC_ATTRIBUTES:
            self.add_attribute(name)
        for name in DETECTION_TYPES:
            self.add_detection(name)

        self.attributes["Cost"] = self.data.get("Cost") or self.data.get("Price") or 0

        for key in self.data:
            if key not in RESERVED_KEYS:
                self.add_attribute(key)

        nested = self.data.get("Attributes")
        if isinstance(nested, dict):
            for key in nested:
                if key not in RESERVED_KEYS:
                    self.add_attribute(key, ATTRIBUTES)

    def add_attribute(self, name: str, location: AttributeLocation | None = None) -> None:
        value = self.locator.locate(self.data, name, location)
        if value is None:
            return
        self.locator.add_location(name, location)
        self.add_attribute_value(name, value)

    def add_attribute_value(self, name: str, value: Any) -> None:
        if name not in self.attribute_names:
            self.attribute_names.append(name)
        self.attributes[name] = value

    def add_detection(self, name: str) -> None:
        detections = self.detections()
        value = detections.get(name) if detections is not None else None
        if value is None:
            return
        self.locator.add_detection(name, value)
        self.add_attribute_value(name, value)

    def detections(self, *, create: bool = False) -> dict[str, Any] | None:
        """Return the bag's `Detections` mapping, optionally creating it."""

        if create:
            return self.locator.get_or_create_target_data(self.data, (DETECTIONS_CONTAINER,))
        detections = self.data.get(DETECTIONS_CONTAINER)
        return detections if isinstance(detections, dict) else None

    def set_detection(self, name: str, value: bool) -> None:
        if not self.locator.has_detection(name):
            self.locator.add_detection(name)
        detections = self.detections(create=True)
        if detections is None:
            _log.warning("Cannot write detection %s: Detections is not a mapping.", name)
            return
        detections[name] = value
        self.locator.set_detection(name, value)

    def get(self, attribute: str) -> Any:
        """Read an attribute by name, routing through its recorded location."""

        if attribute in DETECTION_TYPES:
            detections = self.detections()
            return detections.get(attribute) if detections is not None else None
        if self.locator.has_location(attribute):
            target = self.locator.get_target_data(self.data, self.locator.get_location(attribute))
            return target.get(attribute) if isinstance(target, dict) else None
        if attribute == "Cost" and "Price" in self.data:
            return self.data["Price"]
        if "." in attribute:
            path = AttributePath.parse(attribute)
            target = self.locator.get_target_data(self.data, self.locator.get_location(path.head))
            for key in path.keys:
                if not isinstance(target, dict):
                    return None
                target = target.get(key)
            return target
        return None

    def set(self, attribute: str, value: Any) -> bool:
        """Write an attribute by name.

        Args:
            attribute: Plain or dotted attribute name.
            value: New value.

        Returns:
            True when the value was written into the bag, False when the bag
            has no location for the attribute.

        Raises:
            UnsafeAttributeError: When the name contains an unsafe key. Nothing
                is written in that case.
        """

        if attribute in DETECTION_TYPES:
            detections = self.detections(create=True)
            if detections is None:
                return False
            detections[attribute] = value
            return True

        if self.locator.has_location(attribute):
            PathSegment(attribute)
            target = self.locator.get_or_create_target_data(
                self.data, self.locator.get_location(attribute)
            )
            if target is None:
                return False
            target[attribute] = value
            return True

        path = AttributePath.parse(attribute)

        if attribute == "Cost" and "Price" in self.data:
            self.data["Price"] = value
            return True

        if path.is_dotted:
            container = self.locator.get_or_create_target_data(
                self.data, self.locator.get_location(path.head)
            )
            parent = (
                self.locator.get_or_create_target_data(container, path.keys[:-1])
                if container is not None
                else None
            )
            if parent is None:
                _log.warning("Cannot write %s: a parent value is not a mapping.", attribute)
                return False
            parent[path.leaf] = value
            return True

        return False


class LevelStats:
    """Stat projection for one level of a skin.

    Attributes:
        variant: Defaults (level 0) or Upgrade (levels 1..N).
        bag: Generic attribute access over the level's stat mapping.
        upgrade_data: The enclosing upgrade record (upgrades only).
    """

    def __init__(
        self,
        variant: StatsVariant,
        data: dict[str, Any] | None,
        locator: Locator,
        *,
        upgrade_data: dict[str, Any] | None = None,
    ) -> None:
        self.variant = variant
        self.upgrade_data = upgrade_data
        self.bag = AttributeBag(data, locator)

        if variant is StatsVariant.DEFAULTS:
            for name in DETECTION_TYPES:
                self.bag.attributes.setdefault(name, False)
        elif upgrade_data is not None:
            self.bag.add_attribute_value("Cost", upgrade_data.get("Cost"))
            extras = self.bag.data.get("Extras")
            if extras is not None and not isinstance(extras, list):
                self.bag.data["Extras"] = []

    @classmethod
    def defaults(cls, data: dict[str, Any], locator: Locator) -> LevelStats:
        return cls(StatsVariant.DEFAULTS, data, locator)

    @classmethod
    def upgrade(cls, upgrade_data: dict[str, Any], locator: Locator) -> LevelStats:
        stats = upgrade_data.setdefault("Stats", {})
        return cls(StatsVariant.UPGRADE, stats, locator, upgrade_data=upgrade_data)

    @property
    def data(self) -> dict[str, Any]:
        return self.bag.data

    @property
    def locator(self) -> Locator:
        return self.bag.locator

    @property
    def attributes(self) -> dict[str, Any]:
        return self.bag.attributes

    @property
    def attribute_names(self) -> list[str]:
        return self.bag.attribute_names

    def get(self, attribute: str) -> Any:
        if self.variant is StatsVariant.DEFAULTS:
            return self.bag.get(attribute)
        if attribute == DETECTIONS_CONTAINER:
            return self.bag.detections()
        value = self.bag.get(attribute)
        if value is None and self.upgrade_data is not None:
            return self.upgrade_data.get(attribute)
        return value

    def set(self, attribute: str, value: Any) -> None:
        """Write an attribute, keeping the upgrade record in sync for upgrades.

        Raises:
            UnsafeAttributeError: When the name contains an unsafe key.
        """

        if self.variant is StatsVariant.UPGRADE and attribute == DETECTIONS_CONTAINER:
            self.bag.data[DETECTIONS_CONTAINER] = value
            return

        written = self.bag.set(attribute, value)

        synced = False
        if self.variant is StatsVariant.UPGRADE and self.upgrade_data is not None:
            if attribute in self.upgrade_data or attribute in UPGRADE_RECORD_KEYS:
                self.upgrade_data[attribute] = value
                synced = True

        if not written and not synced:
            _log.warning("No location for attribute %s; value was not stored.", attribute)

    def add_detection(self, name: str, value: bool = True) -> None:
        """Add a detection flag only when the level does not define it yet."""

        if not self.locator.has_detection(name):
            self.locator.add_detection(name)
        detections = self.bag.detections(create=True)
        if detections is not None:
            detections.setdefault(name, value)

    def set_detection(self, name: str, value: bool) -> None:
        self.bag.set_detection(name, value)
