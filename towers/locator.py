"""Attribute locations and typed attribute paths.

Tower stat bags are untyped nested dictionaries whose attribute vocabulary
differs per tower. A `Locator` records where each attribute lives (at the
root, or under a container such as `Attributes` or `Detections`) so that
generic get/set can work without a fixed schema.

A Locator is owned by a single skin and shared read-write by that skin's
defaults and every upgrade. A location, once recorded, never changes for the
lifetime of the Locator.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Final

DETECTIONS_CONTAINER: Final = "Detections"
ATTRIBUTES_CONTAINER: Final = "Attributes"

UNSAFE_KEYS: Final[frozenset[str]] = frozenset({"__proto__", "prototype", "constructor"})


class UnsafeAttributeError(ValueError):
    """Raised when an attribute path names a structurally dangerous key."""


@dataclass(frozen=True, slots=True)
class PathSegment:
    """One key of an attribute path.

    Construction rejects keys that could reach object internals (`__proto__`,
    `prototype`, `constructor`, and any dunder name), so an `AttributePath`
    cannot express an unsafe write at all.
    """

    key: str

    def __post_init__(self) -> None:
        if not self.key:
            raise UnsafeAttributeError("Attribute path segments must be non-empty.")
        if self.key in UNSAFE_KEYS or (self.key.startswith("__") and self.key.endswith("__")):
            raise UnsafeAttributeError(f"Invalid attribute name {self.key!r}: unsafe key.")


@dataclass(frozen=True, slots=True)
class AttributePath:
    """A validated, dot-separated attribute name (e.g. `Burn.Damage`)."""

    segments: tuple[PathSegment, ...]

    @classmethod
    def parse(cls, name: str) -> AttributePath:
        """Split and validate a dotted attribute name.

        Args:
            name: Attribute name such as `Damage` or `Burn.Tick.Damage`.

        Returns:
            The validated path.

        Raises:
            UnsafeAttributeError: When any segment is empty or unsafe.
        """

        return cls(tuple(PathSegment(part) for part in name.split(".")))

    @property
    def head(self) -> str:
        return self.segments[0].key

    @property
    def leaf(self) -> str:
        return self.segments[-1].key

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(segment.key for segment in self.segments)

    @property
    def is_dotted(self) -> bool:
        return len(self.segments) > 1


class LocationKind(Enum):
    """Where an attribute's value is stored inside a stat bag."""

    ROOT = "root"
    CONTAINER = "container"


@dataclass(frozen=True, slots=True)
class AttributeLocation:
    """Storage location of an attribute: the bag root or a nested container."""

    kind: LocationKind
    containers: tuple[str, ...] = ()

    @classmethod
    def root(cls) -> AttributeLocation:
        return cls(LocationKind.ROOT)

    @classmethod
    def under(cls, *containers: str) -> AttributeLocation:
        if not containers:
            return cls.root()
        return cls(LocationKind.CONTAINER, tuple(containers))


ROOT = AttributeLocation.root()
DETECTIONS = AttributeLocation.under(DETECTIONS_CONTAINER)
ATTRIBUTES = AttributeLocation.under(ATTRIBUTES_CONTAINER)


class Locator:
    """Registry of attribute locations and detection flag states for one skin."""

    def __init__(self) -> None:
        self.locations: dict[str, AttributeLocation] = {}
        self.detections: dict[str, bool] = {}

    def add_location(self, attribute: str, location: AttributeLocation | None = None) -> None:
        """Record where `attribute` lives; the first recorded location wins."""

        self.locations.setdefault(attribute, location or ROOT)

    def get_location(self, attribute: str) -> AttributeLocation:
        return self.locations.get(attribute, ROOT)

    def has_location(self, attribute: str) -> bool:
        return attribute in self.locations

    def has_detection(self, name: str) -> bool:
        return name in self.detections

    def add_detection(self, name: str, value: bool = True) -> None:
        """Register a detection flag, locating it under `Detections` on first sight."""

        self.detections[name] = value
        self.add_location(name, DETECTIONS)

    def set_detection(self, name: str, value: bool) -> None:
        if not self.has_detection(name):
            self.add_detection(name, value)
            return
        self.detections[name] = value

    def get_target_data(self, data: dict[str, Any], location: AttributeLocation) -> Any:
        """Walk to the container for `location`, or return None when missing."""

        target: Any = data
        for key in location.containers:
            if not isinstance(target, dict):
                return None
            target = target.get(key)
        return target

    def get_or_create_target_data(
        self, data: dict[str, Any], location: AttributeLocation | tuple[str, ...]
    ) -> dict[str, Any] | None:
        """Walk to (creating as needed) the container for `location`.

        Missing intermediate containers are created as empty dicts. Existing
        non-dict values are never overwritten; the walk returns None instead.
        """

        keys = location.containers if isinstance(location, AttributeLocation) else location
        target: dict[str, Any] = data
        for key in keys:
            if key not in target:
                target[key] = {}
            child = target[key]
            if not isinstance(child, dict):
                return None
            target = child
        return target

    def locate(
        self, data: dict[str, Any], attribute: str, location: AttributeLocation | None = None
    ) -> Any:
        """Return the value of `attribute` at `location` (root by default), or None."""

        target = self.get_target_data(data, location or ROOT)
        if not isinstance(target, dict):
            return None
        return target.get(attribute)
