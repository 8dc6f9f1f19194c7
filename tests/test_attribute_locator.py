"""Unit tests for typed attribute paths and the attribute Locator."""

from __future__ import annotations

import pytest

from towers.locator import (
    ATTRIBUTES,
    DETECTIONS,
    ROOT,
    AttributeLocation,
    AttributePath,
    LocationKind,
    Locator,
    UnsafeAttributeError,
)

pytestmark = pytest.mark.unit


def test_attribute_path_parses_dotted_names() -> None:
    path = AttributePath.parse("Burn.Tick.Damage")

    assert path.keys == ("Burn", "Tick", "Damage")
    assert path.head == "Burn"
    assert path.leaf == "Damage"
    assert path.is_dotted
    assert not AttributePath.parse("Damage").is_dotted


@pytest.mark.parametrize(
    "name",
    ["__proto__", "constructor", "prototype", "Burn.__proto__", "Burn.constructor", "__class__", "Burn..Damage", ""],
)
def test_attribute_path_rejects_unsafe_or_empty_segments(name: str) -> None:
    with pytest.raises(UnsafeAttributeError):
        AttributePath.parse(name)


def test_unsafe_attribute_error_is_a_value_error() -> None:
    assert issubclass(UnsafeAttributeError, ValueError)


def test_attribute_location_constructors() -> None:
    assert ROOT.kind is LocationKind.ROOT
    assert ATTRIBUTES == AttributeLocation(LocationKind.CONTAINER, ("Attributes",))
    assert AttributeLocation.under() == ROOT


def test_locator_first_recorded_location_wins() -> None:
    locator = Locator()

    locator.add_location("Burn", ATTRIBUTES)
    locator.add_location("Burn")

    assert locator.get_location("Burn") == ATTRIBUTES
    assert locator.get_location("Unknown") == ROOT
    assert not locator.has_location("Unknown")


def test_locator_registers_detections_under_the_detections_container() -> None:
    locator = Locator()

    locator.add_detection("Hidden", False)
    locator.set_detection("Hidden", True)
    locator.set_detection("Lead", False)

    assert locator.detections == {"Hidden": True, "Lead": False}
    assert locator.get_location("Hidden") == DETECTIONS
    assert locator.get_location("Lead") == DETECTIONS


def test_get_or_create_target_data_creates_missing_containers() -> None:
    locator = Locator()
    data: dict = {}

    target = locator.get_or_create_target_data(data, ("Attributes", "Burn"))

    assert target == {}
    assert data == {"Attributes": {"Burn": {}}}


def test_get_or_create_target_data_never_overwrites_non_mappings() -> None:
    locator = Locator()
    data = {"Attributes": 5}

    assert locator.get_or_create_target_data(data, ATTRIBUTES) is None
    assert data == {"Attributes": 5}


def test_locate_reads_values_at_a_location() -> None:
    locator = Locator()
    data = {"Damage": 3, "Attributes": {"Burn": 2}}

    assert locator.locate(data, "Damage") == 3
    assert locator.locate(data, "Burn", ATTRIBUTES) == 2
    assert locator.locate(data, "Burn") is None
    assert locator.get_target_data({"Attributes": 1}, ATTRIBUTES) is None
