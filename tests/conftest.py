"""Pytest fixtures shared across the suite."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the directory holding the `.wiki` fixtures."""

    return FIXTURES_DIR


@pytest.fixture
def scout_wikitext() -> str:
    """Return a tabbed tower page (Default + PVP skins, formulas, detections)."""

    return (FIXTURES_DIR / "Scout.wiki").read_text(encoding="utf-8")


@pytest.fixture
def farm_wikitext() -> str:
    """Return a single-table tower page with money columns."""

    return (FIXTURES_DIR / "Farm.wiki").read_text(encoding="utf-8")


@pytest.fixture
def wiki_settings(settings, fixtures_dir):
    """Point the tower manager at the test fixtures."""

    settings.TOWER_WIKI_DIR = fixtures_dir
    settings.TOWER_EDITOR_DEFAULT_PROFILE = "Default"
    return settings


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Enforce that every test has exactly one speed marker.

    - `unit`: pure, fast tests with no database access.
    - `integration`: tests touching Django, database, commands, or IO.

    Each test must have exactly one of these markers.
    """

    invalid: list[str] = []
    for item in items:
        has_unit = item.get_closest_marker("unit") is not None
        has_integration = item.get_closest_marker("integration") is not None
        if has_unit == has_integration:
            markers = []
            if has_unit:
                markers.append("unit")
            if has_integration:
                markers.append("integration")
            invalid.append(f"{item.nodeid} (markers={markers or 'none'})")

    if invalid:
        joined = "\n".join(f"- {nodeid}" for nodeid in invalid)
        raise pytest.UsageError(
            "Each test must have exactly one speed marker: `@pytest.mark.unit` or "
            "`@pytest.mark.integration`.\n"
            f"Offending tests:\n{joined}"
        )
