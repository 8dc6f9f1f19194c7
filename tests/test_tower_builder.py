"""Unit tests for building the tower model from parsed wikitext."""

from __future__ import annotations

import pytest

from towers.builder import build_tower, is_pvp_skin, pvp_owned_detections, skin_formula_tokens
from wikitext.parser import parse_wikitext

pytestmark = pytest.mark.unit


@pytest.fixture
def scout(scout_wikitext: str):
    return build_tower("Scout", parse_wikitext(scout_wikitext), source_wikitext=scout_wikitext)


def test_is_pvp_skin_is_case_insensitive() -> None:
    assert is_pvp_skin("PVP")
    assert is_pvp_skin("Arena pvp")
    assert not is_pvp_skin("Default")


def test_skin_formula_tokens_overlay_pvp_values_for_pvp_skins() -> None:
    variables = {"$DPS$": "Damage", "$PVP-DPS$": "Damage / 2", "$1Cost$": "10"}

    assert skin_formula_tokens(variables, is_pvp=False) == {"$DPS$": "Damage", "$1Cost$": "10"}
    assert skin_formula_tokens(variables, is_pvp=True) == {"$DPS$": "Damage / 2", "$1Cost$": "10"}


def test_pvp_owned_detections_come_from_pvp_level_variables() -> None:
    assert pvp_owned_detections({"$PVP-2Lead$": "true", "$3Hidden$": "true"}) == {"Lead"}


def test_build_tower_creates_one_skin_per_tab(scout) -> None:
    assert scout.name == "Scout"
    assert scout.skin_names == ["Default", "PVP"]
    assert not scout.get_skin("Default").is_pvp
    assert scout.get_skin("PVP").is_pvp
    assert scout.get_skin("Missing") is None


def test_build_tower_resolves_derived_cells(scout) -> None:
    """Token cells carry computed values and are recorded as derived."""

    default = scout.get_skin("Default")

    assert default.read_only_attributes == ["DPS", "Total Price"]
    assert default.cell_formula_tokens[1] == {"DPS": "$Dps$", "Total Price": "$FNC-TOTALPRICE$"}
    assert default.raw_row_for(0)["DPS"] == pytest.approx(2.0)
    assert [row["Total Price"] for row in default.raw_rows] == [350, 550, 1000, 1900]


def test_build_tower_derives_prices_costs_and_titles(scout) -> None:
    default = scout.get_skin("Default")

    assert default.defaults_data["Price"] == 350
    assert [upgrade["Cost"] for upgrade in default.upgrades_data] == [200, 450, 900]
    assert [upgrade["Title"] for upgrade in default.upgrades_data] == [
        "Sharper Arrows",
        "Keen Eyes",
        "Long Shot",
    ]
    assert default.levels.get_cell(0, "Cost") == 350
    assert default.levels.get_cell(3, "Cost") == 900


def test_build_tower_pvp_skin_uses_pvp_overrides(scout) -> None:
    pvp = scout.get_skin("PVP")

    assert pvp.raw_row_for(0)["DPS"] == pytest.approx(2 / 1.5 * 0.5)
    assert [upgrade["Cost"] for upgrade in pvp.upgrades_data] == [250, 450, 900]
    assert pvp.upgrades_data[0]["Title"] == "Sharper Arrows"
    assert pvp.pvp_owned_detection_types == {"Lead"}


def test_build_tower_reads_detections_forward(scout) -> None:
    default = scout.get_skin("Default")
    pvp = scout.get_skin("PVP")

    assert [default.levels.get_cell(level, "Hidden") for level in range(4)] == [False, False, True, True]
    assert [default.levels.get_cell(level, "Lead") for level in range(4)] == [False] * 4
    assert [pvp.levels.get_cell(level, "Lead") for level in range(4)] == [False, False, True, True]
    assert [pvp.levels.get_cell(level, "Hidden") for level in range(4)] == [False, False, True, True]


def test_build_tower_detection_switched_off_is_stored_explicitly() -> None:
    text = (
        "<var>\n$1Flying$ = true\n$2Flying$ = false\n</var>\n"
        "{|\n! Level !! Damage\n|-\n| 0 || 1\n|-\n| 1 || 2\n|-\n| 2 || 3\n|}\n"
    )

    skin = build_tower("Bat", parse_wikitext(text)).get_skin("Default")

    assert skin.detection_states() == [
        {"Hidden": False, "Flying": False, "Lead": False},
        {"Hidden": False, "Flying": True, "Lead": False},
        {"Hidden": False, "Flying": False, "Lead": False},
    ]


def test_build_tower_uses_row_cost_without_total_price(farm_wikitext: str) -> None:
    tower = build_tower("Farm", parse_wikitext(farm_wikitext))
    farm = tower.get_skin("Default")

    assert farm.money_columns == {"Income", "Cost"}
    assert [upgrade["Cost"] for upgrade in farm.upgrades_data] == [1500, 3000]
    assert farm.levels.get_cell(0, "Cost") == 250
    assert farm.levels.get_cell(1, "Income") == 1234.5
    assert farm.read_only_attributes == []


def test_build_tower_leaves_unresolvable_tokens_in_place() -> None:
    text = "{|\n! Level !! Damage\n|-\n| 0 || $Unknown$\n|}\n"

    skin = build_tower("Odd", parse_wikitext(text)).get_skin("Default")

    assert skin.raw_row_for(0)["Damage"] == "$Unknown$"
    assert skin.cell_formula_tokens[0] == {}
    assert skin.read_only_attributes == []
