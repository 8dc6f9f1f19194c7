"""Unit tests for the restricted formula evaluator."""

from __future__ import annotations

import math

import pytest

from wikitext.evaluator import evaluate_formula, numeric_context, substitute_row_values

pytestmark = pytest.mark.unit


def test_evaluate_formula_substitutes_row_values() -> None:
    assert evaluate_formula("Damage / Cooldown", {"Damage": 3, "Cooldown": 1.5}) == pytest.approx(2.0)


def test_numeric_context_uses_leading_numbers_and_underscore_aliases() -> None:
    """Text cells contribute their numeric prefix; spaced names get `_` aliases."""

    context = numeric_context({"Cooldown": "12s", "Total Price": "1,000", "Name": "Scout", "Flag": True})

    assert context == {"Cooldown": 12.0, "Total Price": 1000.0, "Total_Price": 1000.0}


def test_substitute_row_values_prefers_longer_names_and_wraps_negatives() -> None:
    """`Damage Bonus` is substituted before `Damage`; negatives stay one operand."""

    expression = substitute_row_values("Damage Bonus + Damage", {"Damage": -2, "Damage Bonus": 5})

    assert expression == "5 + (-2)"


@pytest.mark.parametrize(
    ("formula", "expected"),
    [
        ("Math.floor(Damage / 2)", 2.0),
        ("ceil(Damage / 2)", 3.0),
        ("Math.round(2.5)", 3.0),
        ("max(1, Damage, 3)", 5.0),
        ("Damage ** 2", 25.0),
        ("Damage % 3", 2.0),
        ("Math.sqrt(16) + Math.abs(-1)", 5.0),
    ],
)
def test_evaluate_formula_supports_whitelisted_helpers(formula: str, expected: float) -> None:
    assert evaluate_formula(formula, {"Damage": 5}) == pytest.approx(expected)


@pytest.mark.parametrize(
    "formula",
    ["Damage / 0", "Unknown * 2", "__import__('os')", "Damage.real", "'text'", "Damage +"],
)
def test_evaluate_formula_failures_yield_nan(formula: str) -> None:
    """Anything outside the arithmetic whitelist evaluates to NaN instead of raising."""

    assert math.isnan(evaluate_formula(formula, {"Damage": 5}))
