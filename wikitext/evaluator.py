"""Safe evaluation for wikitext formula tokens.

Formula tokens reference table columns by name (e.g. `Damage / Cooldown`).
Column values are substituted textually, longest names first, and the
resulting arithmetic is evaluated with a restricted AST walker (no attribute
access beyond whitelisted `Math.*` helpers, no names, no comprehensions).
Failures yield NaN and never raise.
"""

from __future__ import annotations

import ast
import logging
import math
import re
from collections.abc import Callable, Mapping

_log = logging.getLogger(__name__)

_LEADING_NUMBER_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_WHITESPACE_RE = re.compile(r"\s+")


def _js_round(value: float) -> float:
    """Round half up, matching spreadsheet-style wiki formulas."""

    return float(math.floor(value + 0.5))


_FUNCTIONS: dict[str, Callable[..., float]] = {
    "floor": lambda x: float(math.floor(x)),
    "ceil": lambda x: float(math.ceil(x)),
    "round": _js_round,
    "abs": abs,
    "min": min,
    "max": max,
    "pow": lambda x, y: x**y,
    "sqrt": math.sqrt,
}


def numeric_context(row: Mapping[str, object]) -> dict[str, float]:
    """Build the numeric substitution context for a table row.

    Args:
        row: Mapping of column name -> cell value.

    Returns:
        Mapping of column name -> float for every numeric-coercible cell.
        Names containing whitespace are also exposed with `_` in place of the
        whitespace (e.g. `Cost Efficiency` -> `Cost_Efficiency`).
    """

    context: dict[str, float] = {}
    for key, value in row.items():
        number = _leading_float(value)
        if number is not None:
            context[key] = number

    aliased = dict(context)
    for key, number in context.items():
        if _WHITESPACE_RE.search(key):
            aliased.setdefault(_WHITESPACE_RE.sub("_", key), number)
    return aliased


def _leading_float(value: object) -> float | None:
    """Return the numeric prefix of a cell value, if any."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if not math.isnan(value) else None
    match = _LEADING_NUMBER_RE.match(str(value).replace(",", ""))
    if match is None:
        return None
    return float(match.group(0))


def substitute_row_values(formula: str, row: Mapping[str, object]) -> str:
    """Replace column names in `formula` with their numeric row values."""

    context = numeric_context(row)
    expression = formula
    for key in sorted((k for k in context if k.strip()), key=len, reverse=True):
        expression = re.sub(re.escape(key), _format_operand(context[key]), expression)
    return expression


def _format_operand(value: float) -> str:
    """Render a substituted value so it stays a single operand."""

    text = str(int(value)) if value.is_integer() else repr(value)
    return f"({text})" if value < 0 else text


def evaluate_formula(formula: str, row: Mapping[str, object]) -> float:
    """Evaluate a formula token expression against a table row.

    Args:
        formula: Arithmetic expression referencing column names.
        row: Mapping of column name -> cell value for the current level.

    Returns:
        The computed value, or NaN when the expression cannot be evaluated.
    """

    expression = substitute_row_values(formula, row)
    try:
        tree = ast.parse(expression.strip(), mode="eval")
        result = _eval_node(tree.body)
    except (SyntaxError, ValueError, TypeError, ZeroDivisionError, OverflowError) as exc:
        _log.warning("Formula %r -> %r failed: %s", formula, expression, exc)
        return math.nan

    _log.debug("Formula %r -> %r -> %s", formula, expression, result)
    return result


def _eval_node(node: ast.AST) -> float:
    """Recursively evaluate an AST node with strict safety rules."""

    if isinstance(node, ast.Constant):
        if isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
            return float(node.value)
        raise ValueError(f"unsupported constant {node.value!r}")

    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.UAdd, ast.USub)):
        operand = _eval_node(node.operand)
        return operand if isinstance(node.op, ast.UAdd) else -operand

    if isinstance(node, ast.BinOp):
        left = _eval_node(node.left)
        right = _eval_node(node.right)
        if isinstance(node.op, ast.Add):
            return left + right
        if isinstance(node.op, ast.Sub):
            return left - right
        if isinstance(node.op, ast.Mult):
            return left * right
        if isinstance(node.op, ast.Div):
            return left / right
        if isinstance(node.op, ast.FloorDiv):
            return float(left // right)
        if isinstance(node.op, ast.Mod):
            return math.fmod(left, right)
        if isinstance(node.op, ast.Pow):
            return float(left**right)

    if isinstance(node, ast.Call) and not node.keywords:
        function = _FUNCTIONS.get(_function_name(node.func) or "")
        if function is not None:
            return float(function(*(_eval_node(arg) for arg in node.args)))

    raise ValueError(f"unsupported expression node {type(node).__name__}")


def _function_name(node: ast.AST) -> str | None:
    """Return the helper name for `name(...)` or `Math.name(...)` calls."""

    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name) and node.value.id == "Math":
        return node.attr
    return None
