"""Resolution of `$...$` tokens found in wikitext tables.

Token vocabulary:
- `$FNC-NAME$`: a built-in function (only `TOTALPRICE` is defined).
- `$nSuffix$`: a per-level variable read (`$<level>Suffix$`).
- `$Name$`: a formula token; its value is either another token (an alias,
  resolved recursively) or an arithmetic expression over the row.
- `$PVP-...$`: a PVP-variant override of the corresponding plain token.

Unresolvable tokens yield None. Expressions that fail to evaluate yield NaN,
which callers treat as unresolved via `is_resolved`.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping

from wikitext.evaluator import evaluate_formula
from wikitext.parser import coerce_number

MAX_TOKEN_DEPTH = 10

_TOKEN_RE = re.compile(r"^\$[^$]+\$$")
_FUNCTION_TOKEN_RE = re.compile(r"^\$FNC-([A-Z]+)\$$")
_LEVEL_TOKEN_RE = re.compile(r"^\$n(.+)\$$")

TokenValue = int | float | str


def is_token(value: object) -> bool:
    """Return True when `value` is a single `$...$` token string."""

    return isinstance(value, str) and _TOKEN_RE.match(value) is not None


def is_resolved(value: object) -> bool:
    """Return True when a resolution result may be written into the model.

    None (unknown token) and non-finite numbers (failed formulas) are treated
    as unresolved and must leave the source cell as its token placeholder.
    """

    if value is None:
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return True


def level_variable(
    variables: Mapping[str, str], level: int, suffix: str, *, is_pvp: bool
) -> str | None:
    """Read `$<level><suffix>$`, preferring `$PVP-<level><suffix>$` for PVP skins."""

    pvp_key = f"$PVP-{level}{suffix}$"
    if is_pvp and pvp_key in variables:
        return variables[pvp_key]
    return variables.get(f"${level}{suffix}$")


def _total_price(level: int, variables: Mapping[str, str], is_pvp: bool) -> float:
    """Sum the per-level `Cost` variables from level 0 through `level`."""

    total: float = 0
    for current in range(level + 1):
        raw = level_variable(variables, current, "Cost", is_pvp=is_pvp)
        if raw is None:
            continue
        number = coerce_number(str(raw))
        if number is not None:
            total += number
    return total


FUNCTIONS: dict[str, Callable[[int, Mapping[str, str], bool], float]] = {
    "TOTALPRICE": _total_price,
}


def resolve_function(
    name: str, level: int, variables: Mapping[str, str], is_pvp: bool
) -> float | None:
    """Evaluate a `$FNC-NAME$` built-in.

    Args:
        name: Function name without the `FNC-` prefix (e.g. `TOTALPRICE`).
        level: Table level the function is evaluated for.
        variables: Document variables.
        is_pvp: Whether the owning skin is a PVP variant.

    Returns:
        The computed value, or None for unknown functions.
    """

    function = FUNCTIONS.get(name)
    if function is None:
        return None
    return function(level, variables, is_pvp)


def resolve_token(
    token: TokenValue,
    level: int,
    row: Mapping[str, object],
    formula_tokens: Mapping[str, str],
    variables: Mapping[str, str],
    is_pvp: bool,
    depth: int = 0,
) -> TokenValue | None:
    """Resolve a table cell token to a concrete value.

    Args:
        token: Cell value. Values that are not `$...$` tokens are already
            resolved and are returned unchanged.
        level: Table level of the row being resolved.
        row: The row's cells, used as the formula evaluation context.
        formula_tokens: The skin's token -> expression/alias map.
        variables: Document variables (used for per-level reads and functions).
        is_pvp: Whether the owning skin is a PVP variant.
        depth: Current alias recursion depth.

    Returns:
        The resolved value, NaN for failed expressions, or None when the token
        is unknown or the alias chain exceeds `MAX_TOKEN_DEPTH`.
    """

    if not isinstance(token, str) or not is_token(token):
        return token
    if depth > MAX_TOKEN_DEPTH:
        return None

    function_match = _FUNCTION_TOKEN_RE.match(token)
    if function_match:
        return resolve_function(function_match.group(1), level, variables, is_pvp)

    level_match = _LEVEL_TOKEN_RE.match(token)
    if level_match:
        raw = level_variable(variables, level, level_match.group(1), is_pvp=is_pvp)
        if raw is None:
            return None
        number = coerce_number(str(raw))
        return number if number is not None else raw

    formula = formula_tokens.get(token)
    if formula is None:
        return None
    if is_token(formula):
        return resolve_token(formula, level, row, formula_tokens, variables, is_pvp, depth + 1)
    return evaluate_formula(formula, row)
