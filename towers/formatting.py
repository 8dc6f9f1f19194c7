"""Display helpers for tower values (command output and edit input)."""

from __future__ import annotations

import json
import math
from typing import Any

from wikitext.parser import coerce_number


def parse_numeric(value: str | int | float) -> float:
    """Parse a number, ignoring `,` separators.

    Returns:
        The value as a float, or NaN when it is not numeric.
    """

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    number = coerce_number(str(value))
    return float(number) if number is not None else math.nan


def _trim(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def format_number(value: float) -> str:
    """Format a number with magnitude-based precision.

    >= 1000 shows no decimals, >= 100 two, >= 1 three, >= 0.01 four,
    >= 0.0001 six; smaller values use six significant digits. Trailing zeros
    are dropped.
    """

    if not math.isfinite(value):
        return str(value)
    if value == 0:
        return "0"

    magnitude = abs(value)
    if magnitude >= 1000:
        return f"{value:.0f}"
    if magnitude >= 100:
        return _trim(f"{value:.2f}")
    if magnitude >= 1:
        return _trim(f"{value:.3f}")
    if magnitude >= 0.01:
        return _trim(f"{value:.4f}")
    if magnitude >= 0.0001:
        return _trim(f"{value:.6f}")

    return f"{value:.6g}"


def format_value(value: Any) -> str:
    """Render any cell value for display (`-` when missing)."""

    if value is None:
        return "-"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def parse_value_text(text: str) -> bool | int | float | str:
    """Coerce user-entered text into a cell value.

    `true`/`false` (any case) become booleans, numeric text becomes a number,
    anything else stays a stripped string.
    """

    stripped = text.strip()
    lowered = stripped.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    number = coerce_number(stripped) if stripped else None
    return number if number is not None else stripped
