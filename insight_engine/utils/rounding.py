"""Numeric display helpers shared by every result projection."""
from __future__ import annotations

import math
from typing import Any

from ..config import DISPLAY_DECIMALS, SHOW_DECIMAL_NUMBER_THRESHOLD


def to_fixed_number(num: float, digits: int = DISPLAY_DECIMALS) -> float:
    """Round half-up (towards +inf) to ``digits`` decimals."""
    scale = 10 ** digits
    return math.floor(num * scale + 0.5) / scale


def round_for_display(num: float) -> float:
    """Round a score for display.

    Non-zero values whose magnitude is below ``SHOW_DECIMAL_NUMBER_THRESHOLD``
    keep two mantissa decimals in scientific notation, so ``0.001234`` becomes
    ``0.00123`` instead of collapsing to ``0.0``.  Everything else, negative
    values included, keeps two decimals.
    """
    if 0 < abs(num) < SHOW_DECIMAL_NUMBER_THRESHOLD:
        return float(f"{num:.{DISPLAY_DECIMALS}e}")
    return to_fixed_number(num)


def is_missing_number(value: Any) -> bool:
    """True for ``None``, the literal string ``"NaN"`` and float NaN."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() == "nan"
    return isinstance(value, float) and math.isnan(value)


def normalize_number(value: Any) -> float:
    """Coerce a raw backend number to a display value; missing values become 0."""
    if is_missing_number(value):
        return 0
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(num):
        return 0
    return round_for_display(num)


def normalize_positive(value: Any) -> float:
    """Like ``normalize_number`` but non-positive scores collapse to 0."""
    if is_missing_number(value):
        return 0
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(num) or num <= 0:
        return 0
    return round_for_display(num)
