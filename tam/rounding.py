"""Rounding policies shared by team sizing and the capacity timeline."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

from tam.defaults import AGGRESSIVE_ROUNDING_THRESHOLD


def round_half_up(value: float, places: int = 2) -> float:
    """Decimal rounding with ties away from zero (Python's round() is banker's)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def aggressive_round(value: float, threshold: float = AGGRESSIVE_ROUNDING_THRESHOLD) -> float:
    """
    Round a raw headcount share.

    Below 1 the share is kept as a fraction (2 decimals, half-up). At 1 or
    above it becomes a whole rep: ceiling when the fractional part is at least
    ``threshold``, floor otherwise.

    Examples (threshold 0.75): 0.2423 -> 0.24, 1.7 -> 1, 1.8 -> 2, 2.75 -> 3.
    """
    if value < 1:
        return round_half_up(value, 2)
    whole = math.floor(value)
    fraction = value - whole
    return float(whole + 1 if fraction >= threshold else whole)
