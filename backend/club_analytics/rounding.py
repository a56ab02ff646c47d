"""Display rounding shared by the metric calculators (half away from zero)."""
from __future__ import annotations

import math


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    scaled = abs(value) * factor
    rounded = math.floor(scaled + 0.5) / factor
    return math.copysign(rounded, value) if value else 0.0


def percentage(part: int, whole: int, digits: int = 0) -> float:
    """Share of `part` in `whole` as a rounded percentage; 0 for an empty whole."""
    if whole <= 0:
        return 0.0
    return round_half_up(part / whole * 100, digits)
