"""Shared arithmetic for the scoring engines."""

import math


def clamp(score: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, score))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (-2.5 -> -2)."""
    return int(math.floor(value + 0.5))
