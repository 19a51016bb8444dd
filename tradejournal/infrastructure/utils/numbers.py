"""Numeric helpers shared by the calculators."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List


def round_to(value: float, places: int = 2) -> float:
    """Round half away from zero on the exact binary value of `value`.

    `round()` uses banker's rounding; journal figures are expected to round
    1.005 -> 1.0 and 0.125 -> 0.13, like a fixed-point formatter does.
    Non-finite values are returned unchanged.
    """
    if value is None or not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def js_round(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity."""
    return math.floor(value + 0.5)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def mean(values: Iterable[float]) -> float:
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)


def population_std(values: Iterable[float]) -> float:
    items: List[float] = list(values)
    if not items:
        return 0.0
    avg = sum(items) / len(items)
    variance = sum((v - avg) ** 2 for v in items) / len(items)
    return math.sqrt(variance)
