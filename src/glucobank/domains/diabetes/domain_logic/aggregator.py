"""Scalar statistics over already-filtered record collections.

Every function is total: empty input yields ``0``. That ``0`` doubles as a
real zero (e.g. a day of meals logged with no carbs); callers that need to
tell the two apart check whether the input was empty, not the value.

Rounding is half-up (``150.5 -> 151``) rather than Python's round-half-even.
Missing or non-finite numeric fields count as ``0`` in every sum.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from glucobank.core.storage.models import (
    GlucoseReading,
    InsulinInjection,
    Meal,
    TargetRange,
    coerce_number,
)

DEFAULT_TARGET_RANGE = TargetRange()


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round like JavaScript's ``Math.round`` applied at ``ndigits`` decimals."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def _sum(values: Iterable[object]) -> float:
    return sum(coerce_number(v) for v in values)


def average_glucose(readings: Sequence[GlucoseReading]) -> int:
    """Mean glucose rounded to an integer; ``0`` when there are no readings."""
    if not readings:
        return 0
    return int(round_half_up(_sum(r.glucose for r in readings) / len(readings)))


def time_in_range(
    readings: Sequence[GlucoseReading],
    target_range: TargetRange = DEFAULT_TARGET_RANGE,
) -> int:
    """Percentage (0-100) of readings inside ``target_range`` (inclusive)."""
    if not readings:
        return 0
    in_range = sum(1 for r in readings if target_range.contains(coerce_number(r.glucose)))
    return int(round_half_up(in_range / len(readings) * 100))


def total_insulin(injections: Iterable[InsulinInjection]) -> float:
    """Sum of injected units, usually over one calendar day."""
    return _sum(i.units for i in injections)


def total_carbs(meals: Iterable[Meal]) -> float:
    """Sum of carbohydrate grams; a missing ``carbs`` counts as 0."""
    return _sum(getattr(m, "carbs", None) for m in meals)


def average_daily_insulin(injections: Iterable[InsulinInjection], period_days: int) -> float:
    """Units per day over the requested period, one decimal.

    The divisor is ``period_days`` even when some days have no entries.
    """
    if period_days <= 0:
        return 0.0
    return round_half_up(total_insulin(injections) / period_days, 1)


def average_daily_carbs(meals: Iterable[Meal], period_days: int) -> int:
    """Carbohydrate grams per day over the requested period, whole grams."""
    if period_days <= 0:
        return 0
    return int(round_half_up(total_carbs(meals) / period_days))
