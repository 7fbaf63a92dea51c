"""Derived statistics value types and history period constants.

These are recomputed from the current record snapshots on every request and
are never persisted. A ``0`` field means "no data" as well as a true zero.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

# Period choices (days) offered for history views.
HISTORY_PERIODS = (7, 14, 30, 90)
DEFAULT_HISTORY_PERIOD = 7

# Trailing windows used by the daily overview.
TODAY_WINDOW_DAYS = 1
WEEK_WINDOW_DAYS = 7


@dataclass(frozen=True)
class DailyStats:
    """Today's numbers: glucose over the 1-day window, insulin/carbs over the calendar day."""

    avg_glucose: int = 0
    time_in_range: int = 0
    total_insulin: float = 0.0
    total_carbs: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class WeeklyStats:
    avg_glucose: int = 0
    time_in_range: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class HistoryStats:
    """Statistics for a multi-day history period."""

    avg_glucose: int = 0
    time_in_range: int = 0
    total_readings: int = 0
    avg_daily_insulin: float = 0.0
    avg_daily_carbs: int = 0

    def to_dict(self) -> dict:
        return asdict(self)
