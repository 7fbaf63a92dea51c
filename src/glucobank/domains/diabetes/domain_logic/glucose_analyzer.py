"""Daily overview and period history built from stored record snapshots.

The module-level functions are pure: they take record snapshots and a
reference instant and return value objects. :class:`GlucoseAnalyzer` loads
the snapshots from the repository and runs the pipeline
(filter -> aggregate -> chart series -> insights) for the display tools.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, tzinfo
from typing import Any

from glucobank.core.storage.models import (
    GlucoseReading,
    GlucoseUnit,
    InsulinInjection,
    Meal,
    TargetRange,
)
from glucobank.core.storage.repository import RecordRepository
from glucobank.domains.diabetes.domain_logic import aggregator
from glucobank.domains.diabetes.domain_logic.chart_series import build_daily_series
from glucobank.domains.diabetes.domain_logic.classification import classify
from glucobank.domains.diabetes.domain_logic.insights import generate_insights
from glucobank.domains.diabetes.domain_logic.stats_models import (
    TODAY_WINDOW_DAYS,
    WEEK_WINDOW_DAYS,
    DailyStats,
    HistoryStats,
    WeeklyStats,
)
from glucobank.domains.diabetes.domain_logic.temporal_filter import (
    resolve_now,
    select_calendar_day,
    select_window,
)
from glucobank.domains.diabetes.domain_logic.validation import convert_glucose

logger = logging.getLogger(__name__)


def compute_daily_stats(
    readings: Sequence[GlucoseReading],
    injections: Sequence[InsulinInjection],
    meals: Sequence[Meal],
    target_range: TargetRange,
    now: datetime,
    *,
    tz: tzinfo | None = None,
) -> DailyStats:
    """Today's stats.

    Glucose uses the 1-day trailing window; insulin and carbs use the
    calendar day of ``now``. ``tz`` is the local zone (system local when None).
    """
    today_readings = select_window(readings, TODAY_WINDOW_DAYS, now=now, tz=tz)
    return DailyStats(
        avg_glucose=aggregator.average_glucose(today_readings),
        time_in_range=aggregator.time_in_range(today_readings, target_range),
        total_insulin=aggregator.total_insulin(select_calendar_day(injections, now, tz=tz)),
        total_carbs=aggregator.total_carbs(select_calendar_day(meals, now, tz=tz)),
    )


def compute_weekly_stats(
    readings: Sequence[GlucoseReading],
    target_range: TargetRange,
    now: datetime,
    *,
    tz: tzinfo | None = None,
) -> WeeklyStats:
    week_readings = select_window(readings, WEEK_WINDOW_DAYS, now=now, tz=tz)
    return WeeklyStats(
        avg_glucose=aggregator.average_glucose(week_readings),
        time_in_range=aggregator.time_in_range(week_readings, target_range),
    )


def compute_history_stats(
    readings: Sequence[GlucoseReading],
    injections: Sequence[InsulinInjection],
    meals: Sequence[Meal],
    target_range: TargetRange,
    period_days: int,
    now: datetime,
    *,
    tz: tzinfo | None = None,
) -> HistoryStats:
    """Stats for the trailing ``period_days`` window across all three kinds."""
    period_readings = select_window(readings, period_days, now=now, tz=tz)
    period_injections = select_window(injections, period_days, now=now, tz=tz)
    period_meals = select_window(meals, period_days, now=now, tz=tz)
    return HistoryStats(
        avg_glucose=aggregator.average_glucose(period_readings),
        time_in_range=aggregator.time_in_range(period_readings, target_range),
        total_readings=len(period_readings),
        avg_daily_insulin=aggregator.average_daily_insulin(period_injections, period_days),
        avg_daily_carbs=aggregator.average_daily_carbs(period_meals, period_days),
    )


class GlucoseAnalyzer:
    """Computes overview and history reports from the record repository.

    Usage::

        analyzer = GlucoseAnalyzer(repository)
        overview = analyzer.daily_overview()
        report = analyzer.history_report(period_days=30)
    """

    def __init__(self, repository: RecordRepository, *, tz: tzinfo | None = None) -> None:
        self._repo = repository
        self._tz = tz

    def _now(self, now: datetime | None) -> datetime:
        return resolve_now(now, self._tz)

    def daily_overview(self, *, now: datetime | None = None) -> dict[str, Any]:
        """Latest reading plus today's and this week's stats.

        Glucose values are also given in the user's display unit.
        """
        now = self._now(now)
        readings = self._repo.get_glucose_readings()
        settings = self._repo.get_user_settings()
        target = settings.target_range
        unit = settings.glucose_unit

        daily = compute_daily_stats(
            readings,
            self._repo.get_insulin_injections(),
            self._repo.get_meals(),
            target,
            now,
            tz=self._tz,
        )
        weekly = compute_weekly_stats(readings, target, now, tz=self._tz)

        latest: dict[str, Any] | None = None
        if readings:
            recent = readings[0]
            category = classify(recent.glucose)
            latest = {
                **recent.to_dict(),
                "display_value": convert_glucose(recent.glucose, unit),
                "category": category.label,
                "color": category.color,
            }

        return {
            "as_of": now.isoformat(),
            "glucose_unit": unit.value,
            "target_range": {"min": target.min, "max": target.max},
            "latest_reading": latest,
            "today": _with_display(daily.to_dict(), unit),
            "last_7_days": _with_display(weekly.to_dict(), unit),
        }

    def history_report(self, period_days: int, *, now: datetime | None = None) -> dict[str, Any]:
        """Period stats, per-day chart series, and insights."""
        now = self._now(now)
        readings = self._repo.get_glucose_readings()
        settings = self._repo.get_user_settings()

        stats = compute_history_stats(
            readings,
            self._repo.get_insulin_injections(),
            self._repo.get_meals(),
            settings.target_range,
            period_days,
            now,
            tz=self._tz,
        )
        series = build_daily_series(
            select_window(readings, period_days, now=now, tz=self._tz), tz=self._tz
        )
        insights = generate_insights(stats, period_days)
        logger.info(
            "History report: %d days, %d readings, %d insights",
            period_days,
            stats.total_readings,
            len(insights),
        )

        return {
            "period_days": period_days,
            "as_of": now.isoformat(),
            "glucose_unit": settings.glucose_unit.value,
            "stats": _with_display(stats.to_dict(), settings.glucose_unit),
            # Empty series -> caller shows no chart.
            "chart": series.to_dict() if not series.is_empty() else None,
            "insights": insights,
        }


def _with_display(stats: dict[str, Any], unit: GlucoseUnit) -> dict[str, Any]:
    if unit is GlucoseUnit.MMOL_L and stats.get("avg_glucose"):
        stats["avg_glucose_display"] = convert_glucose(stats["avg_glucose"], unit)
    return stats
