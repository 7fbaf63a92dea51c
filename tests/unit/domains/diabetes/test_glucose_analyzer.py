"""Tests for the daily overview and history report pipeline."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from glucobank.core.storage.models import GlucoseReading, InsulinInjection, Meal, TargetRange
from glucobank.domains.diabetes.domain_logic.glucose_analyzer import (
    GlucoseAnalyzer,
    compute_daily_stats,
    compute_history_stats,
    compute_weekly_stats,
)
from glucobank.domains.diabetes.domain_logic.insights import (
    AVERAGE_GOOD,
    CHECK_MORE_OFTEN,
    TIR_GOOD,
)

NOW = datetime(2026, 3, 10, 15, 30, tzinfo=timezone.utc)
TARGET = TargetRange(80, 140)


def _at(day: int, hour: int) -> datetime:
    return datetime(2026, 3, day, hour, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Pure stats functions
# ---------------------------------------------------------------------------

class TestComputeStats:
    def test_daily_carbs_use_calendar_day(self):
        meals = [
            Meal(id="today", timestamp=_at(10, 8), name="Toast", carbs=45),
            Meal(id="last-night", timestamp=_at(9, 23), name="Pasta", carbs=60),
        ]
        daily = compute_daily_stats([], [], meals, TARGET, NOW, tz=timezone.utc)
        assert daily.total_carbs == 45

    def test_daily_insulin_use_calendar_day(self):
        injections = [
            InsulinInjection(id="a", timestamp=_at(10, 7), units=3),
            InsulinInjection(id="b", timestamp=_at(9, 22), units=10),
        ]
        assert compute_daily_stats([], injections, [], TARGET, NOW, tz=timezone.utc).total_insulin == 3

    def test_daily_glucose_uses_trailing_window(self):
        readings = [
            GlucoseReading(id="a", timestamp=_at(10, 8), glucose=190),
            GlucoseReading(id="b", timestamp=_at(9, 9), glucose=90),
            GlucoseReading(id="c", timestamp=_at(7, 9), glucose=300),
        ]
        daily = compute_daily_stats(readings, [], [], TARGET, NOW, tz=timezone.utc)
        assert daily.avg_glucose == 140
        assert daily.time_in_range == 50

    def test_weekly_stats(self):
        readings = [
            GlucoseReading(id="a", timestamp=_at(10, 8), glucose=100),
            GlucoseReading(id="b", timestamp=_at(4, 9), glucose=120),
            GlucoseReading(id="c", timestamp=_at(1, 9), glucose=300),
        ]
        weekly = compute_weekly_stats(readings, TARGET, NOW, tz=timezone.utc)
        assert weekly.avg_glucose == 110
        assert weekly.time_in_range == 100

    def test_history_stats(self):
        readings = [
            GlucoseReading(id="a", timestamp=_at(10, 8), glucose=190),
            GlucoseReading(id="b", timestamp=_at(9, 9), glucose=90),
        ]
        injections = [InsulinInjection(id="i", timestamp=_at(9, 8), units=8)]
        meals = [Meal(id="m", timestamp=_at(8, 8), name="Rice", carbs=105)]
        stats = compute_history_stats(readings, injections, meals, TARGET, 7, NOW, tz=timezone.utc)
        assert stats.to_dict() == {
            "avg_glucose": 140,
            "time_in_range": 50,
            "total_readings": 2,
            "avg_daily_insulin": 1.1,
            "avg_daily_carbs": 15,
        }

    def test_empty_inputs_are_all_zero(self):
        stats = compute_history_stats([], [], [], TARGET, 30, NOW, tz=timezone.utc)
        assert stats.avg_glucose == stats.time_in_range == stats.total_readings == 0
        assert stats.avg_daily_insulin == 0.0


# ---------------------------------------------------------------------------
# GlucoseAnalyzer over the repository
# ---------------------------------------------------------------------------

@pytest.fixture
def analyzer(record_repository):
    return GlucoseAnalyzer(record_repository, tz=timezone.utc)


@pytest.fixture
def two_day_diary(record_repository):
    """Yesterday at 90 mg/dL, this morning at 190 mg/dL, plus insulin and meals."""
    repo = record_repository
    repo.add_glucose_reading(90, timestamp=_at(9, 9))
    repo.add_meal("Pasta", 60, "dinner", timestamp=_at(9, 19))
    repo.add_insulin_injection(5, "rapid_acting", timestamp=_at(9, 20))
    repo.add_insulin_injection(3, "rapid_acting", timestamp=_at(10, 7))
    repo.add_meal("Oatmeal", 45, "breakfast", timestamp=_at(10, 7))
    repo.add_glucose_reading(190, notes="after breakfast", timestamp=_at(10, 8))
    return repo


class TestDailyOverview:
    def test_overview(self, analyzer, two_day_diary):
        overview = analyzer.daily_overview(now=NOW)

        assert overview["glucose_unit"] == "mg/dL"
        assert overview["target_range"] == {"min": 80, "max": 140}
        latest = overview["latest_reading"]
        assert latest["glucose"] == 190
        assert latest["display_value"] == 190
        assert latest["category"] == "Normal"
        assert latest["notes"] == "after breakfast"
        assert overview["today"] == {
            "avg_glucose": 140,
            "time_in_range": 50,
            "total_insulin": 3.0,
            "total_carbs": 45.0,
        }
        assert overview["last_7_days"] == {"avg_glucose": 140, "time_in_range": 50}

    def test_empty_diary(self, analyzer):
        overview = analyzer.daily_overview(now=NOW)
        assert overview["latest_reading"] is None
        assert overview["today"]["avg_glucose"] == 0

    def test_mmol_display(self, analyzer, two_day_diary):
        two_day_diary.update_user_settings(glucose_unit="mmol/L")
        overview = analyzer.daily_overview(now=NOW)
        assert overview["latest_reading"]["display_value"] == 10.6
        assert overview["today"]["avg_glucose"] == 140
        assert overview["today"]["avg_glucose_display"] == 7.8

    def test_user_target_range_drives_time_in_range(self, analyzer, two_day_diary):
        two_day_diary.update_user_settings(target_range=TargetRange(70, 200))
        assert analyzer.daily_overview(now=NOW)["today"]["time_in_range"] == 100


class TestHistoryReport:
    def test_two_reading_scenario(self, analyzer, two_day_diary):
        report = analyzer.history_report(7, now=NOW)

        assert report["period_days"] == 7
        assert report["stats"]["avg_glucose"] == 140
        assert report["stats"]["time_in_range"] == 50
        assert report["stats"]["total_readings"] == 2
        assert report["stats"]["avg_daily_insulin"] == 1.1
        assert report["stats"]["avg_daily_carbs"] == 15
        assert report["chart"] == {"labels": ["3/9", "3/10"], "values": [90.0, 190.0]}
        assert report["insights"] == [AVERAGE_GOOD, TIR_GOOD, CHECK_MORE_OFTEN]

    def test_same_day_readings(self, analyzer, record_repository):
        record_repository.add_glucose_reading(190, timestamp=_at(10, 8))
        record_repository.add_glucose_reading(90, timestamp=_at(10, 12))
        report = analyzer.history_report(7, now=NOW)

        assert report["stats"]["avg_glucose"] == 140
        assert report["stats"]["time_in_range"] == 50
        assert report["chart"] == {"labels": ["3/10"], "values": [140.0]}
        assert report["insights"] == [AVERAGE_GOOD, TIR_GOOD, CHECK_MORE_OFTEN]

    def test_period_with_no_data(self, analyzer, record_repository):
        record_repository.add_glucose_reading(250, timestamp=NOW - timedelta(days=45))
        report = analyzer.history_report(30, now=NOW)

        assert report["stats"]["avg_glucose"] == 0
        assert report["stats"]["total_readings"] == 0
        assert report["chart"] is None
        assert report["insights"] == []

    def test_now_is_expressed_in_configured_zone(self, record_repository):
        tz = timezone(timedelta(hours=-5))
        report = GlucoseAnalyzer(record_repository, tz=tz).history_report(7, now=NOW)
        assert report["as_of"] == "2026-03-10T10:30:00-05:00"

    def test_naive_now_is_read_in_configured_zone(self, record_repository):
        tz = timezone(timedelta(hours=-5))
        analyzer = GlucoseAnalyzer(record_repository, tz=tz)
        report = analyzer.history_report(7, now=datetime(2026, 3, 10, 10, 30))
        assert report["as_of"] == "2026-03-10T10:30:00-05:00"

    def test_day_boundary_follows_configured_zone(self, record_repository):
        # 03:00 UTC on 3/10 is 22:00 on 3/9 at UTC-5.
        record_repository.add_meal("Snack", 30, "snack", timestamp=_at(10, 3))
        analyzer = GlucoseAnalyzer(record_repository, tz=timezone(timedelta(hours=-5)))
        assert analyzer.daily_overview(now=NOW)["today"]["total_carbs"] == 0
