"""Rule-based guidance strings derived from history statistics.

Rules run in a fixed order and independently of each other:

1. average glucose level (high / low / good)
2. time in range (excellent / good / needs adjustment)
3. testing frequency (fewer than four readings a day)

A rule is skipped when its input statistic is zero, so a period with no data
produces no insights at all.
"""

from __future__ import annotations

from glucobank.domains.diabetes.domain_logic.stats_models import HistoryStats

HIGH_AVERAGE_THRESHOLD = 180
LOW_AVERAGE_THRESHOLD = 80
EXCELLENT_TIR_THRESHOLD = 70
GOOD_TIR_THRESHOLD = 50
MIN_DAILY_READINGS = 4

AVERAGE_HIGH = (
    "Your average glucose is high. Consider reviewing your meal timing and insulin doses."
)
AVERAGE_LOW = (
    "Your average glucose is low. You might need to adjust your insulin doses or meal timing."
)
AVERAGE_GOOD = "Your average glucose is in a good range. Keep up the great work!"
TIR_EXCELLENT = "Excellent time in range! You're managing your glucose levels well."
TIR_GOOD = "Good time in range. There's room for improvement in glucose control."
TIR_LOW = (
    "Time in range could be better. Consider discussing adjustments with your "
    "healthcare provider."
)
CHECK_MORE_OFTEN = "Consider checking your glucose more frequently for better management."


def generate_insights(stats: HistoryStats | None, period_days: int) -> list[str]:
    """Return zero or more guidance strings for a history period."""
    if stats is None:
        return []

    insights: list[str] = []

    if stats.avg_glucose > 0:
        if stats.avg_glucose > HIGH_AVERAGE_THRESHOLD:
            insights.append(AVERAGE_HIGH)
        elif stats.avg_glucose < LOW_AVERAGE_THRESHOLD:
            insights.append(AVERAGE_LOW)
        else:
            insights.append(AVERAGE_GOOD)

    if stats.time_in_range > 0:
        if stats.time_in_range >= EXCELLENT_TIR_THRESHOLD:
            insights.append(TIR_EXCELLENT)
        elif stats.time_in_range >= GOOD_TIR_THRESHOLD:
            insights.append(TIR_GOOD)
        else:
            insights.append(TIR_LOW)

    if stats.total_readings > 0 and period_days > 0:
        if stats.total_readings / period_days < MIN_DAILY_READINGS:
            insights.append(CHECK_MORE_OFTEN)

    return insights
