"""Per-day glucose averages for line charts."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, tzinfo

from glucobank.core.storage.models import GlucoseReading, coerce_number
from glucobank.domains.diabetes.domain_logic.temporal_filter import to_local


@dataclass(frozen=True)
class DailySeries:
    """One plottable series: ``labels[i]`` is the day of ``values[i]``."""

    labels: list[str] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.labels

    def to_dict(self) -> dict:
        return {"labels": list(self.labels), "values": list(self.values)}


def _label(day: date) -> str:
    return f"{day.month}/{day.day}"


def build_daily_series(
    readings: Iterable[GlucoseReading],
    *,
    tz: tzinfo | None = None,
) -> DailySeries:
    """Bucket readings by local calendar date and average each bucket.

    Args:
        readings: Glucose readings in any order.
        tz: Timezone defining the calendar date. Defaults to system local.

    Returns:
        A series sorted by date ascending; empty when there are no readings.
    """
    buckets: dict[date, list[float]] = defaultdict(list)
    for reading in readings:
        buckets[to_local(reading.timestamp, tz).date()].append(coerce_number(reading.glucose))

    days = sorted(buckets)
    return DailySeries(
        labels=[_label(d) for d in days],
        values=[sum(buckets[d]) / len(buckets[d]) for d in days],
    )
