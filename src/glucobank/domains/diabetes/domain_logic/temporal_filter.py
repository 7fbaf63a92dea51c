"""Date-window selection over any timestamped record collection.

Two selections are used by the display tools, and they differ:

* :func:`select_window`: trailing window counted from local midnight,
  used for glucose trend statistics.
* :func:`select_calendar_day`: one local calendar day, used for today's
  insulin and carbohydrate totals.

"Local" is the ``tz`` argument when given, otherwise the system local zone.
System local time is resolved per instant, so days that span a DST change
get the offset that was in effect at each end.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Protocol, TypeVar


class HasTimestamp(Protocol):
    """Anything with an absolute ``timestamp``."""

    @property
    def timestamp(self) -> datetime: ...


R = TypeVar("R", bound=HasTimestamp)

_END_OF_DAY = time(23, 59, 59, 999000)


def to_local(ts: datetime, tz: tzinfo | None = None) -> datetime:
    """Express ``ts`` in ``tz`` (system local time when ``tz`` is None).

    Naive timestamps are taken to be wall-clock time in that zone already.
    """
    if tz is None:
        return ts.astimezone()
    if ts.tzinfo is None:
        return ts.replace(tzinfo=tz)
    return ts.astimezone(tz)


def resolve_now(now: datetime | None = None, tz: tzinfo | None = None) -> datetime:
    """Return an aware reference instant.

    ``now`` defaults to the current time. A naive ``now`` is read in ``tz``
    (system local time when ``tz`` is None); an aware one is converted to
    ``tz`` when given and otherwise returned unchanged.
    """
    if now is None:
        return datetime.now(tz) if tz is not None else datetime.now().astimezone()
    if now.tzinfo is None or tz is not None:
        return to_local(now, tz)
    return now


def _localize(wall: datetime, tz: tzinfo | None) -> datetime:
    # Naive wall-clock time on a given local date -> aware instant.
    if tz is None:
        return wall.astimezone()
    return wall.replace(tzinfo=tz)


def _local_date(now: datetime | None, tz: tzinfo | None) -> date:
    return to_local(resolve_now(now, tz), tz).date()


def window_cutoff(days: int, now: datetime | None = None, tz: tzinfo | None = None) -> datetime:
    """Local midnight of the date ``days`` calendar days before ``now``."""
    start_date = _local_date(now, tz) - timedelta(days=days)
    return _localize(datetime.combine(start_date, time.min), tz)


def select_window(
    records: Iterable[R],
    days: int,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[R]:
    """Records at or after :func:`window_cutoff`, in their original order.

    ``days=1`` therefore reaches back to yesterday's midnight, not just today.
    Records later than ``now`` are kept.
    """
    cutoff = window_cutoff(days, now, tz)
    return [r for r in records if to_local(r.timestamp, tz) >= cutoff]


def day_bounds(
    reference: datetime | None = None, tz: tzinfo | None = None
) -> tuple[datetime, datetime]:
    """First and last millisecond of the reference instant's local day."""
    day = _local_date(reference, tz)
    return (
        _localize(datetime.combine(day, time.min), tz),
        _localize(datetime.combine(day, _END_OF_DAY), tz),
    )


def select_calendar_day(
    records: Iterable[R],
    reference: datetime | None = None,
    *,
    tz: tzinfo | None = None,
) -> list[R]:
    """Records inside the reference instant's local calendar day (inclusive)."""
    start, end = day_bounds(reference, tz)
    return [r for r in records if start <= to_local(r.timestamp, tz) <= end]
