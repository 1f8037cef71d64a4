"""Time-series aggregation: progression charts and calendar profiles.

Answers questions like:
- How many users registered on each day of the last 30 days?
- On which weekdays and at which hours are games created?
- How many users registered today?

Date-range filtering keeps whole boundary days: a record is included when
``start 00:00:00 <= ts <= end 23:59:59.999999``.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Sequence

from activity_audit.foundation.bucketing import (
    HOURS_PER_DAY,
    WEEKDAY_NAMES,
    format_hour_label,
    parse_timestamp,
    weekday_index,
)
from activity_audit.foundation.record_contract import ActivityRecord

# Default trailing window of the progression charts
DEFAULT_WINDOW_DAYS = 30


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar days.

    Attributes
    ----------
    start:
        First calendar day included.
    end:
        Last calendar day included.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"start must not be after end: "
                f"start={self.start.isoformat()}, end={self.end.isoformat()}"
            )

    @property
    def day_start(self) -> datetime:
        return datetime.combine(self.start, time.min)

    @property
    def day_end(self) -> datetime:
        return datetime.combine(self.end, time.max)

    def contains(self, ts: datetime) -> bool:
        return self.day_start <= ts <= self.day_end

    @classmethod
    def trailing(cls, today: date, days: int = DEFAULT_WINDOW_DAYS) -> "DateRange":
        """Range from ``days`` days before ``today`` through ``today``.

        >>> DateRange.trailing(date(2025, 3, 31), days=30).start.isoformat()
        '2025-03-01'
        """
        if isinstance(today, datetime):
            today = today.date()
        return cls(start=today - timedelta(days=days), end=today)


@dataclass(frozen=True)
class DailyCount:
    """Number of records on one calendar day."""

    date: str
    count: int

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"Count cannot be negative: {self.count}")

    def as_dict(self) -> dict[str, Any]:
        return {"date": self.date, "count": self.count}


@dataclass(frozen=True)
class WeekdayCount:
    """Number of records falling on one weekday."""

    day: str
    count: int

    @property
    def short_day(self) -> str:
        return self.day[:3]

    def as_dict(self) -> dict[str, Any]:
        return {"day": self.day, "short_day": self.short_day, "count": self.count}


@dataclass(frozen=True)
class HourCount:
    """Number of records falling in one hour of day."""

    hour: int
    count: int

    def __post_init__(self) -> None:
        if not 0 <= self.hour < HOURS_PER_DAY:
            raise ValueError(f"Hour must be within 0-23, got {self.hour}")

    @property
    def display_hour(self) -> str:
        return format_hour_label(self.hour)

    @property
    def period(self) -> str:
        return "AM" if self.hour < 12 else "PM"

    def as_dict(self) -> dict[str, Any]:
        return {
            "hour": self.hour,
            "display_hour": self.display_hour,
            "period": self.period,
            "count": self.count,
        }


def _local_timestamps(
    records: Sequence[ActivityRecord],
    date_range: DateRange | None,
    tz: tzinfo | None,
) -> list[datetime]:
    timestamps = [parse_timestamp(r.created_at, tz) for r in records]
    if date_range is None:
        return timestamps
    return [ts for ts in timestamps if date_range.contains(ts)]


def filter_by_date_range(
    records: Sequence[ActivityRecord],
    date_range: DateRange | None,
    tz: tzinfo | None = None,
) -> list[ActivityRecord]:
    """Return the records whose timestamp falls within ``date_range``.

    ``None`` keeps every record. Input order is preserved.
    """
    if date_range is None:
        return list(records)
    return [r for r in records if date_range.contains(parse_timestamp(r.created_at, tz))]


def aggregate_by_date(
    records: Sequence[ActivityRecord],
    date_range: DateRange | None = None,
    tz: tzinfo | None = None,
) -> list[DailyCount]:
    """Count records per calendar day.

    Parameters
    ----------
    records:
        Records to aggregate.
    date_range:
        Optional inclusive range of days; records outside it are ignored.
    tz:
        Analysis timezone for timezone-aware timestamps.

    Returns
    -------
    list[DailyCount]
        One entry per observed day, ascending by date. Days without
        records are not synthesised.

    Examples
    --------
    >>> from datetime import datetime
    >>> records = [
    ...     ActivityRecord("1", "Ng", datetime(2025, 1, 2, 9)),
    ...     ActivityRecord("2", "Ito", datetime(2025, 1, 1, 23)),
    ...     ActivityRecord("1", "Ng", datetime(2025, 1, 2, 18)),
    ... ]
    >>> [(d.date, d.count) for d in aggregate_by_date(records)]
    [('2025-01-01', 1), ('2025-01-02', 2)]
    """
    counts = Counter(
        ts.date().isoformat() for ts in _local_timestamps(records, date_range, tz)
    )
    return [DailyCount(date=day, count=counts[day]) for day in sorted(counts)]


def count_by_weekday(
    records: Sequence[ActivityRecord],
    date_range: DateRange | None = None,
    tz: tzinfo | None = None,
) -> list[WeekdayCount]:
    """Count records per weekday, Sunday first, zero-filled."""
    counts = Counter(
        weekday_index(ts.date()) for ts in _local_timestamps(records, date_range, tz)
    )
    return [
        WeekdayCount(day=name, count=counts[index])
        for index, name in enumerate(WEEKDAY_NAMES)
    ]


def count_by_hour(
    records: Sequence[ActivityRecord],
    date_range: DateRange | None = None,
    tz: tzinfo | None = None,
) -> list[HourCount]:
    """Count records per hour of day (0-23), zero-filled."""
    counts = Counter(ts.hour for ts in _local_timestamps(records, date_range, tz))
    return [HourCount(hour=hour, count=counts[hour]) for hour in range(HOURS_PER_DAY)]


def count_on_day(
    records: Sequence[ActivityRecord], day: date, tz: tzinfo | None = None
) -> int:
    """Number of records created on calendar day ``day``."""
    if isinstance(day, datetime):
        day = day.date()
    return sum(1 for r in records if parse_timestamp(r.created_at, tz).date() == day)
