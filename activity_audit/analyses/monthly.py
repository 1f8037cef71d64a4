"""Calendar-month overlay: day-of-month counts for recent months.

Each tracked month gets a series indexed by day of month (1-31). Days that
exist in the month hold a count (0 or more); days past the month's length
hold ``None`` so that months of different lengths can share one table.
"""

from __future__ import annotations

import calendar
from collections import Counter
from dataclasses import dataclass
from datetime import tzinfo
from typing import Any, Sequence

from activity_audit.foundation.bucketing import (
    MAX_DAYS_IN_MONTH,
    TimestampLike,
    days_in_month,
    parse_timestamp,
    shift_month,
)
from activity_audit.foundation.record_contract import ActivityRecord

DEFAULT_OVERLAY_MONTHS = 4


@dataclass(frozen=True)
class MonthSeries:
    """Day-of-month counts for one calendar month.

    Attributes
    ----------
    month_key:
        ``YYYY-MM`` token.
    day_counts:
        31 entries for days 1-31; ``None`` for days the month lacks.
    is_current:
        Whether this is the month containing the reference time.
    """

    month_key: str
    day_counts: tuple[int | None, ...]
    is_current: bool = False

    def __post_init__(self) -> None:
        if len(self.day_counts) != MAX_DAYS_IN_MONTH:
            raise ValueError(
                f"day_counts must have {MAX_DAYS_IN_MONTH} entries, "
                f"got {len(self.day_counts)}"
            )
        length = days_in_month(self.year, self.month)
        for day, count in enumerate(self.day_counts, start=1):
            if day <= length and count is None:
                raise ValueError(f"{self.month_key} day {day} exists but has no count")
            if day > length and count is not None:
                raise ValueError(f"{self.month_key} has no day {day}")
            if count is not None and count < 0:
                raise ValueError(f"Count cannot be negative: {count}")

    @property
    def year(self) -> int:
        return int(self.month_key[:4])

    @property
    def month(self) -> int:
        return int(self.month_key[5:7])

    @property
    def label(self) -> str:
        return calendar.month_abbr[self.month]

    @property
    def total(self) -> int:
        return sum(count for count in self.day_counts if count is not None)

    def count_for(self, day: int) -> int | None:
        return self.day_counts[day - 1]

    def as_dict(self) -> dict[str, Any]:
        return {
            "month_key": self.month_key,
            "label": self.label,
            "is_current": self.is_current,
            "day_counts": list(self.day_counts),
            "total": self.total,
        }


@dataclass(frozen=True)
class MonthlyOverlay:
    """Day-indexed counts for the current month and the months before it."""

    months: tuple[MonthSeries, ...]

    @property
    def monthly_totals(self) -> dict[str, int]:
        return {m.month_key: m.total for m in self.months}

    def rows(self) -> list[dict[str, int | None]]:
        """Day-indexed table: ``{"day": 1, "2025-01": 3, "2025-02": 0, ...}``."""
        table: list[dict[str, int | None]] = []
        for day in range(1, MAX_DAYS_IN_MONTH + 1):
            row: dict[str, int | None] = {"day": day}
            for series in self.months:
                row[series.month_key] = series.count_for(day)
            table.append(row)
        return table

    def as_dict(self) -> dict[str, Any]:
        return {
            "months": [m.as_dict() for m in self.months],
            "monthly_totals": self.monthly_totals,
            "rows": self.rows(),
        }


def analyze_monthly_overlay(
    records: Sequence[ActivityRecord],
    now: TimestampLike,
    tz: tzinfo | None = None,
    months: int = DEFAULT_OVERLAY_MONTHS,
) -> MonthlyOverlay:
    """Build the day-of-month overlay for the last ``months`` months.

    Parameters
    ----------
    records:
        Records to aggregate.
    now:
        Reference time; its month is the current (last) month.
    tz:
        Analysis timezone for timezone-aware timestamps and ``now``.
    months:
        Number of tracked months including the current one.

    Returns
    -------
    MonthlyOverlay
        Series ordered oldest month first.

    Examples
    --------
    >>> from datetime import datetime
    >>> overlay = analyze_monthly_overlay([], now=datetime(2025, 3, 10))
    >>> [m.month_key for m in overlay.months]
    ['2024-12', '2025-01', '2025-02', '2025-03']
    >>> overlay.months[2].count_for(29) is None
    True
    """
    if months < 1:
        raise ValueError(f"months must be positive, got {months}")

    reference = parse_timestamp(now, tz)
    tracked = [
        shift_month(reference.year, reference.month, -offset)
        for offset in range(months - 1, -1, -1)
    ]
    tracked_keys = {f"{year:04d}-{month:02d}" for year, month in tracked}

    counts: Counter[tuple[str, int]] = Counter()
    for record in records:
        ts = parse_timestamp(record.created_at, tz)
        key = ts.strftime("%Y-%m")
        if key in tracked_keys:
            counts[(key, ts.day)] += 1

    series: list[MonthSeries] = []
    for year, month in tracked:
        key = f"{year:04d}-{month:02d}"
        length = days_in_month(year, month)
        day_counts = tuple(
            counts[(key, day)] if day <= length else None
            for day in range(1, MAX_DAYS_IN_MONTH + 1)
        )
        series.append(
            MonthSeries(
                month_key=key,
                day_counts=day_counts,
                is_current=(year, month) == (reference.year, reference.month),
            )
        )

    return MonthlyOverlay(months=tuple(series))
