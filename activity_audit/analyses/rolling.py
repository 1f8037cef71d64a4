"""Rolling-average comparison of the current week or day against history.

The weekday view compares the in-progress (Sunday-start) week with:
- the average count per weekday across every other observed week, and
- each of the last ``past_weeks`` full weeks individually.

The hourly view compares today with the average count per hour across
every other observed day.

Buckets of the current period that have not happened yet are ``None``;
buckets that happened without any record are ``0``.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Sequence

from activity_audit.foundation.bucketing import (
    HOURS_PER_DAY,
    WEEKDAY_NAMES,
    TimestampLike,
    format_hour_label,
    parse_timestamp,
    week_start,
    weekday_index,
)
from activity_audit.foundation.record_contract import ActivityRecord

# Historical averages are reported with 2 decimal places (e.g., 3.67)
AVERAGE_PRECISION = Decimal("0.01")

DEFAULT_PAST_WEEKS = 4


def _average(total: int, periods: int) -> Decimal:
    if periods == 0:
        return Decimal("0").quantize(AVERAGE_PRECISION)
    return (Decimal(total) / Decimal(periods)).quantize(
        AVERAGE_PRECISION, rounding=ROUND_HALF_UP
    )


@dataclass(frozen=True)
class WeekdayPoint:
    """One weekday of the weekly comparison.

    Attributes
    ----------
    day:
        Weekday name.
    average:
        Mean count for this weekday over all historical weeks.
    this_week:
        Count in the current week, or ``None`` for weekdays after today.
    past_weeks:
        Counts for 1, 2, ... weeks ago, in that order.
    is_today:
        Whether this weekday is today.
    """

    day: str
    average: Decimal
    this_week: int | None
    past_weeks: tuple[int, ...]
    is_today: bool

    def __post_init__(self) -> None:
        if self.average < 0:
            raise ValueError(f"Average cannot be negative: {self.average}")
        if self.this_week is not None and self.this_week < 0:
            raise ValueError(f"This-week count cannot be negative: {self.this_week}")

    @property
    def short_day(self) -> str:
        return self.day[:3]

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "day": self.day,
            "short_day": self.short_day,
            "average": float(self.average),
            "this_week": self.this_week,
            "is_today": self.is_today,
        }
        for offset, count in enumerate(self.past_weeks, start=1):
            payload[f"past_week_{offset}"] = count
        return payload


@dataclass(frozen=True)
class WeekdayComparison:
    """Weekday comparison of the current week against history."""

    points: tuple[WeekdayPoint, ...]
    current_day_index: int
    current_week_start: str
    historical_week_count: int

    @property
    def totals(self) -> dict[str, Decimal | int]:
        """Per-series totals, summed from the emitted weekday values."""
        totals: dict[str, Decimal | int] = {
            "average": sum((p.average for p in self.points), Decimal("0.00")),
            "this_week": sum(p.this_week for p in self.points if p.this_week is not None),
        }
        past_count = len(self.points[0].past_weeks) if self.points else 0
        for offset in range(past_count):
            totals[f"past_week_{offset + 1}"] = sum(
                p.past_weeks[offset] for p in self.points
            )
        return totals

    def as_dict(self) -> dict[str, Any]:
        return {
            "points": [p.as_dict() for p in self.points],
            "current_day_index": self.current_day_index,
            "current_week_start": self.current_week_start,
            "historical_week_count": self.historical_week_count,
            "totals": {
                key: float(value) if isinstance(value, Decimal) else value
                for key, value in self.totals.items()
            },
        }


@dataclass(frozen=True)
class HourPoint:
    """One hour of the daily comparison."""

    hour: int
    average: Decimal
    today: int | None
    is_current_hour: bool

    def __post_init__(self) -> None:
        if not 0 <= self.hour < HOURS_PER_DAY:
            raise ValueError(f"Hour must be within 0-23, got {self.hour}")
        if self.average < 0:
            raise ValueError(f"Average cannot be negative: {self.average}")

    @property
    def display_hour(self) -> str:
        return format_hour_label(self.hour)

    def as_dict(self) -> dict[str, Any]:
        return {
            "hour": self.hour,
            "display_hour": self.display_hour,
            "average": float(self.average),
            "today": self.today,
            "is_current_hour": self.is_current_hour,
        }


@dataclass(frozen=True)
class HourlyComparison:
    """Hour-of-day comparison of today against history."""

    points: tuple[HourPoint, ...]
    current_hour: int
    today: str
    historical_day_count: int

    @property
    def totals(self) -> dict[str, Decimal | int]:
        return {
            "average": sum((p.average for p in self.points), Decimal("0.00")),
            "today": sum(p.today for p in self.points if p.today is not None),
        }

    def as_dict(self) -> dict[str, Any]:
        return {
            "points": [p.as_dict() for p in self.points],
            "current_hour": self.current_hour,
            "today": self.today,
            "historical_day_count": self.historical_day_count,
            "totals": {
                key: float(value) if isinstance(value, Decimal) else value
                for key, value in self.totals.items()
            },
        }


def analyze_weekday_activity(
    records: Sequence[ActivityRecord],
    now: TimestampLike,
    tz: tzinfo | None = None,
    past_weeks: int = DEFAULT_PAST_WEEKS,
) -> WeekdayComparison:
    """Compare the current week's weekday counts with history.

    Parameters
    ----------
    records:
        Records to aggregate.
    now:
        Reference time defining "today" and the current week.
    tz:
        Analysis timezone for timezone-aware timestamps and ``now``.
    past_weeks:
        Number of prior weeks emitted as individual series.

    Returns
    -------
    WeekdayComparison
        Seven points, Sunday first.

    Notes
    -----
    - Historical weeks are the distinct Sunday-start weeks, other than the
      current one, that contain at least one record. A weekday's average is
      its historical total divided by that week count (0 with no weeks).
    - ``this_week`` is ``None`` for weekdays after today.

    Examples
    --------
    >>> from datetime import datetime
    >>> records = [ActivityRecord("1", "Ng", datetime(2025, 10, 6, 9))]  # Monday
    >>> result = analyze_weekday_activity(records, now=datetime(2025, 10, 15, 12))
    >>> [p.this_week for p in result.points]
    [0, 0, 0, 0, None, None, None]
    >>> float(result.points[1].average), result.points[1].past_weeks[0]
    (1.0, 1)
    """
    if past_weeks < 0:
        raise ValueError(f"past_weeks cannot be negative: {past_weeks}")

    today = parse_timestamp(now, tz).date()
    current_week = week_start(today)
    current_day_index = weekday_index(today)

    current_counts: Counter[int] = Counter()
    historical_totals: Counter[int] = Counter()
    weekly_counts: dict[str, Counter[int]] = {}

    for record in records:
        day = parse_timestamp(record.created_at, tz).date()
        index = weekday_index(day)
        week_key = week_start(day).isoformat()
        if week_key == current_week.isoformat():
            current_counts[index] += 1
            continue
        historical_totals[index] += 1
        weekly_counts.setdefault(week_key, Counter())[index] += 1

    historical_week_count = len(weekly_counts)
    prior_week_keys = [
        (current_week - timedelta(weeks=offset)).isoformat()
        for offset in range(1, past_weeks + 1)
    ]

    points = tuple(
        WeekdayPoint(
            day=name,
            average=_average(historical_totals[index], historical_week_count),
            this_week=current_counts[index] if index <= current_day_index else None,
            past_weeks=tuple(
                weekly_counts.get(key, Counter())[index] for key in prior_week_keys
            ),
            is_today=index == current_day_index,
        )
        for index, name in enumerate(WEEKDAY_NAMES)
    )

    return WeekdayComparison(
        points=points,
        current_day_index=current_day_index,
        current_week_start=current_week.isoformat(),
        historical_week_count=historical_week_count,
    )


def analyze_hourly_activity(
    records: Sequence[ActivityRecord],
    now: TimestampLike,
    tz: tzinfo | None = None,
) -> HourlyComparison:
    """Compare today's hourly counts with the historical average per hour.

    Historical days are the distinct calendar days, other than today, that
    contain at least one record. ``today`` is ``None`` for hours after the
    current hour.
    """
    reference: datetime = parse_timestamp(now, tz)
    today = reference.date()
    current_hour = reference.hour

    today_counts: Counter[int] = Counter()
    historical_totals: Counter[int] = Counter()
    historical_days: set[str] = set()

    for record in records:
        ts = parse_timestamp(record.created_at, tz)
        if ts.date() == today:
            today_counts[ts.hour] += 1
            continue
        historical_totals[ts.hour] += 1
        historical_days.add(ts.date().isoformat())

    historical_day_count = len(historical_days)
    points = tuple(
        HourPoint(
            hour=hour,
            average=_average(historical_totals[hour], historical_day_count),
            today=today_counts[hour] if hour <= current_hour else None,
            is_current_hour=hour == current_hour,
        )
        for hour in range(HOURS_PER_DAY)
    )

    return HourlyComparison(
        points=points,
        current_hour=current_hour,
        today=today.isoformat(),
        historical_day_count=historical_day_count,
    )
