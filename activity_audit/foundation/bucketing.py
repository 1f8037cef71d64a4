"""Date-bucketing primitives shared by every aggregation.

Every analysis in :mod:`activity_audit.analyses` reduces a timestamp to one
of a handful of grouping keys: a calendar date, a weekday name, an hour of
day or a month token. This module is the single place where those keys are
derived so that the registration and game-creation views always agree.

Timestamps are reduced to a *naive wall-clock* datetime before any key is
computed:

- timezone-aware values are converted into the requested ``tz`` (or kept in
  their own offset when ``tz`` is ``None``) and then stripped of tzinfo;
- naive values are assumed to already be wall-clock time in the analysis
  timezone.

Quick Start
-----------
>>> from datetime import datetime
>>> from activity_audit.foundation.bucketing import to_calendar_date, to_weekday_name
>>> to_calendar_date("10/15/2025, 10:30:00")
'2025-10-15'
>>> to_weekday_name(datetime(2025, 10, 15, 10, 30))
'Wednesday'
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Union

TimestampLike = Union[datetime, str, int, float]

#: Weekday names in dashboard order (Sunday-start weeks).
WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

HOURS_PER_DAY = 24
MAX_DAYS_IN_MONTH = 31

# Locale formats produced by the legacy data export ("10/15/2025, 10:30:00").
LEGACY_TIMESTAMP_FORMATS = (
    "%m/%d/%Y, %H:%M:%S",
    "%m/%d/%Y, %I:%M:%S %p",
    "%m/%d/%Y, %H:%M",
    "%m/%d/%Y, %I:%M %p",
    "%m/%d/%Y",
)


class InvalidTimestamp(ValueError):
    """Raised when a value cannot be interpreted as a timestamp.

    Attributes
    ----------
    value:
        The offending raw value, kept for reporting skipped records.
    """

    def __init__(self, value: object, reason: str | None = None) -> None:
        self.value = value
        message = f"Cannot parse timestamp: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


def _to_wall_clock(dt: datetime, tz: tzinfo | None) -> datetime:
    if dt.tzinfo is None:
        return dt
    if tz is not None:
        dt = dt.astimezone(tz)
    return dt.replace(tzinfo=None)


def parse_timestamp(value: TimestampLike, tz: tzinfo | None = None) -> datetime:
    """Parse a raw timestamp into a naive wall-clock datetime.

    Parameters
    ----------
    value:
        A ``datetime``, an ISO-8601 string (a trailing ``Z`` is accepted),
        an epoch value in seconds, or a legacy locale string such as
        ``"10/15/2025, 10:30:00"``.
    tz:
        Analysis timezone. Aware inputs are converted into it; epoch values
        are interpreted as UTC instants and converted into it (UTC when
        ``tz`` is ``None``).

    Returns
    -------
    datetime
        Naive datetime holding the wall-clock time in the analysis timezone.

    Raises
    ------
    InvalidTimestamp
        If the value is empty, of an unsupported type, or unparseable.

    Examples
    --------
    >>> parse_timestamp("2025-01-02T03:04:05Z")
    datetime.datetime(2025, 1, 2, 3, 4, 5)
    >>> parse_timestamp("1/2/2025, 3:04:05 PM")
    datetime.datetime(2025, 1, 2, 15, 4, 5)
    """
    if isinstance(value, datetime):
        return _to_wall_clock(value, tz)

    # bool is an int subclass but never a meaningful epoch value
    if isinstance(value, bool) or value is None:
        raise InvalidTimestamp(value, "unsupported type")

    if isinstance(value, (int, float)):
        try:
            instant = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidTimestamp(value, str(exc)) from exc
        return _to_wall_clock(instant, tz or timezone.utc)

    if not isinstance(value, str):
        raise InvalidTimestamp(value, f"unsupported type {type(value).__name__}")

    text = value.strip()
    if not text:
        raise InvalidTimestamp(value, "empty string")

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        parsed = None

    if parsed is None:
        for fmt in LEGACY_TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        raise InvalidTimestamp(value)

    return _to_wall_clock(parsed, tz)


def to_calendar_date(timestamp: TimestampLike, tz: tzinfo | None = None) -> str:
    """Return the ``YYYY-MM-DD`` calendar day of a timestamp."""
    return parse_timestamp(timestamp, tz).date().isoformat()


def to_weekday_name(timestamp: TimestampLike, tz: tzinfo | None = None) -> str:
    """Return the weekday name (``Sunday`` .. ``Saturday``) of a timestamp."""
    return WEEKDAY_NAMES[weekday_index(parse_timestamp(timestamp, tz).date())]


def to_hour_of_day(timestamp: TimestampLike, tz: tzinfo | None = None) -> int:
    """Return the hour of day (0-23) of a timestamp."""
    return parse_timestamp(timestamp, tz).hour


def to_month_key(timestamp: TimestampLike, tz: tzinfo | None = None) -> str:
    """Return the ``YYYY-MM`` month token of a timestamp."""
    return parse_timestamp(timestamp, tz).strftime("%Y-%m")


def weekday_index(day: date) -> int:
    """Index of ``day`` within a Sunday-start week (Sunday = 0)."""
    return (day.weekday() + 1) % 7


def week_start(day: date) -> date:
    """Return the Sunday that starts the week containing ``day``.

    >>> week_start(date(2025, 10, 15)).isoformat()
    '2025-10-12'
    """
    return day - timedelta(days=weekday_index(day))


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``delta`` months from ``(year, month)``, crossing year boundaries.

    >>> shift_month(2025, 1, -3)
    (2024, 10)
    """
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def format_hour_label(hour: int) -> str:
    """Render an hour of day as a 12-hour clock label.

    >>> [format_hour_label(h) for h in (0, 9, 12, 23)]
    ['12 AM', '9 AM', '12 PM', '11 PM']
    """
    if not 0 <= hour < HOURS_PER_DAY:
        raise ValueError(f"Hour must be within 0-23, got {hour}")
    if hour == 0:
        return "12 AM"
    if hour == 12:
        return "12 PM"
    if hour < 12:
        return f"{hour} AM"
    return f"{hour - 12} PM"
