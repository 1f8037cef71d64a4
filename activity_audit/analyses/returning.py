"""Returning-user classification.

A creator is *returning* when their records span more than one distinct
calendar day, regardless of how many records they produced. This answers:
- Which creators came back after their first day?
- How much of the activity do returning creators account for?
- What does a single creator's activity timeline look like?
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Sequence

from activity_audit.analyses.timeseries import DailyCount
from activity_audit.foundation.bucketing import parse_timestamp
from activity_audit.foundation.record_contract import ActivityRecord

# Summary percentages and averages use 1 decimal place (e.g., 42.9%)
SUMMARY_PRECISION = Decimal("0.1")


@dataclass(frozen=True)
class ReturningUser:
    """A creator active on more than one calendar day.

    Attributes
    ----------
    creator_id:
        Creator identity.
    creator_name:
        Display name from the creator's first record.
    total_record_count:
        Number of records the creator produced.
    unique_dates:
        Distinct ``YYYY-MM-DD`` days, in the order first seen.
    date_range:
        ``(first, last)`` active day.
    records_per_date:
        Records per active day, ascending by day.
    """

    creator_id: str
    creator_name: str
    total_record_count: int
    unique_dates: tuple[str, ...]
    date_range: tuple[str, str]
    records_per_date: tuple[tuple[str, int], ...] = ()

    def __post_init__(self) -> None:
        if len(self.unique_dates) < 2:
            raise ValueError(
                f"Returning creator {self.creator_id} needs at least 2 active days, "
                f"got {len(self.unique_dates)}"
            )
        if self.total_record_count < len(self.unique_dates):
            raise ValueError(
                f"Record count ({self.total_record_count}) cannot be lower than "
                f"active days ({len(self.unique_dates)})"
            )

    @property
    def unique_date_count(self) -> int:
        return len(self.unique_dates)

    def as_dict(self) -> dict[str, Any]:
        return {
            "creator_id": self.creator_id,
            "creator_name": self.creator_name,
            "total_record_count": self.total_record_count,
            "unique_date_count": self.unique_date_count,
            "unique_dates": list(self.unique_dates),
            "date_range": {"first": self.date_range[0], "last": self.date_range[1]},
            "records_per_date": dict(self.records_per_date),
        }


@dataclass(frozen=True)
class ReturningUserSummary:
    """Headline statistics of the returning-user analysis."""

    total_creators: int
    single_day_creators: int
    returning_creators: int
    single_day_pct: Decimal
    returning_pct: Decimal
    max_active_dates: int
    avg_records_per_returning_creator: Decimal
    returning_record_count: int

    def __post_init__(self) -> None:
        if self.single_day_creators + self.returning_creators != self.total_creators:
            raise ValueError(
                f"Single-day ({self.single_day_creators}) and returning "
                f"({self.returning_creators}) creators must add up to "
                f"total creators ({self.total_creators})"
            )
        for name in ("single_day_pct", "returning_pct"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be 0-100: {value}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "total_creators": self.total_creators,
            "single_day_creators": self.single_day_creators,
            "returning_creators": self.returning_creators,
            "single_day_pct": float(self.single_day_pct),
            "returning_pct": float(self.returning_pct),
            "max_active_dates": self.max_active_dates,
            "avg_records_per_returning_creator": float(
                self.avg_records_per_returning_creator
            ),
            "returning_record_count": self.returning_record_count,
        }


def _group_by_creator(
    records: Sequence[ActivityRecord], tz: tzinfo | None
) -> dict[str, tuple[str, list[str]]]:
    """Map creator id to (first display name, record days in input order)."""
    groups: dict[str, tuple[str, list[str]]] = {}
    for record in records:
        day = parse_timestamp(record.created_at, tz).date().isoformat()
        if record.creator_id not in groups:
            groups[record.creator_id] = (record.creator_name, [])
        groups[record.creator_id][1].append(day)
    return groups


def identify_returning_users(
    records: Sequence[ActivityRecord], tz: tzinfo | None = None
) -> list[ReturningUser]:
    """Find creators with records on more than one calendar day.

    Parameters
    ----------
    records:
        Records to classify.
    tz:
        Analysis timezone for timezone-aware timestamps.

    Returns
    -------
    list[ReturningUser]
        Sorted by ``total_record_count`` descending. Creators with equal
        counts keep the order in which they first appear in ``records``.

    Examples
    --------
    >>> from datetime import datetime
    >>> records = [
    ...     ActivityRecord("A", "Ng", datetime(2025, 1, 1, 9)),
    ...     ActivityRecord("A", "Ng", datetime(2025, 1, 1, 17)),
    ...     ActivityRecord("B", "Ito", datetime(2025, 1, 1, 9)),
    ...     ActivityRecord("B", "Ito", datetime(2025, 1, 2, 9)),
    ... ]
    >>> [(u.creator_id, u.total_record_count) for u in identify_returning_users(records)]
    [('B', 2)]
    """
    returning: list[ReturningUser] = []
    for creator_id, (name, days) in _group_by_creator(records, tz).items():
        unique_dates = tuple(dict.fromkeys(days))
        if len(unique_dates) <= 1:
            continue
        ordered = sorted(unique_dates)
        per_date = Counter(days)
        returning.append(
            ReturningUser(
                creator_id=creator_id,
                creator_name=name,
                total_record_count=len(days),
                unique_dates=unique_dates,
                date_range=(ordered[0], ordered[-1]),
                records_per_date=tuple((day, per_date[day]) for day in ordered),
            )
        )

    # sorted() is stable: ties keep first-seen order
    return sorted(returning, key=lambda u: u.total_record_count, reverse=True)


def _pct(part: int, whole: int) -> Decimal:
    if whole == 0:
        return Decimal("0.0")
    return (Decimal(part) / Decimal(whole) * 100).quantize(
        SUMMARY_PRECISION, rounding=ROUND_HALF_UP
    )


def summarize_returning_users(
    records: Sequence[ActivityRecord], tz: tzinfo | None = None
) -> ReturningUserSummary:
    """Summarise how many creators returned and how active they were."""
    total_creators = len(_group_by_creator(records, tz))
    returning = identify_returning_users(records, tz)
    returning_count = len(returning)
    returning_records = sum(u.total_record_count for u in returning)

    if returning_count:
        avg_records = (Decimal(returning_records) / Decimal(returning_count)).quantize(
            SUMMARY_PRECISION, rounding=ROUND_HALF_UP
        )
    else:
        avg_records = Decimal("0.0")

    return ReturningUserSummary(
        total_creators=total_creators,
        single_day_creators=total_creators - returning_count,
        returning_creators=returning_count,
        single_day_pct=_pct(total_creators - returning_count, total_creators),
        returning_pct=_pct(returning_count, total_creators),
        max_active_dates=max((u.unique_date_count for u in returning), default=0),
        avg_records_per_returning_creator=avg_records,
        returning_record_count=returning_records,
    )


def creator_timeline(
    records: Sequence[ActivityRecord], creator_id: str, tz: tzinfo | None = None
) -> list[DailyCount]:
    """Per-day record counts of one creator, ascending by day.

    Returns an empty list for unknown creators.
    """
    creator_id = str(creator_id)
    per_date = Counter(
        parse_timestamp(r.created_at, tz).date().isoformat()
        for r in records
        if r.creator_id == creator_id
    )
    return [DailyCount(date=day, count=per_date[day]) for day in sorted(per_date)]
