"""Creator engagement: records-per-creator distribution and engagement split.

Answers:
- How many users created 0, 1, 2, ... games (with a capped "21+" bucket)?
- What share of registered users created at least one game?
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Sequence

from activity_audit.foundation.record_contract import ActivityRecord, Creator

# Percentages use 1 decimal place (e.g., 12.5%)
PERCENTAGE_PRECISION = Decimal("0.1")

# Creators with at least this many records share one bucket
DEFAULT_BUCKET_CAP = 21


def _pct(part: int, whole: int) -> Decimal:
    if whole == 0:
        return Decimal("0.0")
    return (Decimal(part) / Decimal(whole) * 100).quantize(
        PERCENTAGE_PRECISION, rounding=ROUND_HALF_UP
    )


@dataclass(frozen=True)
class DistributionBucket:
    """Number of creators who produced a given number of records.

    Attributes
    ----------
    record_count:
        Records per creator; the cap value stands for "cap or more".
    creator_count:
        Creators in this bucket.
    percentage:
        Share of the creator population, 1 decimal place.
    is_capped:
        Whether this is the collapsed "N+" bucket.
    """

    record_count: int
    creator_count: int
    percentage: Decimal
    is_capped: bool = False

    def __post_init__(self) -> None:
        if self.record_count < 0:
            raise ValueError(f"Record count cannot be negative: {self.record_count}")
        if self.creator_count < 0:
            raise ValueError(f"Creator count cannot be negative: {self.creator_count}")
        if not 0 <= self.percentage <= 100:
            raise ValueError(f"Percentage must be 0-100: {self.percentage}")

    @property
    def label(self) -> str:
        return f"{self.record_count}+" if self.is_capped else str(self.record_count)

    def as_dict(self) -> dict[str, Any]:
        return {
            "bucket": self.label,
            "record_count": self.record_count,
            "creator_count": self.creator_count,
            "percentage": float(self.percentage),
        }


@dataclass(frozen=True)
class EngagementSplit:
    """Creators who produced at least one record versus none."""

    total_creators: int
    with_records: int
    without_records: int
    with_records_pct: Decimal
    without_records_pct: Decimal

    def __post_init__(self) -> None:
        if self.with_records < 0 or self.without_records < 0:
            raise ValueError("Creator counts cannot be negative")
        if self.with_records + self.without_records != self.total_creators:
            raise ValueError(
                f"Active ({self.with_records}) and inactive ({self.without_records}) "
                f"creators must add up to total creators ({self.total_creators})"
            )

    def as_dict(self) -> dict[str, Any]:
        return {
            "total_creators": self.total_creators,
            "with_records": self.with_records,
            "without_records": self.without_records,
            "with_records_pct": float(self.with_records_pct),
            "without_records_pct": float(self.without_records_pct),
        }


def count_records_by_creator(records: Sequence[ActivityRecord]) -> dict[str, int]:
    """Number of records per creator id."""
    return dict(Counter(r.creator_id for r in records))


def bucket_records_per_creator(
    creators: Sequence[Creator],
    record_counts: Mapping[str, int],
    cap: int = DEFAULT_BUCKET_CAP,
) -> list[DistributionBucket]:
    """Distribute the creator population by number of records produced.

    Parameters
    ----------
    creators:
        Full creator population.
    record_counts:
        Authoritative record count per creator id; creators absent from
        the mapping count as 0.
    cap:
        Counts of ``cap`` or more collapse into one ``"{cap}+"`` bucket.

    Returns
    -------
    list[DistributionBucket]
        Non-empty buckets only, ascending by record count.

    Examples
    --------
    >>> creators = [Creator(str(i), f"User {i}") for i in range(5)]
    >>> counts = {"1": 1, "2": 1, "3": 21, "4": 25}
    >>> [(b.label, b.creator_count) for b in bucket_records_per_creator(creators, counts)]
    [('0', 1), ('1', 2), ('21+', 2)]
    """
    if cap < 1:
        raise ValueError(f"cap must be positive, got {cap}")

    distribution = Counter(
        min(record_counts.get(creator.creator_id, 0), cap) for creator in creators
    )
    total = len(creators)
    return [
        DistributionBucket(
            record_count=bucket,
            creator_count=distribution[bucket],
            percentage=_pct(distribution[bucket], total),
            is_capped=bucket == cap,
        )
        for bucket in sorted(distribution)
    ]


def analyze_engagement_split(
    creators: Sequence[Creator], records: Sequence[ActivityRecord]
) -> EngagementSplit:
    """Split the population into creators with and without records.

    A creator counts as active when its display name (not its id) is
    among the distinct creator names appearing in ``records``.
    """
    active_names = {r.creator_name for r in records}
    total = len(creators)
    with_records = sum(1 for c in creators if c.display_name in active_names)
    without_records = total - with_records
    return EngagementSplit(
        total_creators=total,
        with_records=with_records,
        without_records=without_records,
        with_records_pct=_pct(with_records, total),
        without_records_pct=_pct(without_records, total),
    )
