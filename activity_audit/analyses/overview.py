"""Dashboard report: every aggregation view over one snapshot.

The report combines the independent views of the dashboard:
- registration and game-creation progression (daily counts)
- weekday and hour-of-day profiles within the selected range
- current week / today against the historical baseline
- the monthly overlay
- returning creators, the records-per-creator distribution and the
  engagement split

Views are computed independently. A view that fails is logged, reported in
``failed_views`` and replaced by its empty default so the remaining views
are still delivered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, TypeVar

from activity_audit.analyses.engagement import (
    analyze_engagement_split,
    bucket_records_per_creator,
    count_records_by_creator,
)
from activity_audit.analyses.monthly import analyze_monthly_overlay
from activity_audit.analyses.returning import (
    identify_returning_users,
    summarize_returning_users,
)
from activity_audit.analyses.rolling import (
    analyze_hourly_activity,
    analyze_weekday_activity,
)
from activity_audit.analyses.timeseries import (
    DateRange,
    aggregate_by_date,
    count_by_hour,
    count_by_weekday,
    count_on_day,
)
from activity_audit.foundation.bucketing import parse_timestamp
from activity_audit.foundation.config import AnalysisConfig
from activity_audit.foundation.snapshot import ActivitySnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

DATASETS = ("registrations", "creations")


@dataclass(frozen=True)
class ActivityReport:
    """All dashboard views computed from one snapshot.

    Attributes
    ----------
    generated_at:
        Reference time ("now") used for current-period views.
    timezone:
        Timezone of day/week/month boundaries.
    date_range:
        Range applied to progression and profile views.
    total_users:
        Size of the creator population.
    registered_today:
        Registrations on the reference day.
    total_records:
        Number of game-creation records.
    unique_creators:
        Distinct creators among game-creation records.
    skipped_records:
        Records dropped for unparseable timestamps.
    views:
        View name to result (a list of buckets, a result object, or
        ``None`` for a degraded structured view).
    failed_views:
        Names of views that degraded to their default.
    """

    generated_at: datetime
    timezone: str
    date_range: DateRange | None
    total_users: int
    registered_today: int
    total_records: int
    unique_creators: int
    skipped_records: int
    views: dict[str, Any]
    failed_views: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        def serialise(value: Any) -> Any:
            if value is None:
                return None
            if isinstance(value, list):
                return [item.as_dict() for item in value]
            return value.as_dict()

        return {
            "generated_at": self.generated_at.isoformat(),
            "timezone": self.timezone,
            "date_range": (
                {
                    "start": self.date_range.start.isoformat(),
                    "end": self.date_range.end.isoformat(),
                }
                if self.date_range
                else None
            ),
            "headline": {
                "total_users": self.total_users,
                "registered_today": self.registered_today,
                "total_records": self.total_records,
                "unique_creators": self.unique_creators,
                "skipped_records": self.skipped_records,
            },
            "views": {name: serialise(value) for name, value in self.views.items()},
            "failed_views": list(self.failed_views),
        }


def _run_view(
    name: str, compute: Callable[[], T], default: T, failed: list[str]
) -> T:
    try:
        return compute()
    except Exception as exc:
        logger.warning(
            f"View '{name}' failed and was replaced by its default: "
            f"{type(exc).__name__}: {exc}"
        )
        failed.append(name)
        return default


def build_activity_report(
    snapshot: ActivitySnapshot,
    now: datetime | None = None,
    config: AnalysisConfig | None = None,
    date_range: DateRange | None = None,
) -> ActivityReport:
    """Compute every dashboard view for ``snapshot``.

    Parameters
    ----------
    snapshot:
        Loaded registrations, creations and creator population.
    now:
        Reference time; defaults to the current time in the configured
        timezone.
    config:
        Analysis configuration; defaults to :class:`AnalysisConfig`.
    date_range:
        Range for progression and profile views; defaults to the trailing
        ``config.progression_window_days`` days.

    Returns
    -------
    ActivityReport
        The computed views plus headline statistics.
    """
    config = config or AnalysisConfig()
    tz = config.tz
    reference = parse_timestamp(now, tz) if now is not None else config.current_time()
    if date_range is None:
        date_range = DateRange.trailing(
            reference.date(), days=config.progression_window_days
        )

    failed: list[str] = []
    views: dict[str, Any] = {}

    for dataset in DATASETS:
        records = getattr(snapshot, dataset)
        views[f"{dataset}_progression"] = _run_view(
            f"{dataset}_progression",
            lambda: aggregate_by_date(records, date_range, tz),
            [],
            failed,
        )
        views[f"{dataset}_weekday_profile"] = _run_view(
            f"{dataset}_weekday_profile",
            lambda: count_by_weekday(records, date_range, tz),
            [],
            failed,
        )
        views[f"{dataset}_hour_profile"] = _run_view(
            f"{dataset}_hour_profile",
            lambda: count_by_hour(records, date_range, tz),
            [],
            failed,
        )
        views[f"{dataset}_weekday_comparison"] = _run_view(
            f"{dataset}_weekday_comparison",
            lambda: analyze_weekday_activity(
                records, reference, tz, past_weeks=config.past_weeks
            ),
            None,
            failed,
        )
        views[f"{dataset}_hourly_comparison"] = _run_view(
            f"{dataset}_hourly_comparison",
            lambda: analyze_hourly_activity(records, reference, tz),
            None,
            failed,
        )
        views[f"{dataset}_monthly_overlay"] = _run_view(
            f"{dataset}_monthly_overlay",
            lambda: analyze_monthly_overlay(
                records, reference, tz, months=config.overlay_months
            ),
            None,
            failed,
        )

    views["returning_users"] = _run_view(
        "returning_users",
        lambda: identify_returning_users(snapshot.creations, tz),
        [],
        failed,
    )
    views["returning_summary"] = _run_view(
        "returning_summary",
        lambda: summarize_returning_users(snapshot.creations, tz),
        None,
        failed,
    )
    views["records_per_creator"] = _run_view(
        "records_per_creator",
        lambda: bucket_records_per_creator(
            snapshot.creators,
            count_records_by_creator(snapshot.creations),
            cap=config.distribution_cap,
        ),
        [],
        failed,
    )
    views["engagement_split"] = _run_view(
        "engagement_split",
        lambda: analyze_engagement_split(snapshot.creators, snapshot.creations),
        None,
        failed,
    )

    registered_today = _run_view(
        "registered_today",
        lambda: count_on_day(snapshot.registrations, reference.date(), tz),
        0,
        failed,
    )

    if failed:
        logger.warning(f"Report built with {len(failed)} degraded view(s): {failed}")

    return ActivityReport(
        generated_at=reference,
        timezone=config.timezone,
        date_range=date_range,
        total_users=len(snapshot.creators),
        registered_today=registered_today,
        total_records=len(snapshot.creations),
        unique_creators=len({r.creator_id for r in snapshot.creations}),
        skipped_records=snapshot.skipped_count,
        views=views,
        failed_views=tuple(failed),
    )
