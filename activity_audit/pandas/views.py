"""Pandas DataFrame adapters for aggregation results."""

from typing import Sequence

import pandas as pd  # type: ignore

from activity_audit.analyses.engagement import DistributionBucket
from activity_audit.analyses.monthly import MonthlyOverlay
from activity_audit.analyses.returning import ReturningUser
from activity_audit.analyses.rolling import HourlyComparison, WeekdayComparison
from activity_audit.analyses.timeseries import DailyCount
from ._utils import decimal_to_float, nullable_counts


def daily_counts_to_dataframe(daily: Sequence[DailyCount]) -> pd.DataFrame:
    """Convert daily counts to a DataFrame with columns: date, count."""
    if not daily:
        return pd.DataFrame(columns=["date", "count"])
    return pd.DataFrame([d.as_dict() for d in daily])


def weekday_comparison_to_dataframe(comparison: WeekdayComparison) -> pd.DataFrame:
    """Convert a weekday comparison to a 7-row DataFrame.

    Columns: day, short_day, average, this_week, past_week_1..N, is_today.
    ``this_week`` uses the nullable Int64 dtype: weekdays after today are
    ``<NA>``, never 0.

    Example:
        >>> df = weekday_comparison_to_dataframe(analyze_weekday_activity(records, now))
        >>> df[["day", "average", "this_week"]]
    """
    df = pd.DataFrame([p.as_dict() for p in comparison.points])
    return nullable_counts(df, ["this_week"])


def hourly_comparison_to_dataframe(comparison: HourlyComparison) -> pd.DataFrame:
    """Convert an hourly comparison to a 24-row DataFrame.

    Columns: hour, display_hour, average, today, is_current_hour.
    ``today`` is nullable (Int64).
    """
    df = pd.DataFrame([p.as_dict() for p in comparison.points])
    return nullable_counts(df, ["today"])


def monthly_overlay_to_dataframe(overlay: MonthlyOverlay) -> pd.DataFrame:
    """Convert a monthly overlay to a 31-row, day-indexed DataFrame.

    One nullable (Int64) column per month key; days a month lacks are
    ``<NA>``.
    """
    df = pd.DataFrame(overlay.rows())
    return nullable_counts(df, [m.month_key for m in overlay.months])


def returning_users_to_dataframe(users: Sequence[ReturningUser]) -> pd.DataFrame:
    """Convert returning users to a DataFrame (one row per creator).

    Columns: creator_id, creator_name, total_record_count,
    unique_date_count, first_date, last_date. Order is preserved.
    """
    columns = [
        "creator_id",
        "creator_name",
        "total_record_count",
        "unique_date_count",
        "first_date",
        "last_date",
    ]
    if not users:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(
        [
            {
                "creator_id": u.creator_id,
                "creator_name": u.creator_name,
                "total_record_count": u.total_record_count,
                "unique_date_count": u.unique_date_count,
                "first_date": u.date_range[0],
                "last_date": u.date_range[1],
            }
            for u in users
        ],
        columns=columns,
    )


def distribution_to_dataframe(buckets: Sequence[DistributionBucket]) -> pd.DataFrame:
    """Convert distribution buckets to a DataFrame.

    Columns: bucket (label), record_count, creator_count, percentage.
    """
    columns = ["bucket", "record_count", "creator_count", "percentage"]
    if not buckets:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(
        [
            {
                "bucket": b.label,
                "record_count": b.record_count,
                "creator_count": b.creator_count,
                "percentage": decimal_to_float(b.percentage),
            }
            for b in buckets
        ],
        columns=columns,
    )
