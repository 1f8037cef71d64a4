"""Aggregation views of the activity dashboard.

Every view is a pure function of a record list (and, for current-period
views, a reference time):

1. Time series - daily progression and weekday/hour profiles
2. Rolling comparison - current week/day against the historical average
3. Monthly overlay - day-of-month counts for recent months
4. Returning users - creators active on more than one day
5. Engagement - records-per-creator distribution and engagement split
"""

from .engagement import (
    DistributionBucket,
    EngagementSplit,
    analyze_engagement_split,
    bucket_records_per_creator,
    count_records_by_creator,
)
from .monthly import MonthlyOverlay, MonthSeries, analyze_monthly_overlay
from .overview import ActivityReport, build_activity_report
from .returning import (
    ReturningUser,
    ReturningUserSummary,
    creator_timeline,
    identify_returning_users,
    summarize_returning_users,
)
from .rolling import (
    HourlyComparison,
    HourPoint,
    WeekdayComparison,
    WeekdayPoint,
    analyze_hourly_activity,
    analyze_weekday_activity,
)
from .timeseries import (
    DailyCount,
    DateRange,
    HourCount,
    WeekdayCount,
    aggregate_by_date,
    count_by_hour,
    count_by_weekday,
    count_on_day,
    filter_by_date_range,
)

__all__ = [
    # Time series
    "DailyCount",
    "DateRange",
    "HourCount",
    "WeekdayCount",
    "aggregate_by_date",
    "count_by_hour",
    "count_by_weekday",
    "count_on_day",
    "filter_by_date_range",
    # Rolling comparison
    "HourlyComparison",
    "HourPoint",
    "WeekdayComparison",
    "WeekdayPoint",
    "analyze_hourly_activity",
    "analyze_weekday_activity",
    # Monthly overlay
    "MonthlyOverlay",
    "MonthSeries",
    "analyze_monthly_overlay",
    # Returning users
    "ReturningUser",
    "ReturningUserSummary",
    "creator_timeline",
    "identify_returning_users",
    "summarize_returning_users",
    # Engagement
    "DistributionBucket",
    "EngagementSplit",
    "analyze_engagement_split",
    "bucket_records_per_creator",
    "count_records_by_creator",
    # Report
    "ActivityReport",
    "build_activity_report",
]
