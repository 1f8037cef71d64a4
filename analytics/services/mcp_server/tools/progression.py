"""Progression MCP Tool

Wraps the time-series aggregations (daily progression plus weekday and
hour-of-day profiles over a date range) as an MCP tool.
"""

from datetime import date, datetime

import structlog
from activity_audit.analyses.timeseries import (
    DateRange,
    aggregate_by_date,
    count_by_hour,
    count_by_weekday,
)
from fastmcp import Context
from pydantic import BaseModel, Field

from analytics.services.mcp_server.instance import mcp
from analytics.services.mcp_server.tools._shared import (
    Dataset,
    cached_result,
    get_loaded_data,
    resolve_now,
    select_records,
)

logger = structlog.get_logger(__name__)


class AnalyzeProgressionRequest(BaseModel):
    """Request for daily progression of one dataset."""

    dataset: Dataset = Field(
        default="creations", description="Dataset to aggregate: registrations or creations"
    )
    start_date: date | None = Field(
        default=None,
        description="First day of the range (inclusive). Defaults to the trailing window before end_date.",
    )
    end_date: date | None = Field(
        default=None, description="Last day of the range (inclusive). Defaults to today."
    )
    include_profiles: bool = Field(
        default=True, description="Also return weekday and hour-of-day profiles"
    )
    now: datetime | None = Field(
        default=None, description="Reference time used to resolve 'today' (defaults to now)"
    )


class DailyCountModel(BaseModel):
    date: str
    count: int


class WeekdayCountModel(BaseModel):
    day: str
    short_day: str
    count: int


class HourCountModel(BaseModel):
    hour: int
    display_hour: str
    period: str
    count: int


class ProgressionResponse(BaseModel):
    """Daily counts within the range, ascending by date."""

    dataset: str
    start_date: str
    end_date: str
    total: int
    active_days: int
    daily_counts: list[DailyCountModel]
    weekday_profile: list[WeekdayCountModel] = Field(default_factory=list)
    hour_profile: list[HourCountModel] = Field(default_factory=list)


async def _analyze_progression_impl(
    request: AnalyzeProgressionRequest, ctx: Context
) -> ProgressionResponse:
    """Implementation of the progression aggregation."""
    snapshot, fingerprint, config = get_loaded_data()
    records = select_records(snapshot, request.dataset)

    end = request.end_date or resolve_now(request.now, config).date()
    start = request.start_date or DateRange.trailing(
        end, config.progression_window_days
    ).start
    date_range = DateRange(start=start, end=end)

    await ctx.info(
        f"Aggregating {request.dataset} per day from {start.isoformat()} to {end.isoformat()}"
    )

    def compute() -> dict:
        daily = aggregate_by_date(records, date_range, config.tz)
        result = {
            "dataset": request.dataset,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "total": sum(d.count for d in daily),
            "active_days": len(daily),
            "daily_counts": [d.as_dict() for d in daily],
            "weekday_profile": [],
            "hour_profile": [],
        }
        if request.include_profiles:
            result["weekday_profile"] = [
                w.as_dict() for w in count_by_weekday(records, date_range, config.tz)
            ]
            result["hour_profile"] = [
                h.as_dict() for h in count_by_hour(records, date_range, config.tz)
            ]
        return result

    result = cached_result(
        fingerprint,
        "analyze_progression",
        {
            "dataset": request.dataset,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "include_profiles": request.include_profiles,
            "timezone": config.timezone,
        },
        compute,
    )

    logger.info(
        "progression_analyzed",
        dataset=request.dataset,
        total=result["total"],
        active_days=result["active_days"],
    )
    return ProgressionResponse(**result)


@mcp.tool()
async def analyze_progression(
    request: AnalyzeProgressionRequest, ctx: Context
) -> ProgressionResponse:
    """
    Daily progression of registrations or game creations.

    Counts records per calendar day within an inclusive date range (both
    boundary days are kept whole). Days without records are omitted from
    the series. Optionally adds the weekday and hour-of-day profiles of the
    same range.

    Args:
        request: Dataset, date range and profile flag

    Returns:
        Daily counts ascending by date, plus optional profiles
    """
    return await _analyze_progression_impl(request, ctx)
