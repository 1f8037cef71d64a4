"""Rolling Comparison MCP Tools

Wraps the current-week and current-day comparisons against the historical
average as MCP tools.
"""

from datetime import datetime

import structlog
from activity_audit.analyses.rolling import (
    analyze_hourly_activity as compute_hourly_activity,
    analyze_weekday_activity as compute_weekday_activity,
)
from fastmcp import Context
from pydantic import BaseModel, ConfigDict, Field

from analytics.services.mcp_server.instance import mcp
from analytics.services.mcp_server.tools._shared import (
    Dataset,
    cached_result,
    get_loaded_data,
    reference_hour,
    resolve_now,
    select_records,
)

logger = structlog.get_logger(__name__)


class WeekdayActivityRequest(BaseModel):
    """Request for the weekday comparison."""

    dataset: Dataset = Field(default="creations")
    past_weeks: int | None = Field(
        default=None,
        ge=0,
        description="Number of prior weeks returned individually (default from config, 4)",
    )
    now: datetime | None = Field(
        default=None, description="Reference time defining the current week (defaults to now)"
    )


class WeekdayPointModel(BaseModel):
    """One weekday; carries extra past_week_N fields."""

    model_config = ConfigDict(extra="allow")

    day: str
    short_day: str
    average: float
    this_week: int | None
    is_today: bool


class WeekdayActivityResponse(BaseModel):
    dataset: str
    points: list[WeekdayPointModel]
    current_day_index: int
    current_week_start: str
    historical_week_count: int
    totals: dict[str, float | int]


class HourlyActivityRequest(BaseModel):
    """Request for the hour-of-day comparison."""

    dataset: Dataset = Field(default="creations")
    now: datetime | None = Field(
        default=None, description="Reference time defining today and the current hour"
    )


class HourPointModel(BaseModel):
    hour: int
    display_hour: str
    average: float
    today: int | None
    is_current_hour: bool


class HourlyActivityResponse(BaseModel):
    dataset: str
    points: list[HourPointModel]
    current_hour: int
    today: str
    historical_day_count: int
    totals: dict[str, float | int]


async def _analyze_weekday_activity_impl(
    request: WeekdayActivityRequest, ctx: Context
) -> WeekdayActivityResponse:
    snapshot, fingerprint, config = get_loaded_data()
    records = select_records(snapshot, request.dataset)
    reference = resolve_now(request.now, config)
    past_weeks = (
        config.past_weeks if request.past_weeks is None else request.past_weeks
    )

    await ctx.info(
        f"Comparing this week's {request.dataset} with the historical weekday average"
    )

    def compute() -> dict:
        comparison = compute_weekday_activity(
            records, reference, config.tz, past_weeks=past_weeks
        )
        return {"dataset": request.dataset, **comparison.as_dict()}

    result = cached_result(
        fingerprint,
        "analyze_weekday_activity",
        {
            "dataset": request.dataset,
            "past_weeks": past_weeks,
            "reference": reference_hour(reference),
            "timezone": config.timezone,
        },
        compute,
    )

    logger.info(
        "weekday_activity_analyzed",
        dataset=request.dataset,
        historical_weeks=result["historical_week_count"],
    )
    return WeekdayActivityResponse(**result)


async def _analyze_hourly_activity_impl(
    request: HourlyActivityRequest, ctx: Context
) -> HourlyActivityResponse:
    snapshot, fingerprint, config = get_loaded_data()
    records = select_records(snapshot, request.dataset)
    reference = resolve_now(request.now, config)

    await ctx.info(
        f"Comparing today's {request.dataset} with the historical hourly average"
    )

    def compute() -> dict:
        comparison = compute_hourly_activity(records, reference, config.tz)
        return {"dataset": request.dataset, **comparison.as_dict()}

    result = cached_result(
        fingerprint,
        "analyze_hourly_activity",
        {
            "dataset": request.dataset,
            "reference": reference_hour(reference),
            "timezone": config.timezone,
        },
        compute,
    )

    logger.info(
        "hourly_activity_analyzed",
        dataset=request.dataset,
        historical_days=result["historical_day_count"],
    )
    return HourlyActivityResponse(**result)


@mcp.tool()
async def analyze_weekday_activity(
    request: WeekdayActivityRequest, ctx: Context
) -> WeekdayActivityResponse:
    """
    Compare this week's per-weekday counts with the historical average.

    Weeks start on Sunday. The average for a weekday is its total over all
    other weeks that contain records divided by the number of such weeks.
    Weekdays after today have this_week = null (not 0). The last N full
    weeks are returned individually as past_week_1..N, and totals are
    summed from the emitted values.

    Args:
        request: Dataset, number of past weeks and optional reference time

    Returns:
        Seven weekday points, Sunday first, plus per-series totals
    """
    return await _analyze_weekday_activity_impl(request, ctx)


@mcp.tool()
async def analyze_hourly_activity(
    request: HourlyActivityRequest, ctx: Context
) -> HourlyActivityResponse:
    """
    Compare today's per-hour counts with the historical average per hour.

    The average for an hour is its total over all other days that contain
    records divided by the number of such days. Hours after the current
    hour have today = null (not 0).

    Args:
        request: Dataset and optional reference time

    Returns:
        24 hour points plus per-series totals
    """
    return await _analyze_hourly_activity_impl(request, ctx)
