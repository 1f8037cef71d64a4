"""Dashboard Report MCP Tool

Builds every dashboard view over the loaded snapshot in one call. Views
that fail are reported in failed_views and the remaining views are still
returned.
"""

from datetime import date, datetime
from typing import Any

import structlog
from activity_audit.analyses.overview import build_activity_report
from activity_audit.analyses.timeseries import DateRange
from fastmcp import Context
from pydantic import BaseModel, Field

from analytics.services.mcp_server.instance import mcp
from analytics.services.mcp_server.tools._shared import (
    cached_result,
    get_loaded_data,
    reference_hour,
    resolve_now,
)

logger = structlog.get_logger(__name__)


class DashboardReportRequest(BaseModel):
    """Request for the full dashboard report."""

    start_date: date | None = Field(
        default=None, description="First day of the progression range (inclusive)"
    )
    end_date: date | None = Field(
        default=None, description="Last day of the progression range (inclusive)"
    )
    now: datetime | None = Field(
        default=None, description="Reference time for current-period views (defaults to now)"
    )


class HeadlineModel(BaseModel):
    total_users: int
    registered_today: int
    total_records: int
    unique_creators: int
    skipped_records: int


class DashboardReportResponse(BaseModel):
    """All dashboard views keyed by view name."""

    generated_at: str
    timezone: str
    date_range: dict[str, str] | None
    headline: HeadlineModel
    views: dict[str, Any]
    failed_views: list[str]


async def _build_dashboard_report_impl(
    request: DashboardReportRequest, ctx: Context
) -> DashboardReportResponse:
    snapshot, fingerprint, config = get_loaded_data()
    reference = resolve_now(request.now, config)

    end = request.end_date or reference.date()
    start = request.start_date or DateRange.trailing(
        end, config.progression_window_days
    ).start
    date_range = DateRange(start=start, end=end)

    await ctx.info("Building dashboard report")
    await ctx.report_progress(0.1, "Computing views...")

    result = cached_result(
        fingerprint,
        "build_dashboard_report",
        {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "reference": reference_hour(reference),
            "timezone": config.timezone,
        },
        lambda: build_activity_report(
            snapshot, now=reference, config=config, date_range=date_range
        ).as_dict(),
    )

    await ctx.report_progress(1.0, "Report ready")

    if result["failed_views"]:
        logger.warning("dashboard_report_degraded", failed_views=result["failed_views"])
        await ctx.info(f"Degraded views: {', '.join(result['failed_views'])}")
    logger.info(
        "dashboard_report_built",
        views=len(result["views"]),
        failed_views=len(result["failed_views"]),
    )

    return DashboardReportResponse(**result)


@mcp.tool()
async def build_dashboard_report(
    request: DashboardReportRequest, ctx: Context
) -> DashboardReportResponse:
    """
    Build the complete activity dashboard.

    Includes headline statistics (total users, registered today, games,
    unique creators), registration and game progression with weekday and
    hour profiles, weekly and hourly comparisons, monthly overlays,
    returning creators, the games-per-user distribution and the engagement
    split.

    Args:
        request: Optional progression range and reference time

    Returns:
        Report with every view; failed_views lists any that degraded
    """
    return await _build_dashboard_report_impl(request, ctx)
