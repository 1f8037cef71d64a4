"""Monthly Overlay MCP Tool

Wraps the day-of-month overlay of recent months as an MCP tool.
"""

from datetime import datetime

import structlog
from activity_audit.analyses.monthly import analyze_monthly_overlay as compute_overlay
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


class MonthlyOverlayRequest(BaseModel):
    """Request for the monthly overlay."""

    dataset: Dataset = Field(default="registrations")
    months: int | None = Field(
        default=None,
        ge=1,
        description="Number of months including the current one (default from config, 4)",
    )
    now: datetime | None = Field(
        default=None, description="Reference time whose month is the current month"
    )


class MonthSeriesModel(BaseModel):
    month_key: str
    label: str
    is_current: bool
    day_counts: list[int | None]
    total: int


class MonthlyOverlayResponse(BaseModel):
    """Months oldest first; day_counts[i] is day i+1, null where the month lacks it."""

    dataset: str
    months: list[MonthSeriesModel]
    monthly_totals: dict[str, int]
    rows: list[dict[str, int | None]]


async def _analyze_monthly_overlay_impl(
    request: MonthlyOverlayRequest, ctx: Context
) -> MonthlyOverlayResponse:
    snapshot, fingerprint, config = get_loaded_data()
    records = select_records(snapshot, request.dataset)
    reference = resolve_now(request.now, config)
    months = config.overlay_months if request.months is None else request.months

    await ctx.info(f"Building {months}-month overlay of {request.dataset}")

    def compute() -> dict:
        overlay = compute_overlay(records, reference, config.tz, months=months)
        return {"dataset": request.dataset, **overlay.as_dict()}

    result = cached_result(
        fingerprint,
        "analyze_monthly_overlay",
        {
            "dataset": request.dataset,
            "months": months,
            "month": reference.strftime("%Y-%m"),
            "timezone": config.timezone,
        },
        compute,
    )

    logger.info(
        "monthly_overlay_analyzed",
        dataset=request.dataset,
        monthly_totals=result["monthly_totals"],
    )
    return MonthlyOverlayResponse(**result)


@mcp.tool()
async def analyze_monthly_overlay(
    request: MonthlyOverlayRequest, ctx: Context
) -> MonthlyOverlayResponse:
    """
    Day-of-month counts for the current month and the months before it.

    Each month is a 31-entry series. Days that exist in the month hold a
    count (0 when nothing happened); days the month does not have (e.g.
    February 30) are null so months of different lengths overlay cleanly.

    Args:
        request: Dataset, number of months and optional reference time

    Returns:
        Month series oldest first, monthly totals and a day-indexed table
    """
    return await _analyze_monthly_overlay_impl(request, ctx)
