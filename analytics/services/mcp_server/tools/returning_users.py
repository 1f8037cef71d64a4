"""Returning Creators MCP Tool

Wraps the returning-user classification of game creators as an MCP tool.
"""

import structlog
from activity_audit.analyses.returning import (
    creator_timeline,
    identify_returning_users,
    summarize_returning_users,
)
from fastmcp import Context
from pydantic import BaseModel, Field

from analytics.services.mcp_server.instance import mcp
from analytics.services.mcp_server.tools._shared import (
    cached_result,
    get_loaded_data,
)

logger = structlog.get_logger(__name__)


class ReturningCreatorsRequest(BaseModel):
    """Request for returning creators."""

    top: int | None = Field(
        default=None,
        ge=1,
        description="Return only the N most active returning creators (default: all)",
    )
    creator_id: str | None = Field(
        default=None,
        description="Optional creator whose per-day timeline should be included",
    )


class ReturningCreatorModel(BaseModel):
    creator_id: str
    creator_name: str
    total_record_count: int
    unique_date_count: int
    unique_dates: list[str]
    date_range: dict[str, str]
    records_per_date: dict[str, int]


class ReturningSummaryModel(BaseModel):
    total_creators: int
    single_day_creators: int
    returning_creators: int
    single_day_pct: float
    returning_pct: float
    max_active_dates: int
    avg_records_per_returning_creator: float
    returning_record_count: int


class TimelineEntryModel(BaseModel):
    date: str
    count: int


class ReturningCreatorsResponse(BaseModel):
    """Returning creators sorted by total records, descending."""

    summary: ReturningSummaryModel
    returning_creators: list[ReturningCreatorModel]
    timeline: list[TimelineEntryModel] | None = None
    insights: list[str]


def _insights(summary: dict) -> list[str]:
    insights = []
    if summary["total_creators"] == 0:
        return ["No game creations loaded"]
    insights.append(
        f"{summary['returning_creators']} of {summary['total_creators']} creators "
        f"({summary['returning_pct']}%) created games on more than one day"
    )
    if summary["returning_creators"]:
        insights.append(
            f"Returning creators average "
            f"{summary['avg_records_per_returning_creator']} games each; "
            f"the most persistent was active on {summary['max_active_dates']} days"
        )
    return insights


async def _identify_returning_creators_impl(
    request: ReturningCreatorsRequest, ctx: Context
) -> ReturningCreatorsResponse:
    snapshot, fingerprint, config = get_loaded_data()

    await ctx.info("Classifying returning game creators")

    def compute() -> dict:
        returning = identify_returning_users(snapshot.creations, config.tz)
        summary = summarize_returning_users(snapshot.creations, config.tz)
        return {
            "summary": summary.as_dict(),
            "returning_creators": [u.as_dict() for u in returning],
        }

    result = cached_result(
        fingerprint,
        "identify_returning_creators",
        {"timezone": config.timezone},
        compute,
    )

    creators = result["returning_creators"]
    if request.top is not None:
        creators = creators[: request.top]

    timeline = None
    if request.creator_id is not None:
        timeline = [
            d.as_dict()
            for d in creator_timeline(snapshot.creations, request.creator_id, config.tz)
        ]

    logger.info(
        "returning_creators_identified",
        returning=result["summary"]["returning_creators"],
        total=result["summary"]["total_creators"],
    )

    return ReturningCreatorsResponse(
        summary=result["summary"],
        returning_creators=creators,
        timeline=timeline,
        insights=_insights(result["summary"]),
    )


@mcp.tool()
async def identify_returning_creators(
    request: ReturningCreatorsRequest, ctx: Context
) -> ReturningCreatorsResponse:
    """
    Identify creators who created games on more than one calendar day.

    Many games on a single day do not make a creator returning; games on
    two different days do. Creators are ranked by total games, descending,
    with ties kept in order of first appearance.

    Args:
        request: Optional top-N limit and creator id for a timeline

    Returns:
        Summary statistics, ranked returning creators and insights
    """
    return await _identify_returning_creators_impl(request, ctx)
