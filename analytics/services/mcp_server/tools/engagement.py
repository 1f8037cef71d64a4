"""Engagement MCP Tools

Wraps the records-per-creator distribution and the engagement split as MCP
tools.
"""

import structlog
from activity_audit.analyses.engagement import (
    analyze_engagement_split,
    bucket_records_per_creator,
    count_records_by_creator,
)
from fastmcp import Context
from pydantic import BaseModel, Field

from analytics.services.mcp_server.instance import mcp
from analytics.services.mcp_server.tools._shared import (
    cached_result,
    get_loaded_data,
)

logger = structlog.get_logger(__name__)


class CreatorDistributionRequest(BaseModel):
    """Request for the games-per-user distribution."""

    cap: int | None = Field(
        default=None,
        ge=1,
        description="Counts at or above this value share one 'N+' bucket (default from config, 21)",
    )


class DistributionBucketModel(BaseModel):
    bucket: str
    record_count: int
    creator_count: int
    percentage: float


class CreatorDistributionResponse(BaseModel):
    """Non-empty buckets ascending by record count."""

    total_creators: int
    cap: int
    buckets: list[DistributionBucketModel]


class EngagementRequest(BaseModel):
    """Request for the engagement split (no options)."""


class EngagementResponse(BaseModel):
    total_creators: int
    with_records: int
    without_records: int
    with_records_pct: float
    without_records_pct: float


async def _analyze_creator_distribution_impl(
    request: CreatorDistributionRequest, ctx: Context
) -> CreatorDistributionResponse:
    snapshot, fingerprint, config = get_loaded_data()
    cap = config.distribution_cap if request.cap is None else request.cap

    await ctx.info(f"Distributing {len(snapshot.creators)} users by games created")

    def compute() -> dict:
        buckets = bucket_records_per_creator(
            snapshot.creators, count_records_by_creator(snapshot.creations), cap=cap
        )
        return {
            "total_creators": len(snapshot.creators),
            "cap": cap,
            "buckets": [b.as_dict() for b in buckets],
        }

    result = cached_result(
        fingerprint, "analyze_creator_distribution", {"cap": cap}, compute
    )

    logger.info(
        "creator_distribution_analyzed",
        total_creators=result["total_creators"],
        buckets=len(result["buckets"]),
    )
    return CreatorDistributionResponse(**result)


async def _analyze_engagement_impl(
    request: EngagementRequest, ctx: Context
) -> EngagementResponse:
    snapshot, fingerprint, _ = get_loaded_data()

    await ctx.info("Splitting users by whether they created a game")

    result = cached_result(
        fingerprint,
        "analyze_engagement",
        {},
        lambda: analyze_engagement_split(snapshot.creators, snapshot.creations).as_dict(),
    )

    logger.info(
        "engagement_analyzed",
        with_records=result["with_records"],
        without_records=result["without_records"],
    )
    return EngagementResponse(**result)


@mcp.tool()
async def analyze_creator_distribution(
    request: CreatorDistributionRequest, ctx: Context
) -> CreatorDistributionResponse:
    """
    Distribution of registered users by number of games created.

    Every registered user is counted, including those with zero games.
    Counts at or above the cap collapse into one 'N+' bucket (default
    '21+'). Percentages are shares of all registered users, 1 decimal.

    Args:
        request: Optional bucket cap

    Returns:
        Non-empty buckets ascending by game count
    """
    return await _analyze_creator_distribution_impl(request, ctx)


@mcp.tool()
async def analyze_engagement(
    request: EngagementRequest, ctx: Context
) -> EngagementResponse:
    """
    Split registered users into those who created at least one game and
    those who created none.

    A user counts as active when their display name appears among the
    creator names of the game-creation records.

    Returns:
        Counts and percentages (1 decimal) of both groups
    """
    return await _analyze_engagement_impl(request, ctx)
