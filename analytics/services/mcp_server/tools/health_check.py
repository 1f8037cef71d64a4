"""Health Check MCP Tool

Reports the health of the MCP server and the readiness of its data:

1. MCP server status and uptime
2. Shared state availability
3. Loaded snapshot (record counts, skipped records)
4. Aggregation cache statistics

Usage:
    Call health_check() to get current system health status
"""

import time
from datetime import datetime
from typing import Any

import structlog
from fastmcp import Context
from pydantic import BaseModel, Field

from analytics.services.mcp_server.cache import get_aggregation_cache
from analytics.services.mcp_server.instance import VERSION, mcp
from analytics.services.mcp_server.state import get_shared_state

logger = structlog.get_logger(__name__)


class HealthCheckResponse(BaseModel):
    """Health check response with system status."""

    status: str = Field(
        description="Overall health status: 'healthy', 'degraded', or 'unhealthy'"
    )
    version: str
    timestamp: str = Field(description="ISO timestamp of health check")
    checks: dict[str, str] = Field(description="Individual component health checks")
    uptime_seconds: float | None = Field(
        default=None, description="Server uptime in seconds (if available)"
    )
    data_status: dict[str, Any] = Field(description="Loaded snapshot summary")
    cache_stats: dict[str, Any] | None = Field(
        default=None, description="Aggregation cache statistics"
    )


# Track server start time
_SERVER_START_TIME = time.time()


async def _health_check_impl(ctx: Context) -> HealthCheckResponse:
    logger.info("health_check_starting")

    checks: dict[str, str] = {"mcp_server": "healthy"}
    status = "healthy"

    data_status: dict[str, Any] = {"snapshot_loaded": False}
    try:
        shared_state = get_shared_state()
        checks["shared_state"] = "healthy"

        snapshot = shared_state.get("snapshot")
        config = shared_state.get("analysis_config")
        if snapshot is None:
            checks["activity_data"] = "no data loaded (use load_activity_data)"
        else:
            data_status = {
                "snapshot_loaded": True,
                "registrations": len(snapshot.registrations),
                "creations": len(snapshot.creations),
                "skipped_records": snapshot.skipped_count,
                "timezone": config.timezone if config else None,
            }
            checks["activity_data"] = (
                f"available ({len(snapshot.registrations)} registrations, "
                f"{len(snapshot.creations)} creations)"
            )
            if snapshot.skipped_count:
                status = "degraded"
                checks["activity_data"] += (
                    f"; {snapshot.skipped_count} records skipped for invalid timestamps"
                )
    except Exception as e:
        checks["shared_state"] = f"unhealthy: {str(e)}"
        status = "unhealthy"
        logger.error("shared_state_check_failed", error=str(e))

    cache_stats = get_aggregation_cache().get_stats()
    checks["aggregation_cache"] = (
        "healthy" if cache_stats["max_size"] > 0 else "disabled (ACTIVITY_AUDIT_CACHE_SIZE=0)"
    )

    uptime_seconds = time.time() - _SERVER_START_TIME

    logger.info(
        "health_check_complete",
        status=status,
        checks=checks,
        uptime_seconds=uptime_seconds,
    )

    return HealthCheckResponse(
        status=status,
        version=VERSION,
        timestamp=datetime.now().isoformat(),
        checks=checks,
        uptime_seconds=uptime_seconds,
        data_status=data_status,
        cache_stats=cache_stats,
    )


@mcp.tool()
async def health_check(ctx: Context) -> HealthCheckResponse:
    """
    Check health of the MCP server and its loaded data.

    Reports server uptime, shared state availability, whether activity
    data is loaded (with record and skipped-record counts) and aggregation
    cache statistics. Skipped records mark the server as 'degraded'.

    Returns:
        HealthCheckResponse with detailed health status and component checks
    """
    return await _health_check_impl(ctx)
