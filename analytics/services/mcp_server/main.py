"""
Activity Dashboard Analytics MCP Server

This module provides the main MCP server exposing the activity dashboard
aggregations (progression, weekday/hour comparisons, monthly overlay,
returning creators and engagement) as MCP tools.
"""

import logging
import sys
from contextlib import asynccontextmanager

import structlog

from analytics.services.mcp_server.instance import VERSION

# Configure structlog to write to stderr, not stdout (to avoid interfering with MCP JSON protocol)
logging.basicConfig(
    format="%(message)s",
    stream=sys.stderr,
    level=logging.INFO,
)

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def app_lifespan(app):
    """Log server startup and shutdown and drop cached aggregations on exit."""
    from analytics.services.mcp_server.cache import get_aggregation_cache
    from analytics.services.mcp_server.tools._shared import get_analysis_config

    config = get_analysis_config()
    logger.info(
        "mcp_server_starting",
        version=VERSION,
        timezone=config.timezone,
        invalid_timestamp_policy=config.invalid_timestamp_policy,
        cache_max_size=get_aggregation_cache().max_size,
    )

    yield

    get_aggregation_cache().clear()
    logger.info("mcp_server_stopping")


# Import MCP server instance (must be imported before tools to avoid circular imports)
from analytics.services.mcp_server.instance import mcp  # noqa: E402

# Configure lifespan
mcp.lifespan = app_lifespan


# These imports MUST happen before mcp.run() is called
# Each module registers its tools using the @mcp.tool() decorator
from analytics.services.mcp_server.tools import (  # noqa: E402, F401
    data_loader,
    engagement,
    health_check,
    monthly,
    progression,
    report,
    returning_users,
    rolling,
)

logger.info(
    "mcp_server_initialized",
    tools=[
        "load_activity_data",
        "analyze_progression",
        "analyze_weekday_activity",
        "analyze_hourly_activity",
        "analyze_monthly_overlay",
        "identify_returning_creators",
        "analyze_creator_distribution",
        "analyze_engagement",
        "build_dashboard_report",
        "health_check",
    ],
)


if __name__ == "__main__":
    mcp.run()
