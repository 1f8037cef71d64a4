"""Activity Data Loader MCP Tool

Loads the registration and game-creation exports, validates them through the
record contract and stores the resulting snapshot in shared state for the
aggregation tools.
"""

import json
import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Literal

import structlog
from activity_audit.foundation.config import AnalysisConfig
from activity_audit.foundation.snapshot import SnapshotBuilder
from fastmcp import Context
from pydantic import BaseModel, Field

from analytics.services.mcp_server.cache import get_aggregation_cache
from analytics.services.mcp_server.instance import mcp
from analytics.services.mcp_server.state import get_shared_state

logger = structlog.get_logger(__name__)

MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM

# Allowed base directory for activity data files
# Default to current working directory, can be overridden via environment variable
ALLOWED_BASE_DIR = Path(os.environ.get("MCP_DATA_DIR", os.getcwd())).resolve()


def _load_rows(path: Path) -> list[dict[str, Any]]:
    """Load a JSON array of records from a file.

    Relative paths are resolved against the allowed base directory, and the
    resolved path must stay within it to prevent path traversal.

    Raises:
        ValueError: If path is outside allowed directory, file is too large
            or does not hold a JSON array
        FileNotFoundError: If the file does not exist
    """
    if not path.is_absolute():
        path = ALLOWED_BASE_DIR / path
    resolved = path.resolve()

    try:
        resolved.relative_to(ALLOWED_BASE_DIR)
    except ValueError as e:
        raise ValueError(
            f"Path {resolved} is outside allowed directory {ALLOWED_BASE_DIR}. "
            f"Only files within the allowed directory can be loaded."
        ) from e

    if not resolved.exists():
        raise FileNotFoundError(f"Activity data file not found: {resolved}")

    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )
    with resolved.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError(
            f"Expected a list of records in {resolved}, got {type(payload).__name__}"
        )
    return payload


class LoadActivityDataRequest(BaseModel):
    """Request to load registration and game-creation exports."""

    registrations_path: str = Field(
        default="users.json",
        description="Path to the user registrations JSON array (relative to MCP_DATA_DIR or absolute)",
    )
    creations_path: str = Field(
        default="games.json",
        description="Path to the game-creation events JSON array (relative to MCP_DATA_DIR or absolute)",
    )
    timezone: str | None = Field(
        default=None,
        description="IANA timezone for day/week/month boundaries (default: ACTIVITY_AUDIT_TIMEZONE or UTC)",
    )
    invalid_timestamp_policy: Literal["skip", "raise"] | None = Field(
        default=None,
        description="'skip' drops records with unparseable timestamps, 'raise' aborts the load",
    )


class LoadActivityDataResponse(BaseModel):
    """Summary of the loaded snapshot."""

    registration_count: int
    creation_count: int
    creator_count: int
    unique_creators: int
    skipped_records: dict[str, int]
    timezone: str
    registration_range: tuple[str, str] | None = None
    creation_range: tuple[str, str] | None = None
    fingerprint: str
    message: str


async def _load_activity_data_impl(
    request: LoadActivityDataRequest,
    ctx: Context,
    registrations: list[dict] | None = None,
    creations: list[dict] | None = None,
) -> LoadActivityDataResponse:
    """Implementation of activity data loading.

    Args:
        request: Paths and loading options
        ctx: MCP context
        registrations: Optional pre-loaded registration rows (for testing)
        creations: Optional pre-loaded creation rows (for testing)
    """
    config = AnalysisConfig.from_env()
    if request.timezone:
        config = replace(config, timezone=request.timezone)
    if request.invalid_timestamp_policy:
        config = replace(
            config, invalid_timestamp_policy=request.invalid_timestamp_policy
        )

    if registrations is None:
        await ctx.info(f"Loading registrations from {request.registrations_path}")
        registrations = _load_rows(Path(request.registrations_path))
    if creations is None:
        await ctx.info(f"Loading game creations from {request.creations_path}")
        creations = _load_rows(Path(request.creations_path))

    await ctx.report_progress(0.4, "Validating records...")
    snapshot = SnapshotBuilder(config).build(registrations, creations)
    fingerprint = snapshot.fingerprint()

    await ctx.report_progress(0.9, "Storing snapshot...")
    get_shared_state().update(
        {
            "snapshot": snapshot,
            "snapshot_fingerprint": fingerprint,
            "analysis_config": config,
        }
    )
    get_aggregation_cache().clear()

    def _range(records) -> tuple[str, str] | None:
        if not records:
            return None
        timestamps = [r.created_at for r in records]
        return (min(timestamps).isoformat(), max(timestamps).isoformat())

    skipped = {name: len(items) for name, items in snapshot.skipped.items()}

    logger.info(
        "activity_data_loaded",
        registrations=len(snapshot.registrations),
        creations=len(snapshot.creations),
        skipped=skipped,
        timezone=config.timezone,
        fingerprint=fingerprint[:16],
    )

    message = (
        f"Loaded {len(snapshot.registrations)} registrations and "
        f"{len(snapshot.creations)} game creations"
    )
    if snapshot.skipped_count:
        message += f" ({snapshot.skipped_count} records skipped for invalid timestamps)"
    await ctx.info(message)

    return LoadActivityDataResponse(
        registration_count=len(snapshot.registrations),
        creation_count=len(snapshot.creations),
        creator_count=len(snapshot.creators),
        unique_creators=len({r.creator_id for r in snapshot.creations}),
        skipped_records=skipped,
        timezone=config.timezone,
        registration_range=_range(snapshot.registrations),
        creation_range=_range(snapshot.creations),
        fingerprint=fingerprint,
        message=message,
    )


@mcp.tool()
async def load_activity_data(
    request: LoadActivityDataRequest, ctx: Context
) -> LoadActivityDataResponse:
    """
    Load user registrations and game-creation events.

    Records are validated once: unparseable timestamps are skipped and
    reported (or abort the load with invalid_timestamp_policy='raise').
    The snapshot replaces any previously loaded data and invalidates cached
    aggregations.

    Args:
        request: Paths to both JSON exports plus timezone and timestamp policy

    Returns:
        Record counts, skipped records, observed date ranges and the
        snapshot fingerprint
    """
    return await _load_activity_data_impl(request, ctx)
