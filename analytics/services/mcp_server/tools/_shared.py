"""Helpers shared by the aggregation tools.

Every aggregation tool reads the loaded snapshot from shared state, picks
one of its datasets, resolves the reference time and serves its result
through the aggregation cache.
"""

from datetime import datetime
from typing import Any, Callable, Literal

from activity_audit.foundation.bucketing import parse_timestamp
from activity_audit.foundation.config import AnalysisConfig
from activity_audit.foundation.record_contract import ActivityRecord
from activity_audit.foundation.snapshot import ActivitySnapshot

from analytics.services.mcp_server.cache import get_aggregation_cache
from analytics.services.mcp_server.state import get_shared_state

Dataset = Literal["registrations", "creations"]


def get_analysis_config() -> AnalysisConfig:
    """Config stored by the last load, or one read from the environment."""
    config = get_shared_state().get("analysis_config")
    if config is None:
        config = AnalysisConfig.from_env()
    return config


def get_loaded_data() -> tuple[ActivitySnapshot, str, AnalysisConfig]:
    """Return the loaded snapshot, its fingerprint and the config it was built with.

    All three come from the same load.

    Raises:
        ValueError: If no activity data has been loaded
    """
    snapshot, fingerprint, config = get_shared_state().get_many(
        "snapshot", "snapshot_fingerprint", "analysis_config"
    )
    if snapshot is None:
        raise ValueError("Activity data not found. Run load_activity_data first.")
    if config is None:
        config = AnalysisConfig.from_env()
    return snapshot, fingerprint, config


def select_records(snapshot: ActivitySnapshot, dataset: Dataset) -> list[ActivityRecord]:
    if dataset not in ("registrations", "creations"):
        raise ValueError(
            f"dataset must be 'registrations' or 'creations', got {dataset!r}"
        )
    return getattr(snapshot, dataset)


def resolve_now(now: datetime | None, config: AnalysisConfig) -> datetime:
    """Reference time as naive wall-clock time in the configured timezone."""
    if now is None:
        return config.current_time()
    return parse_timestamp(now, config.tz)


def reference_hour(reference: datetime) -> str:
    """Cache token for time-dependent results.

    Rolling results only depend on the reference day and hour.
    """
    return reference.replace(minute=0, second=0, microsecond=0).isoformat()


def cached_result(
    fingerprint: str,
    tool: str,
    params: dict[str, Any],
    compute: Callable[[], dict[str, Any]],
) -> dict[str, Any]:
    return get_aggregation_cache().get_or_compute(fingerprint, tool, params, compute)
