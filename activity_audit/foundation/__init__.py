"""Foundational building blocks for the activity dashboard.

This package exposes the date-bucketing primitives, the record contract
used to validate raw exports, the analysis configuration and the snapshot
builder that materialises both datasets.
"""

from .bucketing import (
    WEEKDAY_NAMES,
    InvalidTimestamp,
    format_hour_label,
    parse_timestamp,
    to_calendar_date,
    to_hour_of_day,
    to_month_key,
    to_weekday_name,
    week_start,
)
from .config import AnalysisConfig
from .record_contract import (
    ActivityRecord,
    Creator,
    RecordContract,
    SkippedRecord,
    creators_from_records,
)
from .snapshot import ActivitySnapshot, SnapshotBuilder

__all__ = [
    "WEEKDAY_NAMES",
    "InvalidTimestamp",
    "format_hour_label",
    "parse_timestamp",
    "to_calendar_date",
    "to_hour_of_day",
    "to_month_key",
    "to_weekday_name",
    "week_start",
    "AnalysisConfig",
    "ActivityRecord",
    "Creator",
    "RecordContract",
    "SkippedRecord",
    "creators_from_records",
    "ActivitySnapshot",
    "SnapshotBuilder",
]
