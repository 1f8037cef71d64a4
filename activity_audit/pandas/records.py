"""Pandas DataFrame adapters for activity records."""

from datetime import tzinfo
from typing import Any, List, Optional, Sequence

import pandas as pd  # type: ignore

from activity_audit.analyses.timeseries import DateRange, aggregate_by_date
from activity_audit.foundation.record_contract import (
    ActivityRecord,
    InvalidTimestampPolicy,
    RecordContract,
)
from .views import daily_counts_to_dataframe

RECORD_COLUMNS = ["creator_id", "creator_name", "created_at", "record_id"]


def records_to_dataframe(records: Sequence[ActivityRecord]) -> pd.DataFrame:
    """Convert activity records to a pandas DataFrame.

    Args:
        records: Sequence of ActivityRecord objects

    Returns:
        DataFrame with columns: creator_id, creator_name, created_at, record_id
        (input order preserved)

    Example:
        >>> df = records_to_dataframe(snapshot.creations)
        >>> df.groupby("creator_id").size()
    """
    if not records:
        return pd.DataFrame(columns=RECORD_COLUMNS)

    return pd.DataFrame(
        [
            {
                "creator_id": r.creator_id,
                "creator_name": r.creator_name,
                "created_at": r.created_at,
                "record_id": r.record_id,
            }
            for r in records
        ]
    )


def dataframe_to_records(
    df: pd.DataFrame,
    creator_id_col: str = "creator_id",
    creator_name_col: str = "creator_name",
    created_at_col: str = "created_at",
    record_id_col: Optional[str] = "record_id",
    invalid_timestamp_policy: InvalidTimestampPolicy = "skip",
    tz: Optional[tzinfo] = None,
) -> List[ActivityRecord]:
    """Convert a pandas DataFrame to activity records.

    Rows go through the same RecordContract as the JSON exports, so
    unparseable timestamps follow the same skip/raise policy.

    Args:
        df: DataFrame with one row per record
        creator_id_col: Column holding creator ids (converted to str)
        creator_name_col: Column holding creator display names
        created_at_col: Column holding timestamps (datetimes, ISO-8601 or
            legacy export strings)
        record_id_col: Optional column holding record ids
        invalid_timestamp_policy: "skip" drops and logs rows with unparseable
            timestamps; "raise" propagates InvalidTimestamp
        tz: Analysis timezone used to convert timezone-aware timestamps

    Returns:
        List of ActivityRecord objects in row order

    Raises:
        ValueError: If required columns are missing or contain nulls
        InvalidTimestamp: If a timestamp is unparseable and the policy is "raise"

    Example:
        >>> records = dataframe_to_records(games_df, creator_id_col="creatorId")
        >>> returning = identify_returning_users(records)
    """
    required_cols = [creator_id_col, creator_name_col, created_at_col]
    missing_cols = set(required_cols) - set(df.columns)
    if missing_cols:
        raise ValueError(f"DataFrame missing required columns: {missing_cols}")

    if df.empty:
        return []

    null_cols = df[required_cols].isnull().any()
    if null_cols.any():
        null_col_names = null_cols[null_cols].index.tolist()
        raise ValueError(
            f"Null/NaN values found in columns: {null_col_names}. "
            "Every record needs a creator and a timestamp."
        )

    has_record_id = record_id_col is not None and record_id_col in df.columns
    rows = []
    for row in df.to_dict("records"):
        created_at = row[created_at_col]
        if isinstance(created_at, pd.Timestamp):
            created_at = created_at.to_pydatetime()
        record_id = None
        if has_record_id and not pd.isna(row[record_id_col]):
            record_id = row[record_id_col]
        rows.append(
            {
                "creator_id": row[creator_id_col],
                "creator_name": row[creator_name_col],
                "created_at": created_at,
                "record_id": record_id,
            }
        )

    contract = RecordContract(
        record_id_field="record_id",
        invalid_timestamp_policy=invalid_timestamp_policy,
        tz=tz,
    )
    return contract.validate_records(rows)


def aggregate_by_date_df(
    df: pd.DataFrame,
    date_range: Optional[DateRange] = None,
    tz: Optional[tzinfo] = None,
    **columns: Any,
) -> pd.DataFrame:
    """Daily record counts of a records DataFrame.

    Convenience function combining conversion and aggregation. Extra keyword
    arguments are passed to dataframe_to_records.

    Example:
        >>> daily_df = aggregate_by_date_df(games_df, creator_id_col="creatorId")
        >>> daily_df.to_csv("creations_per_day.csv", index=False)
    """
    records = dataframe_to_records(df, tz=tz, **columns)
    return daily_counts_to_dataframe(aggregate_by_date(records, date_range, tz))
