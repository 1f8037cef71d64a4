"""Pandas DataFrame adapters for activity audit components."""

from .records import (
    aggregate_by_date_df,
    dataframe_to_records,
    records_to_dataframe,
)
from .views import (
    daily_counts_to_dataframe,
    distribution_to_dataframe,
    hourly_comparison_to_dataframe,
    monthly_overlay_to_dataframe,
    returning_users_to_dataframe,
    weekday_comparison_to_dataframe,
)

__all__ = [
    # Record adapters
    "aggregate_by_date_df",
    "dataframe_to_records",
    "records_to_dataframe",
    # Result adapters
    "daily_counts_to_dataframe",
    "distribution_to_dataframe",
    "hourly_comparison_to_dataframe",
    "monthly_overlay_to_dataframe",
    "returning_users_to_dataframe",
    "weekday_comparison_to_dataframe",
]
