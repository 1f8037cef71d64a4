"""Shared utilities for pandas conversion operations."""

from decimal import Decimal

import pandas as pd  # type: ignore


def decimal_to_float(value: Decimal) -> float:
    """Convert Decimal to float for pandas compatibility."""
    return float(value)


def nullable_counts(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """Cast count columns to pandas' nullable integer dtype.

    Keeps "no data yet" (``<NA>``) distinct from a zero count, which a
    plain float column would blur into ``NaN`` alongside ``0.0``.

    Example:
        >>> df = pd.DataFrame({"this_week": [3, 0, None]})
        >>> nullable_counts(df, ["this_week"])["this_week"].tolist()
        [3, 0, <NA>]
    """
    for column in columns:
        if column in df.columns:
            df[column] = df[column].astype("Int64")
    return df
