"""Report export utilities for the activity dashboard."""

from .exports import export_report_json, export_returning_users_csv

__all__ = [
    "export_report_json",
    "export_returning_users_csv",
]
