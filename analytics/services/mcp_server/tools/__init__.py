"""MCP Tools for Activity Dashboard Analytics.

This module exports all MCP tools for data loading and dashboard views.
"""

# Data loading
from .data_loader import load_activity_data

# Dashboard views
from .engagement import analyze_creator_distribution, analyze_engagement
from .monthly import analyze_monthly_overlay
from .progression import analyze_progression
from .report import build_dashboard_report
from .returning_users import identify_returning_creators
from .rolling import analyze_hourly_activity, analyze_weekday_activity

# Observability
from .health_check import health_check

__all__ = [
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
]
