"""Export dashboard results to JSON and CSV.

Reports are written for downstream dashboards, spreadsheets and audit
trails. JSON output mirrors :meth:`ActivityReport.as_dict`; CSV output is
produced through the pandas adapters.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

from activity_audit.analyses.overview import ActivityReport
from activity_audit.analyses.returning import ReturningUser
from activity_audit.pandas import returning_users_to_dataframe

logger = logging.getLogger(__name__)


def export_report_json(
    report: ActivityReport,
    output_path: str | Path,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Export a dashboard report to JSON.

    Parameters
    ----------
    report:
        Report produced by :func:`build_activity_report`.
    output_path:
        Path where the JSON file will be saved.
    metadata:
        Optional metadata to include (e.g., data source, export version).

    Examples
    --------
    >>> report = build_activity_report(snapshot)
    >>> export_report_json(report, "reports/dashboard.json", metadata={"source": "prod"})
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    payload = {
        "metadata": metadata or {},
        "exported_at": datetime.now().isoformat(),
        "report": report.as_dict(),
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info(f"Dashboard report exported to {output_path}")


def export_returning_users_csv(
    users: Sequence[ReturningUser],
    output_path: str | Path,
) -> None:
    """Export returning users to CSV (one row per creator, ranked order).

    Examples
    --------
    >>> export_returning_users_csv(identify_returning_users(records), "returning.csv")
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df = returning_users_to_dataframe(users)
    df.to_csv(output_path, index=False)

    logger.info(f"{len(users)} returning users exported to {output_path}")
