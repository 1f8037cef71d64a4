"""Command line entry points for the activity audit toolkit."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any

from activity_audit.analyses.overview import build_activity_report
from activity_audit.analyses.returning import (
    identify_returning_users,
    summarize_returning_users,
)
from activity_audit.analyses.timeseries import DateRange
from activity_audit.foundation.bucketing import parse_timestamp
from activity_audit.foundation.config import AnalysisConfig
from activity_audit.foundation.snapshot import SnapshotBuilder
from activity_audit.reporting.exports import (
    export_report_json,
    export_returning_users_csv,
)

logger = logging.getLogger(__name__)


MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM


def _load_rows(path: Path) -> list[dict[str, Any]]:
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of records in {resolved}")
    return payload


def _parse_day(value: str) -> date:
    return date.fromisoformat(value)


def _config_from_args(args: argparse.Namespace) -> AnalysisConfig:
    config = AnalysisConfig.from_env()
    if args.timezone:
        config = replace(config, timezone=args.timezone)
    if args.strict:
        config = replace(config, invalid_timestamp_policy="raise")
    return config


def build_report_cli(argv: list[str] | None = None) -> int:
    """Build the dashboard report from registration and creation exports."""

    parser = argparse.ArgumentParser(description=build_report_cli.__doc__)
    parser.add_argument(
        "registrations", type=Path, help="Path to JSON file with user registrations"
    )
    parser.add_argument(
        "creations", type=Path, help="Path to JSON file with game-creation events"
    )
    parser.add_argument(
        "--start",
        type=_parse_day,
        help="First day of the progression range (YYYY-MM-DD).",
    )
    parser.add_argument(
        "--end",
        type=_parse_day,
        help="Last day of the progression range (YYYY-MM-DD). Defaults to today.",
    )
    parser.add_argument(
        "--timezone",
        help="IANA timezone for day/week boundaries (default: ACTIVITY_AUDIT_TIMEZONE or UTC).",
    )
    parser.add_argument(
        "--now",
        help="Reference time for current-period views (ISO format). Defaults to now.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on unparseable timestamps instead of skipping them.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional path for writing the report as JSON.",
    )

    args = parser.parse_args(argv)
    config = _config_from_args(args)

    logger.info(f"Loading registrations from {args.registrations}")
    registrations = _load_rows(args.registrations)
    logger.info(f"Loading creations from {args.creations}")
    creations = _load_rows(args.creations)

    snapshot = SnapshotBuilder(config).build(registrations, creations)
    now = parse_timestamp(args.now, config.tz) if args.now else config.current_time()

    date_range = None
    if args.start or args.end:
        end = args.end or now.date()
        start = args.start or DateRange.trailing(end, config.progression_window_days).start
        date_range = DateRange(start=start, end=end)

    report = build_activity_report(snapshot, now=now, config=config, date_range=date_range)

    if args.output:
        export_report_json(
            report,
            args.output,
            metadata={
                "registrations": str(args.registrations),
                "creations": str(args.creations),
            },
        )
    else:  # stdout fallback enables piping in shell usage.
        json.dump(report.as_dict(), fp=sys.stdout, indent=2)
        print()

    if report.failed_views:
        logger.error(f"Degraded views: {', '.join(report.failed_views)}")
        return 1
    return 0


def returning_users_cli(argv: list[str] | None = None) -> int:
    """Summarise creators who created games on more than one day."""

    parser = argparse.ArgumentParser(description=returning_users_cli.__doc__)
    parser.add_argument(
        "creations", type=Path, help="Path to JSON file with game-creation events"
    )
    parser.add_argument(
        "--top",
        type=int,
        default=10,
        help="Number of top returning creators to print (default: 10)",
    )
    parser.add_argument("--timezone", help="IANA timezone for day boundaries.")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on unparseable timestamps instead of skipping them.",
    )
    parser.add_argument(
        "--csv", type=Path, help="Optional path for exporting the full table as CSV."
    )

    args = parser.parse_args(argv)
    config = _config_from_args(args)

    rows = _load_rows(args.creations)
    snapshot = SnapshotBuilder(config).build([], rows)
    if not snapshot.creations:
        logger.error("No creation records found in input file")
        return 1

    returning = identify_returning_users(snapshot.creations, config.tz)
    summary = summarize_returning_users(snapshot.creations, config.tz)

    print(
        json.dumps(
            {
                "summary": summary.as_dict(),
                "top": [u.as_dict() for u in returning[: args.top]],
            },
            indent=2,
        )
    )

    if args.csv:
        export_returning_users_csv(returning, args.csv)

    return 0


def main() -> None:
    raise SystemExit(build_report_cli())


def returning_main() -> None:
    raise SystemExit(returning_users_cli())


if __name__ == "__main__":  # pragma: no cover
    main()
