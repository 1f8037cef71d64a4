"""Analysis configuration.

Day and week boundaries ("today", "this week") depend on a timezone. The
configuration makes that choice explicit instead of inheriting whatever
the host machine happens to use.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

ENV_PREFIX = "ACTIVITY_AUDIT_"


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration shared by the aggregation views.

    Attributes
    ----------
    timezone:
        IANA timezone name used for day/week/month boundaries and for
        converting timezone-aware timestamps to wall-clock time.
    invalid_timestamp_policy:
        ``"skip"`` to drop and report unparseable records, ``"raise"`` to
        abort loading.
    progression_window_days:
        Length of the default trailing window for progression charts.
    past_weeks:
        Number of individual prior weeks in the weekday comparison.
    overlay_months:
        Number of months (including the current one) in the monthly overlay.
    distribution_cap:
        Record count at which the per-creator distribution collapses into
        a single ``"N+"`` bucket.
    """

    timezone: str = "UTC"
    invalid_timestamp_policy: str = "skip"
    progression_window_days: int = 30
    past_weeks: int = 4
    overlay_months: int = 4
    distribution_cap: int = 21

    def __post_init__(self) -> None:
        if self.invalid_timestamp_policy not in ("skip", "raise"):
            raise ValueError(
                f"invalid_timestamp_policy must be 'skip' or 'raise', "
                f"got {self.invalid_timestamp_policy!r}"
            )
        for name in (
            "progression_window_days",
            "past_weeks",
            "overlay_months",
            "distribution_cap",
        ):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be positive, got {value}")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {self.timezone!r}") from exc

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def current_time(self) -> datetime:
        """Return "now" as naive wall-clock time in the configured timezone."""
        return datetime.now(self.tz).replace(tzinfo=None)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AnalysisConfig":
        """Build a configuration from ``ACTIVITY_AUDIT_*`` environment variables.

        Unset variables fall back to the dataclass defaults.

        Examples
        --------
        >>> AnalysisConfig.from_env({"ACTIVITY_AUDIT_TIMEZONE": "America/New_York"}).timezone
        'America/New_York'
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            timezone=env.get(f"{ENV_PREFIX}TIMEZONE", defaults.timezone),
            invalid_timestamp_policy=env.get(
                f"{ENV_PREFIX}INVALID_TIMESTAMP_POLICY",
                defaults.invalid_timestamp_policy,
            ),
            progression_window_days=int(
                env.get(
                    f"{ENV_PREFIX}PROGRESSION_WINDOW_DAYS",
                    defaults.progression_window_days,
                )
            ),
            past_weeks=int(env.get(f"{ENV_PREFIX}PAST_WEEKS", defaults.past_weeks)),
            overlay_months=int(
                env.get(f"{ENV_PREFIX}OVERLAY_MONTHS", defaults.overlay_months)
            ),
            distribution_cap=int(
                env.get(f"{ENV_PREFIX}DISTRIBUTION_CAP", defaults.distribution_cap)
            ),
        )
