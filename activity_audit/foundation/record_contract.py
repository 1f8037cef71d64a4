"""Activity record contract definitions and validation utilities.

The record contract captures the minimum pieces of information that every
aggregation relies on: who produced a record and when. It lets the
dashboard answer "how many users registered today?" and "which creators
came back?" consistently for both registrations and game-creation events.

Invalid timestamps are handled here, once, so that every aggregation sees
the same record set. See :class:`RecordContract` for the policy options.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Iterable, Literal, Mapping

from activity_audit.foundation.bucketing import InvalidTimestamp, parse_timestamp

logger = logging.getLogger(__name__)

InvalidTimestampPolicy = Literal["skip", "raise"]


@dataclass(frozen=True)
class ActivityRecord:
    """Canonical representation of a timestamped activity event.

    Attributes
    ----------
    creator_id:
        Stable identity of the user who produced the record. Numeric ids
        are normalised to strings so records and creators compare equal.
    creator_name:
        Display name of the creator.
    created_at:
        Naive wall-clock timestamp in the analysis timezone.
    record_id:
        Optional identifier of the record itself (e.g. the game id).
    metadata:
        Optional extra fields carried through for downstream consumers.
    """

    creator_id: str
    creator_name: str
    created_at: datetime
    record_id: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Creator:
    """A member of the creator population (a registered user)."""

    creator_id: str
    display_name: str
    registered_at: datetime | None = None


@dataclass(frozen=True)
class SkippedRecord:
    """A raw record rejected at the contract boundary."""

    record_index: int
    value: Any
    reason: str


class RecordContract:
    """Validate raw dictionaries and return canonical activity records.

    Parameters
    ----------
    id_field, name_field, timestamp_field:
        Keys of the raw records holding creator id, creator display name
        and creation timestamp.
    record_id_field:
        Optional key holding the record's own identifier.
    invalid_timestamp_policy:
        ``"skip"`` drops records whose timestamp cannot be parsed and
        reports them in :attr:`skipped`; ``"raise"`` propagates
        :class:`InvalidTimestamp`.
    tz:
        Analysis timezone used to convert aware timestamps.
    """

    def __init__(
        self,
        *,
        id_field: str = "creator_id",
        name_field: str = "creator_name",
        timestamp_field: str = "created_at",
        record_id_field: str | None = None,
        invalid_timestamp_policy: InvalidTimestampPolicy = "skip",
        tz: tzinfo | None = None,
    ) -> None:
        if invalid_timestamp_policy not in ("skip", "raise"):
            raise ValueError(
                f"invalid_timestamp_policy must be 'skip' or 'raise', "
                f"got {invalid_timestamp_policy!r}"
            )
        self.id_field = id_field
        self.name_field = name_field
        self.timestamp_field = timestamp_field
        self.record_id_field = record_id_field
        self.invalid_timestamp_policy = invalid_timestamp_policy
        self.tz = tz
        self.skipped: list[SkippedRecord] = []

    @property
    def required_fields(self) -> tuple[str, str, str]:
        return (self.id_field, self.name_field, self.timestamp_field)

    def validate_records(
        self, records: Iterable[Mapping[str, Any]]
    ) -> list[ActivityRecord]:
        """Validate raw records and return canonical activity records.

        Parameters
        ----------
        records:
            Iterable of raw dictionaries as produced by the data export.

        Raises
        ------
        ValueError
            If a record misses one of :attr:`required_fields`.
        TypeError
            If a record is not a mapping or carries non-mapping metadata.
        InvalidTimestamp
            If a timestamp is unparseable and the policy is ``"raise"``.
        """
        self.skipped = []
        canonical: list[ActivityRecord] = []
        for idx, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise TypeError(
                    "Activity records must be mappings",
                    {"record_index": idx, "value": record},
                )

            missing = [
                name
                for name in self.required_fields
                if record.get(name) is None or record.get(name) == ""
            ]
            if missing:
                raise ValueError(
                    "Record missing required contract fields",
                    {"missing_fields": missing, "record_index": idx},
                )

            raw_ts = record[self.timestamp_field]
            try:
                created_at = parse_timestamp(raw_ts, self.tz)
            except InvalidTimestamp as exc:
                if self.invalid_timestamp_policy == "raise":
                    raise
                self.skipped.append(SkippedRecord(idx, raw_ts, str(exc)))
                continue

            metadata = record.get("metadata", {})
            if metadata is None:
                metadata = {}
            if not isinstance(metadata, Mapping):
                raise TypeError(
                    "metadata must be a mapping if provided",
                    {"record_index": idx, "value": metadata},
                )

            record_id = None
            if self.record_id_field and record.get(self.record_id_field) is not None:
                record_id = str(record[self.record_id_field])

            canonical.append(
                ActivityRecord(
                    creator_id=str(record[self.id_field]),
                    creator_name=str(record[self.name_field]),
                    created_at=created_at,
                    record_id=record_id,
                    metadata=metadata,
                )
            )

        if self.skipped:
            logger.warning(
                f"Skipped {len(self.skipped)} record(s) with unparseable "
                f"'{self.timestamp_field}' values. "
                f"First 5 indices: {[s.record_index for s in self.skipped[:5]]}"
            )
        return canonical

    def validate_creators(self, records: Iterable[Mapping[str, Any]]) -> list[Creator]:
        """Build the creator population from raw registration rows.

        Membership only needs an id and a display name. A row whose
        timestamp cannot be parsed still yields a creator, with
        ``registered_at`` left as ``None``; the first row seen for an id wins.

        Raises
        ------
        ValueError
            If a row misses the id or name field.
        TypeError
            If a row is not a mapping.
        """
        creators: dict[str, Creator] = {}
        for idx, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise TypeError(
                    "Activity records must be mappings",
                    {"record_index": idx, "value": record},
                )

            missing = [
                name
                for name in (self.id_field, self.name_field)
                if record.get(name) is None or record.get(name) == ""
            ]
            if missing:
                raise ValueError(
                    "Record missing required contract fields",
                    {"missing_fields": missing, "record_index": idx},
                )

            creator_id = str(record[self.id_field])
            if creator_id in creators:
                continue
            try:
                registered_at = parse_timestamp(record.get(self.timestamp_field), self.tz)
            except InvalidTimestamp:
                registered_at = None
            creators[creator_id] = Creator(
                creator_id=creator_id,
                display_name=str(record[self.name_field]),
                registered_at=registered_at,
            )
        return list(creators.values())

    def to_serialisable(
        self, records: Iterable[ActivityRecord]
    ) -> list[dict[str, Any]]:
        """Convert records into JSON-serialisable dictionaries."""

        payload: list[dict[str, Any]] = []
        for record in records:
            payload.append(
                {
                    "creator_id": record.creator_id,
                    "creator_name": record.creator_name,
                    "created_at": record.created_at.isoformat(),
                    "record_id": record.record_id,
                    "metadata": {str(k): v for k, v in record.metadata.items()},
                }
            )
        return payload


def creators_from_records(records: Iterable[ActivityRecord]) -> list[Creator]:
    """Derive the creator population from registration records.

    Each registration is one user; the first record seen for an id wins.
    """
    creators: dict[str, Creator] = {}
    for record in records:
        if record.creator_id not in creators:
            creators[record.creator_id] = Creator(
                creator_id=record.creator_id,
                display_name=record.creator_name,
                registered_at=record.created_at,
            )
    return list(creators.values())
