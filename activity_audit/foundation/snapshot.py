"""Snapshot construction for the registration and game-creation datasets."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from activity_audit.foundation.config import AnalysisConfig
from activity_audit.foundation.record_contract import (
    ActivityRecord,
    Creator,
    RecordContract,
    SkippedRecord,
)

# Field layout of the dashboard's data export.
REGISTRATION_FIELDS: Mapping[str, str | None] = {
    "id_field": "id",
    "name_field": "lName",
    "timestamp_field": "createdAt",
    "record_id_field": "id",
}
CREATION_FIELDS: Mapping[str, str | None] = {
    "id_field": "creatorId",
    "name_field": "creatorLastName",
    "timestamp_field": "createdAt",
    "record_id_field": "id",
}


@dataclass
class ActivitySnapshot:
    """A fully materialised, read-only view of both datasets.

    Attributes
    ----------
    registrations:
        One record per registered user (creator = the user).
    creations:
        One record per game-creation event.
    creators:
        The creator population derived from the registrations.
    skipped:
        Records rejected at the contract boundary, keyed by dataset name.
    """

    registrations: list[ActivityRecord]
    creations: list[ActivityRecord]
    creators: list[Creator]
    skipped: dict[str, list[SkippedRecord]] = field(default_factory=dict)

    @property
    def skipped_count(self) -> int:
        return sum(len(items) for items in self.skipped.values())

    def fingerprint(self) -> str:
        """Content hash of the record set, used to key cached aggregations.

        Two snapshots built from the same records produce the same
        fingerprint; any change to the records changes it.
        """
        digest = hashlib.sha256()
        for name, records in (
            ("registrations", self.registrations),
            ("creations", self.creations),
        ):
            digest.update(name.encode("utf-8"))
            for record in records:
                digest.update(
                    json.dumps(
                        [
                            record.creator_id,
                            record.creator_name,
                            record.created_at.isoformat(),
                            record.record_id,
                        ]
                    ).encode("utf-8")
                )
        return digest.hexdigest()

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable summary of the snapshot."""
        return {
            "registration_count": len(self.registrations),
            "creation_count": len(self.creations),
            "creator_count": len(self.creators),
            "skipped": {
                name: [
                    {"record_index": s.record_index, "reason": s.reason}
                    for s in items
                ]
                for name, items in self.skipped.items()
            },
            "fingerprint": self.fingerprint(),
        }


class SnapshotBuilder:
    """Build an :class:`ActivitySnapshot` from raw export rows."""

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        registration_fields: Mapping[str, str | None] | None = None,
        creation_fields: Mapping[str, str | None] | None = None,
    ) -> None:
        self.config = config or AnalysisConfig()
        self.registration_fields = dict(registration_fields or REGISTRATION_FIELDS)
        self.creation_fields = dict(creation_fields or CREATION_FIELDS)

    def _contract(self, fields: Mapping[str, str | None]) -> RecordContract:
        return RecordContract(
            **fields,
            invalid_timestamp_policy=self.config.invalid_timestamp_policy,
            tz=self.config.tz,
        )

    def build(
        self,
        registrations: Iterable[Mapping[str, Any]],
        creations: Iterable[Mapping[str, Any]],
    ) -> ActivitySnapshot:
        registrations = list(registrations)
        registration_contract = self._contract(self.registration_fields)
        registration_records = registration_contract.validate_records(registrations)
        creators = registration_contract.validate_creators(registrations)

        creation_contract = self._contract(self.creation_fields)
        creation_records = creation_contract.validate_records(creations)

        skipped: dict[str, list[SkippedRecord]] = {}
        if registration_contract.skipped:
            skipped["registrations"] = list(registration_contract.skipped)
        if creation_contract.skipped:
            skipped["creations"] = list(creation_contract.skipped)

        return ActivitySnapshot(
            registrations=registration_records,
            creations=creation_records,
            creators=creators,
            skipped=skipped,
        )
