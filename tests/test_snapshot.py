"""Tests for AnalysisConfig and snapshot construction."""

from dataclasses import replace
from datetime import datetime

import pytest

from activity_audit.analyses.engagement import (
    analyze_engagement_split,
    bucket_records_per_creator,
    count_records_by_creator,
)
from activity_audit.foundation import AnalysisConfig, InvalidTimestamp, SnapshotBuilder


def sample_registrations():
    return [
        {"id": 1, "lName": "Ng", "createdAt": "10/01/2025, 09:00:00"},
        {"id": 2, "lName": "Ito", "createdAt": "10/02/2025, 14:30:00"},
        {"id": 3, "lName": "Okafor", "createdAt": "Invalid Date"},
    ]


def sample_creations():
    return [
        {"id": 10, "creatorId": 1, "creatorLastName": "Ng", "createdAt": "2025-10-03T08:00:00"},
        {"id": 11, "creatorId": 1, "creatorLastName": "Ng", "createdAt": "2025-10-04T08:00:00"},
        {"id": 12, "creatorId": 2, "creatorLastName": "Ito", "createdAt": "2025-10-04T09:00:00"},
    ]


class TestAnalysisConfig:
    """Test AnalysisConfig validation and environment loading."""

    def test_defaults(self):
        config = AnalysisConfig()
        assert config.timezone == "UTC"
        assert config.invalid_timestamp_policy == "skip"
        assert config.progression_window_days == 30
        assert config.past_weeks == 4
        assert config.overlay_months == 4
        assert config.distribution_cap == 21

    def test_unknown_timezone_raises(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            AnalysisConfig(timezone="Mars/Olympus_Mons")

    def test_invalid_policy_raises(self):
        with pytest.raises(ValueError, match="invalid_timestamp_policy"):
            AnalysisConfig(invalid_timestamp_policy="ignore")

    @pytest.mark.parametrize(
        "field", ["progression_window_days", "past_weeks", "overlay_months", "distribution_cap"]
    )
    def test_non_positive_values_raise(self, field):
        with pytest.raises(ValueError, match=f"{field} must be positive"):
            AnalysisConfig(**{field: 0})

    def test_from_env_reads_prefixed_variables(self):
        config = AnalysisConfig.from_env(
            {
                "ACTIVITY_AUDIT_TIMEZONE": "Europe/Berlin",
                "ACTIVITY_AUDIT_INVALID_TIMESTAMP_POLICY": "raise",
                "ACTIVITY_AUDIT_PAST_WEEKS": "6",
                "ACTIVITY_AUDIT_DISTRIBUTION_CAP": "10",
            }
        )
        assert config.timezone == "Europe/Berlin"
        assert config.invalid_timestamp_policy == "raise"
        assert config.past_weeks == 6
        assert config.distribution_cap == 10
        assert config.overlay_months == 4

    def test_from_env_empty_mapping_uses_defaults(self):
        assert AnalysisConfig.from_env({}) == AnalysisConfig()

    def test_current_time_is_naive(self):
        assert AnalysisConfig(timezone="Asia/Tokyo").current_time().tzinfo is None


class TestSnapshotBuilder:
    """Test SnapshotBuilder with the dashboard export layout."""

    def test_build_maps_export_fields(self):
        snapshot = SnapshotBuilder().build(sample_registrations(), sample_creations())

        assert len(snapshot.registrations) == 2
        assert len(snapshot.creations) == 3
        assert [c.creator_id for c in snapshot.creators] == ["1", "2", "3"]
        assert snapshot.creators[1].display_name == "Ito"
        assert snapshot.creations[0].record_id == "10"
        assert snapshot.creations[0].created_at == datetime(2025, 10, 3, 8, 0)

    def test_unparseable_registration_stays_in_population(self):
        """A registration with a bad timestamp still counts as a creator."""
        registrations = [
            {"id": 1, "lName": "Ng", "createdAt": "2025-10-01T09:00:00"},
            {"id": 2, "lName": "Ito", "createdAt": "not a date"},
        ]
        creations = [
            {"id": 10, "creatorId": 2, "creatorLastName": "Ito", "createdAt": "2025-10-02T09:00:00"},
        ]
        snapshot = SnapshotBuilder().build(registrations, creations)

        assert len(snapshot.creators) == 2
        assert snapshot.creators[1].registered_at is None
        assert [r.creator_id for r in snapshot.registrations] == ["1"]
        assert snapshot.skipped["registrations"][0].record_index == 1

        split = analyze_engagement_split(snapshot.creators, snapshot.creations)
        assert split.total_creators == 2
        assert split.with_records == 1
        buckets = bucket_records_per_creator(
            snapshot.creators, count_records_by_creator(snapshot.creations)
        )
        assert [(b.label, b.creator_count) for b in buckets] == [("0", 1), ("1", 1)]

    def test_skipped_records_reported_per_dataset(self):
        snapshot = SnapshotBuilder().build(sample_registrations(), sample_creations())

        assert snapshot.skipped_count == 1
        assert list(snapshot.skipped) == ["registrations"]
        assert snapshot.skipped["registrations"][0].record_index == 2

    def test_strict_policy_aborts(self):
        config = replace(AnalysisConfig(), invalid_timestamp_policy="raise")
        with pytest.raises(InvalidTimestamp):
            SnapshotBuilder(config).build(sample_registrations(), sample_creations())

    def test_custom_field_layout(self):
        snapshot = SnapshotBuilder(
            creation_fields={
                "id_field": "owner",
                "name_field": "owner_name",
                "timestamp_field": "ts",
            }
        ).build([], [{"owner": "u1", "owner_name": "Ng", "ts": "2025-01-01T00:00:00"}])
        assert snapshot.creations[0].creator_id == "u1"
        assert snapshot.creators == []

    def test_empty_inputs(self):
        snapshot = SnapshotBuilder().build([], [])
        assert snapshot.registrations == []
        assert snapshot.creations == []
        assert snapshot.skipped_count == 0


class TestSnapshotFingerprint:
    """Test snapshot fingerprints used for cache keys."""

    def test_same_records_same_fingerprint(self):
        first = SnapshotBuilder().build(sample_registrations(), sample_creations())
        second = SnapshotBuilder().build(sample_registrations(), sample_creations())
        assert first.fingerprint() == second.fingerprint()

    def test_changed_records_change_fingerprint(self):
        first = SnapshotBuilder().build(sample_registrations(), sample_creations())
        creations = sample_creations()
        creations[0]["createdAt"] = "2025-10-05T08:00:00"
        second = SnapshotBuilder().build(sample_registrations(), creations)
        assert first.fingerprint() != second.fingerprint()

    def test_dataset_boundary_matters(self):
        """Moving records between datasets changes the fingerprint."""
        builder = SnapshotBuilder(
            registration_fields={
                "id_field": "creatorId",
                "name_field": "creatorLastName",
                "timestamp_field": "createdAt",
                "record_id_field": "id",
            }
        )
        first = builder.build(sample_creations(), [])
        second = builder.build([], sample_creations())
        assert first.fingerprint() != second.fingerprint()

    def test_as_dict_is_json_ready(self):
        snapshot = SnapshotBuilder().build(sample_registrations(), sample_creations())
        payload = snapshot.as_dict()
        assert payload["registration_count"] == 2
        assert payload["creation_count"] == 3
        assert payload["skipped"]["registrations"][0]["record_index"] == 2
        assert payload["fingerprint"] == snapshot.fingerprint()
