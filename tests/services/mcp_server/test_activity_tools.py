"""Integration tests for the activity dashboard MCP tools

Tests the data loader and every aggregation tool through their _impl
functions with a mocked FastMCP Context.
"""

import json
from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from analytics.services.mcp_server.cache import get_aggregation_cache
from analytics.services.mcp_server.state import get_shared_state
from analytics.services.mcp_server.tools import data_loader
from analytics.services.mcp_server.tools._shared import get_loaded_data
from analytics.services.mcp_server.tools.data_loader import (
    LoadActivityDataRequest,
    _load_activity_data_impl as load_activity_data,
)
from analytics.services.mcp_server.tools.engagement import (
    CreatorDistributionRequest,
    EngagementRequest,
    _analyze_creator_distribution_impl as analyze_creator_distribution,
    _analyze_engagement_impl as analyze_engagement,
)
from analytics.services.mcp_server.tools.health_check import (
    _health_check_impl as health_check,
)
from analytics.services.mcp_server.tools.monthly import (
    MonthlyOverlayRequest,
    _analyze_monthly_overlay_impl as analyze_monthly_overlay,
)
from analytics.services.mcp_server.tools.progression import (
    AnalyzeProgressionRequest,
    _analyze_progression_impl as analyze_progression,
)
from analytics.services.mcp_server.tools.report import (
    DashboardReportRequest,
    _build_dashboard_report_impl as build_dashboard_report,
)
from analytics.services.mcp_server.tools.returning_users import (
    ReturningCreatorsRequest,
    _identify_returning_creators_impl as identify_returning_creators,
)
from analytics.services.mcp_server.tools.rolling import (
    HourlyActivityRequest,
    WeekdayActivityRequest,
    _analyze_hourly_activity_impl as analyze_hourly_activity,
    _analyze_weekday_activity_impl as analyze_weekday_activity,
)

# Wednesday
NOW = datetime(2025, 10, 15, 12, 30)


def create_sample_registrations():
    """Create sample user registrations in the dashboard export layout."""
    return [
        {"id": 1, "lName": "Ng", "createdAt": "09/20/2025, 09:00:00"},
        {"id": 2, "lName": "Ito", "createdAt": "10/06/2025, 14:00:00"},
        {"id": 3, "lName": "Okafor", "createdAt": "10/15/2025, 08:15:00"},
        {"id": 4, "lName": "Silva", "createdAt": "Invalid Date"},
    ]


def create_sample_creations():
    """Create sample game-creation events in the dashboard export layout."""
    return [
        # Ng: returning creator, three games on two days
        {"id": 100, "creatorId": 1, "creatorLastName": "Ng", "createdAt": "2025-10-06T09:00:00"},
        {"id": 101, "creatorId": 1, "creatorLastName": "Ng", "createdAt": "2025-10-13T09:30:00"},
        {"id": 102, "creatorId": 1, "creatorLastName": "Ng", "createdAt": "2025-10-13T18:00:00"},
        # Ito: two games on one day
        {"id": 103, "creatorId": 2, "creatorLastName": "Ito", "createdAt": "2025-10-15T10:00:00"},
        {"id": 104, "creatorId": 2, "creatorLastName": "Ito", "createdAt": "2025-10-15T11:00:00"},
    ]


def create_mock_context():
    """Create a mock FastMCP Context for testing."""
    ctx = AsyncMock()
    ctx.state = {}

    def get_state(key):
        return ctx.state.get(key)

    def set_state(key, value):
        ctx.state[key] = value

    ctx.get_state = MagicMock(side_effect=get_state)
    ctx.set_state = MagicMock(side_effect=set_state)
    ctx.info = AsyncMock()
    ctx.report_progress = AsyncMock()

    return ctx


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    """Isolate shared state, cache and environment between tests."""
    for name in ("TIMEZONE", "INVALID_TIMESTAMP_POLICY", "PAST_WEEKS"):
        monkeypatch.delenv(f"ACTIVITY_AUDIT_{name}", raising=False)
    get_shared_state().clear()
    get_aggregation_cache().clear()
    yield
    get_shared_state().clear()
    get_aggregation_cache().clear()


async def load_sample(ctx=None, **request_kwargs):
    return await load_activity_data(
        LoadActivityDataRequest(**request_kwargs),
        ctx or create_mock_context(),
        registrations=create_sample_registrations(),
        creations=create_sample_creations(),
    )


class TestLoadActivityData:
    """Test the load_activity_data tool."""

    @pytest.mark.asyncio
    async def test_load_stores_snapshot(self):
        ctx = create_mock_context()
        response = await load_sample(ctx)

        assert response.registration_count == 3
        assert response.creation_count == 5
        assert response.creator_count == 4
        assert response.unique_creators == 2
        assert response.skipped_records == {"registrations": 1}
        assert response.timezone == "UTC"
        assert response.creation_range == ("2025-10-06T09:00:00", "2025-10-15T11:00:00")
        assert "1 records skipped" in response.message

        shared_state = get_shared_state()
        assert shared_state.has("snapshot")
        assert shared_state.get("snapshot_fingerprint") == response.fingerprint
        assert ctx.report_progress.await_count == 2

    @pytest.mark.asyncio
    async def test_load_from_files(self, tmp_path, monkeypatch):
        monkeypatch.setattr(data_loader, "ALLOWED_BASE_DIR", tmp_path.resolve())
        (tmp_path / "users.json").write_text(json.dumps(create_sample_registrations()))
        (tmp_path / "games.json").write_text(json.dumps(create_sample_creations()))

        response = await load_activity_data(
            LoadActivityDataRequest(registrations_path="users.json", creations_path="games.json"),
            create_mock_context(),
        )
        assert response.creation_count == 5

    @pytest.mark.asyncio
    async def test_load_rejects_path_outside_allowed_dir(self, tmp_path, monkeypatch):
        allowed = tmp_path / "data"
        allowed.mkdir()
        monkeypatch.setattr(data_loader, "ALLOWED_BASE_DIR", allowed.resolve())
        (tmp_path / "games.json").write_text("[]")

        with pytest.raises(ValueError, match="outside allowed directory"):
            await load_activity_data(
                LoadActivityDataRequest(
                    registrations_path="../games.json", creations_path="../games.json"
                ),
                create_mock_context(),
            )

    @pytest.mark.asyncio
    async def test_load_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr(data_loader, "ALLOWED_BASE_DIR", tmp_path.resolve())
        with pytest.raises(FileNotFoundError):
            await load_activity_data(
                LoadActivityDataRequest(registrations_path="missing.json"),
                create_mock_context(),
            )

    @pytest.mark.asyncio
    async def test_load_rejects_non_list_json(self, tmp_path, monkeypatch):
        monkeypatch.setattr(data_loader, "ALLOWED_BASE_DIR", tmp_path.resolve())
        (tmp_path / "users.json").write_text(json.dumps({"users": []}))
        with pytest.raises(ValueError, match="Expected a list of records"):
            await load_activity_data(LoadActivityDataRequest(), create_mock_context())

    @pytest.mark.asyncio
    async def test_strict_policy_rejects_invalid_timestamps(self):
        with pytest.raises(ValueError, match="Cannot parse timestamp"):
            await load_sample(invalid_timestamp_policy="raise")
        assert not get_shared_state().has("snapshot")

    @pytest.mark.asyncio
    async def test_timezone_override(self):
        response = await load_sample(timezone="America/New_York")
        assert response.timezone == "America/New_York"
        assert get_shared_state().get("analysis_config").timezone == "America/New_York"

    @pytest.mark.asyncio
    async def test_reload_clears_cache(self):
        await load_sample()
        await analyze_engagement(EngagementRequest(), create_mock_context())
        assert get_aggregation_cache().get_stats()["size"] == 1

        await load_sample()
        assert get_aggregation_cache().get_stats()["size"] == 0


class TestToolsRequireData:
    """Aggregation tools fail clearly before data is loaded."""

    @pytest.mark.asyncio
    async def test_progression_without_data(self):
        with pytest.raises(ValueError, match="Run load_activity_data first"):
            await analyze_progression(AnalyzeProgressionRequest(), create_mock_context())

    @pytest.mark.asyncio
    async def test_report_without_data(self):
        with pytest.raises(ValueError, match="Activity data not found"):
            await build_dashboard_report(DashboardReportRequest(), create_mock_context())


class TestLoadedDataState:
    """Snapshot, fingerprint and config are read as one unit."""

    def test_get_many_reads_all_keys(self):
        state = get_shared_state()
        state.update({"snapshot": "s", "snapshot_fingerprint": "f"})
        assert state.get_many("snapshot", "snapshot_fingerprint", "analysis_config") == (
            "s",
            "f",
            None,
        )

    @pytest.mark.asyncio
    async def test_loaded_data_comes_from_the_same_load(self):
        await load_sample(timezone="America/New_York")
        snapshot, fingerprint, config = get_loaded_data()
        assert fingerprint == snapshot.fingerprint()
        assert config.timezone == "America/New_York"

        await load_sample(timezone="Asia/Tokyo")
        snapshot, fingerprint, config = get_loaded_data()
        assert fingerprint == snapshot.fingerprint()
        assert config.timezone == "Asia/Tokyo"

    def test_loaded_data_without_load_raises(self):
        with pytest.raises(ValueError, match="Run load_activity_data first"):
            get_loaded_data()


class TestProgressionTool:
    """Test analyze_progression."""

    @pytest.mark.asyncio
    async def test_daily_counts_with_profiles(self):
        await load_sample()
        response = await analyze_progression(
            AnalyzeProgressionRequest(
                dataset="creations",
                start_date=date(2025, 10, 6),
                end_date=date(2025, 10, 15),
            ),
            create_mock_context(),
        )
        assert [(d.date, d.count) for d in response.daily_counts] == [
            ("2025-10-06", 1),
            ("2025-10-13", 2),
            ("2025-10-15", 2),
        ]
        assert response.total == 5
        assert response.active_days == 3
        assert len(response.weekday_profile) == 7
        assert response.weekday_profile[1].count == 3  # Mondays
        assert len(response.hour_profile) == 24

    @pytest.mark.asyncio
    async def test_default_range_is_trailing_window(self):
        await load_sample()
        response = await analyze_progression(
            AnalyzeProgressionRequest(dataset="registrations", now=NOW, include_profiles=False),
            create_mock_context(),
        )
        assert response.start_date == "2025-09-15"
        assert response.end_date == "2025-10-15"
        assert response.total == 3
        assert response.weekday_profile == []

    @pytest.mark.asyncio
    async def test_invalid_range(self):
        await load_sample()
        with pytest.raises(ValueError, match="start must not be after end"):
            await analyze_progression(
                AnalyzeProgressionRequest(
                    start_date=date(2025, 10, 10), end_date=date(2025, 10, 1)
                ),
                create_mock_context(),
            )


class TestRollingTools:
    """Test analyze_weekday_activity and analyze_hourly_activity."""

    @pytest.mark.asyncio
    async def test_weekday_comparison(self):
        await load_sample()
        response = await analyze_weekday_activity(
            WeekdayActivityRequest(dataset="creations", now=NOW), create_mock_context()
        )
        assert [p.this_week for p in response.points] == [0, 2, 0, 2, None, None, None]
        assert response.historical_week_count == 1
        assert response.points[1].average == pytest.approx(1.0)
        assert response.points[1].model_extra["past_week_1"] == 1
        assert response.totals["this_week"] == 4
        assert response.current_week_start == "2025-10-12"

    @pytest.mark.asyncio
    async def test_weekday_past_weeks_override(self):
        await load_sample()
        response = await analyze_weekday_activity(
            WeekdayActivityRequest(now=NOW, past_weeks=2), create_mock_context()
        )
        assert "past_week_2" in response.totals
        assert "past_week_3" not in response.totals

    @pytest.mark.asyncio
    async def test_hourly_comparison(self):
        await load_sample()
        response = await analyze_hourly_activity(
            HourlyActivityRequest(dataset="creations", now=NOW), create_mock_context()
        )
        assert response.current_hour == 12
        assert response.points[10].today == 1
        assert response.points[11].today == 1
        assert response.points[13].today is None
        assert response.historical_day_count == 2
        assert response.points[9].average == pytest.approx(1.0)
        assert response.totals["today"] == 2


class TestMonthlyOverlayTool:
    """Test analyze_monthly_overlay."""

    @pytest.mark.asyncio
    async def test_overlay(self):
        await load_sample()
        response = await analyze_monthly_overlay(
            MonthlyOverlayRequest(dataset="registrations", now=NOW), create_mock_context()
        )
        assert [m.month_key for m in response.months] == [
            "2025-07",
            "2025-08",
            "2025-09",
            "2025-10",
        ]
        assert response.monthly_totals == {
            "2025-07": 0,
            "2025-08": 0,
            "2025-09": 1,
            "2025-10": 2,
        }
        september = response.months[2]
        assert september.day_counts[19] == 1
        assert september.day_counts[30] is None


class TestReturningCreatorsTool:
    """Test identify_returning_creators."""

    @pytest.mark.asyncio
    async def test_returning_creators(self):
        await load_sample()
        response = await identify_returning_creators(
            ReturningCreatorsRequest(creator_id="1"), create_mock_context()
        )
        assert response.summary.total_creators == 2
        assert response.summary.returning_creators == 1
        assert response.summary.returning_pct == 50.0
        assert [c.creator_id for c in response.returning_creators] == ["1"]
        assert response.returning_creators[0].records_per_date == {
            "2025-10-06": 1,
            "2025-10-13": 2,
        }
        assert [(t.date, t.count) for t in response.timeline] == [
            ("2025-10-06", 1),
            ("2025-10-13", 2),
        ]
        assert response.insights

    @pytest.mark.asyncio
    async def test_top_limit(self):
        await load_sample()
        response = await identify_returning_creators(
            ReturningCreatorsRequest(top=1), create_mock_context()
        )
        assert len(response.returning_creators) == 1
        assert response.timeline is None


class TestEngagementTools:
    """Test analyze_creator_distribution and analyze_engagement."""

    @pytest.mark.asyncio
    async def test_distribution(self):
        await load_sample()
        response = await analyze_creator_distribution(
            CreatorDistributionRequest(), create_mock_context()
        )
        assert response.total_creators == 4
        assert response.cap == 21
        assert [(b.bucket, b.creator_count) for b in response.buckets] == [
            ("0", 2),
            ("2", 1),
            ("3", 1),
        ]

    @pytest.mark.asyncio
    async def test_distribution_custom_cap(self):
        await load_sample()
        response = await analyze_creator_distribution(
            CreatorDistributionRequest(cap=2), create_mock_context()
        )
        assert [(b.bucket, b.creator_count) for b in response.buckets] == [
            ("0", 2),
            ("2+", 2),
        ]

    @pytest.mark.asyncio
    async def test_engagement_split(self):
        await load_sample()
        response = await analyze_engagement(EngagementRequest(), create_mock_context())
        assert response.total_creators == 4
        assert response.with_records == 2
        assert response.without_records == 2
        assert response.with_records_pct == 50.0
        assert response.without_records_pct == 50.0


class TestDashboardReportTool:
    """Test build_dashboard_report."""

    @pytest.mark.asyncio
    async def test_report(self):
        await load_sample()
        ctx = create_mock_context()
        response = await build_dashboard_report(DashboardReportRequest(now=NOW), ctx)

        assert response.headline.total_users == 4
        assert response.headline.registered_today == 1
        assert response.headline.total_records == 5
        assert response.headline.unique_creators == 2
        assert response.headline.skipped_records == 1
        assert response.failed_views == []
        assert response.date_range == {"start": "2025-09-15", "end": "2025-10-15"}
        assert "creations_monthly_overlay" in response.views
        ctx.report_progress.assert_awaited()

    @pytest.mark.asyncio
    async def test_report_is_served_from_cache(self):
        await load_sample()
        first = await build_dashboard_report(DashboardReportRequest(now=NOW), create_mock_context())
        second = await build_dashboard_report(
            DashboardReportRequest(now=NOW.replace(minute=55)), create_mock_context()
        )
        assert first == second
        assert get_aggregation_cache().get_stats()["hits"] == 1


class TestHealthCheckTool:
    """Test health_check."""

    @pytest.mark.asyncio
    async def test_health_without_data(self):
        response = await health_check(create_mock_context())
        assert response.status == "healthy"
        assert response.data_status == {"snapshot_loaded": False}
        assert "load_activity_data" in response.checks["activity_data"]

    @pytest.mark.asyncio
    async def test_health_reports_skipped_records_as_degraded(self):
        await load_sample()
        response = await health_check(create_mock_context())
        assert response.status == "degraded"
        assert response.data_status["registrations"] == 3
        assert response.data_status["skipped_records"] == 1
        assert response.cache_stats["max_size"] >= 0
