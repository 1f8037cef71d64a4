"""Tests for the weekday and hourly rolling comparisons."""

from datetime import datetime
from decimal import Decimal

import pytest

from activity_audit.analyses.rolling import (
    HourPoint,
    WeekdayPoint,
    analyze_hourly_activity,
    analyze_weekday_activity,
)
from activity_audit.foundation.record_contract import ActivityRecord

# Wednesday; the current week starts on Sunday 2025-10-12
NOW = datetime(2025, 10, 15, 12, 0)


def records_at(*timestamps: datetime) -> list[ActivityRecord]:
    return [ActivityRecord("1", "Ng", ts) for ts in timestamps]


def weekly_records():
    return records_at(
        datetime(2025, 10, 13, 9),  # this week, Monday
        datetime(2025, 10, 15, 8),  # this week, Wednesday (today)
        datetime(2025, 10, 6, 9),  # 1 week ago, Monday
        datetime(2025, 10, 6, 17),  # 1 week ago, Monday
        datetime(2025, 9, 29, 9),  # 2 weeks ago, Monday
        datetime(2025, 9, 24, 9),  # 3 weeks ago, Wednesday
    )


class TestWeekdayPoint:
    """Test WeekdayPoint validation."""

    def test_negative_average_rejected(self):
        with pytest.raises(ValueError, match="Average cannot be negative"):
            WeekdayPoint("Sunday", Decimal("-1"), 0, (), False)

    def test_as_dict_flattens_past_weeks(self):
        point = WeekdayPoint("Monday", Decimal("1.50"), None, (2, 0), False)
        payload = point.as_dict()
        assert payload["short_day"] == "Mon"
        assert payload["this_week"] is None
        assert payload["past_week_1"] == 2
        assert payload["past_week_2"] == 0


class TestAnalyzeWeekdayActivity:
    """Test analyze_weekday_activity."""

    def test_future_weekdays_are_none_and_past_ones_zero(self):
        """Weekdays after today are None; earlier empty weekdays are 0."""
        result = analyze_weekday_activity(weekly_records(), NOW)
        assert [p.this_week for p in result.points] == [0, 1, 0, 1, None, None, None]
        assert result.current_day_index == 3
        assert result.points[3].is_today
        assert result.current_week_start == "2025-10-12"

    def test_average_over_historical_weeks_with_records(self):
        result = analyze_weekday_activity(weekly_records(), NOW)
        assert result.historical_week_count == 3
        assert result.points[1].average == Decimal("1.00")  # Monday: 3 / 3
        assert result.points[3].average == Decimal("0.33")  # Wednesday: 1 / 3
        assert result.points[0].average == Decimal("0.00")

    def test_past_weeks_individual_series(self):
        result = analyze_weekday_activity(weekly_records(), NOW, past_weeks=4)
        assert result.points[1].past_weeks == (2, 1, 0, 0)
        assert result.points[3].past_weeks == (0, 0, 1, 0)

    def test_totals_sum_emitted_values(self):
        result = analyze_weekday_activity(weekly_records(), NOW)
        totals = result.totals
        assert totals["average"] == Decimal("1.33")
        assert totals["this_week"] == 2
        assert totals["past_week_1"] == 2
        assert totals["past_week_2"] == 1
        assert totals["past_week_3"] == 1
        assert totals["past_week_4"] == 0

    def test_averages_use_two_decimal_places(self):
        records = records_at(
            datetime(2025, 9, 22, 9),  # Monday, week of 09-21
            datetime(2025, 9, 29, 9),  # Monday, week of 09-28
            datetime(2025, 10, 3, 9),  # Friday, week of 09-28
            datetime(2025, 10, 4, 9),  # Saturday, week of 09-28
        )
        result = analyze_weekday_activity(records, NOW)
        assert result.historical_week_count == 2
        assert result.points[1].average == Decimal("1.00")
        assert result.points[5].average == Decimal("0.50")

    def test_two_thirds_rounds_to_067(self):
        records = records_at(
            datetime(2025, 9, 15, 9),  # Monday
            datetime(2025, 9, 22, 9),  # Monday
            datetime(2025, 10, 4, 9),  # Saturday
        )
        result = analyze_weekday_activity(records, NOW)
        assert result.historical_week_count == 3
        assert result.points[1].average == Decimal("0.67")

    def test_empty_input(self):
        """No records: averages 0, no divide-by-zero, None after today."""
        result = analyze_weekday_activity([], NOW)
        assert result.historical_week_count == 0
        assert all(p.average == Decimal("0.00") for p in result.points)
        assert [p.this_week for p in result.points] == [0, 0, 0, 0, None, None, None]
        assert result.totals["this_week"] == 0

    def test_saturday_has_no_future_days(self):
        result = analyze_weekday_activity([], datetime(2025, 10, 18, 23, 0))
        assert None not in [p.this_week for p in result.points]

    def test_sunday_only_today_counts(self):
        result = analyze_weekday_activity([], datetime(2025, 10, 12, 0, 5))
        assert [p.this_week for p in result.points] == [0] + [None] * 6

    def test_negative_past_weeks_rejected(self):
        with pytest.raises(ValueError, match="past_weeks cannot be negative"):
            analyze_weekday_activity([], NOW, past_weeks=-1)

    def test_as_dict_contains_totals(self):
        payload = analyze_weekday_activity(weekly_records(), NOW).as_dict()
        assert len(payload["points"]) == 7
        assert payload["totals"]["average"] == pytest.approx(1.33)
        assert payload["points"][6]["this_week"] is None


class TestAnalyzeHourlyActivity:
    """Test analyze_hourly_activity."""

    def hourly_records(self):
        return records_at(
            datetime(2025, 10, 15, 9, 0),
            datetime(2025, 10, 15, 9, 45),
            datetime(2025, 10, 15, 10, 15),
            datetime(2025, 10, 14, 9, 0),
            datetime(2025, 10, 13, 9, 0),
            datetime(2025, 10, 13, 9, 30),
            datetime(2025, 10, 13, 22, 0),
        )

    def test_future_hours_none_past_hours_zero(self):
        result = analyze_hourly_activity(self.hourly_records(), datetime(2025, 10, 15, 10, 30))
        today = [p.today for p in result.points]
        assert today[:9] == [0] * 9
        assert today[9] == 2
        assert today[10] == 1
        assert today[11:] == [None] * 13
        assert result.points[10].is_current_hour

    def test_average_over_historical_days(self):
        result = analyze_hourly_activity(self.hourly_records(), datetime(2025, 10, 15, 10, 30))
        assert result.historical_day_count == 2
        assert result.points[9].average == Decimal("1.50")
        assert result.points[22].average == Decimal("0.50")
        assert result.points[0].average == Decimal("0.00")

    def test_totals(self):
        result = analyze_hourly_activity(self.hourly_records(), datetime(2025, 10, 15, 10, 30))
        assert result.totals == {"average": Decimal("2.00"), "today": 3}

    def test_empty_input(self):
        result = analyze_hourly_activity([], datetime(2025, 10, 15, 0, 10))
        assert result.historical_day_count == 0
        assert [p.today for p in result.points] == [0] + [None] * 23
        assert all(p.average == Decimal("0.00") for p in result.points)

    def test_hour_point_labels(self):
        assert HourPoint(13, Decimal("0"), None, False).as_dict()["display_hour"] == "1 PM"
