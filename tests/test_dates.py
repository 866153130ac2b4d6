"""Tests for calendar-day helpers."""

from datetime import date, datetime

import pytest

from activity_tracker.dates import (
    AggregationUnit,
    day_bounds,
    enumerate_days,
    minutes_between,
    month_range,
    parse_day,
    range_for_unit,
    to_day_string,
    week_range,
    year_range,
)


class TestParseDay:
    def test_iso_string(self):
        assert parse_day("2025-01-05") == date(2025, 1, 5)

    def test_date_passthrough(self):
        assert parse_day(date(2025, 3, 3)) == date(2025, 3, 3)

    def test_datetime_truncated(self):
        assert parse_day(datetime(2025, 3, 3, 17, 45)) == date(2025, 3, 3)

    def test_malformed_raises(self):
        with pytest.raises(ValueError):
            parse_day("2025/01/05")

    def test_to_day_string_zero_pads(self):
        assert to_day_string(date(2025, 3, 3)) == "2025-03-03"


class TestDayBounds:
    def test_start_is_midnight(self):
        start, _ = day_bounds("2025-06-15")
        assert start == datetime(2025, 6, 15, 0, 0, 0)

    def test_end_is_last_millisecond(self):
        _, end = day_bounds("2025-06-15")
        assert end == datetime(2025, 6, 15, 23, 59, 59, 999000)

    def test_span_is_just_under_a_day(self):
        start, end = day_bounds("2025-06-15")
        assert minutes_between(start, end) == pytest.approx(1440, abs=1e-4)


class TestRanges:
    def test_week_range_wednesday(self):
        assert week_range("2025-01-08") == (date(2025, 1, 6), date(2025, 1, 12))

    def test_week_range_sunday_belongs_to_previous_monday(self):
        assert week_range("2025-01-12") == (date(2025, 1, 6), date(2025, 1, 12))

    def test_week_range_crosses_year(self):
        assert week_range("2025-01-01") == (date(2024, 12, 30), date(2025, 1, 5))

    def test_month_range_leap_february(self):
        assert month_range("2024-02-15") == (date(2024, 2, 1), date(2024, 2, 29))

    def test_month_range_common_february(self):
        assert month_range("2025-02-15") == (date(2025, 2, 1), date(2025, 2, 28))

    def test_month_range_december(self):
        assert month_range("2025-12-31") == (date(2025, 12, 1), date(2025, 12, 31))

    def test_year_range(self):
        assert year_range("2025-06-15") == (date(2025, 1, 1), date(2025, 12, 31))

    def test_range_for_unit_day(self):
        assert range_for_unit("day", "2025-06-15") == (date(2025, 6, 15), date(2025, 6, 15))

    def test_range_for_unit_week(self):
        assert range_for_unit(AggregationUnit.WEEK, "2025-01-08") == week_range("2025-01-08")

    def test_range_for_unit_rejects_unknown(self):
        with pytest.raises(ValueError):
            range_for_unit("fortnight", "2025-01-08")


class TestEnumerateDays:
    def test_crosses_month_boundary(self):
        assert enumerate_days("2025-01-29", "2025-02-02") == [
            date(2025, 1, 29),
            date(2025, 1, 30),
            date(2025, 1, 31),
            date(2025, 2, 1),
            date(2025, 2, 2),
        ]

    def test_single_day(self):
        assert enumerate_days("2025-01-29", "2025-01-29") == [date(2025, 1, 29)]

    def test_inverted_range_is_empty(self):
        assert enumerate_days("2025-02-02", "2025-01-29") == []

    def test_leap_year_length(self):
        assert len(enumerate_days(*year_range("2024-05-01"))) == 366
