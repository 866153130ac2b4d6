"""Tests for composing storage with the engine and console output."""

from datetime import date, datetime

import pytest

from activity_tracker.db import database_connection, insert_activity, insert_records
from activity_tracker.models import ActivityRecord, EntryKind
from activity_tracker.recording import ActivityRecorder
from activity_tracker.reporting import (
    SummaryPrinter,
    day_breakdown,
    day_timeline,
    format_clock,
    format_minutes,
    range_breakdown,
    records_for_range,
)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "report.sqlite3"


@pytest.fixture
def conn(db_path):
    with database_connection(db_path) as connection:
        yield connection


@pytest.fixture
def study(conn):
    return insert_activity(conn, "Study", "#6366f1")


def stored(record_id, activity_id, start, end):
    return ActivityRecord(record_id, activity_id, start, end, start.date())


class TestFormatting:
    def test_minutes_only(self):
        assert format_minutes(30) == "30m"

    def test_hours_only(self):
        assert format_minutes(120) == "2h"

    def test_hours_and_minutes(self):
        assert format_minutes(150) == "2h 30m"

    def test_rounds_fractional_minutes(self):
        assert format_minutes(59.6) == "1h"

    def test_clock(self):
        assert format_clock(545) == "09:05"
        assert format_clock(1440) == "24:00"


class TestRecordsForRange:
    def test_includes_open_record_split_per_day(self, conn, study):
        ActivityRecorder(conn, lambda: datetime(2025, 3, 1, 22, 0)).start(study.id)
        now = datetime(2025, 3, 2, 2, 0)
        records = records_for_range(conn, "2025-03-01", "2025-03-02", now)
        assert [(r.calendar_day, r.is_open) for r in records] == [
            (date(2025, 3, 1), False),
            (date(2025, 3, 2), True),
        ]

    def test_open_pieces_outside_range_dropped(self, conn, study):
        ActivityRecorder(conn, lambda: datetime(2025, 3, 1, 22, 0)).start(study.id)
        now = datetime(2025, 3, 2, 2, 0)
        records = records_for_range(conn, "2025-03-02", "2025-03-02", now)
        assert len(records) == 1
        assert records[0].start_time == datetime(2025, 3, 2, 0, 0)


class TestBreakdowns:
    def test_day_breakdown_counts_open_record(self, conn, study):
        ActivityRecorder(conn, lambda: datetime(2025, 3, 1, 10, 0)).start(study.id)
        entries = day_breakdown(conn, "2025-03-01", now=datetime(2025, 3, 1, 12, 0))
        assert entries[0].activity_id == study.id
        assert entries[0].total_minutes == pytest.approx(120)
        assert entries[1].kind is EntryKind.IDLE
        assert entries[1].total_minutes == pytest.approx(600)

    def test_week_breakdown(self, conn, study):
        insert_records(
            conn,
            [stored("r1", study.id, datetime(2025, 1, 7, 9), datetime(2025, 1, 7, 11))],
        )
        (start, end), entries = range_breakdown(
            conn, "week", "2025-01-08", now=datetime(2025, 2, 1)
        )
        assert (start, end) == (date(2025, 1, 6), date(2025, 1, 12))
        assert entries[0].total_minutes == pytest.approx(120)
        assert sum(entry.total_minutes for entry in entries) == pytest.approx(7 * 1440)

    def test_timeline_for_today(self, conn, study):
        insert_records(
            conn,
            [stored("r1", study.id, datetime(2025, 3, 1, 8), datetime(2025, 3, 1, 9))],
        )
        blocks = day_timeline(conn, "2025-03-01", now=datetime(2025, 3, 1, 12))
        assert [b.kind for b in blocks] == [
            EntryKind.IDLE,
            EntryKind.ACTIVITY,
            EntryKind.IDLE,
            EntryKind.FUTURE,
        ]


class TestSummaryPrinter:
    def test_prints_breakdown(self, db_path, conn, study, capsys):
        insert_records(
            conn,
            [stored("r1", study.id, datetime(2025, 1, 7, 9), datetime(2025, 1, 7, 11))],
        )
        SummaryPrinter(db_path).print_breakdown("2025-01-07", now=datetime(2025, 2, 1))
        out = capsys.readouterr().out
        assert "Summary for 2025-01-07" in out
        assert "Study" in out
        assert "2h" in out
        assert "Idle" in out

    def test_prints_no_data_for_future_day(self, db_path, capsys):
        SummaryPrinter(db_path).print_breakdown("2025-01-07", now=datetime(2025, 1, 1))
        assert "No data for the selected range." in capsys.readouterr().out

    def test_prints_timeline(self, db_path, conn, study, capsys):
        insert_records(
            conn,
            [stored("r1", study.id, datetime(2025, 1, 7, 9), datetime(2025, 1, 7, 11))],
        )
        SummaryPrinter(db_path).print_timeline("2025-01-07", now=datetime(2025, 2, 1))
        out = capsys.readouterr().out
        assert "09:00-11:00" in out
        assert "00:00-09:00" in out
