"""Compose storage with the aggregation engine and render console output."""

from __future__ import annotations

import dataclasses
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from .aggregation import aggregate_day, aggregate_range
from .dates import AggregationUnit, DayLike, parse_day, range_for_unit, to_day_string
from .db import (
    database_connection,
    fetch_activities,
    fetch_ongoing,
    fetch_records_for_range,
)
from .models import Activity, ActivityRecord, AggregatedEntry, TimeBlock
from .recording import split_interval
from .timeline import generate_time_blocks


def load_catalog(conn: sqlite3.Connection) -> dict[str, Activity]:
    return {activity.id: activity for activity in fetch_activities(conn)}


def records_for_range(
    conn: sqlite3.Connection, start: DayLike, end: DayLike, now: datetime
) -> list[ActivityRecord]:
    """Stored records in the range plus the in-progress one, split per day.

    The last piece of the in-progress record stays open so the engine
    resolves it against ``now``.
    """
    first, last = parse_day(start), parse_day(end)
    records = fetch_records_for_range(conn, first, last)
    ongoing = fetch_ongoing(conn)
    if ongoing is not None:
        pieces = split_interval(
            ongoing.activity_id, ongoing.start_time, max(now, ongoing.start_time)
        )
        pieces[-1] = dataclasses.replace(pieces[-1], id=ongoing.id, end_time=None)
        records.extend(piece for piece in pieces if first <= piece.calendar_day <= last)
    return records


def day_breakdown(
    conn: sqlite3.Connection, day: DayLike, now: Optional[datetime] = None
) -> list[AggregatedEntry]:
    now = now or datetime.now()
    records = records_for_range(conn, day, day, now)
    return aggregate_day(records, load_catalog(conn), day, now)


def range_breakdown(
    conn: sqlite3.Connection,
    unit: AggregationUnit | str,
    day: DayLike,
    now: Optional[datetime] = None,
) -> tuple[tuple[date, date], list[AggregatedEntry]]:
    """Breakdown for the day/week/month/year containing ``day``."""
    now = now or datetime.now()
    start, end = range_for_unit(unit, day)
    records = records_for_range(conn, start, end, now)
    return (start, end), aggregate_range(records, load_catalog(conn), start, end, now)


def day_timeline(
    conn: sqlite3.Connection, day: DayLike, now: Optional[datetime] = None
) -> list[TimeBlock]:
    now = now or datetime.now()
    records = records_for_range(conn, day, day, now)
    return generate_time_blocks(records, load_catalog(conn), day, now)


class SummaryPrinter:
    """Render human-readable summaries in the console."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def print_breakdown(
        self,
        day: DayLike,
        unit: AggregationUnit | str = AggregationUnit.DAY,
        now: Optional[datetime] = None,
    ) -> None:
        with database_connection(self.db_path) as conn:
            (start, end), entries = range_breakdown(conn, unit, day, now)
        if not entries:
            print("No data for the selected range.")
            return

        if start == end:
            print(f"Summary for {to_day_string(start)}")
        else:
            print(f"Summary for {to_day_string(start)} .. {to_day_string(end)}")
        print("-" * 48)
        for entry in entries:
            print(
                f"  {entry.name[:24]:<24} {format_minutes(entry.total_minutes):>10}"
                f" {entry.percentage:6.1f}%"
            )

    def print_timeline(self, day: DayLike, now: Optional[datetime] = None) -> None:
        with database_connection(self.db_path) as conn:
            blocks = day_timeline(conn, day, now)

        print(f"Timeline for {to_day_string(day)}")
        print("-" * 48)
        for block in blocks:
            span = f"{format_clock(block.start_minute)}-{format_clock(block.end_minute)}"
            print(f"  {span}  {block.name[:24]:<24} {format_minutes(block.duration_minutes):>10}")


def format_minutes(minutes: float) -> str:
    """Format a duration as ``"2h 30m"``, ``"2h"`` or ``"30m"``."""
    total = int(round(minutes))
    hours, mins = divmod(total, 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_clock(minute_of_day: float) -> str:
    total = int(round(minute_of_day))
    hours, mins = divmod(total, 60)
    return f"{hours:02d}:{mins:02d}"
