"""SQLite database layer for activities, records and settings."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .config import MAX_ACTIVITIES, AppSettings
from .dates import DAY_FMT, DayLike, to_day_string
from .models import DEFAULT_ACTIVITIES, Activity, ActivityRecord

logger = logging.getLogger(__name__)

DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"


def new_id() -> str:
    return uuid.uuid4().hex


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


def initialize_schema(conn: sqlite3.Connection) -> None:
    # No foreign key on activity_id: records outlive deleted activities.
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS activities (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            color TEXT NOT NULL,
            icon TEXT NOT NULL DEFAULT '',
            sort_order INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS activity_records (
            id TEXT PRIMARY KEY,
            activity_id TEXT NOT NULL,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            calendar_day TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_records_calendar_day
            ON activity_records(calendar_day);

        CREATE TABLE IF NOT EXISTS ongoing_activity (
            slot INTEGER PRIMARY KEY CHECK (slot = 1),
            record_id TEXT NOT NULL,
            activity_id TEXT NOT NULL,
            start_time TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );
        """
    )


# ---- activities ----


def fetch_activities(conn: sqlite3.Connection) -> list[Activity]:
    """Return the activity catalog ordered by ``sort_order``."""
    rows = conn.execute(
        """
        SELECT id, name, color, icon, sort_order, created_at
        FROM activities
        ORDER BY sort_order, created_at;
        """
    )
    return [_row_to_activity(row) for row in rows]


def fetch_activity(conn: sqlite3.Connection, activity_id: str) -> Optional[Activity]:
    row = conn.execute(
        """
        SELECT id, name, color, icon, sort_order, created_at
        FROM activities
        WHERE id = ?
        """,
        (activity_id,),
    ).fetchone()
    return _row_to_activity(row) if row is not None else None


def insert_activity(
    conn: sqlite3.Connection,
    name: str,
    color: str,
    icon: str = "",
    *,
    sort_order: Optional[int] = None,
    created_at: Optional[datetime] = None,
    max_activities: int = MAX_ACTIVITIES,
) -> Activity:
    """Create a new activity, refusing once ``max_activities`` exist."""
    count, highest = conn.execute(
        "SELECT COUNT(*), MAX(sort_order) FROM activities"
    ).fetchone()
    if count >= max_activities:
        raise ValueError(f"Activity limit reached ({max_activities}).")
    activity = Activity(
        id=new_id(),
        name=name,
        color=color,
        icon=icon,
        sort_order=sort_order if sort_order is not None else (highest + 1 if count else 0),
        created_at=created_at or datetime.now(),
    )
    conn.execute(
        """
        INSERT INTO activities (id, name, color, icon, sort_order, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            activity.id,
            activity.name,
            activity.color,
            activity.icon,
            activity.sort_order,
            activity.created_at.strftime(DATETIME_FMT),
        ),
    )
    return activity


def update_activity(
    conn: sqlite3.Connection,
    activity_id: str,
    *,
    name: Optional[str] = None,
    color: Optional[str] = None,
    icon: Optional[str] = None,
    sort_order: Optional[int] = None,
) -> None:
    """Update selected fields of a single activity."""
    fields: list[str] = []
    params: list[object] = []

    if name is not None:
        fields.append("name = ?")
        params.append(name)
    if color is not None:
        fields.append("color = ?")
        params.append(color)
    if icon is not None:
        fields.append("icon = ?")
        params.append(icon)
    if sort_order is not None:
        fields.append("sort_order = ?")
        params.append(sort_order)

    if not fields:
        if fetch_activity(conn, activity_id) is None:
            raise ValueError(f"No activity found for id={activity_id}")
        return

    params.append(activity_id)
    cur = conn.execute(
        f"UPDATE activities SET {', '.join(fields)} WHERE id = ?",
        params,
    )
    if cur.rowcount == 0:
        raise ValueError(f"No activity found for id={activity_id}")


def delete_activity(conn: sqlite3.Connection, activity_id: str) -> None:
    cur = conn.execute("DELETE FROM activities WHERE id = ?", (activity_id,))
    if cur.rowcount == 0:
        raise ValueError(f"No activity found for id={activity_id}")


def seed_default_activities(
    conn: sqlite3.Connection, now: Optional[datetime] = None
) -> list[Activity]:
    """Insert the preset activities when the catalog is empty."""
    (count,) = conn.execute("SELECT COUNT(*) FROM activities").fetchone()
    if count:
        return []
    created_at = now or datetime.now()
    seeded = [
        insert_activity(
            conn,
            preset.name,
            preset.color,
            preset.icon,
            sort_order=preset.sort_order,
            created_at=created_at,
        )
        for preset in DEFAULT_ACTIVITIES
    ]
    logger.debug("Seeded %d default activities.", len(seeded))
    return seeded


# ---- records ----


def insert_records(conn: sqlite3.Connection, records: Iterable[ActivityRecord]) -> None:
    """Append closed records; open records belong in ``ongoing_activity``."""
    rows = []
    for record in records:
        if record.end_time is None:
            raise ValueError(f"Record {record.id} is still open and cannot be stored.")
        rows.append(
            (
                record.id,
                record.activity_id,
                record.start_time.strftime(DATETIME_FMT),
                record.end_time.strftime(DATETIME_FMT),
                record.calendar_day.strftime(DAY_FMT),
            )
        )
    conn.executemany(
        """
        INSERT INTO activity_records (
            id,
            activity_id,
            start_time,
            end_time,
            calendar_day
        ) VALUES (?, ?, ?, ?, ?)
        """,
        rows,
    )


def fetch_records_for_day(conn: sqlite3.Connection, day: DayLike) -> list[ActivityRecord]:
    return fetch_records_for_range(conn, day, day)


def fetch_records_for_range(
    conn: sqlite3.Connection, start: DayLike, end: DayLike
) -> list[ActivityRecord]:
    """Fetch records whose calendar day lies within ``start``..``end`` inclusive."""
    rows = conn.execute(
        """
        SELECT id, activity_id, start_time, end_time, calendar_day
        FROM activity_records
        WHERE calendar_day >= ? AND calendar_day <= ?
        ORDER BY start_time;
        """,
        (to_day_string(start), to_day_string(end)),
    )
    return [_row_to_record(row) for row in rows]


def delete_record(conn: sqlite3.Connection, record_id: str) -> None:
    cur = conn.execute("DELETE FROM activity_records WHERE id = ?", (record_id,))
    if cur.rowcount == 0:
        raise ValueError(f"No record found for id={record_id}")


def clear_records(conn: sqlite3.Connection) -> None:
    """Delete every record, including the one in progress."""
    conn.execute("DELETE FROM activity_records")
    clear_ongoing(conn)


# ---- open record ----


def fetch_ongoing(conn: sqlite3.Connection) -> Optional[ActivityRecord]:
    row = conn.execute(
        "SELECT record_id, activity_id, start_time FROM ongoing_activity WHERE slot = 1"
    ).fetchone()
    if row is None:
        return None
    start = datetime.strptime(row["start_time"], DATETIME_FMT)
    return ActivityRecord(
        id=row["record_id"],
        activity_id=row["activity_id"],
        start_time=start,
        end_time=None,
        calendar_day=start.date(),
    )


def set_ongoing(conn: sqlite3.Connection, record: ActivityRecord) -> None:
    if record.end_time is not None:
        raise ValueError(f"Record {record.id} is already closed.")
    conn.execute(
        """
        INSERT INTO ongoing_activity (slot, record_id, activity_id, start_time)
        VALUES (1, ?, ?, ?)
        ON CONFLICT(slot) DO UPDATE SET
            record_id = excluded.record_id,
            activity_id = excluded.activity_id,
            start_time = excluded.start_time
        """,
        (record.id, record.activity_id, record.start_time.strftime(DATETIME_FMT)),
    )


def clear_ongoing(conn: sqlite3.Connection) -> None:
    conn.execute("DELETE FROM ongoing_activity")


# ---- settings ----


def load_settings(conn: sqlite3.Connection) -> AppSettings:
    row = conn.execute(
        "SELECT value FROM settings WHERE key = 'app_settings'"
    ).fetchone()
    if row is None:
        return AppSettings()
    return AppSettings.from_dict(json.loads(row["value"]))


def save_settings(conn: sqlite3.Connection, settings: AppSettings) -> None:
    conn.execute(
        """
        INSERT INTO settings (key, value) VALUES ('app_settings', ?)
        ON CONFLICT(key) DO UPDATE SET value = excluded.value
        """,
        (json.dumps(settings.to_dict()),),
    )


def _row_to_activity(row: sqlite3.Row) -> Activity:
    return Activity(
        id=row["id"],
        name=row["name"],
        color=row["color"],
        icon=row["icon"],
        sort_order=row["sort_order"],
        created_at=datetime.strptime(row["created_at"], DATETIME_FMT),
    )


def _row_to_record(row: sqlite3.Row) -> ActivityRecord:
    return ActivityRecord(
        id=row["id"],
        activity_id=row["activity_id"],
        start_time=datetime.strptime(row["start_time"], DATETIME_FMT),
        end_time=datetime.strptime(row["end_time"], DATETIME_FMT),
        calendar_day=date.fromisoformat(row["calendar_day"]),
    )
