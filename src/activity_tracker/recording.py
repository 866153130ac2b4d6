"""Start/stop the in-progress activity and persist it one day at a time."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta
from typing import Callable, Optional

from .dates import day_end, day_start
from .db import (
    clear_ongoing,
    fetch_activity,
    fetch_ongoing,
    insert_records,
    new_id,
    set_ongoing,
)
from .models import ActivityRecord

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def split_interval(
    activity_id: str,
    start: datetime,
    end: datetime,
    id_factory: Callable[[], str] = new_id,
) -> list[ActivityRecord]:
    """Materialize ``[start, end]`` as one record per calendar day it touches.

    The first piece keeps the true start and the last the true end; every
    midnight in between closes a piece at 23:59:59.999 and opens the next
    at 00:00:00.000.
    """
    if end < start:
        raise ValueError("end must not be before start")

    pieces: list[ActivityRecord] = []
    current = start
    while current.date() < end.date():
        pieces.append(
            ActivityRecord(
                id=id_factory(),
                activity_id=activity_id,
                start_time=current,
                end_time=day_end(current),
                calendar_day=current.date(),
            )
        )
        current = day_start(current.date() + timedelta(days=1))
    pieces.append(
        ActivityRecord(
            id=id_factory(),
            activity_id=activity_id,
            start_time=current,
            end_time=end,
            calendar_day=current.date(),
        )
    )
    return pieces


class ActivityRecorder:
    """Owns the single open record and turns it into stored records on stop."""

    def __init__(self, conn: sqlite3.Connection, clock: Clock = datetime.now) -> None:
        self._conn = conn
        self._clock = clock

    def ongoing(self) -> Optional[ActivityRecord]:
        return fetch_ongoing(self._conn)

    def start(self, activity_id: str) -> ActivityRecord:
        """Begin ``activity_id``, closing whatever was running before."""
        if fetch_activity(self._conn, activity_id) is None:
            raise ValueError(f"No activity found for id={activity_id}")
        self.stop()
        now = self._clock()
        record = ActivityRecord(
            id=new_id(),
            activity_id=activity_id,
            start_time=now,
            end_time=None,
            calendar_day=now.date(),
        )
        set_ongoing(self._conn, record)
        logger.info("Started activity %s at %s", activity_id, now.isoformat())
        return record

    def stop(self) -> Optional[list[ActivityRecord]]:
        """Close the open record, returning the stored per-day pieces."""
        current = fetch_ongoing(self._conn)
        if current is None:
            return None
        now = max(self._clock(), current.start_time)
        pieces = split_interval(current.activity_id, current.start_time, now)
        if len(pieces) > 1:
            logger.debug(
                "Split activity %s across %d days.", current.activity_id, len(pieces)
            )
        self._conn.execute("BEGIN")
        try:
            insert_records(self._conn, pieces)
            clear_ongoing(self._conn)
        except Exception:
            self._conn.execute("ROLLBACK")
            raise
        self._conn.execute("COMMIT")
        logger.info(
            "Stopped activity %s after %.1f minutes.",
            current.activity_id,
            (now - current.start_time).total_seconds() / 60.0,
        )
        return pieces
