"""Partition one calendar day into contiguous blocks for a 24-hour dial."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from .aggregation import Catalog
from .dates import MINUTES_PER_DAY, DayLike, day_bounds, minutes_between
from .models import (
    FUTURE_COLOR,
    FUTURE_NAME,
    IDLE_COLOR,
    IDLE_NAME,
    ActivityRecord,
    EntryKind,
    TimeBlock,
    build_catalog,
    display_identity,
)

logger = logging.getLogger(__name__)

# Gaps at or below this many minutes are absorbed instead of becoming idle blocks.
IDLE_GAP_TOLERANCE_MINUTES = 0.5

_ONE_MS = timedelta(milliseconds=1)


class DayState(str, Enum):
    PAST = "past"
    TODAY = "today"
    FUTURE = "future"


def classify_day(day: DayLike, now: datetime) -> DayState:
    start, end = day_bounds(day)
    if now < start:
        return DayState.FUTURE
    if end < now:
        return DayState.PAST
    return DayState.TODAY


def generate_time_blocks(
    records: Iterable[ActivityRecord],
    catalog: Catalog,
    day: DayLike,
    now: Optional[datetime] = None,
) -> list[TimeBlock]:
    """Build the ordered block sequence covering minutes 0..1440 of ``day``.

    Uncovered elapsed time becomes idle blocks, consecutive records of the
    same activity are merged, and on the current day everything after
    ``now`` is a single trailing future block. A day after ``now`` is one
    future block.
    """
    now = now or datetime.now()
    state = classify_day(day, now)
    if state is DayState.FUTURE:
        return [_future_block(0.0)]

    start, end = day_bounds(day)
    lookup = build_catalog(catalog)
    if state is DayState.PAST:
        effective_end = float(MINUTES_PER_DAY)
    else:
        effective_end = min(float(MINUTES_PER_DAY), max(0.0, minutes_between(start, now)))

    blocks: list[TimeBlock] = []
    cursor = 0.0
    for record in sorted(records, key=lambda item: item.start_time):
        record_start = max(record.start_time, start)
        if record.end_time is None:
            record_end = now if state is DayState.TODAY else end
        else:
            record_end = min(record.end_time, end + _ONE_MS)
        if record_end <= record_start:
            continue

        start_minute = max(0.0, minutes_between(start, record_start))
        end_minute = min(effective_end, minutes_between(start, record_end))
        if end_minute <= max(start_minute, cursor):
            logger.debug("Skipping record %s: nothing left after clipping.", record.id)
            continue

        if start_minute > cursor + IDLE_GAP_TOLERANCE_MINUTES:
            blocks.append(_idle_block(cursor, start_minute))
            cursor = start_minute

        previous = blocks[-1] if blocks else None
        if (
            previous is not None
            and previous.kind is EntryKind.ACTIVITY
            and previous.activity_id == record.activity_id
        ):
            blocks[-1] = _with_end(previous, end_minute)
        else:
            name, color = display_identity(record.activity_id, lookup)
            blocks.append(
                TimeBlock(
                    kind=EntryKind.ACTIVITY,
                    activity_id=record.activity_id,
                    name=name,
                    color=color,
                    start_minute=cursor,
                    end_minute=end_minute,
                )
            )
        cursor = end_minute

    if cursor < effective_end:
        if not blocks or cursor < effective_end - IDLE_GAP_TOLERANCE_MINUTES:
            blocks.append(_idle_block(cursor, effective_end))
        else:
            blocks[-1] = _with_end(blocks[-1], effective_end)
        cursor = effective_end

    if state is DayState.TODAY and cursor < MINUTES_PER_DAY:
        blocks.append(_future_block(cursor))
    return blocks


def _idle_block(start_minute: float, end_minute: float) -> TimeBlock:
    return TimeBlock(
        kind=EntryKind.IDLE,
        activity_id=None,
        name=IDLE_NAME,
        color=IDLE_COLOR,
        start_minute=start_minute,
        end_minute=end_minute,
    )


def _future_block(start_minute: float) -> TimeBlock:
    return TimeBlock(
        kind=EntryKind.FUTURE,
        activity_id=None,
        name=FUTURE_NAME,
        color=FUTURE_COLOR,
        start_minute=start_minute,
        end_minute=float(MINUTES_PER_DAY),
    )


def _with_end(block: TimeBlock, end_minute: float) -> TimeBlock:
    return TimeBlock(
        kind=block.kind,
        activity_id=block.activity_id,
        name=block.name,
        color=block.color,
        start_minute=block.start_minute,
        end_minute=end_minute,
    )
