"""Per-day and per-range duration breakdowns with idle time filled in."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Iterable, Mapping, Optional, Union

from .dates import (
    MINUTES_PER_DAY,
    DayLike,
    day_bounds,
    enumerate_days,
    minutes_between,
)
from .models import (
    IDLE_COLOR,
    IDLE_NAME,
    Activity,
    ActivityRecord,
    AggregatedEntry,
    EntryKind,
    build_catalog,
    display_identity,
)

Catalog = Union[Iterable[Activity], Mapping[str, Activity]]


def aggregate_day(
    records: Iterable[ActivityRecord],
    catalog: Catalog,
    day: DayLike,
    now: Optional[datetime] = None,
) -> list[AggregatedEntry]:
    """Break down one calendar day by activity.

    Every record is clipped to the day's bounds; open records end at ``now``.
    Elapsed time not covered by any record is reported as a trailing idle
    entry, so the minutes always add up to the full day (past days) or to
    the time elapsed since midnight (today).
    """
    now = now or datetime.now()
    start, end = day_bounds(day)

    totals: defaultdict[str, float] = defaultdict(float)
    for record in records:
        clipped_start = max(record.start_time, start)
        if record.end_time is None:
            clipped_end = min(now, end)
        else:
            clipped_end = min(record.end_time, end)
        if clipped_end <= clipped_start:
            continue
        totals[record.activity_id] += minutes_between(clipped_start, clipped_end)

    if end > now:
        available = max(0.0, minutes_between(start, now))
    else:
        available = float(MINUTES_PER_DAY)
    idle_minutes = max(0.0, available - sum(totals.values()))

    return _build_entries(totals, idle_minutes, build_catalog(catalog))


def aggregate_range(
    records: Iterable[ActivityRecord],
    catalog: Catalog,
    start_day: DayLike,
    end_day: DayLike,
    now: Optional[datetime] = None,
) -> list[AggregatedEntry]:
    """Merge :func:`aggregate_day` results for every day in the range.

    Records are partitioned by ``calendar_day``; days without records still
    accrue idle time. Percentages are recomputed from the merged totals.
    An inverted range yields an empty list.
    """
    now = now or datetime.now()
    lookup = build_catalog(catalog)

    by_day: defaultdict[date, list[ActivityRecord]] = defaultdict(list)
    for record in records:
        by_day[record.calendar_day].append(record)

    totals: defaultdict[str, float] = defaultdict(float)
    idle_minutes = 0.0
    for day in enumerate_days(start_day, end_day):
        for entry in aggregate_day(by_day.get(day, []), lookup, day, now):
            if entry.kind is EntryKind.IDLE:
                idle_minutes += entry.total_minutes
            else:
                totals[entry.activity_id] += entry.total_minutes

    return _build_entries(totals, idle_minutes, lookup)


def _build_entries(
    totals: Mapping[str, float],
    idle_minutes: float,
    catalog: dict[str, Activity],
) -> list[AggregatedEntry]:
    grand_total = sum(totals.values()) + idle_minutes

    def percent(minutes: float) -> float:
        return minutes / grand_total * 100.0 if grand_total > 0 else 0.0

    entries: list[AggregatedEntry] = []
    for activity_id, minutes in totals.items():
        name, color = display_identity(activity_id, catalog)
        entries.append(
            AggregatedEntry(
                kind=EntryKind.ACTIVITY,
                activity_id=activity_id,
                name=name,
                color=color,
                total_minutes=minutes,
                percentage=percent(minutes),
            )
        )
    entries.sort(key=lambda item: item.total_minutes, reverse=True)

    if idle_minutes > 0:
        entries.append(
            AggregatedEntry(
                kind=EntryKind.IDLE,
                activity_id=None,
                name=IDLE_NAME,
                color=IDLE_COLOR,
                total_minutes=idle_minutes,
                percentage=percent(idle_minutes),
            )
        )
    return entries
