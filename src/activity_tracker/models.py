"""Domain models for recorded activity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Mapping, Optional


IDLE_NAME = "Idle"
IDLE_COLOR = "#9ca3af"
FUTURE_NAME = "Remaining"
FUTURE_COLOR = "#e5e7eb"
UNKNOWN_NAME = "Unknown"
UNKNOWN_COLOR = "#999999"


class EntryKind(str, Enum):
    """Distinguishes user activities from synthesized idle/future time."""

    ACTIVITY = "activity"
    IDLE = "idle"
    FUTURE = "future"


@dataclass(frozen=True, slots=True)
class Activity:
    """A user-defined activity category."""

    id: str
    name: str
    color: str
    icon: str
    sort_order: int
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ActivityRecord:
    """A contiguous interval spent on one activity.

    ``end_time`` is ``None`` while the activity is still in progress.
    ``calendar_day`` is the local date the interval started on.
    """

    id: str
    activity_id: str
    start_time: datetime
    end_time: Optional[datetime]
    calendar_day: date

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()


@dataclass(frozen=True, slots=True)
class AggregatedEntry:
    kind: EntryKind
    activity_id: Optional[str]
    name: str
    color: str
    total_minutes: float
    percentage: float


@dataclass(frozen=True, slots=True)
class TimeBlock:
    """One slice of the 24-hour timeline, in minutes since local midnight."""

    kind: EntryKind
    activity_id: Optional[str]
    name: str
    color: str
    start_minute: float
    end_minute: float

    @property
    def duration_minutes(self) -> float:
        return self.end_minute - self.start_minute


@dataclass(frozen=True, slots=True)
class ActivityPreset:
    name: str
    color: str
    icon: str
    sort_order: int


DEFAULT_ACTIVITIES: tuple[ActivityPreset, ...] = (
    ActivityPreset("Study", "#6366f1", "\U0001F4DA", 0),
    ActivityPreset("Research", "#8b5cf6", "\U0001F52C", 1),
    ActivityPreset("Exercise", "#10b981", "\U0001F3C3", 2),
    ActivityPreset("Work", "#f59e0b", "\U0001F4BC", 3),
    ActivityPreset("Reading", "#3b82f6", "\U0001F4D6", 4),
    ActivityPreset("Break", "#ec4899", "☕", 5),
)


def build_catalog(
    activities: Iterable[Activity] | Mapping[str, Activity],
) -> dict[str, Activity]:
    """Index activities by id; mappings are accepted as-is."""
    if isinstance(activities, Mapping):
        return dict(activities)
    return {activity.id: activity for activity in activities}


def display_identity(
    activity_id: str, catalog: dict[str, Activity]
) -> tuple[str, str]:
    """Return the (name, color) pair for an activity id, or the unknown placeholder."""
    activity = catalog.get(activity_id)
    if activity is None:
        return UNKNOWN_NAME, UNKNOWN_COLOR
    return activity.name, activity.color
