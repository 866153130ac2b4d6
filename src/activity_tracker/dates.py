"""Calendar-day helpers: day boundaries and week/month/year ranges."""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Union

DAY_FMT = "%Y-%m-%d"
MINUTES_PER_DAY = 24 * 60

DayLike = Union[date, str]

_END_OF_DAY = time(23, 59, 59, 999000)


class AggregationUnit(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


def parse_day(value: DayLike) -> date:
    """Coerce a ``date``/``datetime`` or ``YYYY-MM-DD`` string to a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), DAY_FMT).date()
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid day {value!r}; expected YYYY-MM-DD") from exc


def to_day_string(day: DayLike) -> str:
    return parse_day(day).strftime(DAY_FMT)


def day_start(day: DayLike) -> datetime:
    return datetime.combine(parse_day(day), time.min)


def day_end(day: DayLike) -> datetime:
    """Last representable millisecond of the day (23:59:59.999)."""
    return datetime.combine(parse_day(day), _END_OF_DAY)


def day_bounds(day: DayLike) -> tuple[datetime, datetime]:
    return day_start(day), day_end(day)


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0


def week_range(day: DayLike) -> tuple[date, date]:
    """Monday through Sunday of the ISO week containing ``day``."""
    target = parse_day(day)
    monday = target - timedelta(days=target.weekday())
    return monday, monday + timedelta(days=6)


def month_range(day: DayLike) -> tuple[date, date]:
    target = parse_day(day)
    last = calendar.monthrange(target.year, target.month)[1]
    return target.replace(day=1), target.replace(day=last)


def year_range(day: DayLike) -> tuple[date, date]:
    target = parse_day(day)
    return date(target.year, 1, 1), date(target.year, 12, 31)


def range_for_unit(unit: AggregationUnit | str, day: DayLike) -> tuple[date, date]:
    unit = AggregationUnit(unit)
    if unit is AggregationUnit.WEEK:
        return week_range(day)
    if unit is AggregationUnit.MONTH:
        return month_range(day)
    if unit is AggregationUnit.YEAR:
        return year_range(day)
    target = parse_day(day)
    return target, target


def enumerate_days(start: DayLike, end: DayLike) -> list[date]:
    """Every day from ``start`` to ``end`` inclusive; empty when ``start > end``."""
    current = parse_day(start)
    last = parse_day(end)
    days: list[date] = []
    while current <= last:
        days.append(current)
        current += timedelta(days=1)
    return days
