"""Timezone and calendar arithmetic helpers."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Iterator, Optional

import structlog
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

LOGGER = structlog.get_logger(__name__)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


@lru_cache(maxsize=32)
def get_zone(timezone_name: str) -> ZoneInfo:
    """Return a ZoneInfo instance, defaulting to UTC on failure."""
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        LOGGER.warning("timezone.unknown", timezone=timezone_name, fallback="UTC")
        return ZoneInfo("UTC")


def now_in_timezone(timezone_name: str) -> datetime:
    """Current datetime in the configured timezone."""
    return datetime.now(tz=get_zone(timezone_name))


def to_timezone(value: datetime, timezone_name: str) -> datetime:
    """Express ``value`` in the target timezone; naive values are taken as already local."""
    zone = get_zone(timezone_name)
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def first_of_month(value: date) -> date:
    return value.replace(day=1)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def shift_month(value: date, months: int) -> date:
    """
    Move ``value`` by whole months, clamping the day to the target month's length.

    January 31 shifted by one month lands on February 28 (29 in leap years),
    never in March.
    """
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(value.day, days_in_month(year, month)))


def same_month(a: date, b: date) -> bool:
    return a.year == b.year and a.month == b.month


def sunday_index(value: date) -> int:
    """Weekday index with Sunday as 0, matching a Sunday-first grid."""
    return (value.weekday() + 1) % 7


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date from ``start`` through ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def short_date(value: date) -> str:
    """``Jun 10`` style label."""
    return f"{value:%b} {value.day}"


def clock_label(hour: int, minute: int = 0) -> str:
    """12-hour clock label such as ``2:00 PM``."""
    period = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    return f"{display}:{minute:02d} {period}"


def parse_clock(text: Optional[str]) -> Optional[tuple[int, int]]:
    """Extract ``(hour, minute)`` from ``HH:MM`` or a timestamp carrying one."""
    if not text:
        return None
    cleaned = text.strip()
    if "T" in cleaned:
        cleaned = cleaned.split("T", 1)[1]
    elif " " in cleaned:
        cleaned = cleaned.rsplit(" ", 1)[1]
    pieces = cleaned.split(":")
    if len(pieces) < 2:
        return None
    try:
        hour = int(pieces[0])
        minute = int(pieces[1][:2])
    except ValueError:
        return None
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return hour, minute
