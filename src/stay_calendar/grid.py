"""Month and week grids for the stay calendar."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from .models import CalendarCell, GridColumn, HourSlot
from .utils import (
    MONTH_NAMES,
    add_days,
    days_in_month,
    first_of_month,
    same_month,
    sunday_index,
)

WEEK_LENGTH = 7
MONTH_CELLS = 42
# Columns shown before the focused date in the week view.
WEEK_LEAD_DAYS = 3


def hour_labels() -> List[str]:
    """``12 AM`` through ``11 PM``."""
    labels = []
    for hour in range(24):
        period = "AM" if hour < 12 else "PM"
        labels.append(f"{hour % 12 or 12} {period}")
    return labels


HOUR_LABELS = hour_labels()


def build_month(reference_date: date, today: Optional[date] = None) -> List[CalendarCell]:
    """
    Sunday-first month grid of at least 42 cells.

    Days from the neighbouring months fill the first and last rows and keep
    their real dates, so stays crossing a month boundary still show on them.
    """
    first = first_of_month(reference_date)
    offset = sunday_index(first)
    start = add_days(first, -offset)
    length = offset + days_in_month(first.year, first.month)
    total = max(MONTH_CELLS, -(-length // WEEK_LENGTH) * WEEK_LENGTH)

    cells = []
    for index in range(total):
        day = add_days(start, index)
        cells.append(
            CalendarCell(
                day=day,
                is_in_focused_month=same_month(day, first),
                is_today=today is not None and day == today,
            )
        )
    return cells


def week_days(focused_date: date) -> List[date]:
    """Seven dates with ``focused_date`` in the middle (index 3)."""
    return [add_days(focused_date, offset - WEEK_LEAD_DAYS) for offset in range(WEEK_LENGTH)]


def build_week(
    focused_date: date,
    today: Optional[date] = None,
    reference_month: Optional[date] = None,
) -> List[GridColumn]:
    """Seven hour-grid columns centred on ``focused_date``."""
    month = reference_month or focused_date
    return [
        GridColumn(
            day=day,
            is_today=today is not None and day == today,
            is_in_focused_month=same_month(day, month),
            slots=[HourSlot(hour=hour, label=HOUR_LABELS[hour]) for hour in range(24)],
        )
        for day in week_days(focused_date)
    ]


def month_title(reference_date: date) -> str:
    return f"{MONTH_NAMES[reference_date.month - 1]} {reference_date.year}"


def week_title(focused_date: date) -> str:
    """``Sep 29 – Oct 5, 2025`` or ``Sep 3 – 9, 2025``."""
    days = week_days(focused_date)
    start, end = days[0], days[-1]
    if start.month == end.month:
        return f"{start:%b} {start.day} – {end.day}, {end.year}"
    return f"{start:%b} {start.day} – {end:%b} {end.day}, {end.year}"
