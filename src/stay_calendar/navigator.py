"""Month/week navigation state and the moves between them."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional

import structlog

from .clock import ColumnGeometry
from .models import CalendarEvent, CellClicked, ModeChanged, Navigated, ViewMode
from .utils import add_days, days_in_month, first_of_month, same_month, shift_month

LOGGER = structlog.get_logger(__name__)

NEXT = "next"
PREV = "prev"


@dataclass
class NavigatorState:
    """The focused date and the month on display, threaded through a view session."""

    mode: ViewMode
    reference_month: date
    focused_date: date

    @classmethod
    def starting_at(cls, day: date, mode: ViewMode = ViewMode.MONTH) -> "NavigatorState":
        return cls(mode=mode, reference_month=first_of_month(day), focused_date=day)

    def __post_init__(self) -> None:
        self.reference_month = first_of_month(self.reference_month)


class ViewNavigator:
    """Moves the focused date and reference month in response to user input."""

    def __init__(self, state: NavigatorState, today: Callable[[], date]):
        self.state = state
        self._today = today
        self._events: List[CalendarEvent] = []

    @property
    def mode(self) -> ViewMode:
        return self.state.mode

    def drain_events(self) -> List[CalendarEvent]:
        events, self._events = self._events, []
        return events

    # -- month ------------------------------------------------------------

    def _shift_month(self, months: int, direction: str) -> None:
        state = self.state
        target = shift_month(state.reference_month, months)
        state.reference_month = target
        # Keep the focused day-of-month, clamped to the new month's length.
        day = min(state.focused_date.day, days_in_month(target.year, target.month))
        state.focused_date = date(target.year, target.month, day)
        self._events.append(Navigated(direction=direction, unit="month"))
        LOGGER.debug("navigator.month", direction=direction, focused=state.focused_date.isoformat())

    def next_month(self) -> None:
        self._shift_month(1, NEXT)

    def prev_month(self) -> None:
        self._shift_month(-1, PREV)

    # -- week -------------------------------------------------------------

    def _shift_week(self, days: int, direction: str) -> None:
        state = self.state
        state.focused_date = add_days(state.focused_date, days)
        state.reference_month = first_of_month(state.focused_date)
        self._events.append(Navigated(direction=direction, unit="week"))
        LOGGER.debug("navigator.week", direction=direction, focused=state.focused_date.isoformat())

    def next_week(self) -> None:
        self._shift_week(7, NEXT)

    def prev_week(self) -> None:
        self._shift_week(-7, PREV)

    def navigate(self, direction: str) -> None:
        """Step forward or back by the current mode's unit."""
        step = 1 if direction == NEXT else -1
        if self.state.mode is ViewMode.WEEK:
            self._shift_week(7 * step, direction)
        else:
            self._shift_month(step, direction)

    def go_to_today(self) -> None:
        today = self._today()
        self.state.focused_date = today
        self.state.reference_month = first_of_month(today)
        self._events.append(Navigated(direction="today", unit=self.state.mode.value))

    # -- mode and clicks --------------------------------------------------

    def switch_mode(self, mode: ViewMode) -> None:
        """
        Change between month and week view.

        Entering the week view keeps the focused date when it lies in the month
        on display, otherwise centres on today if today is in that month, and
        on the 1st of the month failing that.
        """
        state = self.state
        if mode is state.mode:
            return
        if mode is ViewMode.WEEK and not same_month(state.focused_date, state.reference_month):
            today = self._today()
            if same_month(today, state.reference_month):
                state.focused_date = today
            else:
                state.focused_date = state.reference_month
        state.mode = mode
        self._events.append(ModeChanged(mode=mode))
        LOGGER.debug("navigator.mode", mode=mode.value, focused=state.focused_date.isoformat())

    def cell_clicked(self, day: date) -> None:
        """Focus a clicked day, following it into a neighbouring month if needed."""
        state = self.state
        state.focused_date = day
        if not same_month(day, state.reference_month):
            state.reference_month = first_of_month(day)
        self._events.append(CellClicked(day=day))

    # The week view's day headers behave like month cells.
    header_clicked = cell_clicked


def centre_scroll_left(
    column_index: int,
    viewport_width: float,
    geometry: Optional[ColumnGeometry] = None,
) -> float:
    """Horizontal scroll offset that puts a week column in the middle of the viewport."""
    geometry = geometry or ColumnGeometry()
    centre = geometry.left_of(column_index) + geometry.column_px / 2
    return max(0.0, centre - viewport_width / 2)
