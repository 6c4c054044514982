"""A calendar view session: one unit's snapshot plus navigation, clock and listeners."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Sequence

import structlog

from .clock import ClockTicker, ColumnGeometry, LiveClock
from .config import Settings
from .grid import build_month, build_week, month_title, week_title
from .models import (
    BlockedRange,
    CurrentTimeIndicator,
    RenderState,
    ReservationInterval,
    ReservationRecord,
    UnitInfo,
    ViewMode,
)
from .navigator import NavigatorState, ViewNavigator
from .normalizer import DefaultTimes, TimeNormalizer
from .segmenter import StaySegmenter

LOGGER = structlog.get_logger(__name__)

ScrollListener = Callable[[Optional[CurrentTimeIndicator]], None]


def build_snapshot(records: Iterable[ReservationRecord], normalizer: TimeNormalizer) -> List[ReservationInterval]:
    """Turn fetched records into the immutable list the grids are drawn from, keeping fetch order."""
    snapshot = []
    for record in records:
        interval = normalizer.to_interval(record, order=len(snapshot))
        if interval is not None:
            snapshot.append(interval)
    return snapshot


class CalendarSession:
    """
    State of one open calendar view.

    Holds the reservation snapshot fetched for a unit and the navigator state,
    and recomputes render state on demand. Clock ticks and scroll events only
    update derived view state. :meth:`close` stops the ticker and drops every
    listener.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        unit: Optional[UnitInfo] = None,
        reservations: Sequence[ReservationInterval] = (),
        blocked: Sequence[BlockedRange] = (),
        mode: ViewMode = ViewMode.MONTH,
        focus: Optional[date] = None,
        now: Optional[datetime] = None,
        geometry: Optional[ColumnGeometry] = None,
    ):
        self.settings = settings
        self.unit = unit
        self.reservations = tuple(reservations)
        self.blocked = tuple(blocked)
        self.normalizer = TimeNormalizer(settings.timezone)
        self.defaults = DefaultTimes.for_unit(
            unit, settings.default_check_in_hour, settings.default_check_out_hour
        )
        self.segmenter = StaySegmenter(self.normalizer, self.defaults)
        self.clock = LiveClock(
            settings.timezone,
            row_height_px=settings.hour_row_px,
            header_height_px=settings.header_height_px,
            dot_px=settings.indicator_dot_px,
            now=now,
        )
        self.geometry = geometry or ColumnGeometry(
            gutter_px=settings.time_gutter_px, column_px=settings.day_column_px
        )
        self.navigator = ViewNavigator(
            NavigatorState.starting_at(focus or self.clock.today, mode),
            today=lambda: self.clock.today,
        )
        self.ticker = ClockTicker(self.clock, settings.tick_seconds)
        self._scroll_listeners: List[ScrollListener] = []

    @classmethod
    async def load(cls, source, unit_id: str, settings: Settings, **kwargs) -> "CalendarSession":
        """Fetch one unit's data through ``source`` and open a session on it."""
        unit = await source.fetch_unit_by_id(unit_id)
        records = await source.fetch_reservations_for_unit(unit_id)
        blocked = await source.fetch_blocked_ranges(unit_id)
        normalizer = TimeNormalizer(settings.timezone)
        reservations = build_snapshot(records, normalizer)
        LOGGER.info(
            "session.loaded",
            unit_id=unit_id,
            records=len(records),
            reservations=len(reservations),
            blocked=len(blocked),
        )
        return cls(settings, unit=unit, reservations=reservations, blocked=blocked, **kwargs)

    @property
    def state(self) -> NavigatorState:
        return self.navigator.state

    # -- rendering --------------------------------------------------------

    def current_indicator(self) -> Optional[CurrentTimeIndicator]:
        if self.state.mode is not ViewMode.WEEK:
            return None
        return self.clock.indicator(self.visible_days(), self.geometry)

    def visible_days(self) -> List[date]:
        return [column.day for column in build_week(self.state.focused_date)]

    def render(self) -> RenderState:
        """Recompute the grid, segments and indicator for the current state."""
        state = self.state
        today = self.clock.today
        render_state = RenderState(
            mode=state.mode,
            title="",
            focused_date=state.focused_date,
            reference_month=state.reference_month,
        )
        if state.mode is ViewMode.WEEK:
            columns = build_week(state.focused_date, today=today, reference_month=state.reference_month)
            render_state.week_columns = self.segmenter.annotate_week(self.reservations, columns)
            render_state.title = week_title(state.focused_date)
            render_state.indicator = self.clock.indicator(columns, self.geometry)
        else:
            cells = build_month(state.reference_month, today=today)
            render_state.month_cells = self.segmenter.annotate_month(self.reservations, cells, self.blocked)
            render_state.title = month_title(state.reference_month)
        render_state.events = self.navigator.drain_events()
        return render_state

    # -- user input -------------------------------------------------------

    def navigate(self, direction: str) -> None:
        self.navigator.navigate(direction)

    def switch_mode(self, mode: ViewMode) -> None:
        self.navigator.switch_mode(mode)

    def cell_clicked(self, day: date) -> None:
        self.navigator.cell_clicked(day)

    # -- clock and scroll -------------------------------------------------

    def tick(self, now: Optional[datetime] = None) -> Optional[CurrentTimeIndicator]:
        """Refresh "now" and return the recomputed indicator."""
        self.clock.tick(now)
        return self.current_indicator()

    def scrolled(self, scroll_left: float) -> Optional[CurrentTimeIndicator]:
        """Re-anchor the indicator to a new horizontal scroll offset."""
        self.clock.scrolled(scroll_left)
        indicator = self.current_indicator()
        for listener in list(self._scroll_listeners):
            listener(indicator)
        return indicator

    def add_scroll_listener(self, listener: ScrollListener) -> None:
        if listener not in self._scroll_listeners:
            self._scroll_listeners.append(listener)

    def remove_scroll_listener(self, listener: ScrollListener) -> None:
        if listener in self._scroll_listeners:
            self._scroll_listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._scroll_listeners) + len(self.ticker.listeners)

    async def start(self) -> None:
        self.ticker.start()

    async def close(self) -> None:
        """Stop periodic work and deregister all listeners."""
        try:
            await self.ticker.stop()
        finally:
            self._scroll_listeners.clear()
        LOGGER.debug("session.closed", unit_id=self.unit.id if self.unit else None)

    async def __aenter__(self) -> "CalendarSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
