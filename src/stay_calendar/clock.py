"""Live "now" line for the week grid and the timer that keeps it fresh."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional, Sequence, Union

import structlog

from .models import CurrentTimeIndicator, GridColumn
from .normalizer import DEFAULT_TIMEZONE
from .utils import now_in_timezone, to_timezone

LOGGER = structlog.get_logger(__name__)

TickListener = Callable[[datetime], None]


@dataclass(frozen=True)
class ColumnGeometry:
    """
    Horizontal layout of the week grid.

    ``offsets`` holds measured left edges of the day columns when the host has
    them; otherwise columns are laid out at fixed width after the time gutter.
    """

    gutter_px: float = 64
    column_px: float = 120
    offsets: Optional[Sequence[float]] = None

    def left_of(self, index: int) -> float:
        if self.offsets is not None and index < len(self.offsets):
            return self.offsets[index]
        return self.gutter_px + index * self.column_px


class LiveClock:
    """Holds the current time and turns it into a position in the week grid."""

    def __init__(
        self,
        timezone_name: str = DEFAULT_TIMEZONE,
        *,
        row_height_px: float = 48,
        header_height_px: float = 60,
        dot_px: float = 12,
        now: Optional[datetime] = None,
    ):
        self.timezone_name = timezone_name
        self.row_height_px = row_height_px
        self.header_height_px = header_height_px
        self.dot_px = dot_px
        self.scroll_left = 0.0
        self._now = to_timezone(now, timezone_name) if now else now_in_timezone(timezone_name)

    @property
    def now(self) -> datetime:
        return self._now

    @property
    def today(self) -> date:
        return self._now.date()

    def tick(self, now: Optional[datetime] = None) -> datetime:
        """Refresh "now"; tests and hosts may pass a synthetic value."""
        self._now = to_timezone(now, self.timezone_name) if now else now_in_timezone(self.timezone_name)
        return self._now

    def scrolled(self, scroll_left: float) -> None:
        self.scroll_left = max(0.0, float(scroll_left))

    @property
    def minutes_into_day(self) -> int:
        return self._now.hour * 60 + self._now.minute

    def line_offset(self) -> float:
        """Distance of the line from the top of the first hour row."""
        return self.minutes_into_day / 60 * self.row_height_px

    def line_top(self, header_height_px: Optional[float] = None) -> float:
        header = self.header_height_px if header_height_px is None else header_height_px
        return header + self.line_offset()

    def indicator(
        self,
        columns: Sequence[Union[GridColumn, date]],
        geometry: Optional[ColumnGeometry] = None,
        scroll_left: Optional[float] = None,
        header_height_px: Optional[float] = None,
    ) -> Optional[CurrentTimeIndicator]:
        """
        Position of the line within today's column.

        Returns ``None`` when today is not one of the visible columns. The
        horizontal position follows the current scroll offset.
        """
        days = [column.day if isinstance(column, GridColumn) else column for column in columns]
        try:
            index = days.index(self.today)
        except ValueError:
            return None

        geometry = geometry or ColumnGeometry()
        offset = self.scroll_left if scroll_left is None else scroll_left
        top = self.line_top(header_height_px)
        return CurrentTimeIndicator(
            column_index=index,
            day=self.today,
            top_px=top,
            left_px=geometry.left_of(index) - offset,
            width_px=geometry.column_px,
            dot_top_px=top - self.dot_px / 2,
        )


class ClockTicker:
    """Periodic asyncio task calling :meth:`LiveClock.tick` and notifying listeners."""

    def __init__(self, clock: LiveClock, interval_seconds: float = 60.0):
        self.clock = clock
        self.interval_seconds = interval_seconds
        self._listeners: List[TickListener] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def listeners(self) -> List[TickListener]:
        return list(self._listeners)

    def add_listener(self, listener: TickListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: TickListener) -> None:
        with suppress(ValueError):
            self._listeners.remove(listener)

    def fire(self, now: Optional[datetime] = None) -> datetime:
        """Advance the clock once and notify every listener."""
        value = self.clock.tick(now)
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception as exc:
                LOGGER.exception("clock.listener_failed", listener=repr(listener), error=str(exc))
        return value

    def start(self) -> None:
        if self.running:
            return
        LOGGER.debug("clock.ticker.start", interval_seconds=self.interval_seconds)
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.fire()

    async def stop(self) -> None:
        """Cancel the timer and drop all listeners."""
        task, self._task = self._task, None
        self._listeners.clear()
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        LOGGER.debug("clock.ticker.stopped")

    async def __aenter__(self) -> "ClockTicker":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
