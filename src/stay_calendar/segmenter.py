"""
Slicing reservations into per-day pieces for the month and week grids.

The two views use different inclusion rules. The month view marks nights
stayed, ``check_in <= day < check_out``, so the check-out date stays free for
the next guest. The hour grid also draws the check-out morning, so there a
reservation touches every date in ``check_in <= day <= check_out``.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Union

import structlog

from .models import (
    BlockedRange,
    CalendarCell,
    DaySegment,
    GridColumn,
    ReservationInterval,
    Segment,
)
from .normalizer import DefaultTimes, TimeNormalizer
from .utils import clock_label, iter_days, short_date

LOGGER = structlog.get_logger(__name__)

GLOBAL_BLOCK_SUFFIX = "(Set from global calendar)"


def occupies_night(reservation: ReservationInterval, day: date) -> bool:
    """Month-view rule: the check-out date is never marked."""
    return reservation.check_in_date <= day < reservation.check_out_date


def touches_day(reservation: ReservationInterval, day: date) -> bool:
    """Hour-grid rule: the check-out date is included."""
    return reservation.check_in_date <= day <= reservation.check_out_date


def stay_range_label(check_in: date, check_out: date) -> str:
    """``Oct 29 – 31`` or ``Oct 29 – Nov 2``."""
    if check_in.year == check_out.year and check_in.month == check_out.month:
        return f"{short_date(check_in)} – {check_out.day}"
    return f"{short_date(check_in)} – {short_date(check_out)}"


class StaySegmenter:
    """Computes which reservations touch each visible cell and for which hours."""

    def __init__(self, normalizer: Optional[TimeNormalizer] = None, defaults: Optional[DefaultTimes] = None):
        self.normalizer = normalizer or TimeNormalizer()
        self.defaults = defaults or DefaultTimes()

    # -- hour grid --------------------------------------------------------

    def segment_on(self, reservation: ReservationInterval, day: date) -> Optional[Segment]:
        """The reservation's hour range on ``day``, or ``None`` if it does not touch it."""
        if not touches_day(reservation, day):
            return None
        in_hour, in_minute = self.normalizer.check_in_time(reservation, self.defaults)
        out_hour, out_minute = self.normalizer.check_out_time(reservation, self.defaults)

        start = in_hour if day == reservation.check_in_date else 0
        end = out_hour if day == reservation.check_out_date else 24
        if end <= start:
            # Same-day stays whose check-out hour is not after the check-in
            # hour still get a one-hour block.
            end = min(start + 1, 24)

        return Segment(
            reservation=reservation,
            day=day,
            start_hour=start,
            end_hour=end,
            time_label=f"{clock_label(in_hour, in_minute)} - {clock_label(out_hour, out_minute)}",
        )

    def segment_reservation(self, reservation: ReservationInterval) -> List[Segment]:
        """One segment per date from check-in through check-out inclusive."""
        return [
            self.segment_on(reservation, day)
            for day in iter_days(reservation.check_in_date, reservation.check_out_date)
        ]

    def segments_for_day(self, reservations: Iterable[ReservationInterval], day: date) -> List[Segment]:
        """
        All segments on ``day`` ordered by start hour, then fetch order.

        Reservations starting in the same hour are stacked: each gets the next
        ``layer`` so none of them hides another.
        """
        seen_ids = set()
        found = []
        for reservation in reservations:
            if reservation.reference_id is not None:
                if reservation.reference_id in seen_ids:
                    continue
                seen_ids.add(reservation.reference_id)
            segment = self.segment_on(reservation, day)
            if segment is not None:
                found.append(segment)

        found.sort(key=lambda segment: (segment.start_hour, segment.reservation.order))
        layers: Dict[int, int] = defaultdict(int)
        stacked = []
        for segment in found:
            stacked.append(replace(segment, layer=layers[segment.start_hour]))
            layers[segment.start_hour] += 1
        return stacked

    def annotate_week(
        self, reservations: Sequence[ReservationInterval], columns: List[GridColumn]
    ) -> List[GridColumn]:
        """Place every segment in the hour slot where it starts."""
        for column in columns:
            for slot in column.slots:
                slot.segments.clear()
            for segment in self.segments_for_day(reservations, column.day):
                column.slots[segment.start_hour].segments.append(segment)
        LOGGER.debug(
            "segmenter.week",
            columns=len(columns),
            segments=sum(len(column.segments) for column in columns),
        )
        return columns

    # -- month grid -------------------------------------------------------

    def day_summary(self, reservation: ReservationInterval) -> DaySegment:
        in_hour, in_minute = self.normalizer.check_in_time(reservation, self.defaults)
        return DaySegment(
            reservation=reservation,
            guest_label=reservation.guest_label or "Guest",
            range_label=stay_range_label(reservation.check_in_date, reservation.check_out_date),
            time_label=clock_label(in_hour, in_minute),
            status_class=reservation.status,
        )

    def annotate_month(
        self,
        reservations: Sequence[ReservationInterval],
        cells: List[CalendarCell],
        blocked: Sequence[BlockedRange] = (),
    ) -> List[CalendarCell]:
        """
        Mark each cell with the first reservation staying that night.

        Only one reservation is shown per day; later matches are ignored.
        Blocked ranges are flagged too, unit ranges taking precedence over
        global ones.
        """
        ordered_blocks = sorted(blocked, key=lambda block: block.is_global)
        for cell in cells:
            cell.segments = []
            match = next((r for r in reservations if occupies_night(r, cell.day)), None)
            if match is not None:
                cell.segments.append(self.day_summary(match))

            block = next((b for b in ordered_blocks if b.covers(cell.day)), None)
            cell.is_blocked = block is not None
            cell.blocked_reason = _block_reason(block) if block else None
        return cells

    def segment(
        self,
        reservations: Sequence[ReservationInterval],
        cells: Union[List[CalendarCell], List[GridColumn]],
        blocked: Sequence[BlockedRange] = (),
    ) -> Union[List[CalendarCell], List[GridColumn]]:
        """Annotate either grid kind with its segments."""
        if cells and isinstance(cells[0], GridColumn):
            return self.annotate_week(reservations, cells)
        return self.annotate_month(reservations, cells, blocked)


def _block_reason(block: BlockedRange) -> str:
    reason = block.reason or "No reason provided"
    if block.is_global:
        return f"{reason}\n\n{GLOBAL_BLOCK_SUFFIX}"
    return reason
