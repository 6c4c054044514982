"""Plain-text rendering of a calendar frame for the terminal."""

from __future__ import annotations

from typing import List, Optional

from .models import CalendarCell, GridColumn, RenderState, ReservationStatus, UnitInfo, ViewMode
from .utils import DAY_NAMES

STATUS_MARKERS = {
    ReservationStatus.BOOKED: "#",
    ReservationStatus.PENDING: "?",
    ReservationStatus.AVAILABLE: "+",
    ReservationStatus.BLOCKED: "x",
}
BLOCKED_MARKER = "!"


def format_header(unit: Optional[UnitInfo]) -> str:
    if unit is None:
        return "Unknown unit"
    pieces = [unit.title]
    if unit.location:
        pieces.append(unit.location)
    if unit.base_price is not None:
        pieces.append(f"₱ {unit.base_price:,.0f} / night")
    return " — ".join(pieces)


def _cell_text(cell: CalendarCell) -> str:
    day = str(cell.day.day) if cell.is_in_focused_month else f"({cell.day.day})"
    marker = " "
    if cell.booking is not None:
        marker = STATUS_MARKERS.get(cell.booking.status_class, "#")
    elif cell.is_blocked:
        marker = BLOCKED_MARKER
    today = "*" if cell.is_today else " "
    return f"{day:>4}{marker}{today}"


def format_month(state: RenderState) -> str:
    """Month grid followed by the list of stays visible in it."""
    lines: List[str] = [state.title, ""]
    lines.append("".join(f"{name[:2]:>6}" for name in DAY_NAMES))
    cells = state.month_cells
    for row_start in range(0, len(cells), 7):
        lines.append("".join(_cell_text(cell) for cell in cells[row_start:row_start + 7]))

    lines.append("")
    stays = []
    seen = set()
    for cell in cells:
        booking = cell.booking
        if booking is None or id(booking.reservation) in seen:
            continue
        seen.add(id(booking.reservation))
        stays.append(f" • {booking.guest_label}: {booking.range_label}, check-in {booking.time_label} ({booking.status_class.value})")
    if stays:
        lines.append("Stays:")
        lines.extend(stays)
    else:
        lines.append("No stays this month.")

    blocked = [cell for cell in cells if cell.is_blocked and cell.is_in_focused_month]
    if blocked:
        lines.append("")
        lines.append("Blocked: " + ", ".join(f"{cell.day:%b} {cell.day.day}" for cell in blocked))
    return "\n".join(lines).strip()


def _column_lines(column: GridColumn) -> List[str]:
    heading = f"{DAY_NAMES[(column.day.weekday() + 1) % 7][:3]} {column.day:%b} {column.day.day}"
    if column.is_today:
        heading += " (today)"
    lines = [heading]
    segments = column.segments
    if not segments:
        lines.append("   —")
    for segment in segments:
        stacked = f" [layer {segment.layer}]" if segment.layer else ""
        lines.append(
            f"   {segment.start_hour:02d}:00–{segment.end_hour:02d}:00 "
            f"{segment.reservation.guest_label} ({segment.date_label}){stacked}"
        )
    return lines


def format_week(state: RenderState) -> str:
    """One block per day column listing the hour ranges occupied."""
    lines: List[str] = [state.title, ""]
    for column in state.week_columns:
        lines.extend(_column_lines(column))
    if state.indicator is not None:
        lines.append("")
        lines.append(
            f"Now: {state.indicator.day:%b} {state.indicator.day.day}, "
            f"{state.indicator.top_px:.0f}px from the top of the grid"
        )
    return "\n".join(lines).strip()


def format_render_state(state: RenderState, unit: Optional[UnitInfo] = None) -> str:
    body = format_week(state) if state.mode is ViewMode.WEEK else format_month(state)
    return f"{format_header(unit)}\n\n{body}"
