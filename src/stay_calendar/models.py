"""Shared data models used across the stay calendar."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ReservationStatus(str, Enum):
    """Display status of a reservation on the calendar."""

    BOOKED = "booked"
    PENDING = "pending"
    AVAILABLE = "available"
    BLOCKED = "blocked"


# Statuses that never reach the calendar.
HIDDEN_STATUSES = frozenset({"declined", "cancelled", "canceled"})


def coerce_status(raw: Optional[str]) -> Optional[ReservationStatus]:
    """
    Map a stored status onto the closed display set.

    Returns ``None`` for statuses the calendar hides. Unset values and active
    statuses such as ``confirmed`` or ``ongoing`` display as booked.
    """
    text = (raw or "").strip().lower()
    if text in HIDDEN_STATUSES:
        return None
    try:
        return ReservationStatus(text)
    except ValueError:
        return ReservationStatus.BOOKED


class ViewMode(str, Enum):
    MONTH = "month"
    WEEK = "week"


# --- records handed over by the data layer -----------------------------------


class ReservationRecord(BaseModel):
    """Raw reservation row as returned by the bookings data layer."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    check_in_raw: str = Field(alias="check_in_date")
    check_out_raw: str = Field(alias="check_out_date")
    status: Optional[str] = None
    guest_label: Optional[str] = Field(default=None, alias="guest_name")
    total_amount: Optional[float] = None
    reference_id: Optional[str] = Field(default=None, alias="id")


class UnitInfo(BaseModel):
    """Unit metadata used for the calendar header and per-unit default times."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    id: str
    title: str = "Unnamed Property"
    location: Optional[str] = None
    base_price: Optional[float] = Field(default=None, alias="price")
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None


class BlockedRange(BaseModel):
    """Inclusive range of dates closed for booking."""

    model_config = ConfigDict(extra="ignore")

    start_date: date
    end_date: date
    reason: Optional[str] = None
    is_global: bool = False

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


# --- engine values -----------------------------------------------------------


@dataclass(frozen=True)
class NormalizedTime:
    """Result of reading one stored instant in the target timezone."""

    has_explicit_time: bool
    hour: int = 0
    minute: int = 0

    def effective_hour(self, default: int) -> int:
        return self.hour if self.has_explicit_time else default

    def effective_minute(self, default: int = 0) -> int:
        return self.minute if self.has_explicit_time else default


@dataclass(frozen=True)
class Instant:
    """A stored check-in or check-out value with its parsed calendar date."""

    raw: str
    day: date
    hour: Optional[int] = None


@dataclass(frozen=True)
class ReservationInterval:
    """One booking's occupancy of a unit, immutable for a rendering pass."""

    check_in: Instant
    check_out: Instant
    status: ReservationStatus = ReservationStatus.BOOKED
    guest_label: str = "Guest"
    total_amount: Optional[float] = None
    reference_id: Optional[str] = None
    order: int = 0

    @property
    def check_in_date(self) -> date:
        return self.check_in.day

    @property
    def check_out_date(self) -> date:
        return self.check_out.day

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days


@dataclass(frozen=True)
class Segment:
    """A reservation's share of one day column in the hour grid."""

    reservation: ReservationInterval
    day: date
    start_hour: int
    end_hour: int
    time_label: str = ""
    layer: int = 0

    @property
    def span(self) -> int:
        return self.end_hour - self.start_hour

    @property
    def date_label(self) -> str:
        start = f"{self.reservation.check_in_date:%b} {self.reservation.check_in_date.day}"
        end = f"{self.reservation.check_out_date:%b} {self.reservation.check_out_date.day}"
        return start if start == end else f"{start} - {end}"


@dataclass(frozen=True)
class DaySegment:
    """Month-view summary of the reservation occupying a day."""

    reservation: ReservationInterval
    guest_label: str
    range_label: str
    time_label: str
    status_class: ReservationStatus


@dataclass
class CalendarCell:
    day: date
    is_in_focused_month: bool
    is_today: bool = False
    segments: List[DaySegment] = field(default_factory=list)
    is_blocked: bool = False
    blocked_reason: Optional[str] = None

    @property
    def booking(self) -> Optional[DaySegment]:
        return self.segments[0] if self.segments else None


@dataclass
class HourSlot:
    hour: int
    label: str
    segments: List[Segment] = field(default_factory=list)


@dataclass
class GridColumn:
    day: date
    is_today: bool = False
    is_in_focused_month: bool = True
    slots: List[HourSlot] = field(default_factory=list)

    @property
    def segments(self) -> List[Segment]:
        return [segment for slot in self.slots for segment in slot.segments]


@dataclass(frozen=True)
class CurrentTimeIndicator:
    """Where the "now" line sits inside the week grid."""

    column_index: int
    day: date
    top_px: float
    left_px: float
    width_px: float
    dot_top_px: float


# --- user-triggered events ---------------------------------------------------


@dataclass(frozen=True)
class CellClicked:
    day: date
    kind: str = "cell_clicked"


@dataclass(frozen=True)
class Navigated:
    direction: str
    unit: str
    kind: str = "navigated"


@dataclass(frozen=True)
class ModeChanged:
    mode: ViewMode
    kind: str = "mode_changed"


CalendarEvent = Union[CellClicked, Navigated, ModeChanged]


@dataclass
class RenderState:
    """Everything the host needs to draw one frame of the calendar."""

    mode: ViewMode
    title: str
    focused_date: date
    reference_month: date
    month_cells: List[CalendarCell] = field(default_factory=list)
    week_columns: List[GridColumn] = field(default_factory=list)
    indicator: Optional[CurrentTimeIndicator] = None
    events: List[CalendarEvent] = field(default_factory=list)
