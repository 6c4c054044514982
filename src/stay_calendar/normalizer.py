"""
Reading stored check-in/check-out values into hours of the target timezone.

Upstream systems store stays either as bare dates, as full timestamps, or as
timestamps whose time part is a placeholder (local midnight, or UTC midnight
which reads as 08:00 in Asia/Manila). Placeholders cannot be told apart from
a guest who really arrives at those hours, so they are reported as having no
explicit time and the caller substitutes the unit's default hour.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog
from dateutil import parser as date_parser

from .models import (
    Instant,
    NormalizedTime,
    ReservationInterval,
    ReservationRecord,
    UnitInfo,
    coerce_status,
)
from .utils import parse_clock, to_timezone

LOGGER = structlog.get_logger(__name__)

DEFAULT_TIMEZONE = "Asia/Manila"
DEFAULT_CHECK_IN_HOUR = 14
DEFAULT_CHECK_OUT_HOUR = 12

# Hours in the target timezone that are read as "no time recorded".
PLACEHOLDER_HOURS = frozenset({0, 8})

UNSPECIFIED = NormalizedTime(has_explicit_time=False)

_DATE_ONLY = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}$")
_BARE_TIME = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?$")
_TIME_FRAGMENT = re.compile(r"\d{1,2}:\d{2}")
_LITERAL_TIME = re.compile(r"(?:T|\s)(\d{2}):(\d{2}):(\d{2})")


def has_time_component(raw: Optional[str]) -> bool:
    """True when the stored value carries any time of day at all."""
    text = (raw or "").strip()
    if not text or _DATE_ONLY.match(text):
        return False
    return bool(_TIME_FRAGMENT.search(text))


def _parse_datetime(text: str) -> Optional[datetime]:
    try:
        return date_parser.isoparse(text)
    except (ValueError, OverflowError):
        pass
    try:
        return date_parser.parse(text)
    except (ValueError, OverflowError) as exc:
        LOGGER.debug("normalizer.parse_failed", raw=text, error=str(exc))
        return None


def _is_literal_midnight(text: str) -> bool:
    match = _LITERAL_TIME.search(text)
    return match is not None and match.groups() == ("00", "00", "00")


def _resolve(hour: int, minute: int, literal_midnight: bool) -> NormalizedTime:
    if literal_midnight or hour in PLACEHOLDER_HOURS:
        return UNSPECIFIED
    return NormalizedTime(has_explicit_time=True, hour=hour, minute=minute)


def normalize(raw: Optional[str], timezone_name: str = DEFAULT_TIMEZONE) -> NormalizedTime:
    """
    Read the hour of day of ``raw`` in ``timezone_name``.

    ``raw`` may be a date, a date with time (naive values are taken as wall
    time in the target zone, offset-aware ones are converted), or a bare
    ``HH:MM`` fragment. Malformed input degrades to "no explicit time".
    """
    text = (raw or "").strip()
    if not text:
        return UNSPECIFIED

    bare = _BARE_TIME.match(text)
    if bare:
        hour, minute = int(bare.group(1)), int(bare.group(2))
        if hour > 23 or minute > 59:
            return UNSPECIFIED
        seconds = int(bare.group(3) or 0)
        return _resolve(hour, minute, hour == 0 and minute == 0 and seconds == 0)

    if not has_time_component(text):
        return UNSPECIFIED

    parsed = _parse_datetime(text)
    if parsed is None:
        return UNSPECIFIED
    local = to_timezone(parsed, timezone_name)
    return _resolve(local.hour, local.minute, _is_literal_midnight(text))


def parse_instant(raw: Optional[str], timezone_name: str = DEFAULT_TIMEZONE) -> Optional[Instant]:
    """Parse the calendar date (and clock hour where known) of a stored value."""
    text = (raw or "").strip()
    if not text or _BARE_TIME.match(text):
        return None
    parsed = _parse_datetime(text)
    if parsed is None:
        return None
    # A 00:00:00 placeholder keeps its written date in every target zone.
    if not has_time_component(text) or _is_literal_midnight(text):
        return Instant(raw=text, day=parsed.date())
    local = to_timezone(parsed, timezone_name)
    return Instant(raw=text, day=local.date(), hour=local.hour)


@dataclass(frozen=True)
class DefaultTimes:
    """Hours substituted when a check-in or check-out has no explicit time."""

    check_in_hour: int = DEFAULT_CHECK_IN_HOUR
    check_out_hour: int = DEFAULT_CHECK_OUT_HOUR
    check_in_minute: int = 0
    check_out_minute: int = 0

    @classmethod
    def for_unit(
        cls,
        unit: Optional[UnitInfo],
        check_in_hour: int = DEFAULT_CHECK_IN_HOUR,
        check_out_hour: int = DEFAULT_CHECK_OUT_HOUR,
    ) -> "DefaultTimes":
        """Use the unit's own check-in/check-out times when it defines them."""
        check_in = parse_clock(unit.check_in_time) if unit else None
        check_out = parse_clock(unit.check_out_time) if unit else None
        return cls(
            check_in_hour=check_in[0] if check_in else check_in_hour,
            check_out_hour=check_out[0] if check_out else check_out_hour,
            check_in_minute=check_in[1] if check_in else 0,
            check_out_minute=check_out[1] if check_out else 0,
        )


class TimeNormalizer:
    """Normalizer bound to one target timezone."""

    def __init__(self, timezone_name: str = DEFAULT_TIMEZONE):
        self.timezone_name = timezone_name

    def normalize(self, raw: Optional[str]) -> NormalizedTime:
        return normalize(raw, self.timezone_name)

    __call__ = normalize

    def parse_instant(self, raw: Optional[str]) -> Optional[Instant]:
        return parse_instant(raw, self.timezone_name)

    def to_interval(self, record: ReservationRecord, order: int = 0) -> Optional[ReservationInterval]:
        """
        Build a ReservationInterval from a data-layer record.

        Returns ``None`` for hidden statuses, unreadable dates, or a check-out
        before the check-in; those records never reach the grid.
        """
        status = coerce_status(record.status)
        if status is None:
            LOGGER.debug("normalizer.hidden_status", reference_id=record.reference_id, status=record.status)
            return None

        check_in = self.parse_instant(record.check_in_raw)
        check_out = self.parse_instant(record.check_out_raw)
        if check_in is None or check_out is None:
            LOGGER.warning(
                "session.reservation_skipped",
                reason="unparseable_date",
                reference_id=record.reference_id,
                check_in=record.check_in_raw,
                check_out=record.check_out_raw,
            )
            return None
        if check_out.day < check_in.day:
            LOGGER.warning(
                "session.reservation_skipped",
                reason="check_out_before_check_in",
                reference_id=record.reference_id,
                check_in=check_in.day.isoformat(),
                check_out=check_out.day.isoformat(),
            )
            return None

        guest = (record.guest_label or "").strip() or "Guest"
        return ReservationInterval(
            check_in=check_in,
            check_out=check_out,
            status=status,
            guest_label=guest,
            total_amount=record.total_amount,
            reference_id=record.reference_id,
            order=order,
        )

    def check_in_time(self, interval: ReservationInterval, defaults: DefaultTimes) -> tuple[int, int]:
        """Effective ``(hour, minute)`` of a check-in after default substitution."""
        normalized = self.normalize(interval.check_in.raw)
        return (
            normalized.effective_hour(defaults.check_in_hour),
            normalized.effective_minute(defaults.check_in_minute),
        )

    def check_out_time(self, interval: ReservationInterval, defaults: DefaultTimes) -> tuple[int, int]:
        """Effective ``(hour, minute)`` of a check-out after default substitution."""
        normalized = self.normalize(interval.check_out.raw)
        return (
            normalized.effective_hour(defaults.check_out_hour),
            normalized.effective_minute(defaults.check_out_minute),
        )
