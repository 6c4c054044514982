"""Fakes shared by the session, API and CLI tests."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from stay_calendar.models import BlockedRange, ReservationRecord, UnitInfo

MANILA = ZoneInfo("Asia/Manila")


def manila(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=MANILA)


def record(check_in: str, check_out: str, **extra) -> ReservationRecord:
    return ReservationRecord(check_in_raw=check_in, check_out_raw=check_out, **extra)


class FakeSource:
    """In-memory stand-in for ReservationSource."""

    def __init__(
        self,
        records: Optional[List[ReservationRecord]] = None,
        unit: Optional[UnitInfo] = None,
        blocked: Optional[List[BlockedRange]] = None,
    ):
        self.records = records or []
        self.unit = unit
        self.blocked = blocked or []
        self.calls: List[str] = []

    async def fetch_unit_by_id(self, unit_id: str) -> Optional[UnitInfo]:
        self.calls.append(f"unit:{unit_id}")
        return self.unit

    async def fetch_reservations_for_unit(self, unit_id: str) -> List[ReservationRecord]:
        self.calls.append(f"reservations:{unit_id}")
        return list(self.records)

    async def fetch_blocked_ranges(self, unit_id: str) -> List[BlockedRange]:
        self.calls.append(f"blocked:{unit_id}")
        return list(self.blocked)
