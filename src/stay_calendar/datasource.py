"""Client for the bookings data layer (a PostgREST-style REST endpoint)."""

from __future__ import annotations

from typing import Any, List, Optional

import httpx
import structlog
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from .config import Settings
from .models import BlockedRange, ReservationRecord, UnitInfo

LOGGER = structlog.get_logger(__name__)

# Listing row holding the blocked dates shared by every unit.
GLOBAL_SETTINGS_ID = "global"


class DataSourceNotConfigured(RuntimeError):
    """Raised when no data layer URL has been configured."""


class ReservationSource:
    """Fetches reservations, unit metadata and blocked dates for one unit at a time."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        attempts: int = 3,
        wait: Optional[wait_base] = None,
    ):
        if settings.rest_base_url is None:
            raise DataSourceNotConfigured("STAY_CALENDAR_DATA_URL must be set to fetch reservations")
        self._settings = settings
        self._transport = transport
        self._attempts = attempts
        self._wait = wait or wait_exponential(multiplier=1, min=1, max=8)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._settings.data_api_key is not None:
            key = self._settings.data_api_key.get_secret_value()
            headers["apikey"] = key
            headers["Authorization"] = f"Bearer {key}"
        return headers

    async def _get_rows(self, table: str, params: dict[str, str]) -> List[dict[str, Any]]:
        """GET a table with retry behaviour and return its rows."""
        async for attempt in AsyncRetrying(
            wait=self._wait,
            stop=stop_after_attempt(self._attempts),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                async with httpx.AsyncClient(
                    base_url=self._settings.rest_base_url,
                    headers=self._headers(),
                    timeout=self._settings.timeout_seconds,
                    transport=self._transport,
                ) as client:
                    response = await client.get(f"/{table}", params=params)
                    response.raise_for_status()
                    payload = response.json()
                    return payload if isinstance(payload, list) else [payload]

    async def fetch_reservations_for_unit(self, unit_id: str) -> List[ReservationRecord]:
        """
        Reservation records for a unit in check-in order.

        A failed fetch yields an empty list so the calendar still renders.
        """
        LOGGER.info("datasource.fetch.start", table="booking", unit_id=unit_id)
        try:
            rows = await self._get_rows(
                "booking",
                {"listing_id": f"eq.{unit_id}", "order": "check_in_date.asc", "select": "*"},
            )
        except (httpx.HTTPError, ValueError) as exc:
            LOGGER.error("datasource.fetch.failed", table="booking", unit_id=unit_id, error=str(exc))
            return []

        records = []
        for row in rows:
            try:
                records.append(ReservationRecord.model_validate(_flatten_booking(row)))
            except ValidationError as exc:
                LOGGER.warning("datasource.record_invalid", unit_id=unit_id, row_id=row.get("id"), error=str(exc))
        LOGGER.info("datasource.fetch.success", table="booking", unit_id=unit_id, count=len(records))
        return records

    async def fetch_unit_by_id(self, unit_id: str) -> Optional[UnitInfo]:
        """Unit metadata, or ``None`` when it is missing or cannot be fetched."""
        LOGGER.info("datasource.fetch.start", table="listings", unit_id=unit_id)
        try:
            rows = await self._get_rows("listings", {"id": f"eq.{unit_id}", "select": "*"})
        except (httpx.HTTPError, ValueError) as exc:
            LOGGER.error("datasource.fetch.failed", table="listings", unit_id=unit_id, error=str(exc))
            return None
        if not rows:
            LOGGER.warning("datasource.unit_missing", unit_id=unit_id)
            return None
        try:
            return UnitInfo.model_validate(rows[0])
        except ValidationError as exc:
            LOGGER.warning("datasource.record_invalid", unit_id=unit_id, error=str(exc))
            return None

    async def fetch_blocked_ranges(self, unit_id: str) -> List[BlockedRange]:
        """Blocked ranges for the unit plus the globally blocked ones."""
        try:
            rows = await self._get_rows(
                "listings",
                {"id": f"in.({unit_id},{GLOBAL_SETTINGS_ID})", "select": "id,calendar_settings"},
            )
        except (httpx.HTTPError, ValueError) as exc:
            LOGGER.error("datasource.fetch.failed", table="calendar_settings", unit_id=unit_id, error=str(exc))
            return []

        ranges = []
        for row in rows:
            is_global = str(row.get("id")) == GLOBAL_SETTINGS_ID
            settings = row.get("calendar_settings") or {}
            if not isinstance(settings, dict):
                continue
            for entry in settings.get("blocked_dates") or []:
                try:
                    ranges.append(BlockedRange.model_validate({**entry, "is_global": is_global}))
                except ValidationError as exc:
                    LOGGER.warning("datasource.blocked_range_invalid", unit_id=unit_id, error=str(exc))
        ranges.sort(key=lambda block: block.start_date)
        return ranges


def _is_retryable(exc: BaseException) -> bool:
    """Retry transport failures and 5xx responses; client errors fail fast."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


def _flatten_booking(row: dict[str, Any]) -> dict[str, Any]:
    """Lift the guest's first name out of an embedded client object."""
    flattened = dict(row)
    if not flattened.get("guest_name"):
        client = row.get("client") or {}
        flattened["guest_name"] = client.get("first_name") if isinstance(client, dict) else None
    return flattened
