"""FastAPI application exposing calendar frames to the surrounding app."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .config import Settings
from .datasource import DataSourceNotConfigured, ReservationSource
from .models import UnitInfo, ViewMode
from .session import CalendarSession

LOGGER = structlog.get_logger(__name__)

app = FastAPI(title="Stay Calendar", version=__version__)


class CalendarResponse(BaseModel):
    """Response schema for the calendar endpoint."""

    unit: UnitInfo
    render_state: dict[str, Any]


def get_settings() -> Settings:
    return Settings()


def get_source(settings: Settings = Depends(get_settings)) -> ReservationSource:
    return ReservationSource(settings)


@app.exception_handler(DataSourceNotConfigured)
async def data_source_not_configured(request: Request, exc: DataSourceNotConfigured) -> JSONResponse:
    LOGGER.error("api.datasource_not_configured", path=request.url.path)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/units/{unit_id}/calendar", response_model=CalendarResponse)
async def unit_calendar(
    unit_id: str,
    mode: ViewMode = ViewMode.MONTH,
    focus: Optional[date] = None,
    scroll_left: float = Query(0.0, ge=0),
    settings: Settings = Depends(get_settings),
    source: ReservationSource = Depends(get_source),
) -> CalendarResponse:
    """Render one frame of a unit's calendar."""
    LOGGER.info("api.calendar.request", unit_id=unit_id, mode=mode.value, focus=str(focus))
    session = await CalendarSession.load(source, unit_id, settings, mode=mode, focus=focus)
    try:
        if session.unit is None:
            raise HTTPException(status_code=404, detail=f"Unit {unit_id} not found")
        session.scrolled(scroll_left)
        state = session.render()
    finally:
        await session.close()
    return CalendarResponse(unit=session.unit, render_state=jsonable_encoder(state))
