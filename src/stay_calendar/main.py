"""Command-line entry point: print a unit's month or week calendar."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date as date_type
from typing import Optional

import structlog
from pydantic import ValidationError

from .config import Settings
from .datasource import DataSourceNotConfigured, ReservationSource
from .models import ViewMode
from .render import format_render_state
from .session import CalendarSession


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog + stdlib logging."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


LOGGER = structlog.get_logger(__name__)


async def run(settings: Settings, unit_id: str, mode: ViewMode, focus: Optional[date_type]) -> str:
    """Load the unit and render one frame as text."""
    source = ReservationSource(settings)
    session = await CalendarSession.load(source, unit_id, settings, mode=mode, focus=focus)
    try:
        return format_render_state(session.render(), session.unit)
    finally:
        await session.close()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """CLI argument parsing."""
    parser = argparse.ArgumentParser(description="Show the stay calendar of a rental unit.")
    parser.add_argument("--unit", required=True, help="Unit (listing) identifier.")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ViewMode],
        default=ViewMode.MONTH.value,
        help="Month grid or 7-day hour grid.",
    )
    parser.add_argument(
        "--date",
        type=str,
        help="ISO date (YYYY-MM-DD) to focus; defaults to today in the configured timezone.",
    )
    return parser.parse_args(argv)


def resolve_focus(raw: Optional[str]) -> Optional[date_type]:
    if not raw:
        return None
    try:
        return date_type.fromisoformat(raw)
    except ValueError as exc:
        raise SystemExit(f"Invalid --date: {raw}") from exc


def cli(argv: Optional[list[str]] = None) -> int:
    """Console script entrypoint."""
    args = parse_args(argv)
    focus = resolve_focus(args.date)

    try:
        settings = Settings()
    except ValidationError as exc:
        configure_logging()
        LOGGER.error("settings.error", error=str(exc))
        return 2
    configure_logging(logging.getLevelName(settings.log_level))

    try:
        output = asyncio.run(run(settings, args.unit, ViewMode(args.mode), focus))
    except DataSourceNotConfigured as exc:
        LOGGER.error("settings.error", error=str(exc))
        return 2
    except Exception as exc:  # pragma: no cover - top level
        LOGGER.exception("calendar.failed", error=str(exc))
        return 1

    print(output)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(cli())
