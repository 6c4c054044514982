"""Configuration objects and helpers for the stay calendar."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, HttpUrl, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    timezone: str = Field(
        "Asia/Manila",
        description="Target timezone used to read stored check-in/check-out times and the live clock.",
    )
    default_check_in_hour: int = Field(14, description="Hour used when a check-in carries no explicit time.")
    default_check_out_hour: int = Field(12, description="Hour used when a check-out carries no explicit time.")
    hour_row_px: int = Field(48, gt=0)
    header_height_px: int = Field(60, ge=0)
    indicator_dot_px: int = Field(12, ge=0)
    tick_seconds: float = Field(60.0, gt=0)
    day_column_px: int = Field(120, gt=0)
    time_gutter_px: int = Field(64, ge=0)
    data_url: Optional[HttpUrl] = Field(None, description="REST endpoint of the bookings data layer.")
    data_api_key: Optional[SecretStr] = None
    timeout_seconds: float = Field(15.0, gt=0)
    log_level: str = Field("INFO")

    model_config = SettingsConfigDict(
        env_prefix="STAY_CALENDAR_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_check_in_hour", "default_check_out_hour")
    @classmethod
    def check_hour_range(cls, value: int) -> int:
        """Default hours must be a valid hour of the day."""
        if not 0 <= value <= 23:
            raise ValueError("default hours must be between 0 and 23")
        return value

    @field_validator("log_level")
    @classmethod
    def normalise_log_level(cls, value: str) -> str:
        level = value.strip().upper() or "INFO"
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def rest_base_url(self) -> Optional[str]:
        """Base URL of the data layer without a trailing slash."""
        if self.data_url is None:
            return None
        return str(self.data_url).rstrip("/")
