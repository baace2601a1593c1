"""Application configuration loaded from environment variables."""

from __future__ import annotations

from datetime import time, timedelta
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings

from audience_meter.core.window import ActiveWindow


class ConfigurationError(Exception):
    """Raised when required settings are missing or invalid; fatal at startup."""


class Settings(BaseSettings):
    app_name: str = "audience-meter"
    debug: bool = False
    log_level: str = "INFO"

    # Clock and active window (required)
    timezone: str
    window_start: time
    window_end: time
    weekday_limit: int = Field(5, ge=1, le=7)
    pre_window_margin_minutes: Optional[int] = Field(None, ge=0)
    tick_seconds: int = Field(60, gt=0)
    sampler_autostart: bool = False

    # Sample log
    sample_log_dir: Path = Path("samples")
    sample_log_source: str = "YouTube"

    # YouTube Data API
    youtube_api_key: str = ""
    youtube_channel_id: str = ""
    http_timeout_seconds: float = Field(10.0, gt=0)

    # Zoom OAuth app
    zoom_client_id: str = ""
    zoom_client_secret: str = ""
    zoom_redirect_url: str = ""
    zoom_meeting_id: str = ""

    # Report sinks
    sheets_spreadsheet_id: str = ""
    sheets_range: str = "Sheet1!A2"
    # Service-account JSON key, refreshed per write; preferred over the token
    sheets_credentials_file: Optional[Path] = None
    # Pre-issued bearer token; Google expires these after about an hour
    sheets_access_token: str = ""
    report_csv_path: Optional[Path] = None

    model_config = {"env_prefix": "AUDIENCE_"}

    @field_validator("timezone")
    @classmethod
    def timezone_must_resolve(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("timezone must not be empty")
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown time zone: {v}") from exc
        return v

    @model_validator(mode="after")
    def window_must_be_ordered(self) -> "Settings":
        if self.window_end <= self.window_start:
            raise ValueError("window_end must be after window_start")
        return self

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def tick_interval(self) -> timedelta:
        return timedelta(seconds=self.tick_seconds)

    def active_window(self) -> ActiveWindow:
        margin = None
        if self.pre_window_margin_minutes is not None:
            margin = timedelta(minutes=self.pre_window_margin_minutes)
        return ActiveWindow(
            start=self.window_start,
            end=self.window_end,
            tz=self.tz,
            weekday_limit=self.weekday_limit,
            pre_start_margin=margin,
        )


def load_settings(**overrides) -> Settings:
    """Build Settings from the environment (plus *overrides*).

    Raises:
        ConfigurationError: Listing every missing or invalid field.
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(f"invalid configuration: {problems}") from exc
