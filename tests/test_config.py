"""Tests for Settings loading and validation."""

from datetime import time, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from audience_meter.config import ConfigurationError, load_settings

_REQUIRED = {"timezone": "Asia/Tokyo", "window_start": "21:00", "window_end": "22:33"}


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("AUDIENCE_TIMEZONE", "AUDIENCE_WINDOW_START", "AUDIENCE_WINDOW_END"):
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:
    def test_valid_settings(self) -> None:
        settings = load_settings(**_REQUIRED)
        assert settings.window_start == time(21, 0)
        assert settings.window_end == time(22, 33)
        assert settings.tz == ZoneInfo("Asia/Tokyo")
        assert settings.tick_interval == timedelta(minutes=1)

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUDIENCE_TIMEZONE", "Europe/Berlin")
        monkeypatch.setenv("AUDIENCE_WINDOW_START", "09:30")
        monkeypatch.setenv("AUDIENCE_WINDOW_END", "11:00")
        settings = load_settings()
        assert settings.timezone == "Europe/Berlin"
        assert settings.window_start == time(9, 30)

    def test_missing_window_is_fatal(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(timezone="Asia/Tokyo")
        assert "window_start" in str(exc_info.value)
        assert "window_end" in str(exc_info.value)

    def test_missing_timezone_is_fatal(self) -> None:
        with pytest.raises(ConfigurationError, match="timezone"):
            load_settings(window_start="21:00", window_end="22:33")

    def test_unknown_timezone(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown time zone"):
            load_settings(**{**_REQUIRED, "timezone": "Mars/Olympus"})

    def test_window_must_be_ordered(self) -> None:
        with pytest.raises(ConfigurationError, match="window_end"):
            load_settings(**{**_REQUIRED, "window_start": "23:00"})

    def test_weekday_limit_bounds(self) -> None:
        with pytest.raises(ConfigurationError):
            load_settings(**_REQUIRED, weekday_limit=8)

    def test_sheets_credentials_file_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUDIENCE_SHEETS_CREDENTIALS_FILE", "/etc/audience/sa.json")
        settings = load_settings(**_REQUIRED)
        assert settings.sheets_credentials_file == Path("/etc/audience/sa.json")
        assert settings.sheets_access_token == ""


class TestActiveWindowFromSettings:
    def test_defaults(self) -> None:
        window = load_settings(**_REQUIRED).active_window()
        assert window.start == time(21, 0)
        assert window.weekday_limit == 5
        assert window.pre_start_margin is None

    def test_margin(self) -> None:
        window = load_settings(**_REQUIRED, pre_window_margin_minutes=45).active_window()
        assert window.pre_start_margin == timedelta(minutes=45)
