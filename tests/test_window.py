"""Tests for ActiveWindow phase classification."""

from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

import pytest

from audience_meter.core.window import ActiveWindow
from audience_meter.domain.enums import WindowPhase

_TOKYO = ZoneInfo("Asia/Tokyo")

# 2024-05-01 is a Wednesday, 2024-05-04 a Saturday
_WED = (2024, 5, 1)
_SAT = (2024, 5, 4)


def _at(day: tuple[int, int, int], hour: int, minute: int, second: int = 0) -> datetime:
    return datetime(*day, hour, minute, second, tzinfo=_TOKYO)


def _window(**kw) -> ActiveWindow:
    params = {"start": time(21, 0), "end": time(22, 33), "tz": _TOKYO}
    params.update(kw)
    return ActiveWindow(**params)


class TestActiveWindow:
    def test_start_is_inclusive(self) -> None:
        assert _window().phase(_at(_WED, 21, 0)) == WindowPhase.INSIDE

    def test_end_is_exclusive(self) -> None:
        w = _window()
        assert w.phase(_at(_WED, 22, 32, 59)) == WindowPhase.INSIDE
        assert w.phase(_at(_WED, 22, 33)) == WindowPhase.AFTER

    def test_before_without_margin_waits(self) -> None:
        assert _window().phase(_at(_WED, 6, 0)) == WindowPhase.BEFORE

    def test_margin_splits_before_and_too_early(self) -> None:
        w = _window(pre_start_margin=timedelta(minutes=30))
        assert w.phase(_at(_WED, 20, 30)) == WindowPhase.BEFORE
        assert w.phase(_at(_WED, 20, 29)) == WindowPhase.TOO_EARLY

    def test_weekend_is_off_day(self) -> None:
        assert _window().phase(_at(_SAT, 21, 30)) == WindowPhase.OFF_DAY

    def test_weekday_limit_seven_runs_every_day(self) -> None:
        assert _window(weekday_limit=7).phase(_at(_SAT, 21, 30)) == WindowPhase.INSIDE

    def test_other_zone_input_is_converted(self) -> None:
        utc_now = _at(_WED, 21, 10).astimezone(ZoneInfo("UTC"))
        assert _window().phase(utc_now) == WindowPhase.INSIDE

    def test_bounds_for_local_day(self) -> None:
        start, end = _window().bounds_for(_at(_WED, 10, 0))
        assert start == _at(_WED, 21, 0)
        assert end == _at(_WED, 22, 33)

    def test_end_must_follow_start(self) -> None:
        with pytest.raises(ValueError):
            _window(start=time(22, 0), end=time(21, 0))

    def test_weekday_limit_range(self) -> None:
        with pytest.raises(ValueError):
            _window(weekday_limit=0)
