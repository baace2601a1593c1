"""Tests for the Interval Bucketizer."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from audience_meter.core.bucketizer import bucketize, presence_minutes
from audience_meter.core.merger import merge_series
from audience_meter.domain.interval import ParticipantInterval


# ── Helpers ──────────────────────────────────────────────────────────────────

_UTC = timezone.utc
_TOKYO = ZoneInfo("Asia/Tokyo")


def _at(hour: int, minute: int, second: int = 0) -> datetime:
    return datetime(2024, 5, 1, hour, minute, second, tzinfo=_UTC)


def _interval(join: datetime, leave: datetime) -> ParticipantInterval:
    return ParticipantInterval(join_time=join, leave_time=leave)


# ── Normalisation ────────────────────────────────────────────────────────────


class TestPresenceMinutes:
    def test_partial_minutes_round_outward(self) -> None:
        join, duration = presence_minutes(_interval(_at(10, 0, 30), _at(10, 2, 10)))
        assert join == _at(10, 0)
        assert duration == 3

    def test_join_equals_leave_is_one_minute(self) -> None:
        _, duration = presence_minutes(_interval(_at(10, 5, 20), _at(10, 5, 20)))
        assert duration == 1

    def test_negative_interval_clamps_to_zero(self) -> None:
        _, duration = presence_minutes(_interval(_at(10, 5), _at(10, 1)))
        assert duration == 0

    def test_leave_one_minute_before_join_is_zero(self) -> None:
        _, duration = presence_minutes(_interval(_at(10, 5, 10), _at(10, 4, 50)))
        assert duration == 0


# ── Bucketing ────────────────────────────────────────────────────────────────


class TestBucketize:
    def test_empty_roster(self) -> None:
        assert bucketize([]) == {}

    def test_single_interval_three_buckets(self) -> None:
        series = bucketize([_interval(_at(10, 0, 30), _at(10, 2, 10))])
        assert series == {_at(10, 0): 1, _at(10, 1): 1, _at(10, 2): 1}

    def test_zero_length_interval_not_dropped(self) -> None:
        series = bucketize([_interval(_at(9, 59, 59), _at(9, 59, 59))])
        assert series == {_at(9, 59): 1}

    def test_consecutive_buckets_from_join_minute(self) -> None:
        for minutes in (0, 1, 7, 45):
            join = _at(11, 0, 15)
            leave = _at(11, 0) + timedelta(minutes=minutes)
            series = bucketize([_interval(join, leave)])
            expected = {_at(11, 0) + timedelta(minutes=i): 1 for i in range(minutes + 1)}
            assert series == expected

    def test_overlapping_intervals_stack(self) -> None:
        series = bucketize([
            _interval(_at(10, 0), _at(10, 2)),
            _interval(_at(10, 1), _at(10, 3, 30)),
        ])
        assert series == {_at(10, 0): 1, _at(10, 1): 2, _at(10, 2): 2, _at(10, 3): 1}

    def test_negative_interval_contributes_nothing(self) -> None:
        series = bucketize([
            _interval(_at(10, 10), _at(10, 0)),
            _interval(_at(10, 0), _at(10, 0)),
        ])
        assert series == {_at(10, 0): 1}

    def test_output_sorted_regardless_of_input_order(self) -> None:
        series = bucketize([
            _interval(_at(12, 0), _at(12, 0)),
            _interval(_at(8, 0), _at(8, 1)),
            _interval(_at(10, 0), _at(10, 0)),
        ])
        keys = list(series)
        assert keys == sorted(keys)
        assert keys[0] == _at(8, 0)

    def test_keys_are_utc_instants(self) -> None:
        join = _at(12, 0, 5).astimezone(_TOKYO)
        series = bucketize([_interval(join, join)])
        (minute,) = series
        assert minute.tzinfo == _UTC
        assert minute == _at(12, 0)

    def test_dst_fall_back_minutes_stay_distinct(self) -> None:
        # 05:30Z and 06:30Z both read 01:30 in New York on 2024-11-03
        first = datetime(2024, 11, 3, 5, 30, tzinfo=_UTC)
        second = datetime(2024, 11, 3, 6, 30, tzinfo=_UTC)
        series = bucketize([_interval(first, first), _interval(second, second)])
        assert series == {first: 1, second: 1}
        rows = merge_series([series]).rows(ZoneInfo("America/New_York"))
        assert rows == [["2024-11-03 01:30", 1], ["2024-11-03 01:30", 1]]

    def test_naive_timestamps_read_as_utc(self) -> None:
        interval = ParticipantInterval(
            join_time=datetime(2024, 5, 1, 10, 0, 30),
            leave_time=datetime(2024, 5, 1, 10, 0, 45),
        )
        assert bucketize([interval]) == {_at(10, 0): 1}
