"""Minute-key arithmetic shared by every per-minute series."""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo

ONE_MINUTE = timedelta(minutes=1)

MINUTE_KEY_FORMAT = "%Y-%m-%d %H:%M"


def floor_to_minute(dt: datetime) -> datetime:
    """Truncate *dt* to the start of its minute."""
    return dt.replace(second=0, microsecond=0)


def format_minute_key(dt: datetime, tz: tzinfo | None = None) -> str:
    """Render a minute key as ``YYYY-MM-DD HH:MM``.

    The rendering sorts lexically in chronological order, which is what the
    report sink relies on.
    """
    if tz is not None:
        dt = dt.astimezone(tz)
    return floor_to_minute(dt).strftime(MINUTE_KEY_FORMAT)
