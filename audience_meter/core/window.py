"""ActiveWindow — the configured daily time range in which polling happens.

Termination policy:
    - OFF_DAY:   today's ISO weekday exceeds ``weekday_limit``
    - AFTER:     now >= today's end time
    - TOO_EARLY: only when ``pre_start_margin`` is set, and now is further
                 than that margin before today's start time
    - BEFORE:    any other time before start (keep waiting)
    - INSIDE:    start <= now < end
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, tzinfo

from audience_meter.domain.enums import WindowPhase


@dataclass(frozen=True)
class ActiveWindow:
    """Daily [start, end) polling range evaluated in a fixed time zone."""

    start: time
    end: time
    tz: tzinfo
    # ISO weekday (Monday = 1); 5 means Monday–Friday
    weekday_limit: int = 5
    pre_start_margin: timedelta | None = None

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError("window end must be after window start")
        if not 1 <= self.weekday_limit <= 7:
            raise ValueError("weekday_limit must be an ISO weekday (1-7)")
        if self.pre_start_margin is not None and self.pre_start_margin < timedelta(0):
            raise ValueError("pre_start_margin must not be negative")

    def bounds_for(self, now: datetime) -> tuple[datetime, datetime]:
        """Start and end of the window on *now*'s local calendar day."""
        day = now.astimezone(self.tz).date()
        return (
            datetime.combine(day, self.start, tzinfo=self.tz),
            datetime.combine(day, self.end, tzinfo=self.tz),
        )

    def phase(self, now: datetime) -> WindowPhase:
        """Classify *now* against today's window."""
        local = now.astimezone(self.tz)
        if local.isoweekday() > self.weekday_limit:
            return WindowPhase.OFF_DAY

        start, end = self.bounds_for(local)
        if start <= local < end:
            return WindowPhase.INSIDE
        if local >= end:
            return WindowPhase.AFTER
        if self.pre_start_margin is not None and local < start - self.pre_start_margin:
            return WindowPhase.TOO_EARLY
        return WindowPhase.BEFORE
