"""Interval Bucketizer — participant intervals to a per-minute presence count.

Normalisation rules:
    - join time floors to the start of its minute
    - leave time floors, then advances one minute, so any partial minute
      at the end counts as attended
    - duration = round((leave - join) / 1 min), clamped to >= 0

Each interval contributes +1 to ``duration`` consecutive minutes starting at
the normalised join minute.  The result equals a sweep-line occupancy count
over the normalised [join, leave) ranges.

Keys are UTC instants.  Local wall-clock minutes repeat at a DST fall-back
and datetimes sharing a tzinfo ignore ``fold`` when compared, so conversion
to the configured zone happens only when rows are rendered
(``CombinedSeries.rows``).

Pure function.  No I/O, no clock, no state.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from audience_meter.domain.interval import ParticipantInterval
from audience_meter.domain.series import MinuteSeries
from audience_meter.foundation.minutes import ONE_MINUTE, floor_to_minute


def presence_minutes(interval: ParticipantInterval) -> tuple[datetime, int]:
    """Return the normalised join minute (UTC) and the presence length in minutes."""
    join = floor_to_minute(interval.join_time.astimezone(timezone.utc))
    leave = floor_to_minute(interval.leave_time.astimezone(timezone.utc)) + ONE_MINUTE
    duration = round((leave - join) / ONE_MINUTE)
    return join, max(duration, 0)


def bucketize(intervals: Iterable[ParticipantInterval]) -> MinuteSeries:
    """Count, for every UTC minute, how many intervals overlap it.

    Returns:
        A dict ordered by minute ascending.  Source order is irrelevant.
    """
    counts: dict[datetime, int] = {}
    for interval in intervals:
        join, duration = presence_minutes(interval)
        for offset in range(duration):
            minute = join + offset * ONE_MINUTE
            counts[minute] = counts.get(minute, 0) + 1
    return dict(sorted(counts.items()))
