"""Series Merger — sum N per-minute series and track the peak.

Inputs may be mappings (minute → count) or sequences of (minute, count)
pairs; the latter is how the sample log hands back duplicate minutes, which
are resolved here by summation like any other overlap.

The running maximum is folded over *fully combined* minutes only, in
chronological order, so a partial sum seen mid-merge can never become the
peak.  Result is independent of input order.

Keys are normalised to UTC: two local minutes repeated by a DST fall-back
share a tzinfo and would otherwise collide.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Mapping, Union

from audience_meter.domain.series import CombinedSeries

logger = logging.getLogger(__name__)

SeriesLike = Union[Mapping[datetime, int], Iterable[tuple[datetime, int]]]


def _entries(series: SeriesLike) -> Iterable[tuple[datetime, int]]:
    if isinstance(series, Mapping):
        return series.items()
    return series


def merge_series(series: Iterable[SeriesLike]) -> CombinedSeries:
    """Combine per-minute series into totals, max_count and peak_minute."""
    totals: dict[datetime, int] = {}
    for source in series:
        for minute, count in _entries(source):
            if count < 0:
                logger.warning("Ignoring negative count %d at %s", count, minute)
                continue
            key = minute.astimezone(timezone.utc)
            totals[key] = totals.get(key, 0) + count

    max_count = 0
    peak_minute: datetime | None = None
    ordered = dict(sorted(totals.items()))
    for minute, total in ordered.items():
        if total > max_count:
            max_count = total
            peak_minute = minute

    return CombinedSeries(totals=ordered, max_count=max_count, peak_minute=peak_minute)
