"""AggregationSession — the run-once end-of-event aggregation.

Steps:
    1. fetch the participant roster and bucketize it
    2. read the day's counter samples from the sample log
    3. merge both per-minute series and find the peak
    4. hand the ordered rows to the report sink (if any)

A failing collaborator never aborts the session: its data counts as zero
for every minute and its name is listed in ``failed_sources``.  The work
runs once; awaiting ``run()`` again returns the same result.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, tzinfo

from audience_meter.adapters.base import FetchError, ReportSink, ReportSinkError, RosterSource
from audience_meter.core.bucketizer import bucketize
from audience_meter.core.merger import merge_series
from audience_meter.domain.reports import SessionResult
from audience_meter.domain.series import MinuteSeries
from audience_meter.foundation.minutes import format_minute_key
from audience_meter.store.sample_log import SampleLog

logger = logging.getLogger(__name__)


class AggregationSession:
    """Combines roster presence and logged counter samples for one day."""

    def __init__(
        self,
        roster: RosterSource,
        sample_log: SampleLog,
        day: date,
        tz: tzinfo,
        sink: ReportSink | None = None,
    ) -> None:
        self._roster = roster
        self._sample_log = sample_log
        self._day = day
        self._tz = tz
        self._sink = sink
        self._task: asyncio.Task[SessionResult] | None = None

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    async def run(self) -> SessionResult:
        """Execute the session once and return its result."""
        if self._task is None:
            self._task = asyncio.ensure_future(self._execute())
        return await asyncio.shield(self._task)

    async def _execute(self) -> SessionResult:
        failed: list[str] = []

        roster_series: MinuteSeries = {}
        participant_count = 0
        try:
            intervals = await self._roster.fetch()
            participant_count = len(intervals)
            roster_series = bucketize(intervals)
        except FetchError as exc:
            logger.warning("Roster unavailable, counting it as zero: %s", exc)
            failed.append(self._roster.source_name)

        logged: list[tuple[datetime, int]] = []
        try:
            logged = self._sample_log.read_series(self._day)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Sample log unreadable, counting it as zero: %s", exc)
            failed.append(self._sample_log.source_name)

        combined = merge_series([roster_series, logged])
        rows = combined.rows(self._tz)

        if self._sink is not None:
            try:
                await self._sink.write(rows)
            except ReportSinkError as exc:
                logger.error("Report sink %s failed: %s", self._sink.sink_name, exc)
                failed.append(self._sink.sink_name)

        peak = combined.peak_minute
        logger.info(
            "Session for %s: %d minute(s), peak %d at %s",
            self._day, len(rows), combined.max_count, peak,
        )
        return SessionResult(
            day=self._day,
            rows=[(key, count) for key, count in rows],
            max_count=combined.max_count,
            peak_minute=format_minute_key(peak, self._tz) if peak is not None else None,
            participant_count=participant_count,
            logged_samples=len(logged),
            failed_sources=failed,
        )


def resolve_session_day(
    requested: date | None,
    last_sampled: datetime | None,
    now: datetime,
) -> date:
    """Pick the calendar day a session aggregates.

    An explicit request wins, then the day of the last sampled minute, then
    today.  A callback arriving after local midnight still finds the log
    the sampler wrote.
    """
    if requested is not None:
        return requested
    if last_sampled is not None:
        return last_sampled.date()
    return now.date()
