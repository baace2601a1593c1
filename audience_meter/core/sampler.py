"""ActiveWindowSampler — polls an external counter once per minute in-window.

States:  idle → polling → stopped
    - idle:     before today's window, waiting
    - polling:  inside the window, one fetch per tick
    - stopped:  terminal; entered once, no further ticks are processed

Design notes:
    - The sampler owns its repeating timer.  run() schedules the next tick
      only after the current one has completed, so ticks never overlap.
    - The last sampled minute is instance state.  Reaching the same minute
      twice skips the second fetch; one sample per minute per run.
    - Fetch failures are observed and logged; the tick completes without a
      sample and the next tick retries naturally.
    - Window boundaries are evaluated on every tick regardless of whether
      previous fetches succeeded.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from audience_meter.core.window import ActiveWindow
from audience_meter.domain.enums import SamplerState, TickOutcome, WindowPhase
from audience_meter.domain.reports import SamplerReport
from audience_meter.foundation import clock
from audience_meter.foundation.minutes import ONE_MINUTE, floor_to_minute
from audience_meter.store.sample_log import SampleLog

logger = logging.getLogger(__name__)

CounterFetch = Callable[[], Awaitable[Optional[int]]]

_STOP_PHASES = {WindowPhase.OFF_DAY, WindowPhase.AFTER, WindowPhase.TOO_EARLY}


class ActiveWindowSampler:
    """Window-gated, once-per-minute sampler for one counter source.

    Args:
        window: The daily active window (time zone included).
        fetch: Async callable returning the current count, or None when no
            live session exists right now.  May raise on transient errors.
        sample_log: Where successful samples are appended.
        tick_interval: Cadence of the repeating timer.
        now: Clock override returning an aware datetime.
        sleep: Awaitable sleep override, for tests.
    """

    def __init__(
        self,
        window: ActiveWindow,
        fetch: CounterFetch,
        sample_log: SampleLog,
        tick_interval: timedelta = ONE_MINUTE,
        now: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if tick_interval <= timedelta(0):
            raise ValueError("tick_interval must be positive")

        self._window = window
        self._fetch = fetch
        self._log = sample_log
        self._tick_interval = tick_interval
        self._now = now or (lambda: clock.local_now(window.tz))
        self._sleep = sleep

        self._state = SamplerState.IDLE
        self._last_minute: datetime | None = None
        self._stopped_at: datetime | None = None
        self._stop_reason: str | None = None
        self.fetch_attempts = 0
        self.samples_recorded = 0
        self.fetch_failures = 0

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def state(self) -> SamplerState:
        return self._state

    @property
    def is_stopped(self) -> bool:
        return self._state == SamplerState.STOPPED

    @property
    def last_minute(self) -> datetime | None:
        """The most recent minute a fetch was attempted for."""
        return self._last_minute

    def report(self) -> SamplerReport:
        return SamplerReport(
            fetch_attempts=self.fetch_attempts,
            samples_recorded=self.samples_recorded,
            fetch_failures=self.fetch_failures,
            stopped_at=self._stopped_at,
            stop_reason=self._stop_reason,
        )

    # ── Tick ─────────────────────────────────────────────────────────────

    async def tick(self, now: datetime | None = None) -> TickOutcome:
        """Evaluate one scheduled tick at *now* (defaults to the clock)."""
        if self.is_stopped:
            return TickOutcome.STOPPED

        now = (now or self._now()).astimezone(self._window.tz)
        phase = self._window.phase(now)

        if phase in _STOP_PHASES:
            self._enter_stopped(now, phase.value)
            return TickOutcome.STOPPED
        if phase == WindowPhase.BEFORE:
            logger.debug("Waiting for window to open (now=%s)", now)
            return TickOutcome.WAITING

        if self._state == SamplerState.IDLE:
            logger.info("Active window open at %s, polling", now)
        self._state = SamplerState.POLLING

        minute = floor_to_minute(now)
        if minute == self._last_minute:
            logger.warning("Minute %s already sampled this run, skipping", minute)
            return TickOutcome.SKIPPED_DUPLICATE
        self._last_minute = minute

        self.fetch_attempts += 1
        try:
            count = await self._fetch()
        except Exception as exc:
            self.fetch_failures += 1
            logger.warning("Counter fetch failed at %s: %s", minute, exc)
            return TickOutcome.FETCH_FAILED

        if count is None:
            logger.info("No live session at %s", minute)
            return TickOutcome.NO_SESSION

        try:
            self._log.append(minute.date(), minute, count)
        except (OSError, ValueError) as exc:
            logger.error("Could not record sample %s → %r: %s", minute, count, exc)
            return TickOutcome.WRITE_FAILED

        self.samples_recorded += 1
        logger.info("Recorded %d viewers at %s", count, minute)
        return TickOutcome.SAMPLED

    # ── Timer ────────────────────────────────────────────────────────────

    async def run(self) -> SamplerReport:
        """Drive ticks until the sampler stops, then return its report."""
        logger.info("Sampler started (window %s–%s)", self._window.start, self._window.end)
        while not self.is_stopped:
            await self.tick()
            if self.is_stopped:
                break
            await self._sleep(self._seconds_until_next_tick())
        logger.info("Sampler finished: %d sample(s) recorded", self.samples_recorded)
        return self.report()

    def stop(self, reason: str = "cancelled") -> None:
        """Stop from outside the timer (e.g. host shutdown)."""
        self._enter_stopped(self._now(), reason)

    def _seconds_until_next_tick(self) -> float:
        interval = self._tick_interval.total_seconds()
        remainder = self._now().timestamp() % interval
        delay = interval - remainder
        return delay if delay > 0 else interval

    def _enter_stopped(self, now: datetime, reason: str) -> None:
        if self.is_stopped:
            return
        self._state = SamplerState.STOPPED
        self._stopped_at = now
        self._stop_reason = reason
        logger.info("Sampler stopped at %s (%s)", now, reason)
