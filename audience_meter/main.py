"""audience-meter — windowed viewer sampling and per-minute occupancy reports.

This is the application entry point.  It wires the SampleLog, the
Active-Window Sampler, the Zoom OAuth client and the aggregation session
endpoint together.

Run with:  uvicorn audience_meter.main:app
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator

from fastapi import FastAPI

from audience_meter.adapters.base import ReportSink
from audience_meter.adapters.sheets import CsvReportSink, GoogleSheetsReportSink
from audience_meter.adapters.youtube import YouTubeLiveViewerCounter
from audience_meter.adapters.zoom import ZoomOAuthClient, ZoomParticipantRoster
from audience_meter.api.session import create_session_router
from audience_meter.config import load_settings
from audience_meter.core.sampler import ActiveWindowSampler
from audience_meter.foundation.clock import local_now
from audience_meter.services.session import AggregationSession, resolve_session_day
from audience_meter.store.sample_log import SampleLog

# ── Settings ─────────────────────────────────────────────────────────────────

settings = load_settings()

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger("audience_meter")

# ── Storage ──────────────────────────────────────────────────────────────────

sample_log = SampleLog(settings.sample_log_dir, settings.tz, settings.sample_log_source)

# ── Sampler ──────────────────────────────────────────────────────────────────

sampler: ActiveWindowSampler | None = None
if settings.youtube_api_key and settings.youtube_channel_id:
    counter = YouTubeLiveViewerCounter(
        settings.youtube_api_key,
        settings.youtube_channel_id,
        timeout=settings.http_timeout_seconds,
    )
    sampler = ActiveWindowSampler(
        window=settings.active_window(),
        fetch=counter.fetch,
        sample_log=sample_log,
        tick_interval=settings.tick_interval,
    )

# ── Aggregation ──────────────────────────────────────────────────────────────

oauth = ZoomOAuthClient(
    settings.zoom_client_id,
    settings.zoom_client_secret,
    settings.zoom_redirect_url,
    timeout=settings.http_timeout_seconds,
)


def _report_sink() -> ReportSink | None:
    has_auth = settings.sheets_credentials_file is not None or settings.sheets_access_token
    if settings.sheets_spreadsheet_id and has_auth:
        return GoogleSheetsReportSink(
            settings.sheets_spreadsheet_id,
            settings.sheets_range,
            access_token=settings.sheets_access_token,
            credentials_file=settings.sheets_credentials_file,
            timeout=settings.http_timeout_seconds,
        )
    if settings.report_csv_path is not None:
        return CsvReportSink(settings.report_csv_path)
    return None


def build_session(access_token: str, day: date | None = None) -> AggregationSession:
    roster = ZoomParticipantRoster(
        access_token,
        settings.zoom_meeting_id,
        timeout=settings.http_timeout_seconds,
    )
    return AggregationSession(
        roster=roster,
        sample_log=sample_log,
        day=resolve_session_day(
            day,
            sampler.last_minute if sampler is not None else None,
            local_now(settings.tz),
        ),
        tz=settings.tz,
        sink=_report_sink(),
    )


# ── App ──────────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    task: asyncio.Task | None = None
    if sampler is not None and settings.sampler_autostart:
        task = asyncio.create_task(sampler.run())
    elif settings.sampler_autostart:
        logger.warning("Sampler autostart requested but YouTube credentials are missing")
    yield
    if task is not None:
        sampler.stop("shutdown")
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


app = FastAPI(
    title=settings.app_name,
    description="Windowed live-viewer sampling and per-minute occupancy aggregation",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_session_router(oauth, build_session))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    status: dict = {"status": "ok", "sampler": None}
    if sampler is not None:
        report = sampler.report()
        status["sampler"] = {
            "state": sampler.state.value,
            "last_minute": sampler.last_minute.isoformat() if sampler.last_minute else None,
            **report.model_dump(mode="json"),
        }
    return status
