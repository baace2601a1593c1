"""Immutable results handed back by the sampler and the aggregation session."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class SamplerReport(BaseModel):
    """Summary of one Active-Window Sampler run."""

    fetch_attempts: int = 0
    samples_recorded: int = 0
    fetch_failures: int = 0
    stopped_at: Optional[datetime] = None
    stop_reason: Optional[str] = None

    model_config = {"frozen": True}


class SessionResult(BaseModel):
    """Outcome of a run-once aggregation session."""

    day: date
    rows: list[tuple[str, int]] = Field(default_factory=list)
    max_count: int = 0
    peak_minute: Optional[str] = None
    participant_count: int = Field(0, description="Roster entries that were bucketized")
    logged_samples: int = Field(0, description="Sample log records read for the day")
    failed_sources: list[str] = Field(
        default_factory=list,
        description="Collaborators that failed and were treated as empty",
    )

    model_config = {"frozen": True}
