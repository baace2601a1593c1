"""Per-minute series value objects.

A Per-Minute Series is a plain ``dict[datetime, int]`` keyed by minute
(see ``foundation.minutes``).  This module holds the persisted sample record
and the derived Combined Series.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

from pydantic import BaseModel, Field

from audience_meter.foundation.minutes import format_minute_key

MinuteSeries = dict[datetime, int]


class SampleRecord(BaseModel):
    """One line of the append-only sample log."""

    minute: datetime
    count: int = Field(..., ge=0)

    model_config = {"frozen": True}


class CombinedSeries(BaseModel):
    """Element-wise sum of several per-minute series plus its peak.

    Derived at merge time and never persisted on its own.
    """

    totals: dict[datetime, int] = Field(default_factory=dict)
    max_count: int = Field(0, ge=0, description="Largest combined per-minute total")
    peak_minute: Optional[datetime] = Field(
        None, description="Earliest minute at which max_count was reached"
    )

    model_config = {"frozen": True}

    def rows(self, tz: tzinfo | None = None) -> list[list[str | int]]:
        """Ordered ``[minute_key, count]`` rows for a report sink."""
        return [
            [format_minute_key(minute, tz), count]
            for minute, count in sorted(self.totals.items())
        ]
