"""ParticipantInterval — one attendee's presence in a conferencing session.

Immutable once received.  ``leave_time`` is expected to be at or after
``join_time`` but this is NOT enforced here: the bucketizer clamps a
negative presence to zero instead of rejecting the roster.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ParticipantInterval(BaseModel):
    """A single join/leave pair from the participant roster."""

    join_time: datetime = Field(..., description="When the participant joined")
    leave_time: datetime = Field(..., description="When the participant left")
    participant: Optional[str] = Field(
        default=None,
        max_length=256,
        description="Display name or id, for diagnostics only",
    )

    model_config = {"frozen": True}

    @field_validator("join_time", "leave_time")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime) -> datetime:
        # Roster APIs report UTC; a naive timestamp is read as UTC
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return v
