"""Controlled enumerations for the audience-meter domain.

Every categorical field in the domain MUST reference an enum defined here.
"""

from __future__ import annotations

from enum import Enum


class SamplerState(str, Enum):
    """Lifecycle of one Active-Window Sampler run: idle → polling → stopped."""

    IDLE = "idle"
    POLLING = "polling"
    STOPPED = "stopped"


class WindowPhase(str, Enum):
    """Where a point in time falls relative to today's active window."""

    OFF_DAY = "off_day"
    TOO_EARLY = "too_early"
    BEFORE = "before"
    INSIDE = "inside"
    AFTER = "after"


class TickOutcome(str, Enum):
    """What a single sampler tick did."""

    WAITING = "waiting"
    SAMPLED = "sampled"
    NO_SESSION = "no_session"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    FETCH_FAILED = "fetch_failed"
    WRITE_FAILED = "write_failed"
    STOPPED = "stopped"
