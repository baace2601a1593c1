"""Timezone-aware clock utilities.

Every window and day computation in audience-meter happens in one configured
time zone.  This module is the single source of "now" so tests can
monkey-patch it trivially.
"""

from __future__ import annotations

from datetime import datetime, tzinfo


def local_now(tz: tzinfo) -> datetime:
    """Return the current time as an aware datetime in *tz*."""
    return datetime.now(tz)
