"""Abstract bases for the external collaborators around the core.

Counter sources, roster sources and report sinks wrap third-party APIs.
They translate transport and payload details into the core's contracts and
nothing more.

Architectural rules:
    1. Every call is async; blocking HTTP runs off the event loop.
    2. Transport and payload failures surface as FetchError / ReportSinkError.
    3. A counter returning None means "no live session", not an error.
    4. No adapter touches the sample log or the merger directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from audience_meter.domain.interval import ParticipantInterval


class FetchError(Exception):
    """Raised when an external source cannot be read."""

    def __init__(self, source_name: str, reason: str) -> None:
        self.source_name = source_name
        self.reason = reason
        super().__init__(f"Source '{source_name}' failed: {reason}")


class ReportSinkError(Exception):
    """Raised when a report sink rejects or cannot persist the rows."""


class CounterSource(ABC):
    """A live counter, e.g. concurrent viewers of a stream."""

    @abstractmethod
    async def fetch(self) -> Optional[int]:
        """Return the current count, or None if nothing is live.

        Raises:
            FetchError: On transport or payload failure.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        ...


class RosterSource(ABC):
    """A participant roster with join/leave timestamps."""

    @abstractmethod
    async def fetch(self) -> list[ParticipantInterval]:
        """Return one interval per attendee.

        Raises:
            FetchError: On authorization, transport or payload failure.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        ...


class ReportSink(ABC):
    """Destination for the final ``[minute_key, count]`` block."""

    @abstractmethod
    async def write(self, rows: Sequence[Sequence[str | int]]) -> None:
        ...

    @property
    @abstractmethod
    def sink_name(self) -> str:
        ...
