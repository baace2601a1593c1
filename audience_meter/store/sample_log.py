"""Append-only, day-scoped sample log for one external counter source.

Design notes:
    - One text file per calendar day: ``<dir>/<YYYY-MM-DD>_<source>.txt``,
      created lazily on the first write of that day.
    - One record per line: ``YYYY-MM-DD HH:MM <count>``.
    - Records are never rewritten.  A minute written twice yields two
      records; the series merger sums them.
    - Single writer per run, so no locking.
    - Malformed lines are dropped on read, never fatal.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo
from pathlib import Path

from audience_meter.domain.series import SampleRecord
from audience_meter.foundation.minutes import MINUTE_KEY_FORMAT, floor_to_minute

logger = logging.getLogger(__name__)

_TIME_FORMATS = (MINUTE_KEY_FORMAT, "%Y-%m-%d %H:%M:%S")


class SampleLog:
    """File-backed per-minute counter samples, keyed by calendar day.

    Args:
        directory: Where the daily files live.  Created on first append.
        tz: Time zone the minute keys are written and read in.
        source: Suffix naming the counter source in the file name.
    """

    def __init__(self, directory: Path | str, tz: tzinfo, source: str = "YouTube") -> None:
        if not source or any(ch.isspace() or ch in "/\\" for ch in source):
            raise ValueError(f"invalid sample log source name: {source!r}")
        self._directory = Path(directory)
        self._tz = tz
        self._source = source

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def source_name(self) -> str:
        return self._source

    def path_for(self, day: date) -> Path:
        return self._directory / f"{day:%Y-%m-%d}_{self._source}.txt"

    # ── Public API ───────────────────────────────────────────────────────

    def append(self, day: date, minute: datetime, count: int) -> SampleRecord:
        """Append one ``minute → count`` record to *day*'s log and return it.

        Raises:
            ValueError: If *count* is negative.
            OSError: If the file cannot be written.
        """
        if count < 0:
            raise ValueError(f"sample count must be non-negative, got {count}")
        record = SampleRecord(minute=floor_to_minute(minute.astimezone(self._tz)), count=count)

        path = self.path_for(day)
        self._directory.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(self.format_record(record))
        logger.debug("Appended %s → %d to %s", record.minute, record.count, path.name)
        return record

    def read_all(self, day: date) -> list[SampleRecord]:
        """All well-formed records for *day*, in append order."""
        path = self.path_for(day)
        if not path.exists():
            logger.info("No sample log for %s at %s", day, path)
            return []

        records: list[SampleRecord] = []
        # Undecodable bytes become U+FFFD so parse_line rejects just that line
        with path.open("r", encoding="utf-8", errors="replace") as fh:
            for lineno, line in enumerate(fh, start=1):
                if not line.strip():
                    continue
                record = self.parse_line(line, self._tz)
                if record is None:
                    logger.warning(
                        "Dropping malformed record %s:%d: %r", path.name, lineno, line.rstrip("\n")
                    )
                    continue
                records.append(record)
        return records

    def read_series(self, day: date) -> list[tuple[datetime, int]]:
        """Records for *day* as ``(minute, count)`` pairs, duplicates kept."""
        return [(r.minute, r.count) for r in self.read_all(day)]

    # ── Line format ──────────────────────────────────────────────────────

    @staticmethod
    def format_record(record: SampleRecord) -> str:
        return f"{record.minute.strftime(MINUTE_KEY_FORMAT)} {record.count}\n"

    @staticmethod
    def parse_line(line: str, tz: tzinfo) -> SampleRecord | None:
        """Parse ``date time count`` or return None if the line is malformed."""
        fields = line.split()
        if len(fields) != 3:
            return None
        day_part, time_part, count_part = fields

        minute: datetime | None = None
        for fmt in _TIME_FORMATS:
            try:
                minute = datetime.strptime(f"{day_part} {time_part}", fmt)
                break
            except ValueError:
                continue
        if minute is None:
            return None

        if not (count_part.isascii() and count_part.isdigit()):
            return None
        return SampleRecord(
            minute=floor_to_minute(minute).replace(tzinfo=tz),
            count=int(count_part),
        )
