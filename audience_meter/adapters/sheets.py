"""Report sinks for the final per-minute block.

GoogleSheetsReportSink writes through the Sheets REST ``values.update``
endpoint.  It authenticates with a service-account key file (tokens are
minted and refreshed per write) or, for short manual runs, a pre-issued
bearer token, which Google expires after about an hour.  CsvReportSink
writes a local file.
"""

from __future__ import annotations

import asyncio
import csv
import logging
from pathlib import Path
from typing import Sequence
from urllib.parse import quote

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from audience_meter.adapters.base import FetchError, ReportSink, ReportSinkError
from audience_meter.adapters.http import request_json

logger = logging.getLogger(__name__)

SHEETS_VALUES_URL = "https://sheets.googleapis.com/v4/spreadsheets/{spreadsheet_id}/values/{range}"
SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class GoogleSheetsReportSink(ReportSink):
    """Overwrites a spreadsheet range with the rows.

    Args:
        spreadsheet_id: Target spreadsheet.
        cell_range: A1 range the block is written to, e.g. ``Sheet1!A2``.
        access_token: Pre-issued bearer token; used only without a key file.
        credentials_file: Service-account JSON key; preferred over the token.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        cell_range: str,
        access_token: str = "",
        credentials_file: Path | str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not spreadsheet_id:
            raise ValueError("spreadsheet_id is required")
        if not access_token and credentials_file is None:
            raise ValueError("either access_token or credentials_file is required")
        self._spreadsheet_id = spreadsheet_id
        self._range = cell_range
        self._access_token = access_token
        self._credentials = None
        if credentials_file is not None:
            self._credentials = service_account.Credentials.from_service_account_file(
                str(credentials_file), scopes=SHEETS_SCOPES,
            )
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def sink_name(self) -> str:
        return "google_sheets"

    async def _bearer_token(self) -> str:
        if self._credentials is None:
            return self._access_token
        if not self._credentials.valid:
            try:
                await asyncio.to_thread(self._credentials.refresh, Request(self._session))
            except (GoogleAuthError, requests.RequestException) as exc:
                raise ReportSinkError(f"service account token refresh failed: {exc}") from exc
        return self._credentials.token

    async def write(self, rows: Sequence[Sequence[str | int]]) -> None:
        url = SHEETS_VALUES_URL.format(
            spreadsheet_id=self._spreadsheet_id,
            range=quote(self._range, safe=""),
        )
        token = await self._bearer_token()
        try:
            body = await request_json(
                self._session,
                "PUT",
                url,
                source_name=self.sink_name,
                timeout=self._timeout,
                headers={"Authorization": f"Bearer {token}"},
                params={"valueInputOption": "USER_ENTERED"},
                json={"range": self._range, "values": [list(r) for r in rows]},
            )
        except FetchError as exc:
            raise ReportSinkError(str(exc)) from exc
        logger.info("Updated %s cell(s) in %s", body.get("updatedCells", "?"), self._range)


class CsvReportSink(ReportSink):
    """Writes ``minute,count`` rows to a CSV file, replacing it."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def sink_name(self) -> str:
        return "csv"

    async def write(self, rows: Sequence[Sequence[str | int]]) -> None:
        try:
            await asyncio.to_thread(self._write_sync, rows)
        except OSError as exc:
            raise ReportSinkError(f"cannot write {self._path}: {exc}") from exc
        logger.info("Wrote %d row(s) to %s", len(rows), self._path)

    def _write_sync(self, rows: Sequence[Sequence[str | int]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            writer.writerow(["minute", "count"])
            writer.writerows(rows)
