"""Zoom OAuth and past-meeting participant roster.

OAuth (authorization-code grant):
    1. redirect the operator to ``authorize_url()``
    2. Zoom redirects back with ``?code=…``
    3. ``exchange_code(code)`` returns a bearer access token

Roster payload (abridged, one page):
{
    "next_page_token": "",
    "participants": [
        {"name": "Alice", "join_time": "2024-05-01T12:00:30Z",
         "leave_time": "2024-05-01T12:02:10Z"}
    ]
}
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

import requests
from pydantic import ValidationError

from audience_meter.adapters.base import FetchError, RosterSource
from audience_meter.adapters.http import request_json
from audience_meter.domain.interval import ParticipantInterval

logger = logging.getLogger(__name__)

ZOOM_API_BASE = "https://api.zoom.us/v2"
ZOOM_AUTHORIZE_URL = "https://zoom.us/oauth/authorize"
ZOOM_TOKEN_URL = "https://zoom.us/oauth/token"

PAGE_SIZE = 300


class ZoomOAuthClient:
    """Authorization-code exchange for a Zoom OAuth app."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_url: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_url = redirect_url
        self._timeout = timeout
        self._session = session or requests.Session()

    def authorize_url(self) -> str:
        query = urlencode({
            "response_type": "code",
            "client_id": self._client_id,
            "redirect_uri": self._redirect_url,
        })
        return f"{ZOOM_AUTHORIZE_URL}?{query}"

    async def exchange_code(self, code: str) -> str:
        """Trade an authorization code for an access token.

        Raises:
            FetchError: If the exchange fails or no token is returned.
        """
        body = await request_json(
            self._session,
            "POST",
            ZOOM_TOKEN_URL,
            source_name="zoom_oauth",
            timeout=self._timeout,
            params={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._redirect_url,
            },
            auth=(self._client_id, self._client_secret),
        )
        token = body.get("access_token")
        if not token:
            raise FetchError("zoom_oauth", body.get("reason") or "no access_token in response")
        return token


def parse_participants(payload: dict[str, Any]) -> list[ParticipantInterval]:
    """Convert one roster page to intervals, dropping unusable entries."""
    intervals: list[ParticipantInterval] = []
    for entry in payload.get("participants") or []:
        if not entry.get("join_time") or not entry.get("leave_time"):
            logger.warning("Skipping participant without join/leave time: %s", entry.get("name"))
            continue
        try:
            intervals.append(ParticipantInterval.model_validate({
                "join_time": entry["join_time"],
                "leave_time": entry["leave_time"],
                "participant": entry.get("name") or entry.get("user_email"),
            }))
        except ValidationError as exc:
            logger.warning("Skipping malformed participant %s: %s", entry.get("name"), exc)
    return intervals


class ZoomParticipantRoster(RosterSource):
    """Roster of a finished Zoom meeting, fetched with a user access token."""

    def __init__(
        self,
        access_token: str,
        meeting_id: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not meeting_id:
            raise ValueError("Zoom meeting_id is required")
        self._access_token = access_token
        self._meeting_id = meeting_id
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def source_name(self) -> str:
        return "zoom_participants"

    async def fetch(self) -> list[ParticipantInterval]:
        url = f"{ZOOM_API_BASE}/past_meetings/{self._meeting_id}/participants"
        headers = {"Authorization": f"Bearer {self._access_token}"}
        intervals: list[ParticipantInterval] = []
        page_token = ""

        while True:
            params: dict[str, Any] = {"page_size": PAGE_SIZE}
            if page_token:
                params["next_page_token"] = page_token
            payload = await request_json(
                self._session,
                "GET",
                url,
                source_name=self.source_name,
                timeout=self._timeout,
                headers=headers,
                params=params,
            )
            intervals.extend(parse_participants(payload))
            page_token = payload.get("next_page_token") or ""
            if not page_token:
                break

        logger.info("Fetched %d participant interval(s) for meeting %s", len(intervals), self._meeting_id)
        return intervals
