"""YouTubeLiveViewerCounter — concurrent viewers of a channel's live stream.

Two Data API v3 calls per fetch:
    1. search?channelId=…&eventType=live&type=video  → current live video id
    2. videos?id=…&part=liveStreamingDetails          → concurrentViewers

Expected (abridged) payloads:
    {"items": [{"id": {"videoId": "abc123"}}]}
    {"items": [{"liveStreamingDetails": {"concurrentViewers": "1532"}}]}
"""

from __future__ import annotations

from typing import Any, Optional

import requests

from audience_meter.adapters.base import CounterSource, FetchError
from audience_meter.adapters.http import request_json

SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"


def _first_item(payload: dict[str, Any]) -> dict[str, Any] | None:
    items = payload.get("items") or []
    return items[0] if items else None


class YouTubeLiveViewerCounter(CounterSource):
    """Counter source backed by the YouTube Data API."""

    def __init__(
        self,
        api_key: str,
        channel_id: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key or not channel_id:
            raise ValueError("YouTube api_key and channel_id are required")
        self._api_key = api_key
        self._channel_id = channel_id
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def source_name(self) -> str:
        return "youtube_live"

    async def fetch(self) -> Optional[int]:
        video_id = await self.live_video_id()
        if video_id is None:
            return None
        return await self.concurrent_viewers(video_id)

    async def live_video_id(self) -> str | None:
        """Id of the channel's current live broadcast, or None."""
        payload = await self._get(SEARCH_URL, {
            "part": "id",
            "channelId": self._channel_id,
            "eventType": "live",
            "type": "video",
        })
        item = _first_item(payload)
        if item is None:
            return None
        return (item.get("id") or {}).get("videoId")

    async def concurrent_viewers(self, video_id: str) -> Optional[int]:
        payload = await self._get(VIDEOS_URL, {"part": "liveStreamingDetails", "id": video_id})
        item = _first_item(payload)
        if item is None:
            return None
        raw = (item.get("liveStreamingDetails") or {}).get("concurrentViewers")
        if raw is None:
            # Broadcast ended between the two calls
            return None
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise FetchError(self.source_name, f"bad concurrentViewers {raw!r}") from exc

    async def _get(self, url: str, params: dict[str, str]) -> dict[str, Any]:
        return await request_json(
            self._session,
            "GET",
            url,
            source_name=self.source_name,
            timeout=self._timeout,
            params={**params, "key": self._api_key},
        )
