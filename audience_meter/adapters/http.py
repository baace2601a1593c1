"""Shared JSON-over-HTTP helper for the adapters.

``requests`` is blocking, so every call is pushed to a worker thread with
``asyncio.to_thread``; callers only ever see a coroutine.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests

from audience_meter.adapters.base import FetchError

logger = logging.getLogger(__name__)


async def request_json(
    session: requests.Session,
    method: str,
    url: str,
    *,
    source_name: str,
    timeout: float,
    **kwargs: Any,
) -> dict[str, Any]:
    """Perform one HTTP request and decode a JSON object body.

    Raises:
        FetchError: On connection errors, non-2xx status or a non-object body.
    """

    def _call() -> dict[str, Any]:
        response = session.request(method, url, timeout=timeout, **kwargs)
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"expected a JSON object, got {type(body).__name__}")
        return body

    try:
        return await asyncio.to_thread(_call)
    except (requests.RequestException, ValueError) as exc:
        logger.debug("%s %s failed: %s", method, url, exc)
        raise FetchError(source_name, str(exc)) from exc
