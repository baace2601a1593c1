"""OAuth callback endpoint that triggers the end-of-event aggregation.

Path: GET /

    - no ``code`` query parameter → redirect to the Zoom authorize page
    - ``?code=…`` → exchange the code, run an AggregationSession, return
      its SessionResult as JSON
    - optional ``day=YYYY-MM-DD`` selects the sample log to aggregate
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import RedirectResponse

from audience_meter.adapters.base import FetchError
from audience_meter.adapters.zoom import ZoomOAuthClient
from audience_meter.services.session import AggregationSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[[str, Optional[date]], AggregationSession]


def create_session_router(
    oauth: ZoomOAuthClient,
    session_factory: SessionFactory,
) -> APIRouter:
    """Factory that wires the callback to an OAuth client and a session builder.

    Args:
        oauth: Client used for the redirect URL and the code exchange.
        session_factory: Builds a fresh AggregationSession from an access token
            and the requested day (None lets the factory choose).
    """

    router = APIRouter(tags=["session"])

    @router.get("/", response_model=None)
    async def oauth_callback(code: Optional[str] = None, day: Optional[date] = None) -> Any:
        if not code:
            return RedirectResponse(oauth.authorize_url())

        try:
            access_token = await oauth.exchange_code(code)
        except FetchError as exc:
            logger.error("OAuth code exchange failed: %s", exc)
            raise HTTPException(status_code=502, detail="Authorization code exchange failed")

        session = session_factory(access_token, day)
        result = await session.run()
        return result.model_dump(mode="json")

    return router
