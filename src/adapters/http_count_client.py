"""HTTP adapter for the unread-room count endpoint.

Implements the core CountClientPort with aiohttp so a request can be aborted
by cancelling the poller task and is bounded by a total timeout.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from core.config import EndpointConfig
from core.errors import NetworkError, ProtocolError
from core.models import NotificationCount

LOGGER = logging.getLogger(__name__)


def parse_count(payload: Any) -> NotificationCount:
    """Validate the endpoint body and build a NotificationCount."""

    if not isinstance(payload, dict):
        raise ProtocolError("Response body is not an object")
    rooms_count = payload.get("rooms_count")
    if isinstance(rooms_count, bool) or not isinstance(rooms_count, int) or rooms_count < 0:
        raise ProtocolError("Response has no valid rooms_count")
    return NotificationCount(rooms_count=rooms_count)


class HttpCountClient:
    """Fetches the count with the session's token and referer headers."""

    def __init__(self, config: EndpointConfig, session: Optional[aiohttp.ClientSession] = None) -> None:
        self._config = config
        self._session = session
        self._owns_session = session is None

    def _client_session(self) -> aiohttp.ClientSession:
        # Created lazily so construction does not need a running event loop.
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._config.request_timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def fetch_count(self, auth_token: str, referer: str) -> NotificationCount:
        headers = {
            "Referer": referer,
            "Origin": referer,
            self._config.token_header: auth_token,
        }
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout_seconds)
        try:
            async with self._client_session().get(
                self._config.url, headers=headers, timeout=timeout
            ) as response:
                if response.status != 200:
                    raise ProtocolError(
                        f"Got non 200 response status {response.status}",
                        status=response.status,
                    )
                payload = await response.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise NetworkError(f"Request failed: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise NetworkError("Request timed out") from exc
        except ValueError as exc:
            raise ProtocolError("Response body is not valid JSON") from exc

        return parse_count(payload)

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        LOGGER.debug("Count client closed")
