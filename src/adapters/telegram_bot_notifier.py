"""Telegram bot notification adapter.

Delivers poller notifications through the same Telethon bot client that
receives the chat commands; the session id is the chat id.
"""

from __future__ import annotations

import logging

from adapters.notification_formatting import format_count, format_error
from core.models import NotificationCount

LOGGER = logging.getLogger(__name__)


class TelegramBotNotifier:
    """Notifier adapter that sends plain messages to a session's chat."""

    def __init__(self, client) -> None:
        self._client = client

    async def send_count(self, session_id: str, count: NotificationCount) -> None:
        await self.send_notice(session_id, format_count(count))

    async def send_error(self, session_id: str, error: Exception) -> None:
        await self.send_notice(session_id, format_error(error))

    async def send_notice(self, session_id: str, text: str) -> None:
        LOGGER.debug("Sending to chat %s: %s", session_id, text)
        await self._client.send_message(int(session_id), text)
