from __future__ import annotations

import asyncio

from adapters.telegram_bot_notifier import TelegramBotNotifier
from core.errors import NetworkError
from core.models import NotificationCount


class FakeClient:
    def __init__(self) -> None:
        self.sent: list[tuple[int, str]] = []

    async def send_message(self, entity: int, message: str) -> None:
        self.sent.append((entity, message))


def test_messages_go_to_the_session_chat() -> None:
    client = FakeClient()
    notifier = TelegramBotNotifier(client)

    async def scenario() -> None:
        await notifier.send_count("-1001", NotificationCount(rooms_count=2))
        await notifier.send_error("42", NetworkError("Request timed out"))
        await notifier.send_notice("42", "Continue polling after restart")

    asyncio.run(scenario())

    assert client.sent == [
        (-1001, "2 rooms have new messages"),
        (42, "NetworkError: Request timed out"),
        (42, "Continue polling after restart"),
    ]
