"""Ports (interfaces) used by the core poller.

Ports define the minimal contracts for storage, notification and endpoint
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Optional, Protocol

from core.models import NotificationCount, SessionState


class StoragePort(Protocol):
    """Durable session_id -> SessionState mapping."""

    def read(self, session_id: str) -> Optional[SessionState]:
        ...

    def write(self, session_id: str, state: SessionState) -> None:
        ...

    def list_keys(self) -> list[str]:
        ...


class NotifierPort(Protocol):
    """Delivery of chat messages for a session."""

    async def send_count(self, session_id: str, count: NotificationCount) -> None:
        ...

    async def send_error(self, session_id: str, error: Exception) -> None:
        ...

    async def send_notice(self, session_id: str, text: str) -> None:
        ...


class CountClientPort(Protocol):
    """Single request to the unread-room count endpoint."""

    async def fetch_count(self, auth_token: str, referer: str) -> NotificationCount:
        ...
