"""Domain errors shared by the core and its adapters.

Adapters translate library exceptions into these so the core and the chat
layer only ever reason about a small, fixed set of failure kinds.
"""

from __future__ import annotations

from typing import Optional


class TalkwatchError(Exception):
    """Base class for all errors surfaced to a chat."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class ConfigurationError(TalkwatchError):
    """A required session setting is missing."""

    def __init__(self, entity: str) -> None:
        super().__init__(f"{entity} must be set")
        self.entity = entity


class ValidationError(TalkwatchError):
    """A user-supplied setting is malformed."""


class StoreError(TalkwatchError):
    """The state store could not read or write a session record."""


class PollingError(TalkwatchError):
    """Base class for failures of a single count request."""


class ProtocolError(PollingError):
    """The endpoint answered, but not with a usable count."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class NetworkError(PollingError):
    """The request never produced a response (transport failure or timeout)."""
