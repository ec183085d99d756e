"""Typed events produced by a Poller.

A Poller hands these to a single async callback; the registry is the only
production consumer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from core.models import NotificationCount, SessionState


@dataclass(frozen=True)
class PollStarted:
    session_id: str


@dataclass(frozen=True)
class PollStopped:
    session_id: str
    commit: bool


@dataclass(frozen=True)
class CountPolled:
    """Emitted after every successful request, changed or not."""

    session_id: str
    count: NotificationCount


@dataclass(frozen=True)
class CountChanged:
    """Emitted once per distinct new value."""

    session_id: str
    previous: NotificationCount
    count: NotificationCount


@dataclass(frozen=True)
class StateChanged:
    session_id: str
    state: SessionState


@dataclass(frozen=True)
class PollFailed:
    session_id: str
    error: Exception


PollerEvent = Union[PollStarted, PollStopped, CountPolled, CountChanged, StateChanged, PollFailed]

EventCallback = Callable[[PollerEvent], Awaitable[None]]
