"""Per-session notification poller.

A Poller owns at most one asyncio task. The task requests the unread-room
count, records it, reports a change and only then sleeps for the
configured interval, so a session never has two requests in flight. The
task itself is the cancellation context: every start creates a new one and
stop cancels it, which aborts both the sleep and an in-flight request.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from core.errors import ConfigurationError, PollingError
from core.events import (
    CountChanged,
    CountPolled,
    EventCallback,
    PollerEvent,
    PollFailed,
    PollStarted,
    PollStopped,
    StateChanged,
)
from core.models import NotificationCount
from core.ports import CountClientPort
from core.state import SessionStateHandle

LOGGER = logging.getLogger(__name__)


class Poller:
    """Polls the count endpoint for one session and emits typed events."""

    def __init__(
        self,
        session_id: str,
        state: SessionStateHandle,
        client: CountClientPort,
        on_event: Optional[EventCallback] = None,
    ) -> None:
        self.session_id = session_id
        self._state = state
        self._client = client
        self._on_event = on_event
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> SessionStateHandle:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_polling(self) -> bool:
        return self._state.options.is_polling and self.is_running

    def bind_state(self, state: SessionStateHandle) -> None:
        """Swap the state handle; a running loop picks it up on its next step."""

        self._state = state

    async def get_count(self) -> NotificationCount:
        """Request the current count once. Never touches the recorded count."""

        options = self._state.options
        if not options.referer:
            raise ConfigurationError("referer")
        if not options.auth_token:
            raise ConfigurationError("token")
        return await self._client.fetch_count(options.auth_token, options.referer)

    async def start(self, force: bool = False) -> bool:
        """Start polling immediately. Returns False when already polling."""

        if self.is_polling and not force:
            LOGGER.warning("Session %s is already polling for notifications", self.session_id)
            return False

        await self._cancel_task()
        self._state.mark_started()
        self._task = asyncio.create_task(self._run(), name=f"poller-{self.session_id}")
        LOGGER.info("Started polling for session %s", self.session_id)
        await self._emit(PollStarted(self.session_id))
        return True

    async def stop(self, commit: bool = True) -> None:
        """Stop polling.

        A committed stop is the user's decision and also clears the resume
        intent. Internal stops after an error keep it, so the session polls
        again after the next boot.
        """

        self._state.mark_stopped(commit)
        await self._cancel_task()
        LOGGER.info("Stopped polling for session %s (commit=%s)", self.session_id, commit)
        await self._emit(PollStopped(self.session_id, commit))

    async def close(self) -> None:
        """Cancel the task without touching persisted flags (process shutdown)."""

        await self._cancel_task()

    async def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        # Stopping from inside the loop (error relay) lets the loop return on its own.
        if task is asyncio.current_task():
            return
        task.cancel()
        await asyncio.wait([task])

    async def _run(self) -> None:
        while self._state.options.is_polling:
            try:
                count = await self.get_count()
            except (PollingError, ConfigurationError) as exc:
                LOGGER.warning("Polling failed for session %s: %s", self.session_id, exc)
                await self._emit(PollFailed(self.session_id, exc))
                return
            except Exception as exc:
                LOGGER.exception("Unexpected polling failure for session %s", self.session_id)
                await self._emit(PollFailed(self.session_id, exc))
                return

            LOGGER.debug("Polled session %s: %s", self.session_id, count)
            await self._emit(CountPolled(self.session_id, count))

            previous = self._state.last_count
            changed = count.rooms_count != previous.rooms_count

            # Recorded before any relay, and even when unchanged.
            self._state.record_count(count)
            if changed:
                await self._emit(CountChanged(self.session_id, previous, count))
                await self._emit(StateChanged(self.session_id, self._state.state))

            await asyncio.sleep(self._state.options.interval_ms / 1000)

    async def _emit(self, event: PollerEvent) -> None:
        if self._on_event is None:
            return
        try:
            await self._on_event(event)
        except Exception:
            LOGGER.exception("Event handler failed for session %s", self.session_id)
