"""Registry of live pollers, one per session id.

The registry is constructed once by the app and passed to whatever needs to
look up sessions. It consumes every Poller's events and turns them into chat
deliveries: failures stop the poller (keeping the resume intent) and report
the error, count changes are announced unless they are an unwanted zero.
Deliveries run as tasks of their own, so a slow chat never holds up a poll
loop and stopping a poller never cuts a message short.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Awaitable, Iterator

from core.config import PollingConfig
from core.events import CountChanged, PollerEvent, PollFailed
from core.ports import CountClientPort, NotifierPort, StoragePort
from core.poller import Poller
from core.state import SessionStateHandle

LOGGER = logging.getLogger(__name__)

RESUME_NOTICE = "Continue polling after restart"


class PollerRegistry:
    """Creates pollers lazily and never holds two for the same session."""

    def __init__(
        self,
        storage: StoragePort,
        client: CountClientPort,
        notifier: NotifierPort,
        config: PollingConfig = PollingConfig(),
    ) -> None:
        self._storage = storage
        self._client = client
        self._notifier = notifier
        self._config = config
        self._pollers: dict[str, Poller] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._deliveries: set[asyncio.Task] = set()

    @property
    def config(self) -> PollingConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._pollers)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._pollers

    def pollers(self) -> Iterator[Poller]:
        return iter(list(self._pollers.values()))

    async def get_or_create(self, session_id: str, state: SessionStateHandle) -> Poller:
        """Return the session's poller, creating and possibly resuming it.

        The lookup and creation are serialized per session id; other sessions
        are not blocked.
        """

        lock = self._locks.setdefault(session_id, asyncio.Lock())
        async with lock:
            poller = self._pollers.get(session_id)
            if poller is not None:
                poller.bind_state(state)
                return poller

            poller = Poller(
                session_id,
                state,
                self._client,
                on_event=partial(self._dispatch, session_id),
            )
            self._pollers[session_id] = poller
            LOGGER.debug("Registered poller for session %s", session_id)

            if state.options.resume_on_boot:
                LOGGER.info("Polling enabled in session %s. Resuming", session_id)
                await poller.start(force=True)
                await self._deliver_notice(session_id, RESUME_NOTICE)
            return poller

    async def open(self, session_id: str) -> Poller:
        """Return the registered poller, loading its state from storage on first use."""

        poller = self._pollers.get(session_id)
        if poller is not None:
            return poller
        state = SessionStateHandle.load(self._storage, session_id, self._config.default_interval_ms)
        return await self.get_or_create(session_id, state)

    async def shutdown(self) -> None:
        """Cancel every poll loop while keeping persisted flags for the next boot.

        Messages already handed to the notifier are allowed to finish.
        """

        for poller in self.pollers():
            await poller.close()
        if self._deliveries:
            await asyncio.wait(set(self._deliveries))

    async def _dispatch(self, session_id: str, event: PollerEvent) -> None:
        poller = self._pollers.get(session_id)
        if poller is None:
            return

        if isinstance(event, PollFailed):
            await poller.stop(commit=False)
            self._spawn_delivery(session_id, "error", self._notifier.send_error(session_id, event.error))
            return

        if isinstance(event, CountChanged):
            if event.count.rooms_count == 0 and not poller.state.options.allow_zero_notifications:
                LOGGER.debug("Zero count hidden for session %s", session_id)
                return
            self._spawn_delivery(session_id, "count", self._notifier.send_count(session_id, event.count))
            return

        LOGGER.debug("Session %s event: %s", session_id, type(event).__name__)

    def _spawn_delivery(self, session_id: str, what: str, send: Awaitable[None]) -> None:
        task = asyncio.create_task(self._deliver(session_id, what, send), name=f"deliver-{session_id}")
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)

    async def _deliver(self, session_id: str, what: str, send: Awaitable[None]) -> None:
        try:
            await send
        except Exception:
            LOGGER.exception("Failed to deliver %s to session %s", what, session_id)

    async def _deliver_notice(self, session_id: str, text: str) -> None:
        await self._deliver(session_id, "notice", self._notifier.send_notice(session_id, text))
