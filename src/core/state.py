"""Write-through handle around one session's state.

Every mutation goes through a named method which swaps in a new frozen
SessionState and then persists the whole state exactly once. Reads never
touch the store.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from core.errors import StoreError, ValidationError
from core.models import DEFAULT_INTERVAL_MS, NotificationCount, PollingOptions, SessionState
from core.ports import StoragePort

LOGGER = logging.getLogger(__name__)

PersistCallback = Callable[[SessionState], None]


class SessionStateHandle:
    """Owns the in-memory state of one session and keeps the store in sync."""

    def __init__(self, state: SessionState, persist: PersistCallback, session_id: str = "") -> None:
        self._state = state
        self._persist_callback = persist
        self._session_id = session_id

    @classmethod
    def load(
        cls,
        storage: StoragePort,
        session_id: str,
        default_interval_ms: int = DEFAULT_INTERVAL_MS,
    ) -> "SessionStateHandle":
        """Build a handle from the stored record, or from defaults on first contact."""

        state = storage.read(session_id)
        if state is None:
            state = SessionState.default(default_interval_ms)

        def persist(current: SessionState) -> None:
            storage.write(session_id, current)

        return cls(state, persist, session_id=session_id)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def options(self) -> PollingOptions:
        return self._state.options

    @property
    def last_count(self) -> NotificationCount:
        return self._state.last_count

    def set_auth_token(self, auth_token: Optional[str]) -> None:
        self._update_options(auth_token=auth_token or None)

    def set_referer(self, referer: Optional[str]) -> None:
        self._update_options(referer=referer or None)

    def set_interval(self, interval_ms: int) -> None:
        if isinstance(interval_ms, bool) or not isinstance(interval_ms, int) or interval_ms <= 0:
            raise ValidationError("interval must be a positive number of milliseconds")
        self._update_options(interval_ms=interval_ms)

    def set_allow_zero_notifications(self, allow: bool) -> None:
        self._update_options(allow_zero_notifications=bool(allow))

    def mark_started(self) -> None:
        self._update_options(is_polling=True, resume_on_boot=True)

    def mark_stopped(self, commit: bool) -> None:
        """Clear the live flag; a committed stop also drops the resume intent."""

        if commit:
            self._update_options(is_polling=False, resume_on_boot=False)
        else:
            self._update_options(is_polling=False)

    def record_count(self, count: NotificationCount) -> None:
        self._commit(replace(self._state, last_count=count))

    def reset(self, default_interval_ms: int = DEFAULT_INTERVAL_MS) -> None:
        self._commit(SessionState.default(default_interval_ms))

    def _update_options(self, **changes) -> None:
        options = replace(self._state.options, **changes)
        self._commit(replace(self._state, options=options))

    def _commit(self, state: SessionState) -> None:
        self._state = state
        self._persist()

    def _persist(self) -> None:
        # The in-memory state stays authoritative when the store is down; the
        # next successful mutation writes the full state again.
        try:
            self._persist_callback(self._state)
        except StoreError:
            LOGGER.exception("Failed to persist state for session %s", self._session_id or "?")
