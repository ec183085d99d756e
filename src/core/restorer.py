"""Boot-time restoration of persisted sessions."""

from __future__ import annotations

import logging
from typing import Optional

from core.errors import StoreError
from core.ports import NotifierPort, StoragePort
from core.registry import PollerRegistry
from core.state import SessionStateHandle

LOGGER = logging.getLogger(__name__)

BOOT_NOTICE = "Bot restarted"


async def restore_sessions(
    storage: StoragePort,
    registry: PollerRegistry,
    notifier: Optional[NotifierPort] = None,
) -> int:
    """Register a poller for every stored session and return how many were restored.

    Sessions that asked to resume start polling right away (the registry
    handles that). A record that cannot be read is logged and skipped so the
    remaining sessions still come back.
    """

    try:
        keys = storage.list_keys()
    except StoreError:
        LOGGER.exception("Could not enumerate stored sessions; nothing restored")
        return 0

    announce = registry.config.announce_boot and notifier is not None
    restored = 0
    for session_id in keys:
        try:
            state = SessionStateHandle.load(storage, session_id, registry.config.default_interval_ms)
        except StoreError:
            LOGGER.exception("Skipping unreadable session %s", session_id)
            continue

        await registry.get_or_create(session_id, state)
        restored += 1

        if announce:
            try:
                await notifier.send_notice(session_id, BOOT_NOTICE)
            except Exception:
                LOGGER.exception("Failed to announce restart to session %s", session_id)

    LOGGER.info("Restored %s of %s stored sessions", restored, len(keys))
    return restored
