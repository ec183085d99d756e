"""Shared notification formatting helpers.

Keeping formatting here prevents drift between the delivery adapter and the
command replies, so a chat sees the same wording everywhere.
"""

from __future__ import annotations

from typing import Optional

from core.errors import TalkwatchError
from core.models import NotificationCount, SessionState


def format_count(count: NotificationCount) -> str:
    return f"{count.rooms_count} rooms have new messages"


def format_error(error: BaseException) -> str:
    """Render an error as ``<Kind>: <message>`` without internals."""

    kind = error.kind if isinstance(error, TalkwatchError) else type(error).__name__
    message = str(error) or "unexpected error"
    return f"{kind}: {message}"


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    if not value:
        return "not set"
    if len(value) <= visible:
        return "*" * len(value)
    return f"{'*' * (len(value) - visible)}{value[-visible:]}"


def format_settings(state: SessionState) -> str:
    options = state.options
    lines = [
        f"Referer: {options.referer or 'not set'}",
        f"Token: {mask_secret(options.auth_token)}",
        f"Interval: {options.interval_ms} ms",
        f"Show zero counts: {'yes' if options.allow_zero_notifications else 'no'}",
        f"Polling: {'yes' if options.is_polling else 'no'}",
        f"Resume after restart: {'yes' if options.resume_on_boot else 'no'}",
        f"Last count: {state.last_count.rooms_count}",
    ]
    return "\n".join(lines)
