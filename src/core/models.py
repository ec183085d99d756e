"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types. They are frozen; the session
state handle swaps whole instances instead of mutating fields in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from core.errors import StoreError

DEFAULT_INTERVAL_MS = 60_000

# Bump when the persisted layout changes in a way absent-field defaulting
# cannot absorb.
SCHEMA_VERSION = 1


@dataclass(frozen=True)
class NotificationCount:
    """Unread-room count reported by the endpoint."""

    rooms_count: int = 0


@dataclass(frozen=True)
class PollingOptions:
    """Per-session polling configuration and lifecycle flags."""

    auth_token: Optional[str] = None
    referer: Optional[str] = None
    interval_ms: int = DEFAULT_INTERVAL_MS
    allow_zero_notifications: bool = False
    is_polling: bool = False
    resume_on_boot: bool = False


@dataclass(frozen=True)
class SessionState:
    """Everything persisted for one chat session."""

    last_count: NotificationCount = field(default_factory=NotificationCount)
    options: PollingOptions = field(default_factory=PollingOptions)

    @classmethod
    def default(cls, interval_ms: int = DEFAULT_INTERVAL_MS) -> "SessionState":
        return cls(options=PollingOptions(interval_ms=interval_ms))


def session_state_to_dict(state: SessionState) -> dict[str, Any]:
    """Serialize a state into the versioned JSON-ready layout."""

    options = state.options
    return {
        "schema_version": SCHEMA_VERSION,
        "last_count": {"rooms_count": state.last_count.rooms_count},
        "options": {
            "auth_token": options.auth_token,
            "referer": options.referer,
            "interval_ms": options.interval_ms,
            "allow_zero_notifications": options.allow_zero_notifications,
            "is_polling": options.is_polling,
            "resume_on_boot": options.resume_on_boot,
        },
    }


def _typed(data: dict[str, Any], key: str, expected: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    # bool is an int subclass; reject it where a real integer is expected.
    if expected is int and isinstance(value, bool):
        raise StoreError(f"field {key!r} must be {expected.__name__}")
    if not isinstance(value, expected):
        raise StoreError(f"field {key!r} must be {expected.__name__}")
    return value


def session_state_from_dict(
    data: Any, default_interval_ms: int = DEFAULT_INTERVAL_MS
) -> SessionState:
    """Decode a stored record, defaulting every absent field.

    Records from older revisions simply lack newer fields. Records written by
    a newer revision, or with wrongly typed fields, raise StoreError.
    """

    if not isinstance(data, dict):
        raise StoreError("session record must be an object")

    version = _typed(data, "schema_version", int, SCHEMA_VERSION)
    if version > SCHEMA_VERSION:
        raise StoreError(f"unsupported schema version {version}")

    raw_count = data.get("last_count") or {}
    raw_options = data.get("options") or {}
    if not isinstance(raw_count, dict) or not isinstance(raw_options, dict):
        raise StoreError("session record has malformed sections")

    rooms_count = _typed(raw_count, "rooms_count", int, 0)
    interval_ms = _typed(raw_options, "interval_ms", int, default_interval_ms)
    if interval_ms <= 0:
        interval_ms = default_interval_ms

    return SessionState(
        last_count=NotificationCount(rooms_count=max(rooms_count, 0)),
        options=PollingOptions(
            auth_token=_typed(raw_options, "auth_token", str, None),
            referer=_typed(raw_options, "referer", str, None),
            interval_ms=interval_ms,
            allow_zero_notifications=_typed(raw_options, "allow_zero_notifications", bool, False),
            is_polling=_typed(raw_options, "is_polling", bool, False),
            resume_on_boot=_typed(raw_options, "resume_on_boot", bool, False),
        ),
    )
