"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core and adapters expect so the app layer can build them safely.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.models import DEFAULT_INTERVAL_MS


@dataclass(frozen=True)
class EndpointConfig:
    """Where and how the unread-room count is requested."""

    base_url: str
    count_path: str
    token_header: str = "Talk-Token"
    request_timeout_seconds: float = 30.0

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.count_path.lstrip('/')}"


@dataclass(frozen=True)
class PollingConfig:
    """Defaults applied to sessions the store has never seen."""

    default_interval_ms: int = DEFAULT_INTERVAL_MS
    announce_boot: bool = False
