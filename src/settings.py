"""Static configuration for talkwatch.

All user-editable settings (endpoint, storage, polling defaults, logging)
live in a single JSON file for quick edits without touching Python. Secrets
stay in the environment (.env).
"""

import json
import os

from dotenv import load_dotenv

from core.config import EndpointConfig, PollingConfig
from core.models import DEFAULT_INTERVAL_MS

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.environ.get("TALKWATCH_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


load_dotenv()

_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Where to store the SQLite database with one row per chat session.
_storage = _CONFIG.get("storage", {})
DB_PATH = _resolve_path(_storage.get("db_path", "talkwatch.db"))

# Remote count endpoint. The token header name and the timeout are tunable so
# a hung request cannot wedge a session's poll loop.
_endpoint = _CONFIG.get("endpoint", {})
ENDPOINT = EndpointConfig(
    base_url=_endpoint.get("base_url", "https://chat.ktalk.ru"),
    count_path=_endpoint.get("count_path", "_matrix/client/strangler/api/v1/talk_notifications"),
    token_header=_endpoint.get("token_header", "Talk-Token"),
    request_timeout_seconds=float(_endpoint.get("request_timeout_seconds", 30)),
)

# Polling defaults for new sessions. DEFAULT_INTERVAL in the environment wins
# over the file so deployments can tune it without editing config.json.
_polling = _CONFIG.get("polling", {})
DEFAULT_INTERVAL_MS = int(
    os.getenv("DEFAULT_INTERVAL") or _polling.get("default_interval_ms", DEFAULT_INTERVAL_MS)
)
# Send "Bot restarted" to every restored chat, not only to resumed ones.
ANNOUNCE_BOOT = bool(_polling.get("announce_boot", False))

POLLING = PollingConfig(default_interval_ms=DEFAULT_INTERVAL_MS, announce_boot=ANNOUNCE_BOOT)

# Publish the command menu to Telegram on start.
PUBLISH_COMMANDS = bool(_CONFIG.get("bot", {}).get("publish_commands", True))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
