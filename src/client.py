"""Telethon client for the talkwatch bot.

The bot authorizes with the BotFather token; API_ID and API_HASH only
identify the application to Telegram. All three are read from the
environment (or a local .env) and never from config.json.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient

LOGGER = logging.getLogger(__name__)


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"{name} must be set in environment")
    return value


def bot_token() -> str:
    """Token handed to ``client.start(bot_token=...)``."""

    load_dotenv()
    return _require_env("BOT_TOKEN")


def build_client() -> TelegramClient:
    """Create the bot's client without connecting it.

    SESSION_NAME names the .session file that caches the bot's authorization
    key, so a restart does not log in again; it defaults to "talkwatch".
    """

    load_dotenv()
    api_id = _require_env("API_ID")
    api_hash = _require_env("API_HASH")
    if not api_id.isdigit():
        raise RuntimeError("API_ID must be numeric")
    session_name = os.getenv("SESSION_NAME", "talkwatch")

    LOGGER.info("Creating bot client (session file %s.session)", session_name)
    return TelegramClient(session_name, int(api_id), api_hash)
