"""Application entry point for the talkwatch bot."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.http_count_client import HttpCountClient
from adapters.notification_formatting import mask_secret
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_bot_notifier import TelegramBotNotifier
from adapters.telegram_commands import CommandRouter, publish_commands, register_handlers
from client import bot_token, build_client
from core.errors import StoreError
from core.registry import PollerRegistry
from core.restorer import restore_sessions

NAME = "TALKWATCH"
FONT = "tarty-1"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Masks bot credentials in rendered records, tracebacks included."""

    MASK = "***"

    def __init__(self, secrets: Iterable[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        # Longest first, so a secret that contains another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, self.MASK)
        return message


def _redacted_env_values(config: dict) -> list[str]:
    redact = config.get("redact", {})
    if not redact.get("enabled", False):
        return []
    return [os.getenv(name, "") for name in redact.get("patterns", [])]


def _rotating_file_handler(file_cfg: dict) -> RotatingFileHandler:
    path = file_cfg.get("path", "logs/talkwatch.log")
    if not os.path.isabs(path):
        path = os.path.join(settings.PROJECT_ROOT, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    # Secrets come from .env, which must be loaded before they can be masked.
    load_dotenv()
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_rotating_file_handler(file_cfg))
    if not handlers:
        return

    formatter = _RedactingFormatter(_redacted_env_values(config), fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers)

    # Telethon reports every reconnect at INFO.
    if level > logging.DEBUG:
        logging.getLogger("telethon").setLevel(logging.WARNING)


async def _serve(client, storage: SQLiteStorage) -> None:
    logger = logging.getLogger(__name__)

    await client.start(bot_token=bot_token())
    logger.info("Bot connected")

    count_client = HttpCountClient(settings.ENDPOINT)
    notifier = TelegramBotNotifier(client)
    registry = PollerRegistry(storage, count_client, notifier, settings.POLLING)

    try:
        # Restore before wiring handlers so a resumed session is never created
        # twice by an early incoming command.
        restored = await restore_sessions(storage, registry, notifier)
        logger.info("%s sessions restored", restored)

        register_handlers(client, CommandRouter(registry))
        if settings.PUBLISH_COMMANDS:
            await publish_commands(client)

        logger.info("Listening for commands...")
        await client.run_until_disconnected()
    finally:
        await registry.shutdown()
        await count_client.close()


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting talkwatch")

    storage = SQLiteStorage(settings.DB_PATH, settings.DEFAULT_INTERVAL_MS)
    storage.init_db()

    client = build_client()
    client.loop.run_until_complete(_serve(client, storage))


def _list_sessions() -> None:
    _print_banner()
    storage = SQLiteStorage(settings.DB_PATH, settings.DEFAULT_INTERVAL_MS)
    storage.init_db()

    keys = storage.list_keys()
    if not keys:
        print("No stored sessions.")
        return

    for index, session_id in enumerate(keys, start=1):
        try:
            state = storage.read(session_id)
        except StoreError as exc:
            print(f"{index}. {session_id} | unreadable: {exc}")
            continue
        if state is None:
            continue
        options = state.options
        print(
            f"{index}. {session_id} | polling={options.is_polling} "
            f"resume={options.resume_on_boot} interval={options.interval_ms}ms "
            f"token={mask_secret(options.auth_token)} last_count={state.last_count.rooms_count}"
        )


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="talkwatch")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot")
    subparsers.add_parser("sessions", help="List stored sessions and their polling state.")

    args = parser.parse_args(argv)
    if args.command == "sessions":
        _list_sessions()
        return
    _run()


if __name__ == "__main__":
    main()
