"""Chat command routing for the Telegram bot.

CommandRouter maps each slash command onto a core operation and returns the
reply text; it knows nothing about Telethon so it can be tested directly.
register_handlers wires it to a client with a single NewMessage handler.
"""

from __future__ import annotations

import logging
import re
from typing import Awaitable, Callable, Optional

from telethon import events
from telethon.tl.functions.bots import SetBotCommandsRequest
from telethon.tl.types import BotCommand, BotCommandScopeDefault

from adapters.notification_formatting import format_count, format_error, format_settings
from core.errors import TalkwatchError
from core.poller import Poller
from core.registry import PollerRegistry
from core.validators import parse_flag, parse_interval, require_value

LOGGER = logging.getLogger(__name__)

COMMAND_PATTERN = re.compile(r"^/(\w+)(?:@\w+)?(?:\s+(.*))?$", re.DOTALL)

BOT_COMMANDS = (
    ("poll", "Start notifications polling"),
    ("stop", "Stop notifications polling"),
    ("check", "Check notifications count now"),
    ("interval", "Change interval of notifications polling (ms)"),
    ("token", "Change token used for notifications polling"),
    ("referer", "Change referer used for notifications polling"),
    ("allow", "Show zero count messages during notifications polling"),
    ("settings", "Show current settings"),
    ("clear", "Clear your session"),
)

Handler = Callable[[Poller, str], Awaitable[str]]


def help_text() -> str:
    lines = ["Hello! I watch your talk notifications.", ""]
    lines.extend(f"/{name} - {description}" for name, description in BOT_COMMANDS)
    return "\n".join(lines)


class CommandRouter:
    """Turns ``/command argument`` into core calls and a reply."""

    def __init__(self, registry: PollerRegistry) -> None:
        self._registry = registry
        self._handlers: dict[str, Handler] = {
            "start": self._start,
            "help": self._start,
            "token": self._token,
            "referer": self._referer,
            "allow": self._allow,
            "interval": self._interval,
            "check": self._check,
            "poll": self._poll,
            "stop": self._stop,
            "settings": self._settings,
            "clear": self._clear,
        }

    async def handle(self, session_id: str, command: str, argument: str = "") -> Optional[str]:
        """Run one command for a session; unknown commands return None."""

        handler = self._handlers.get(command.lower())
        if handler is None:
            return None
        try:
            poller = await self._registry.open(session_id)
            return await handler(poller, argument or "")
        except TalkwatchError as exc:
            LOGGER.info("Command /%s failed for session %s: %s", command, session_id, exc)
            return format_error(exc)

    async def _start(self, poller: Poller, argument: str) -> str:
        return help_text()

    async def _token(self, poller: Poller, argument: str) -> str:
        poller.state.set_auth_token(require_value(argument, "token"))
        # Validate right away so a bad token is reported here, not by the poll loop.
        await poller.get_count()
        return "Token successfully set"

    async def _referer(self, poller: Poller, argument: str) -> str:
        poller.state.set_referer(require_value(argument, "referer"))
        return "Referer successfully set"

    async def _allow(self, poller: Poller, argument: str) -> str:
        allow = parse_flag(argument)
        poller.state.set_allow_zero_notifications(allow)
        return "Zero counts will be shown" if allow else "Zero counts will be hidden"

    async def _interval(self, poller: Poller, argument: str) -> str:
        poller.state.set_interval(parse_interval(argument))
        return "Interval successfully set"

    async def _check(self, poller: Poller, argument: str) -> str:
        return format_count(await poller.get_count())

    async def _poll(self, poller: Poller, argument: str) -> str:
        if await poller.start():
            return "Polling started"
        return "Already polling for notifications"

    async def _stop(self, poller: Poller, argument: str) -> str:
        await poller.stop(commit=True)
        return "Polling stopped"

    async def _settings(self, poller: Poller, argument: str) -> str:
        return format_settings(poller.state.state)

    async def _clear(self, poller: Poller, argument: str) -> str:
        await poller.stop(commit=True)
        poller.state.reset(self._registry.config.default_interval_ms)
        return "Successfully cleared session"


def parse_command(text: str) -> Optional[tuple[str, str]]:
    match = COMMAND_PATTERN.match(text.strip())
    if not match:
        return None
    return match.group(1).lower(), (match.group(2) or "").strip()


def register_handlers(client, router: CommandRouter) -> None:
    """Attach the command handler to a Telethon client."""

    @client.on(events.NewMessage(incoming=True, pattern=COMMAND_PATTERN))
    async def handler(event) -> None:
        parsed = parse_command(event.raw_text or "")
        if parsed is None:
            return
        command, argument = parsed
        session_id = str(event.chat_id)
        try:
            reply = await router.handle(session_id, command, argument)
        except Exception as exc:
            LOGGER.exception("Error while handling /%s for session %s", command, session_id)
            reply = format_error(exc)
        if reply:
            await event.respond(reply)


async def publish_commands(client) -> None:
    """Publish the command list shown in Telegram's command menu."""

    commands = [BotCommand(command=name, description=description) for name, description in BOT_COMMANDS]
    await client(
        SetBotCommandsRequest(scope=BotCommandScopeDefault(), lang_code="", commands=commands)
    )
