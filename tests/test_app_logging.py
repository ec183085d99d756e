from __future__ import annotations

import logging

import pytest

import client
from app import _RedactingFormatter, _redacted_env_values


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("talkwatch", logging.INFO, __file__, 1, message, None, None)


def test_formatter_masks_longest_secret_first() -> None:
    formatter = _RedactingFormatter(["123", "123:abc", ""], fmt="%(message)s")

    assert formatter.format(_record("login 123:abc then 123")) == "login *** then ***"


def test_redaction_reads_configured_environment_names(monkeypatch) -> None:
    monkeypatch.setenv("BOT_TOKEN", "123:abc")
    monkeypatch.delenv("API_HASH", raising=False)
    config = {"redact": {"enabled": True, "patterns": ["BOT_TOKEN", "API_HASH"]}}

    assert "123:abc" in _redacted_env_values(config)
    assert _redacted_env_values({"redact": {"enabled": False, "patterns": ["BOT_TOKEN"]}}) == []


def test_bot_credentials_are_required(monkeypatch) -> None:
    monkeypatch.setattr(client, "load_dotenv", lambda: None)
    monkeypatch.delenv("BOT_TOKEN", raising=False)
    monkeypatch.setenv("API_ID", "not-a-number")
    monkeypatch.setenv("API_HASH", "hash")

    with pytest.raises(RuntimeError, match="BOT_TOKEN"):
        client.bot_token()
    with pytest.raises(RuntimeError, match="API_ID"):
        client.build_client()
