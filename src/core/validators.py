"""Parsing helpers for user-supplied session settings."""

from __future__ import annotations

from core.errors import ValidationError

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}


def require_value(raw_value: str, name: str) -> str:
    value = raw_value.strip()
    if not value:
        raise ValidationError(f"{name} must not be empty")
    return value


def parse_flag(raw_value: str) -> bool:
    value = raw_value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValidationError("value must be true or false")


def parse_interval(raw_value: str) -> int:
    """Parse a positive interval in milliseconds."""

    value = raw_value.strip()
    try:
        interval = int(value)
    except ValueError:
        raise ValidationError("interval must be a positive number of milliseconds") from None
    if interval <= 0:
        raise ValidationError("interval must be a positive number of milliseconds")
    return interval
