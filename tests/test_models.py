from __future__ import annotations

import pytest

from core.errors import StoreError
from core.models import SCHEMA_VERSION, session_state_from_dict, session_state_to_dict
from fakes import configured_state


def test_record_without_newer_fields_loads_with_defaults() -> None:
    legacy = {
        "last_count": {"rooms_count": 4},
        "options": {"auth_token": "abc", "referer": "https://example.ktalk.ru/"},
    }

    state = session_state_from_dict(legacy, default_interval_ms=30_000)

    assert state.last_count.rooms_count == 4
    assert state.options.auth_token == "abc"
    assert state.options.interval_ms == 30_000
    assert state.options.allow_zero_notifications is False
    assert state.options.resume_on_boot is False


def test_serialized_record_carries_schema_version() -> None:
    data = session_state_to_dict(configured_state(is_polling=True, resume_on_boot=True))

    assert data["schema_version"] == SCHEMA_VERSION
    assert data["options"]["resume_on_boot"] is True
    assert session_state_from_dict(data) == configured_state(is_polling=True, resume_on_boot=True)


def test_newer_schema_is_rejected() -> None:
    with pytest.raises(StoreError):
        session_state_from_dict({"schema_version": SCHEMA_VERSION + 1})


@pytest.mark.parametrize(
    "record",
    [
        [],
        {"options": {"interval_ms": "fast"}},
        {"options": {"is_polling": "yes"}},
        {"last_count": {"rooms_count": True}},
        {"options": "broken"},
    ],
)
def test_malformed_records_raise_store_error(record) -> None:
    with pytest.raises(StoreError):
        session_state_from_dict(record)
