from __future__ import annotations

import asyncio

import pytest

from core.errors import ConfigurationError, ProtocolError
from core.events import CountChanged, CountPolled, PollFailed, PollStarted, PollStopped
from core.models import NotificationCount
from core.poller import Poller
from core.state import SessionStateHandle

from fakes import FakeStorage, ScriptedCountClient, configured_state, wait_until


class EventLog:
    def __init__(self) -> None:
        self.events: list = []

    async def __call__(self, event) -> None:
        self.events.append(event)

    def of(self, kind) -> list:
        return [event for event in self.events if isinstance(event, kind)]


def _poller(state=None, client=None, log=None):
    storage = FakeStorage()
    handle = SessionStateHandle(state or configured_state(), lambda s: storage.write("1", s), "1")
    client = client or ScriptedCountClient()
    poller = Poller("1", handle, client, on_event=log)
    return poller, handle, client, storage


def test_get_count_without_token_does_not_touch_network() -> None:
    async def scenario() -> None:
        poller, _, client, _ = _poller(configured_state(token=None))
        with pytest.raises(ConfigurationError) as info:
            await poller.get_count()
        assert str(info.value) == "token must be set"
        assert client.calls == []

    asyncio.run(scenario())


def test_get_count_without_referer_does_not_touch_network() -> None:
    async def scenario() -> None:
        poller, _, client, _ = _poller(configured_state(referer=None))
        with pytest.raises(ConfigurationError) as info:
            await poller.get_count()
        assert info.value.entity == "referer"
        assert client.calls == []

    asyncio.run(scenario())


def test_get_count_leaves_recorded_count_alone() -> None:
    async def scenario() -> None:
        poller, handle, client, storage = _poller()
        client.push("token-a", 9)

        count = await poller.get_count()

        assert count == NotificationCount(rooms_count=9)
        assert handle.last_count.rooms_count == 0
        assert storage.writes == []

    asyncio.run(scenario())


def test_change_is_reported_once_per_distinct_value() -> None:
    async def scenario() -> None:
        log = EventLog()
        poller, handle, client, _ = _poller(log=log)
        client.push("token-a", 0, 3, 3)

        await poller.start()
        await wait_until(lambda: len(log.of(CountPolled)) == 3)

        changes = log.of(CountChanged)
        assert [event.count.rooms_count for event in changes] == [3]
        assert changes[0].previous.rooms_count == 0
        assert handle.last_count.rooms_count == 3
        await poller.stop()

    asyncio.run(scenario())


def test_stop_during_change_handler_does_not_replay_the_change() -> None:
    async def scenario() -> None:
        seen: list[int] = []
        recorded_when_seen: list[int] = []
        release = asyncio.Event()

        async def slow_handler(event) -> None:
            if isinstance(event, CountChanged):
                seen.append(event.count.rooms_count)
                recorded_when_seen.append(handle.last_count.rooms_count)
                await release.wait()

        poller, handle, client, storage = _poller(log=slow_handler)
        client.push("token-a", 3)

        await poller.start()
        await wait_until(lambda: seen == [3])
        await poller.stop()

        assert recorded_when_seen == [3]
        assert storage.records["1"].last_count.rooms_count == 3

        release.set()
        client.push("token-a", 3)
        await poller.start()
        await wait_until(lambda: len(client.calls) >= 3)

        assert seen == [3]
        await poller.stop()

    asyncio.run(scenario())


def test_start_sets_flags_and_polls_immediately() -> None:
    async def scenario() -> None:
        log = EventLog()
        state = configured_state(interval_ms=60_000)
        poller, handle, client, storage = _poller(state, log=log)
        client.push("token-a", 1)

        assert await poller.start() is True
        await wait_until(lambda: len(client.calls) == 1)

        assert handle.options.is_polling
        assert handle.options.resume_on_boot
        assert storage.records["1"].options.is_polling
        assert log.of(PollStarted)
        await poller.stop()

    asyncio.run(scenario())


def test_second_start_is_a_no_op_unless_forced() -> None:
    async def scenario() -> None:
        poller, _, client, _ = _poller()

        assert await poller.start() is True
        first_task = poller._task
        await wait_until(lambda: len(client.calls) == 1)
        assert await poller.start() is False
        assert poller._task is first_task

        assert await poller.start(force=True) is True
        await wait_until(lambda: client.cancelled == 1)
        assert first_task.done()
        assert poller._task is not first_task
        await poller.stop()

    asyncio.run(scenario())


def test_stop_cancels_in_flight_request() -> None:
    async def scenario() -> None:
        log = EventLog()
        poller, handle, client, storage = _poller(log=log)

        await poller.start()
        await wait_until(lambda: len(client.calls) == 1)
        await poller.stop(commit=True)

        assert client.cancelled == 1
        assert not poller.is_running
        assert storage.records["1"].options.is_polling is False
        assert storage.records["1"].options.resume_on_boot is False
        assert log.of(PollStopped)[0].commit is True

    asyncio.run(scenario())


def test_uncommitted_stop_keeps_resume_intent() -> None:
    async def scenario() -> None:
        poller, handle, _, _ = _poller()

        await poller.start()
        await poller.stop(commit=False)

        assert handle.options.is_polling is False
        assert handle.options.resume_on_boot is True

    asyncio.run(scenario())


def test_failure_ends_loop_with_error_event() -> None:
    async def scenario() -> None:
        log = EventLog()
        poller, handle, client, _ = _poller(log=log)
        client.push("token-a", ProtocolError("Got non 200 response status 500", status=500))

        await poller.start()
        await wait_until(lambda: not poller.is_running)

        failures = log.of(PollFailed)
        assert len(failures) == 1
        assert isinstance(failures[0].error, ProtocolError)
        assert len(client.calls) == 1

    asyncio.run(scenario())


def test_loop_stops_when_flag_cleared_between_polls() -> None:
    async def scenario() -> None:
        poller, handle, client, _ = _poller(configured_state(interval_ms=50))
        client.push("token-a", 1, 2)

        await poller.start()
        await wait_until(lambda: handle.last_count.rooms_count == 1)
        handle.mark_stopped(commit=False)
        await wait_until(lambda: not poller.is_running)

        assert len(client.calls) == 1

    asyncio.run(scenario())


def test_rebinding_state_keeps_running_loop() -> None:
    async def scenario() -> None:
        poller, handle, client, storage = _poller()
        client.push("token-a", 1)
        await poller.start()
        await wait_until(lambda: handle.last_count.rooms_count == 1)
        task = poller._task

        fresh = SessionStateHandle(handle.state, lambda s: storage.write("1", s), "1")
        poller.bind_state(fresh)
        client.push("token-a", 5)
        await wait_until(lambda: fresh.last_count.rooms_count == 5)

        assert poller._task is task
        assert handle.last_count.rooms_count == 1
        await poller.stop()

    asyncio.run(scenario())
