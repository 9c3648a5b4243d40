import asyncio

import pytest

from bulk_sheet.services.exceptions import WriteFailureError
from bulk_sheet.sinks.completion import outcome_of, wait_for_outcome
from bulk_sheet.sinks.events import EventEmitter


def test_once_listener_fires_a_single_time() -> None:
    emitter = EventEmitter()
    calls: list[int] = []
    emitter.once("drain", lambda: calls.append(1))

    assert emitter.emit("drain") is True
    assert emitter.emit("drain") is False
    assert calls == [1]
    assert emitter.listener_count("drain") == 0


def test_persistent_listener_survives_and_can_be_removed() -> None:
    emitter = EventEmitter()
    seen: list[str] = []

    def listener(value: str) -> None:
        seen.append(value)

    emitter.on("data", listener)
    emitter.emit("data", "a")
    emitter.emit("data", "b")
    emitter.off("data", listener)
    emitter.off("data", listener)

    assert seen == ["a", "b"]
    assert emitter.listener_count("data") == 0


def test_success_detaches_the_failure_listener_immediately() -> None:
    async def scenario() -> None:
        emitter = EventEmitter()
        with outcome_of(emitter, "drain") as future:
            assert emitter.listener_count("drain") == 1
            assert emitter.listener_count("error") == 1
            emitter.emit("drain")
            assert emitter.listener_count("drain") == 0
            assert emitter.listener_count("error") == 0
            await future

    asyncio.run(scenario())


def test_failure_event_raises_its_payload() -> None:
    async def scenario() -> None:
        emitter = EventEmitter()
        asyncio.get_running_loop().call_soon(
            emitter.emit, "error", WriteFailureError("No space left on device")
        )
        try:
            await wait_for_outcome(emitter, "finish")
        finally:
            assert emitter.listener_count("finish") == 0
            assert emitter.listener_count("error") == 0

    with pytest.raises(WriteFailureError, match="No space left"):
        asyncio.run(scenario())


def test_cancelled_wait_leaves_no_listeners() -> None:
    async def scenario() -> EventEmitter:
        emitter = EventEmitter()
        waiter = asyncio.create_task(wait_for_outcome(emitter, "drain"))
        await asyncio.sleep(0)
        assert emitter.listener_count("drain") == 1
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        return emitter

    emitter = asyncio.run(scenario())
    assert emitter.listener_count("drain") == 0
    assert emitter.listener_count("error") == 0
