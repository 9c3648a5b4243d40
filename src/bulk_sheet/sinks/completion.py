"""Race a success event against a failure event as a single awaitable outcome."""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import Any, Iterator

from bulk_sheet.sinks.events import EventEmitter

FAILURE_EVENT = "error"


@contextmanager
def outcome_of(
    emitter: EventEmitter, success_event: str, failure_event: str = FAILURE_EVENT
) -> Iterator[asyncio.Future]:
    """Attach one-time listeners for both events and yield a future settled by the first.

    Both listeners are detached as soon as either fires, and again on exit so
    that a cancelled or abandoned wait never leaves a listener behind.
    """
    future: asyncio.Future = asyncio.get_running_loop().create_future()

    def detach() -> None:
        emitter.off(success_event, on_success)
        emitter.off(failure_event, on_failure)

    def on_success(*_: Any) -> None:
        detach()
        if not future.done():
            future.set_result(None)

    def on_failure(exc: BaseException) -> None:
        detach()
        if not future.done():
            future.set_exception(exc)

    emitter.once(success_event, on_success)
    emitter.once(failure_event, on_failure)
    try:
        yield future
    finally:
        detach()


async def wait_for_outcome(
    emitter: EventEmitter, success_event: str, failure_event: str = FAILURE_EVENT
) -> None:
    """Suspend until ``success_event`` fires; raise the payload of ``failure_event``."""
    with outcome_of(emitter, success_event, failure_event) as future:
        await future
