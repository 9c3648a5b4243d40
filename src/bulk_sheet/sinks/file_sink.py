"""Buffered file sink that reports backpressure and flushes off the event loop."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from contextlib import suppress
from pathlib import Path
from typing import BinaryIO

from bulk_sheet.models import DEFAULT_HIGH_WATER_MARK, PathLike
from bulk_sheet.services.exceptions import MisuseError, SinkUnavailableError, WriteFailureError
from bulk_sheet.sinks.events import EventEmitter
from bulk_sheet.utils.size_helpers import format_bytes

logger = logging.getLogger(__name__)

DRAIN_EVENT = "drain"
FINISH_EVENT = "finish"
ERROR_EVENT = "error"


class FileSink(EventEmitter):  # pylint: disable=too-many-instance-attributes
    """Append-only byte sink over a local file.

    ``write`` never blocks: chunks are queued in memory and a single pump task
    hands them to a worker thread in order. The return value of ``write`` tells
    the producer whether the queue is still under the high-water mark.

    Events:
        ``drain``  the queue emptied after a write was refused.
        ``finish`` ``end`` was called and every byte was flushed and the file closed.
        ``error``  an I/O error occurred; the payload is a ``WriteFailureError``.
    """

    def __init__(
        self, destination: PathLike, *, high_water_mark: int = DEFAULT_HIGH_WATER_MARK
    ) -> None:
        super().__init__()
        if high_water_mark <= 0:
            raise ValueError("high_water_mark must be greater than zero")
        self._destination = Path(destination)
        self._high_water_mark = high_water_mark
        try:
            self._destination.parent.mkdir(parents=True, exist_ok=True)
            self._handle: BinaryIO = self._destination.open("wb")
        except OSError as exc:
            raise SinkUnavailableError(
                f"Cannot open '{self._destination}' for writing: {exc}"
            ) from exc

        self._pending: deque[bytes] = deque()
        self._buffered = 0
        self._bytes_written = 0
        self._needs_drain = False
        self._ending = False
        self._finished = False
        self._error: WriteFailureError | None = None
        self._pump: asyncio.Task | None = None
        logger.debug(
            "Opened sink %s (high-water mark %s)",
            self._destination,
            format_bytes(high_water_mark),
        )

    @property
    def destination(self) -> Path:
        """Path of the file being written."""
        return self._destination

    @property
    def high_water_mark(self) -> int:
        return self._high_water_mark

    @property
    def buffered_bytes(self) -> int:
        """Bytes accepted by ``write`` but not yet handed to the file."""
        return self._buffered

    @property
    def bytes_written(self) -> int:
        """Bytes handed to the file so far."""
        return self._bytes_written

    @property
    def ending(self) -> bool:
        return self._ending

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def error(self) -> WriteFailureError | None:
        return self._error

    def write(self, chunk: bytes) -> bool:
        """Queue ``chunk`` and return ``False`` once the queue reaches the high-water mark."""
        self._raise_if_failed()
        if self._ending:
            raise MisuseError(f"Cannot write to '{self._destination}' after end().")
        self._pending.append(chunk)
        self._buffered += len(chunk)
        self._schedule_pump()
        if self._buffered < self._high_water_mark:
            return True
        self._needs_drain = True
        return False

    def end(self) -> None:
        """Stop accepting writes; ``finish`` fires once the queue is flushed and closed."""
        self._raise_if_failed()
        if self._ending:
            raise MisuseError(f"Sink for '{self._destination}' has already been ended.")
        self._ending = True
        logger.debug("Ending sink %s with %d bytes pending", self._destination, self._buffered)
        self._schedule_pump()

    def _raise_if_failed(self) -> None:
        if self._error is not None:
            raise self._error

    def _schedule_pump(self) -> None:
        if self._pump is not None or self._error is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; the next write or end issued from a coroutine starts the pump.
            return
        self._pump = loop.create_task(self._flush_pending())
        self._pump.add_done_callback(self._release_pump)

    def _release_pump(self, task: asyncio.Task) -> None:
        # A pump cancelled before its first step never reaches its own finally.
        if self._pump is task:
            self._pump = None

    async def _flush_pending(self) -> None:
        try:
            while self._pending:
                batch = b"".join(self._pending)
                self._pending.clear()
                await asyncio.to_thread(self._handle.write, batch)
                self._buffered -= len(batch)
                self._bytes_written += len(batch)
            if self._ending:
                await asyncio.to_thread(self._handle.close)
        except (OSError, ValueError) as exc:
            self._pump = None
            self._fail(exc)
            return
        finally:
            self._pump = None

        if self._needs_drain:
            self._needs_drain = False
            self.emit(DRAIN_EVENT)
        if self._ending:
            self._finished = True
            logger.debug(
                "Sink %s finished (%s written)",
                self._destination,
                format_bytes(self._bytes_written),
            )
            self.emit(FINISH_EVENT)

    def _fail(self, exc: Exception) -> None:
        error = WriteFailureError(f"Writing to '{self._destination}' failed: {exc}")
        error.__cause__ = exc
        self._error = error
        self._pending.clear()
        self._buffered = 0
        # Only the first write error is reported.
        with suppress(OSError, ValueError):
            self._handle.close()
        logger.warning("Sink %s failed: %s", self._destination, exc)
        self.emit(ERROR_EVENT, error)
