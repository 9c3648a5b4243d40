"""Streaming delimited (CSV) writer that honours sink backpressure."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Sequence

from bulk_sheet.models import PathLike, Row, StreamOptions
from bulk_sheet.services.exceptions import MisuseError
from bulk_sheet.sinks.completion import wait_for_outcome
from bulk_sheet.sinks.file_sink import DRAIN_EVENT, FINISH_EVENT, FileSink
from bulk_sheet.utils.rows import encode_row

logger = logging.getLogger(__name__)


class StreamingRowWriter:
    """Write a header and then rows, one awaited write at a time.

    The header is queued on construction. Each ``write`` completes on the next
    loop tick while the sink is under its high-water mark, and otherwise
    suspends until the sink drains, so the producer can never queue more than
    the sink's configured buffer.
    """

    def __init__(
        self,
        destination: PathLike,
        columns: Sequence[str],
        options: StreamOptions | None = None,
    ) -> None:
        self._options = options or StreamOptions()
        self._columns = tuple(columns)
        self._sink = FileSink(
            Path(destination), high_water_mark=self._options.high_water_mark_bytes
        )
        self._rows_written = 0
        self._write_in_flight = False
        self._closed = False
        # Header failures surface through the sink on the next write or close.
        self._sink.write(self._encode(self._columns))
        logger.debug(
            "Writer opened for %s with %d columns", self._sink.destination, len(self._columns)
        )

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    @property
    def rows_written(self) -> int:
        """Number of data rows accepted so far, excluding the header."""
        return self._rows_written

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def sink(self) -> FileSink:
        return self._sink

    async def write(self, row: Row) -> None:
        """Serialise ``row`` and wait until the sink can take more data."""
        if self._closed:
            raise MisuseError(f"Cannot write to '{self._sink.destination}' after close().")
        if self._write_in_flight:
            raise MisuseError("Another write is still in flight; await it before writing again.")

        self._write_in_flight = True
        try:
            if self._sink.write(self._encode(row)):
                await asyncio.sleep(0)
            else:
                await wait_for_outcome(self._sink, DRAIN_EVENT)
            self._rows_written += 1
        finally:
            self._write_in_flight = False

    async def close(self) -> None:
        """Flush everything queued, close the file and wait for confirmation."""
        if self._closed:
            raise MisuseError(f"Writer for '{self._sink.destination}' is already closed.")
        if self._write_in_flight:
            raise MisuseError("Cannot close while a write is still in flight.")
        self._closed = True
        self._sink.end()
        if not self._sink.finished:
            await wait_for_outcome(self._sink, FINISH_EVENT)
        logger.debug(
            "Writer closed for %s after %d rows", self._sink.destination, self._rows_written
        )

    async def __aenter__(self) -> "StreamingRowWriter":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        if self._closed:
            return
        if exc_type is not None and self._sink.error is not None:
            # The body already raised this sink failure.
            return
        await self.close()

    def _encode(self, row: Row) -> bytes:
        return encode_row(row, self._options.delimiter, self._options.encoding)


def open_writer(
    destination: PathLike, columns: Sequence[str], options: StreamOptions | None = None
) -> StreamingRowWriter:
    """Open ``destination`` for streaming and queue the header row."""
    return StreamingRowWriter(destination, columns, options)
