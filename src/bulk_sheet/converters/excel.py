"""Convert delimited files into Excel workbooks using OpenPyXL in write-only mode."""

from __future__ import annotations

import asyncio
import logging
from contextlib import closing, suppress
from pathlib import Path
from typing import Iterator

from openpyxl import Workbook
from openpyxl.utils.exceptions import IllegalCharacterError
from openpyxl.worksheet._write_only import WriteOnlyWorksheet

from bulk_sheet.models import ConversionRequest, ProgressReporter, StreamOptions
from bulk_sheet.services.exceptions import (
    ConversionCancelledError,
    EncodeError,
    SourceReadError,
    WriteFailureError,
)
from bulk_sheet.utils.rows import iter_delimited_rows
from bulk_sheet.utils.size_helpers import format_bytes

logger = logging.getLogger(__name__)

DEFAULT_YIELD_INTERVAL = 500
DEFAULT_PROGRESS_INTERVAL = 100_000
MAX_EXCEL_ROWS = 1_048_576
MAX_EXCEL_COLUMNS = 16_384


def _silent(message: str, percent_complete: float | None = None) -> None:
    """Progress reporter used when the caller does not supply one."""


def _source_rows(source: Path, options: StreamOptions) -> Iterator[list[str]]:
    """Yield split rows from ``source``, translating read failures."""
    try:
        with source.open("r", encoding=options.encoding, newline="") as handle:
            yield from iter_delimited_rows(handle, options.delimiter)
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceReadError(f"Cannot read source '{source}': {exc}") from exc


def _discard_spool(sheet: WriteOnlyWorksheet) -> None:
    """Stop a write-only sheet's row stream and delete its temporary spool file.

    Only ``Workbook.save`` removes the spool otherwise, so an aborted
    conversion would leave a partial sheet in the temp directory.
    """
    # pylint: disable=protected-access
    rows = getattr(sheet, "_rows", None)
    writer = getattr(sheet, "_writer", None)
    # The error that aborted the conversion is the one that propagates.
    if rows is not None:
        with suppress(Exception):
            rows.close()
    if writer is None:
        return
    with suppress(Exception):
        writer.close()
    with suppress(OSError, ValueError):
        writer.cleanup()


class ExcelConverter:  # pylint: disable=too-few-public-methods
    """Stream a delimited file into a single worksheet of an .xlsx/.xlsm workbook.

    Rows are read one line at a time and appended to a write-only worksheet,
    which spools cell XML to a temporary file instead of keeping it in memory.
    The append call is synchronous, so control is handed back to the event
    loop every ``yield_interval`` rows.
    """

    supported_types = ("xlsx", "xlsm")

    def __init__(
        self,
        *,
        yield_interval: int = DEFAULT_YIELD_INTERVAL,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
        max_rows: int = MAX_EXCEL_ROWS,
        max_columns: int = MAX_EXCEL_COLUMNS,
    ) -> None:
        if yield_interval <= 0 or progress_interval <= 0:
            raise ValueError("yield_interval and progress_interval must be positive")
        self._yield_interval = yield_interval
        self._progress_interval = progress_interval
        self._max_rows = max_rows
        self._max_columns = max_columns

    async def convert(
        self, request: ConversionRequest, progress: ProgressReporter | None = None
    ) -> bool:
        report = progress or _silent
        source = Path(request.source)
        destination = Path(request.destination)

        workbook = Workbook(write_only=True)
        sheet = workbook.create_sheet(title=request.sheet_title)
        logger.debug("Converting %s into %s", source, destination)
        report(
            f"Converting '{source.name}' into sheet '{request.sheet_title}'",
            percent_complete=-1.0,
        )

        try:
            rows_written = await self._append_rows(sheet, request, report)
        except BaseException:
            _discard_spool(sheet)
            raise

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(workbook.save, destination)
        except OSError as exc:
            raise WriteFailureError(f"Saving workbook '{destination}' failed: {exc}") from exc

        actual_bytes = destination.stat().st_size
        logger.debug(
            "Saved %s: %d rows, %s", destination, rows_written, format_bytes(actual_bytes)
        )
        report(
            f"Workbook saved ({rows_written:,} rows, {format_bytes(actual_bytes)})",
            percent_complete=100.0,
        )
        return True

    async def _append_rows(
        self,
        sheet: WriteOnlyWorksheet,
        request: ConversionRequest,
        report: ProgressReporter,
    ) -> int:
        source = Path(request.source)
        rows_written = 0
        with closing(_source_rows(source, request.options)) as rows:
            for rows_written, row in enumerate(rows, start=1):
                if request.cancel_requested and request.cancel_requested():
                    raise ConversionCancelledError("Conversion cancelled by caller.")
                if rows_written > self._max_rows:
                    raise EncodeError(
                        f"Source '{source}' exceeds the worksheet limit of "
                        f"{self._max_rows:,} rows."
                    )
                if len(row) > self._max_columns:
                    raise EncodeError(
                        f"Row {rows_written:,} has {len(row):,} fields; "
                        f"the worksheet limit is {self._max_columns:,} columns."
                    )
                try:
                    sheet.append(row)
                except (IllegalCharacterError, ValueError) as exc:
                    raise EncodeError(
                        f"Row {rows_written:,} was rejected by the encoder: {exc}"
                    ) from exc
                except OSError as exc:
                    raise WriteFailureError(
                        f"Spooling row {rows_written:,} for '{request.destination}' "
                        f"failed: {exc}"
                    ) from exc

                if rows_written % self._yield_interval == 0:
                    await asyncio.sleep(0)
                if rows_written % self._progress_interval == 0:
                    report(f"Converted {rows_written:,} rows", percent_complete=-1.0)
        return rows_written
