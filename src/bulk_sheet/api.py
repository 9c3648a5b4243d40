"""Public entry points: stream rows to a delimited file and convert it to a workbook."""

from __future__ import annotations

from pathlib import Path

from bulk_sheet.models import (
    CancelCallback,
    ConversionRequest,
    PathLike,
    ProgressReporter,
    StreamOptions,
)
from bulk_sheet.services.conversion_service import create_default_service
from bulk_sheet.writers.delimited import StreamingRowWriter, open_writer

__all__ = ["StreamingRowWriter", "convert", "open_writer"]


async def convert(
    source: PathLike,
    destination: PathLike,
    *,
    options: StreamOptions | None = None,
    progress: ProgressReporter | None = None,
    cancel_requested: CancelCallback | None = None,
) -> bool:
    """Convert the delimited file at ``source`` into the workbook at ``destination``.

    Returns ``True`` once the workbook is saved; every failure is raised as a
    ``BulkSheetError`` subclass. An existing destination is overwritten.
    """
    request = ConversionRequest(
        source=Path(source),
        destination=Path(destination),
        options=options or StreamOptions(),
        cancel_requested=cancel_requested,
    )
    return await create_default_service().convert(request, progress)
