"""High level orchestration for spreadsheet conversions."""

from __future__ import annotations

from typing import Iterable

from bulk_sheet.converters.base import SpreadsheetConverter
from bulk_sheet.converters.excel import ExcelConverter
from bulk_sheet.models import ConversionRequest, ProgressReporter
from bulk_sheet.services.exceptions import EncodeError, SamePathError


class ConversionService:  # pylint: disable=too-few-public-methods
    """Facade responsible for delegating work to the proper converter."""

    def __init__(self, converters: Iterable[SpreadsheetConverter]):
        self._converters = {
            file_type: converter
            for converter in converters
            for file_type in converter.supported_types
        }

    @property
    def supported_types(self) -> tuple[str, ...]:
        return tuple(sorted(self._converters))

    async def convert(
        self, request: ConversionRequest, progress: ProgressReporter | None = None
    ) -> bool:
        """Look up the converter for the destination type and run it."""
        if request.source.resolve() == request.destination.resolve():
            raise SamePathError(
                f"Source and destination must be different files ('{request.source}')."
            )

        converter = self._converters.get(request.destination_type)
        if converter is None:
            raise EncodeError(
                f"No converter registered for destination type "
                f"'.{request.destination_type}' ('{request.destination}')."
            )
        return await converter.convert(request, progress)


def create_default_service() -> ConversionService:
    """Factory providing a ConversionService with built-in converters."""
    return ConversionService([ExcelConverter()])
