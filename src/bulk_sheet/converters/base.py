"""Shared interfaces for spreadsheet converters."""

from __future__ import annotations

from typing import Protocol

from bulk_sheet.models import ConversionRequest, ProgressReporter


class SpreadsheetConverter(Protocol):  # pylint: disable=too-few-public-methods
    """Strategy interface each destination format converter must implement."""

    supported_types: tuple[str, ...]

    async def convert(
        self, request: ConversionRequest, progress: ProgressReporter | None = None
    ) -> bool:
        """Stream the request's source into its destination and return ``True``."""
        raise NotImplementedError
