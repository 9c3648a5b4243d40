"""Shared request models, options and protocols used across the package."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Protocol, Sequence, Union

from bulk_sheet.utils.size_helpers import KIB

DEFAULT_HIGH_WATER_MARK = 16 * KIB
DEFAULT_DELIMITER = ","
DEFAULT_ENCODING = "utf-8"

Scalar = Union[str, int, float, None]
Row = Sequence[Scalar]
PathLike = Union[str, Path]


class ProgressReporter(Protocol):  # pylint: disable=too-few-public-methods
    """Callable used to surface progress updates to the caller."""

    def __call__(self, message: str, percent_complete: float | None = None) -> None:
        ...


CancelCallback = Callable[[], bool]


@dataclass(frozen=True)
class StreamOptions:
    """Tunables shared by the streaming writer and the converters."""

    delimiter: str = DEFAULT_DELIMITER
    encoding: str = DEFAULT_ENCODING
    high_water_mark_bytes: int = DEFAULT_HIGH_WATER_MARK

    def __post_init__(self) -> None:
        if len(self.delimiter) != 1:
            raise ValueError("delimiter must be a single character")
        if self.high_water_mark_bytes <= 0:
            raise ValueError("high_water_mark_bytes must be greater than zero")


@dataclass(frozen=True)
class ConversionRequest:  # pylint: disable=too-few-public-methods
    """Value object binding one source file to one spreadsheet destination."""

    source: Path
    destination: Path
    options: StreamOptions = field(default_factory=StreamOptions)
    sheet_title: str = "Sheet1"
    cancel_requested: CancelCallback | None = None

    @property
    def destination_type(self) -> str:
        """Return the lower-cased destination suffix without the leading dot."""
        return self.destination.suffix.lower().lstrip(".")
