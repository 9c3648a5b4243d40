"""Reusable helpers for serialising and reading delimited rows."""

from __future__ import annotations

from typing import Iterable, Iterator, TextIO

from bulk_sheet.models import Row, Scalar


def format_field(value: Scalar) -> str:
    """Render a single field; ``None`` becomes an empty field."""
    if value is None:
        return ""
    return str(value)


def encode_row(row: Row, delimiter: str, encoding: str = "utf-8") -> bytes:
    """Join ``row`` positionally with ``delimiter`` and terminate it with a newline.

    Field values are not quoted or escaped.
    """
    return (delimiter.join(format_field(value) for value in row) + "\n").encode(encoding)


def split_line(line: str, delimiter: str) -> list[str]:
    """Strip the line terminator (``\\n`` or ``\\r\\n``) and split on ``delimiter``."""
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line.split(delimiter)


def iter_delimited_rows(handle: TextIO | Iterable[str], delimiter: str) -> Iterator[list[str]]:
    """Yield one split row per line of ``handle`` without reading ahead."""
    for line in handle:
        yield split_line(line, delimiter)
