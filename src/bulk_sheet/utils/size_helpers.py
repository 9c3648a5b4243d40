"""Helpers for working with byte sizes."""

from __future__ import annotations


BYTE = 1
KIB = 1024 * BYTE
MIB = 1024 * KIB
GIB = 1024 * MIB


def format_bytes(byte_count: int) -> str:
    """Render a byte count using the largest binary unit that keeps it >= 1."""
    if byte_count < 0:
        raise ValueError("byte_count must be non-negative")
    for unit, size in (("GiB", GIB), ("MiB", MIB), ("KiB", KIB)):
        if byte_count >= size:
            return f"{byte_count / size:.1f} {unit}"
    return f"{byte_count} B"
