from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

import pytest


@pytest.fixture
def progress_log() -> list[tuple[str, float | None]]:
    return []


@pytest.fixture
def reporter(progress_log) -> Callable[[str, float | None], None]:
    def report(message: str, percent_complete: float | None = None) -> None:
        progress_log.append((message, percent_complete))

    return report


@pytest.fixture
def write_source(tmp_path) -> Callable[..., Path]:
    """Write a delimited source file directly, bypassing the streaming writer."""

    def factory(
        rows: Iterable[Sequence[Any]], name: str = "source.csv", terminator: str = "\n"
    ) -> Path:
        path = tmp_path / name
        with path.open("w", encoding="utf-8", newline="") as handle:
            for row in rows:
                handle.write(",".join(str(value) for value in row) + terminator)
        return path

    return factory
