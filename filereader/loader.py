"""Input loader: turns a file list into ordered read tasks."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from filereader.exceptions import InputListError
from filereader.types import FileTask

LOGGER = logging.getLogger(__name__)

COMMENT_PREFIX = "#"


def is_task_line(line: str) -> bool:
    """Return True when a list line names a path (not blank, not a comment)."""
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith(COMMENT_PREFIX)


def _check_source(source: Path) -> None:
    if not source.exists():
        raise InputListError(f"File list '{source}' does not exist")
    if not source.is_file():
        raise InputListError(f"File list '{source}' is not a regular file")


def iter_tasks(source: str | Path) -> Iterator[FileTask]:
    """Yield a FileTask per eligible line, preserving list order.

    Ordinals start at 1 and count eligible lines only.

    Raises:
        InputListError: If the list cannot be opened, read or decoded.
    """
    source_path = Path(source)
    _check_source(source_path)

    ordinal = 0
    try:
        with source_path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not is_task_line(line):
                    continue
                ordinal += 1
                yield FileTask(path=line.strip(), ordinal=ordinal)
    except UnicodeDecodeError as exc:
        raise InputListError(f"Cannot decode file list '{source_path}': {exc}") from exc
    except OSError as exc:
        raise InputListError(f"Cannot read file list '{source_path}': {exc}") from exc


def load_tasks(source: str | Path) -> list[FileTask]:
    """Load every task from the file list up front.

    A broken list raises InputListError before any read is dispatched.
    """
    tasks = list(iter_tasks(source))
    LOGGER.debug("Loaded %d tasks from %s", len(tasks), source)
    return tasks
