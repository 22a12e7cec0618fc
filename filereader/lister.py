"""Path discovery: writes the file list consumed by the input loader."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterator

from filereader.exceptions import DiscoveryError

LOGGER = logging.getLogger(__name__)


def iter_regular_files(root: str | Path) -> Iterator[str]:
    """Yield ``<root>/<relative path>`` for every regular file below root.

    Directories and files are visited in sorted order; symlinks, sockets and
    other special files are skipped.
    """
    root_str = str(root).rstrip("/") or "/"
    root_path = Path(root_str)
    if not root_path.exists():
        raise DiscoveryError(f"Path '{root_str}' does not exist")
    if not root_path.is_dir():
        raise DiscoveryError(f"Path '{root_str}' is not a directory")

    def _on_error(error: OSError) -> None:
        LOGGER.warning("Skipping unreadable directory %s: %s", error.filename, error.strerror)

    for dirpath, dirnames, filenames in os.walk(root_str, onerror=_on_error):
        dirnames.sort()
        for name in sorted(filenames):
            full_path = os.path.join(dirpath, name)
            if os.path.islink(full_path) or not os.path.isfile(full_path):
                continue
            relative = os.path.relpath(full_path, root_str)
            yield f"{root_str.rstrip('/')}/{relative}"


def write_file_list(
    root: str | Path,
    output_file: str | Path,
    emit: Callable[[str], None] | None = None,
) -> int:
    """Write one path per line to ``output_file`` and return how many were written.

    Each path is also passed to ``emit`` as it is discovered.
    """
    count = 0
    output_abspath = os.path.abspath(output_file)
    try:
        with Path(output_file).open("w", encoding="utf-8") as handle:
            for path in iter_regular_files(root):
                if os.path.abspath(path) == output_abspath:
                    continue
                handle.write(f"{path}\n")
                if emit is not None:
                    emit(path)
                count += 1
    except OSError as exc:
        raise DiscoveryError(f"Cannot write file list '{output_file}': {exc}") from exc

    LOGGER.debug("Discovered %d files under %s", count, root)
    return count
