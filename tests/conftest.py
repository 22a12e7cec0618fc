#!/usr/bin/env python3
"""Root-level pytest configuration and fixtures."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterator

import pytest

# Set up a logger for this module
logger = logging.getLogger(__name__)

_RUN_ENV_PREFIX = "FILE_READER_"


@pytest.fixture(autouse=True)
def _isolate_run_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop FILE_READER_* variables so a developer's .env cannot change defaults under test."""
    for key in list(os.environ):
        if key.startswith(_RUN_ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Provides the absolute path to the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def make_files(tmp_path: Path) -> Callable[..., list[Path]]:
    """Create ``count`` small files under tmp_path and return their paths in order."""

    def _make(count: int, size: int = 4096, prefix: str = "file") -> list[Path]:
        data_dir = tmp_path / "data"
        data_dir.mkdir(exist_ok=True)
        paths = []
        for index in range(1, count + 1):
            path = data_dir / f"{prefix}{index:03d}.bin"
            path.write_bytes(bytes([index % 256]) * size)
            paths.append(path)
        return paths

    return _make


@pytest.fixture
def write_list(tmp_path: Path) -> Callable[..., Path]:
    """Write a file list (one entry per line) and return its path."""

    def _write(entries: list[str | Path], name: str = "file_list.txt") -> Path:
        list_path = tmp_path / name
        list_path.write_text("".join(f"{entry}\n" for entry in entries), encoding="utf-8")
        return list_path

    return _write
