"""Integration test configuration and shared fixtures."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture
def cli_env(tmp_path: Path) -> dict[str, str]:
    """Environment for CLI subprocesses: unbuffered output, no FILE_READER_* leakage, logs to a temp dir."""
    env = {key: value for key, value in os.environ.items() if not key.startswith("FILE_READER_")}
    env["PYTHONUNBUFFERED"] = "1"
    env["LOG_LEVEL"] = "INFO"
    env["APP_LOG_DIR"] = str(tmp_path / "logs")
    return env


@pytest.fixture
def run_cli(project_root: Path, cli_env: dict[str, str]) -> Callable[..., subprocess.CompletedProcess[str]]:
    """Run ``python -m <module> <args>`` from the project root and capture its output."""

    def _run(module: str, *args: str, timeout: float = 30) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            [sys.executable, "-m", module, *args],
            cwd=project_root,
            env=cli_env,
            capture_output=True,
            text=True,
            timeout=timeout,
        )

    return _run
