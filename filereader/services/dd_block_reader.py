"""BlockReader implementation that shells out to ``dd``."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess  # nosec B404 - dd invocation with fixed arguments
import threading
import time

from filereader.exceptions import BlockReadError, ReadCancelledError
from filereader.services.interfaces import ReadRequest, ReadResult

LOGGER = logging.getLogger(__name__)

# How often a running dd is checked against the cancellation token
DEFAULT_POLL_INTERVAL = 0.2
TERMINATE_TIMEOUT = 5.0


def _format_dd_error(stderr: str | bytes | None) -> str:
    """Flatten dd stderr into a concise single-line message."""
    if not stderr:
        return "no diagnostic output"
    if isinstance(stderr, bytes):
        stderr = stderr.decode(errors="replace")
    lines = [line.strip() for line in stderr.splitlines() if line.strip()]
    # dd appends "records in/out" statistics after the actual error
    errors = [line for line in lines if "records in" not in line and "records out" not in line]
    return "; ".join(errors or lines) or "no diagnostic output"


class DdBlockReader:
    """Reads a file with ``dd if=<path> of=/dev/null bs=<size>``.

    On cancellation the dd process is terminated, then killed if it does not
    exit within TERMINATE_TIMEOUT seconds.
    """

    name = "dd"

    def __init__(self, dd_path: str | None = None, poll_interval: float = DEFAULT_POLL_INTERVAL):
        self._dd_path = dd_path or shutil.which("dd") or "dd"
        self._poll_interval = poll_interval

    def build_command(self, request: ReadRequest) -> list[str]:
        return [
            self._dd_path,
            f"if={request.path}",
            "of=/dev/null",
            f"bs={request.block_size.upper()}",
        ]

    def describe(self, request: ReadRequest) -> str:
        return f'dd if="{request.path}" of=/dev/null bs={request.block_size.upper()}'

    def read(self, request: ReadRequest, cancel_event: threading.Event) -> ReadResult:
        start = time.time()
        try:
            proc = subprocess.Popen(  # nosec B603 - fixed command list, no shell
                self.build_command(request),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise BlockReadError(request.path, "dd is required but not installed or not on PATH") from exc
        except OSError as exc:
            raise BlockReadError(request.path, f"failed to start dd: {exc}") from exc

        stderr = b""
        while True:
            try:
                _, stderr = proc.communicate(timeout=self._poll_interval)
                break
            except subprocess.TimeoutExpired:
                if cancel_event.is_set():
                    self._terminate(proc, request.path)
                    raise ReadCancelledError(request.path) from None

        if proc.returncode != 0:
            raise BlockReadError(request.path, f"dd exited with {proc.returncode}: {_format_dd_error(stderr)}")

        duration = time.time() - start
        LOGGER.debug("dd finished %s in %.3f s", request.path, duration)
        # dd reports byte counts only on stderr
        bytes_read = _file_size(request.path)
        return ReadResult(bytes_read=bytes_read, duration=duration, backend=self.name)

    @staticmethod
    def _terminate(proc: subprocess.Popen[bytes], path: str) -> None:
        LOGGER.debug("Terminating dd for %s (pid %s)", path, proc.pid)
        proc.terminate()
        try:
            proc.communicate(timeout=TERMINATE_TIMEOUT)
        except subprocess.TimeoutExpired:
            LOGGER.warning("dd for %s ignored SIGTERM; killing pid %s", path, proc.pid)
            proc.kill()
            proc.communicate()


def _file_size(path: str) -> int:
    try:
        return os.path.getsize(path)
    except OSError:
        return 0
