from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable

import pytest

from filereader.counters import CounterStore
from filereader.exceptions import BlockReadError, ReadCancelledError
from filereader.processor import FileProcessor
from filereader.services.interfaces import ReadRequest, ReadResult


@pytest.fixture(scope="session", autouse=True)
def _disable_network_for_unit_tests() -> None:
    """Block real sockets for unit tests; allow Unix sockets for pytest internals."""
    from pytest_socket import disable_socket

    disable_socket(allow_unix_socket=True)


class FakeBlockReader:
    """BlockReader double that records concurrency and can fail or stall on demand.

    ``delay`` is spent waiting on the cancellation token, so a cancelled run
    wakes it early. ``barrier`` forces ``parties`` reads to overlap. ``hold``
    blocks a read until the test sets it, ignoring the token. Paths in
    ``crash_paths`` raise a plain RuntimeError.
    """

    name = "fake"

    def __init__(
        self,
        delay: float = 0.0,
        fail_paths: set[str] | None = None,
        stall: bool = False,
        barrier: threading.Barrier | None = None,
        hold: threading.Event | None = None,
        crash_paths: set[str] | None = None,
    ) -> None:
        self.delay = delay
        self.fail_paths = fail_paths or set()
        self.stall = stall
        self.barrier = barrier
        self.hold = hold
        self.crash_paths = crash_paths or set()
        self.calls: list[str] = []
        self.active = 0
        self.peak = 0
        self.started = threading.Semaphore(0)
        self._lock = threading.Lock()

    def describe(self, request: ReadRequest) -> str:
        return f"reading {request.path} with block size {request.block_size}"

    def read(self, request: ReadRequest, cancel_event: threading.Event) -> ReadResult:
        with self._lock:
            self.calls.append(request.path)
            self.active += 1
            self.peak = max(self.peak, self.active)
        self.started.release()
        try:
            if self.barrier is not None:
                self.barrier.wait(timeout=5)
            if self.hold is not None:
                self.hold.wait(timeout=10)
            if request.path in self.crash_paths:
                raise RuntimeError("reader blew up")
            if self.stall:
                cancel_event.wait(timeout=10)
                raise ReadCancelledError(request.path)
            if request.path in self.fail_paths:
                raise BlockReadError(request.path, "simulated I/O error")
            if self.delay and cancel_event.wait(self.delay):
                raise ReadCancelledError(request.path)
            return ReadResult(bytes_read=Path(request.path).stat().st_size, duration=0.0, backend=self.name)
        finally:
            with self._lock:
                self.active -= 1

    def wait_started(self, count: int, timeout: float = 5.0) -> bool:
        """Block until ``count`` reads have begun."""
        return all(self.started.acquire(timeout=timeout) for _ in range(count))


class LineRecorder:
    """Thread-safe LineEmitter that keeps every emitted line."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, line: str) -> None:
        with self._lock:
            self.lines.append(line)


@pytest.fixture
def fake_reader() -> FakeBlockReader:
    return FakeBlockReader()


@pytest.fixture
def make_reader() -> type[FakeBlockReader]:
    """Expose the FakeBlockReader class for tests that need custom delays or failures."""
    return FakeBlockReader


@pytest.fixture
def line_recorder() -> LineRecorder:
    return LineRecorder()


@pytest.fixture
def counters() -> CounterStore:
    return CounterStore(run_id="test-run")


@pytest.fixture
def make_processor(counters: CounterStore, line_recorder: LineRecorder) -> Callable[..., FileProcessor]:
    """Build a FileProcessor around a given reader with 1M blocks."""

    def _make(reader: object) -> FileProcessor:
        return FileProcessor(
            block_reader=reader,  # type: ignore[arg-type]
            counters=counters,
            block_size="1M",
            block_size_bytes=1024 * 1024,
            emit=line_recorder,
        )

    return _make
