"""Shared processed/failed counters for concurrent workers."""

from __future__ import annotations

import logging
import threading
import uuid
from types import TracebackType

from filereader.types import CounterKind

LOGGER = logging.getLogger(__name__)


def new_run_id() -> str:
    """Return a run-unique identifier for log lines and counter stores."""
    return uuid.uuid4().hex


class CounterStore:
    """Lock-guarded processed/failed totals owned by one run.

    Every increment-and-read is a single critical section, so two workers
    finishing at the same time never observe the same sequence number and
    no update is lost. After ``close()`` the counters are frozen: increments
    return the frozen value without changing it.
    """

    def __init__(self, run_id: str | None = None):
        self.run_id = run_id or new_run_id()
        self._lock = threading.Lock()
        self._counts: dict[CounterKind, int] = {kind: 0 for kind in CounterKind}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def increment(self, kind: CounterKind) -> int:
        """Atomically add one to ``kind`` and return the new value."""
        with self._lock:
            if self._closed:
                LOGGER.debug("Counter store %s closed; ignoring %s increment", self.run_id, kind.value)
                return self._counts[kind]
            self._counts[kind] += 1
            return self._counts[kind]

    def read(self, kind: CounterKind) -> int:
        with self._lock:
            return self._counts[kind]

    def snapshot(self) -> tuple[int, int]:
        """Return (processed, failed) observed under one lock acquisition."""
        with self._lock:
            return self._counts[CounterKind.PROCESSED], self._counts[CounterKind.FAILED]

    def close(self) -> tuple[int, int]:
        """Freeze the counters and return the final (processed, failed)."""
        with self._lock:
            if not self._closed:
                self._closed = True
                LOGGER.debug(
                    "Counter store %s closed at processed=%d failed=%d",
                    self.run_id,
                    self._counts[CounterKind.PROCESSED],
                    self._counts[CounterKind.FAILED],
                )
            return self._counts[CounterKind.PROCESSED], self._counts[CounterKind.FAILED]

    def __enter__(self) -> CounterStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
