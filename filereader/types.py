"""Shared type definitions."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum


class FileOutcome(str, Enum):
    """Classification of a single file's read."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    READ_FAILED = "read_failed"
    CANCELLED = "cancelled"

    @property
    def is_failure(self) -> bool:
        return self in (FileOutcome.NOT_FOUND, FileOutcome.PERMISSION_DENIED, FileOutcome.READ_FAILED)


class CounterKind(str, Enum):
    PROCESSED = "processed"
    FAILED = "failed"


class RunState(str, Enum):
    """Scheduler lifecycle: IDLE -> DISPATCHING -> DRAINING -> DONE, or via CANCELLING."""

    IDLE = "idle"
    DISPATCHING = "dispatching"
    DRAINING = "draining"
    CANCELLING = "cancelling"
    DONE = "done"


class CancelReason(str, Enum):
    FAILURE = "failure"
    INTERRUPT = "interrupt"


class WorkerState(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class FileTask:
    """One path from the file list, numbered in list order."""

    path: str
    ordinal: int


@dataclass(slots=True)
class FileResult:
    """Result captured for each dispatched file."""

    task: FileTask
    outcome: FileOutcome
    count: int | None = None
    error_message: str | None = None
    bytes_read: int = 0

    @property
    def failed(self) -> bool:
        return self.outcome.is_failure


@dataclass(slots=True)
class WorkerHandle:
    """Scheduler-private bookkeeping for one running worker."""

    task: FileTask
    future: Future[FileResult]
    state: WorkerState = WorkerState.RUNNING
    result: FileResult | None = None


@dataclass(slots=True)
class RunResult:
    """Final state of a run as handed to the reporter."""

    run_id: str
    total: int
    processed: int = 0
    failed: int = 0
    dispatched: int = 0
    state: RunState = RunState.IDLE
    cancel_reason: CancelReason | None = None
    signal_number: int | None = None
    peak_running: int = 0
    elapsed_seconds: float = 0.0
    results: list[FileResult] = field(default_factory=list)