"""Bounded-concurrency scheduler that dispatches file reads to a worker pool."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from contextlib import ExitStack
from typing import Sequence

from filereader.cancellation import CancellationHandler
from filereader.exceptions import RunCancelledError
from filereader.processor import FileProcessor
from filereader.run_config import RunConfig
from filereader.types import (
    CancelReason,
    FileOutcome,
    FileResult,
    FileTask,
    RunResult,
    RunState,
    WorkerHandle,
    WorkerState,
)

LOGGER = logging.getLogger(__name__)

DRAIN_POLL_SECONDS = 0.1


class WorkerPoolScheduler:
    """Dispatches tasks to at most ``config.jobs`` concurrent workers.

    Lifecycle: IDLE -> DISPATCHING -> DRAINING -> DONE, or
    DISPATCHING/DRAINING -> CANCELLING -> DONE when a disallowed failure or
    a signal cancels the run. Admission blocks on a bounded semaphore; each
    worker's completion callback releases its slot. Dispatch is FIFO by
    ordinal, completion order is unspecified.

    A scheduler runs once; a cancelled run cannot be resumed.
    """

    def __init__(
        self,
        processor: FileProcessor,
        config: RunConfig,
        cancellation: CancellationHandler | None = None,
        *,
        handle_signals: bool = False,
    ):
        """Initialize the scheduler.

        Args:
            processor: Per-file processor run by every worker
            config: Run configuration (jobs, skip_errors, cancel grace)
            cancellation: Cancellation handler owning the run token
            handle_signals: Install SIGINT/SIGTERM handlers for the run's duration
        """
        self._processor = processor
        self._config = config
        self._cancellation = cancellation or CancellationHandler()
        self._handle_signals = handle_signals

        self._slots = threading.BoundedSemaphore(config.jobs)
        self._lock = threading.Lock()
        self._state = RunState.IDLE
        self._running = 0
        self._peak_running = 0
        self._handles: list[WorkerHandle] = []
        self._total = 0

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def peak_running(self) -> int:
        with self._lock:
            return self._peak_running

    def _set_state(self, state: RunState) -> None:
        LOGGER.debug("Scheduler state %s -> %s", self._state.value, state.value)
        self._state = state

    def _run_worker(self, task: FileTask, total: int) -> FileResult:
        with self._lock:
            self._running += 1
            self._peak_running = max(self._peak_running, self._running)
        try:
            return self._processor.process(task, total, self._cancellation.token)
        finally:
            with self._lock:
                self._running -= 1

    def _on_worker_done(self, handle: WorkerHandle, future: Future[FileResult]) -> None:
        """Record the outcome, apply the failure policy and free the slot."""
        try:
            if future.cancelled():
                handle.result = FileResult(task=handle.task, outcome=FileOutcome.CANCELLED)
            else:
                try:
                    handle.result = future.result()
                except Exception as error:
                    LOGGER.exception("Worker for %s crashed", handle.task.path)
                    handle.result = self._processor.record_crash(handle.task, self._total, error)
            handle.state = WorkerState.COMPLETED

            if handle.result.failed and not self._config.skip_errors:
                if self._cancellation.cancel(CancelReason.FAILURE):
                    LOGGER.info("Stopping after failure of %s", handle.task.path)
        finally:
            # Token is already set when the slot frees
            self._slots.release()

    def _submit(self, executor: ThreadPoolExecutor, task: FileTask, total: int) -> None:
        try:
            future = executor.submit(self._run_worker, task, total)
        except RuntimeError:
            self._slots.release()
            raise
        handle = WorkerHandle(task=task, future=future)
        self._handles.append(handle)
        future.add_done_callback(lambda done, handle=handle: self._on_worker_done(handle, done))

    def _dispatch(self, executor: ThreadPoolExecutor, tasks: Sequence[FileTask]) -> None:
        self._set_state(RunState.DISPATCHING)
        for task in tasks:
            self._slots.acquire()
            if self._cancellation.cancelled:
                self._slots.release()
                LOGGER.debug("Admission stopped before task %d", task.ordinal)
                return
            self._submit(executor, task, self._total)

    def _drain(self, executor: ThreadPoolExecutor) -> None:
        self._set_state(RunState.DRAINING)
        pending = {handle.future for handle in self._handles}
        while pending and not self._cancellation.cancelled:
            # Bounded wait: a failure may set the token from a done-callback after wait() returns
            _, pending = wait(pending, timeout=DRAIN_POLL_SECONDS, return_when=FIRST_COMPLETED)
        if not pending:
            # Done-callbacks finish on the worker threads; join so every handle holds its result
            executor.shutdown(wait=True)

    def _cancel_outstanding(self, executor: ThreadPoolExecutor) -> None:
        """Stop in-flight workers, waiting at most the configured grace period."""
        self._set_state(RunState.CANCELLING)
        running = [handle.future for handle in self._handles if not handle.future.done()]
        for future in running:
            future.cancel()
        still_running = [future for future in running if not future.done()]
        if still_running:
            LOGGER.info(
                "Waiting for %d active reads to stop (max %.0fs)...",
                len(still_running),
                self._config.cancel_grace_seconds,
            )
            _, not_done = wait(still_running, timeout=self._config.cancel_grace_seconds)
            if not_done:
                LOGGER.warning("%d reads did not stop within the grace period; abandoning them", len(not_done))
                executor.shutdown(wait=False, cancel_futures=True)
                return
        executor.shutdown(wait=True, cancel_futures=True)

    def run(self, tasks: Sequence[FileTask]) -> RunResult:
        """Process every task and return the final counts.

        Args:
            tasks: Tasks in list order

        Returns:
            RunResult with counts frozen at drain or at cancellation
        """
        if self._state is not RunState.IDLE:
            raise RuntimeError("A scheduler can only run once")

        counters = self._processor.counters
        result = RunResult(run_id=counters.run_id, total=len(tasks))
        start = time.time()
        LOGGER.info(
            "Run %s: %d files, %d parallel jobs, skip_errors=%s",
            result.run_id,
            len(tasks),
            self._config.jobs,
            self._config.skip_errors,
        )

        self._total = len(tasks)
        executor = ThreadPoolExecutor(max_workers=self._config.jobs, thread_name_prefix="file-reader")
        try:
            # Exit order: signal handlers restored, then counters frozen
            with ExitStack() as stack:
                stack.enter_context(counters)
                if self._handle_signals:
                    stack.enter_context(self._cancellation)
                try:
                    self._dispatch(executor, tasks)
                    if not self._cancellation.cancelled:
                        self._drain(executor)
                    if self._cancellation.cancelled:
                        counters.close()
                        self._cancel_outstanding(executor)
                except RunCancelledError:
                    LOGGER.debug("Dispatcher interrupted in state %s", self._state.value)
                    counters.close()
                    self._cancel_outstanding(executor)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
            self._set_state(RunState.DONE)

        result.processed, result.failed = counters.snapshot()
        result.state = self._state
        result.cancel_reason = self._cancellation.reason
        result.signal_number = self._cancellation.signal_number
        result.dispatched = len(self._handles)
        result.peak_running = self.peak_running
        result.results = [handle.result for handle in self._handles if handle.result is not None]
        result.elapsed_seconds = time.time() - start

        LOGGER.info(
            "Run %s finished: %d processed, %d failed of %d (%s)",
            result.run_id,
            result.processed,
            result.failed,
            result.total,
            result.cancel_reason.value if result.cancel_reason else "drained",
        )
        return result
