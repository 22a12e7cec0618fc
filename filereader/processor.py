"""Per-file read processing."""

import logging
import os
import threading

from filereader.counters import CounterStore
from filereader.exceptions import (
    BlockReadError,
    NotFoundError,
    PerFileError,
    PermissionDeniedError,
    ReadCancelledError,
)
from filereader.services.interfaces import BlockReader, LineEmitter, ReadRequest
from filereader.types import CounterKind, FileOutcome, FileResult, FileTask

LOGGER = logging.getLogger(__name__)


def format_progress(count: int, total: int, message: str) -> str:
    """Format a ``[<count>/<total>] <message>`` progress line."""
    return f"[{count}/{total}] {message}"


class FileProcessor:
    """Validates and reads one file, classifying the outcome.

    Counters are updated through the shared CounterStore; the count printed
    on each progress line is the value returned by that increment.
    """

    def __init__(
        self,
        block_reader: BlockReader,
        counters: CounterStore,
        block_size: str,
        block_size_bytes: int,
        emit: LineEmitter,
    ):
        """Initialize the processor.

        Args:
            block_reader: Service performing the actual block reads
            counters: Run-wide processed/failed counters
            block_size: Block size as given by the user (e.g. "1M")
            block_size_bytes: The same block size in bytes
            emit: Callable receiving each finished progress line
        """
        self._block_reader = block_reader
        self._counters = counters
        self._block_size = block_size
        self._block_size_bytes = block_size_bytes
        self._emit = emit

    @property
    def counters(self) -> CounterStore:
        return self._counters

    def _check_access(self, path: str) -> None:
        # Directories, special files and unstattable paths count as missing, like `test -f`
        if not os.path.isfile(path):
            raise NotFoundError(path)
        if not os.access(path, os.R_OK):
            raise PermissionDeniedError(path)

    def _fail(self, task: FileTask, total: int, error: PerFileError) -> FileResult:
        count = self._counters.increment(CounterKind.FAILED)
        self._emit(format_progress(count, total, f"ERROR: {error}"))
        LOGGER.debug("%s: %s", error.outcome.value, task.path)
        return FileResult(task=task, outcome=error.outcome, count=count, error_message=str(error))

    def record_crash(self, task: FileTask, total: int, error: BaseException) -> FileResult:
        """Count and report an unexpected worker exception as a failed read."""
        count = self._counters.increment(CounterKind.FAILED)
        message = f"Read failed for {task.path}: {error or type(error).__name__}"
        self._emit(format_progress(count, total, f"ERROR: {message}"))
        return FileResult(task=task, outcome=FileOutcome.READ_FAILED, count=count, error_message=message)

    def process(self, task: FileTask, total: int, cancel_event: threading.Event) -> FileResult:
        """Process a single file.

        Args:
            task: The file to read
            total: Number of tasks in the run, shown in progress lines
            cancel_event: Run cancellation token observed by the reader

        Returns:
            FileResult describing the outcome
        """
        if cancel_event.is_set():
            return FileResult(task=task, outcome=FileOutcome.CANCELLED)

        try:
            self._check_access(task.path)
        except (NotFoundError, PermissionDeniedError) as error:
            return self._fail(task, total, error)

        # processed counts started reads, not finished ones
        count = self._counters.increment(CounterKind.PROCESSED)
        request = ReadRequest(path=task.path, block_size=self._block_size, block_size_bytes=self._block_size_bytes)
        self._emit(format_progress(count, total, self._block_reader.describe(request)))

        try:
            result = self._block_reader.read(request, cancel_event)
        except ReadCancelledError:
            LOGGER.debug("Read of %s cancelled", task.path)
            return FileResult(task=task, outcome=FileOutcome.CANCELLED, count=count)
        except BlockReadError as error:
            self._counters.increment(CounterKind.FAILED)
            self._emit(format_progress(count, total, f"ERROR: {error}"))
            LOGGER.debug("read_failed: %s (%s)", task.path, error.reason)
            return FileResult(task=task, outcome=FileOutcome.READ_FAILED, count=count, error_message=str(error))

        return FileResult(task=task, outcome=FileOutcome.SUCCESS, count=count, bytes_read=result.bytes_read)
