"""Custom exceptions for the file reader.

This module defines a unified hierarchy of exceptions for all read-run operations,
including file list loading, configuration, per-file reads and run cancellation.

All exceptions inherit from FileReaderError base class for consistent error handling.
"""

from __future__ import annotations

from filereader.types import FileOutcome


class FileReaderError(Exception):
    """Base exception for all file-reader errors.

    All custom exceptions in the filereader package inherit from this class,
    allowing callers to catch all run errors with a single except clause.
    """


# Input and configuration exceptions


class InputListError(FileReaderError):
    """Raised when the file list cannot be loaded.

    This can occur due to:
    - Missing file list
    - File list path pointing at a directory
    - Permission issues
    - Undecodable content

    Always fatal: no task is dispatched.
    """


class ConfigError(FileReaderError, ValueError):
    """Raised when a run option has an invalid value.

    Inherits from ValueError so option parsers treat it as a bad value.
    """


# Per-file exceptions


class PerFileError(FileReaderError):
    """Base class for recoverable failures of a single file.

    Per-file errors are always counted as failed. Whether they abort the
    whole run depends on the skip-errors policy.
    """

    outcome: FileOutcome = FileOutcome.READ_FAILED

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(message)


class NotFoundError(PerFileError, FileNotFoundError):
    """Raised when a listed path does not exist."""

    outcome = FileOutcome.NOT_FOUND

    def __init__(self, path: str):
        super().__init__(path, f"File not found: {path}")


class PermissionDeniedError(PerFileError, PermissionError):
    """Raised when a listed path exists but cannot be read."""

    outcome = FileOutcome.PERMISSION_DENIED

    def __init__(self, path: str):
        super().__init__(path, f"File not readable: {path}")


class ReadFailedError(PerFileError):
    """Raised when reading the file content fails part way."""

    outcome = FileOutcome.READ_FAILED


class BlockReadError(ReadFailedError, OSError):
    """Raised by a block reader when the read primitive reports an error.

    This can occur due to:
    - I/O errors on the storage path
    - The file disappearing between the existence check and the read
    - dd exiting with a non-zero status
    """

    def __init__(self, path: str, reason: str):
        self.reason = reason
        super().__init__(path, f"Read failed for {path}: {reason}")


class ReadCancelledError(FileReaderError):
    """Raised by a block reader that observed the cancellation token mid-read."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Read cancelled: {path}")


# Run-level exceptions


class RunCancelledError(FileReaderError):
    """Raised in the dispatching thread when the run is interrupted by a signal.

    Always fatal for the run: undispatched tasks are discarded.
    """

    def __init__(self, signal_number: int | None = None):
        self.signal_number = signal_number
        message = "Run interrupted" if signal_number is None else f"Run interrupted by signal {signal_number}"
        super().__init__(message)


# Discovery exceptions


class DiscoveryError(FileReaderError):
    """Raised when a directory tree cannot be listed into a file list."""
