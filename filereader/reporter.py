"""Final run summary and exit status."""

from __future__ import annotations

import signal
from dataclasses import dataclass
from typing import Final

from filereader.types import CancelReason, RunResult

EXIT_OK: Final = 0
EXIT_FAILURE: Final = 1
# Shell convention for death by signal
EXIT_SIGNAL_BASE: Final = 128

STATUS_COMPLETED: Final = "Processing completed"
STATUS_STOPPED: Final = "Stopping due to error (use -s to skip errors)"
STATUS_INTERRUPTED: Final = "Processing interrupted."


@dataclass(frozen=True, slots=True)
class RunSummary:
    processed: int
    failed: int
    total: int
    exit_code: int
    status: str

    @property
    def lines(self) -> tuple[str, str]:
        return (
            f"Files processed: {self.processed} / {self.total}",
            f"Failed files: {self.failed}",
        )


class RunReporter:
    """Turns a RunResult into the printed summary and the process exit status."""

    @staticmethod
    def exit_code(result: RunResult) -> int:
        """Return 0 for a normal drain, 1 for a policy abort, 128+signum when interrupted."""
        if result.cancel_reason is CancelReason.INTERRUPT:
            return EXIT_SIGNAL_BASE + (result.signal_number or int(signal.SIGINT))
        if result.cancel_reason is CancelReason.FAILURE:
            return EXIT_FAILURE
        return EXIT_OK

    @staticmethod
    def status(result: RunResult) -> str:
        if result.cancel_reason is CancelReason.INTERRUPT:
            return STATUS_INTERRUPTED
        if result.cancel_reason is CancelReason.FAILURE:
            return STATUS_STOPPED
        return STATUS_COMPLETED

    def summarize(self, result: RunResult) -> RunSummary:
        return RunSummary(
            processed=result.processed,
            failed=result.failed,
            total=result.total,
            exit_code=self.exit_code(result),
            status=self.status(result),
        )
