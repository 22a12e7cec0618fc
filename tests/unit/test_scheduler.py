"""Unit tests for filereader.scheduler.WorkerPoolScheduler."""

from __future__ import annotations

import os
import signal
import threading
import time
from pathlib import Path

import pytest

from filereader.cancellation import CancellationHandler
from filereader.counters import CounterStore
from filereader.processor import FileProcessor
from filereader.reporter import RunReporter
from filereader.run_config import RunConfig
from filereader.scheduler import WorkerPoolScheduler
from filereader.types import CancelReason, FileOutcome, FileTask, RunState


def _tasks(paths: list[Path | str]) -> list[FileTask]:
    return [FileTask(path=str(path), ordinal=index) for index, path in enumerate(paths, start=1)]


def _scheduler(
    reader,
    line_recorder,
    *,
    jobs: int = 1,
    skip_errors: bool = False,
    cancellation: CancellationHandler | None = None,
    handle_signals: bool = False,
) -> WorkerPoolScheduler:
    config = RunConfig(jobs=jobs, skip_errors=skip_errors, cancel_grace_seconds=5.0)
    processor = FileProcessor(
        block_reader=reader,
        counters=CounterStore(),
        block_size=config.block_size,
        block_size_bytes=config.block_size_bytes,
        emit=line_recorder,
    )
    return WorkerPoolScheduler(processor, config, cancellation, handle_signals=handle_signals)


class TestNormalRuns:
    def test_all_files_succeed(self, fake_reader, line_recorder, make_files) -> None:
        """Three existing files, jobs=1: processed 3, failed 0, normal exit."""
        paths = make_files(3)
        scheduler = _scheduler(fake_reader, line_recorder)

        result = scheduler.run(_tasks(paths))

        assert (result.processed, result.failed, result.total) == (3, 0, 3)
        assert result.state is RunState.DONE
        assert result.cancel_reason is None
        assert RunReporter.exit_code(result) == 0
        assert line_recorder.lines == [f"[{i}/3] reading {path} with block size 1M" for i, path in enumerate(paths, 1)]

    def test_empty_list_completes_immediately(self, fake_reader, line_recorder) -> None:
        result = _scheduler(fake_reader, line_recorder, jobs=4).run([])

        assert (result.processed, result.failed, result.total) == (0, 0, 0)
        assert result.state is RunState.DONE
        assert RunReporter.exit_code(result) == 0
        assert line_recorder.lines == []

    def test_dispatch_is_fifo_with_single_job(self, make_reader, line_recorder, make_files) -> None:
        paths = make_files(5)
        reader = make_reader()

        _scheduler(reader, line_recorder).run(_tasks(paths))

        assert reader.calls == [str(path) for path in paths]

    def test_runs_only_once(self, fake_reader, line_recorder) -> None:
        scheduler = _scheduler(fake_reader, line_recorder)
        scheduler.run([])

        with pytest.raises(RuntimeError):
            scheduler.run([])


class TestConcurrencyBound:
    @pytest.mark.parametrize("jobs", [1, 2, 4])
    def test_running_workers_never_exceed_jobs(self, make_reader, line_recorder, make_files, jobs: int) -> None:
        paths = make_files(12)
        reader = make_reader(delay=0.02)
        scheduler = _scheduler(reader, line_recorder, jobs=jobs)

        result = scheduler.run(_tasks(paths))

        assert result.processed == 12
        assert 1 <= reader.peak <= jobs
        assert 1 <= result.peak_running <= jobs

    def test_pool_is_filled_to_jobs(self, make_reader, line_recorder, make_files) -> None:
        """Reads overlap up to the limit: a barrier of ``jobs`` parties only releases when all run together."""
        jobs = 3
        paths = make_files(6)
        reader = make_reader(barrier=threading.Barrier(jobs))

        result = _scheduler(reader, line_recorder, jobs=jobs).run(_tasks(paths))

        assert result.processed == 6
        assert result.failed == 0
        assert reader.peak == jobs

    def test_progress_counts_are_unique(self, make_reader, line_recorder, make_files) -> None:
        paths = make_files(20)

        _scheduler(make_reader(delay=0.005), line_recorder, jobs=5).run(_tasks(paths))

        prefixes = sorted(int(line.split("/")[0].lstrip("[")) for line in line_recorder.lines)
        assert prefixes == list(range(1, 21))


class TestFailurePolicy:
    def test_missing_file_stops_run(self, fake_reader, line_recorder, make_files) -> None:
        """Existing, missing, existing with jobs=1: the third file is never started."""
        first, third = make_files(2)
        missing = "/nonexistent/file.bin"
        scheduler = _scheduler(fake_reader, line_recorder)

        result = scheduler.run(_tasks([first, missing, third]))

        assert (result.processed, result.failed, result.total) == (1, 1, 3)
        assert result.cancel_reason is CancelReason.FAILURE
        assert result.dispatched == 2
        assert RunReporter.exit_code(result) == 1
        assert fake_reader.calls == [str(first)]
        assert line_recorder.lines == [
            f"[1/3] reading {first} with block size 1M",
            f"[1/3] ERROR: File not found: {missing}",
        ]

    def test_skip_errors_continues(self, fake_reader, line_recorder, make_files) -> None:
        """Same list with skip errors: all three handled, exit status 0."""
        first, third = make_files(2)
        missing = "/nonexistent/file.bin"

        result = _scheduler(fake_reader, line_recorder, skip_errors=True).run(_tasks([first, missing, third]))

        assert (result.processed, result.failed, result.total) == (2, 1, 3)
        assert result.cancel_reason is None
        assert RunReporter.exit_code(result) == 0
        assert fake_reader.calls == [str(first), str(third)]

    def test_skip_errors_accounts_for_every_file(self, fake_reader, line_recorder, make_files) -> None:
        """Without read failures, processed + failed equals total when errors are skipped."""
        paths: list[Path | str] = list(make_files(10))
        paths[2:2] = ["/nonexistent/a", "/nonexistent/b"]
        paths.append("/nonexistent/c")

        result = _scheduler(fake_reader, line_recorder, jobs=4, skip_errors=True).run(_tasks(paths))

        assert result.processed + result.failed == result.total == 13
        assert result.failed == 3

    def test_no_dispatch_after_failure(self, make_reader, line_recorder, make_files) -> None:
        """A failing read with jobs=2 stops admission; at most jobs tasks ever start after it."""
        paths = make_files(10)
        reader = make_reader(delay=0.01, fail_paths={str(paths[0])})

        result = _scheduler(reader, line_recorder, jobs=2).run(_tasks(paths))

        assert result.cancel_reason is CancelReason.FAILURE
        assert result.dispatched <= 3
        assert len(reader.calls) <= 3
        assert RunReporter.exit_code(result) == 1

    def test_read_failure_counts_in_both_totals(self, make_reader, line_recorder, make_files) -> None:
        paths = make_files(3)
        reader = make_reader(fail_paths={str(paths[1])})

        result = _scheduler(reader, line_recorder, skip_errors=True).run(_tasks(paths))

        assert (result.processed, result.failed) == (3, 1)
        outcomes = [item.outcome for item in result.results]
        assert outcomes == [FileOutcome.SUCCESS, FileOutcome.READ_FAILED, FileOutcome.SUCCESS]

    def test_crashing_worker_reports_error_line(self, make_reader, line_recorder, make_files) -> None:
        """An unexpected reader exception is printed with its running count and stops the run."""
        first, second = make_files(2)
        reader = make_reader(crash_paths={str(first)})

        result = _scheduler(reader, line_recorder).run(_tasks([first, second]))

        assert (result.processed, result.failed) == (1, 1)
        assert result.cancel_reason is CancelReason.FAILURE
        assert [item.outcome for item in result.results] == [FileOutcome.READ_FAILED]
        assert line_recorder.lines == [
            f"[1/2] reading {first} with block size 1M",
            f"[1/2] ERROR: Read failed for {first}: reader blew up",
        ]
        assert RunReporter.exit_code(result) == 1

    def test_unstattable_path_is_not_found(self, fake_reader, line_recorder, tmp_path: Path) -> None:
        path = str(tmp_path / ("a" * 5000))

        result = _scheduler(fake_reader, line_recorder, skip_errors=True).run(_tasks([path]))

        assert (result.processed, result.failed) == (0, 1)
        assert [item.outcome for item in result.results] == [FileOutcome.NOT_FOUND]
        assert line_recorder.lines == [f"[1/1] ERROR: File not found: {path}"]

    def test_deterministic_for_single_job(self, make_reader, make_files) -> None:
        """Identical inputs with jobs=1 produce identical counts and output lines."""
        first, third = make_files(2)
        tasks = _tasks([first, "/nonexistent/x", third])
        outputs = []
        for _ in range(2):
            lines: list[str] = []
            result = _scheduler(make_reader(), lines.append).run(tasks)
            outputs.append((result.processed, result.failed, RunReporter.exit_code(result), lines))

        assert outputs[0] == outputs[1]


class TestInterruption:
    def test_cancel_stops_running_workers(self, make_reader, line_recorder, make_files) -> None:
        """Interrupting while two workers run: both stop, nothing else starts, exit is 128+signum."""
        paths = make_files(5)
        reader = make_reader(stall=True)
        cancellation = CancellationHandler()
        scheduler = _scheduler(reader, line_recorder, jobs=2, cancellation=cancellation)

        def interrupt() -> None:
            assert reader.wait_started(2)
            cancellation.cancel(CancelReason.INTERRUPT, signal_number=int(signal.SIGINT))

        trigger = threading.Thread(target=interrupt)
        trigger.start()
        result = scheduler.run(_tasks(paths))
        trigger.join()

        assert result.cancel_reason is CancelReason.INTERRUPT
        assert result.state is RunState.DONE
        assert result.dispatched == 2
        assert (result.processed, result.failed) == (2, 0)
        assert reader.active == 0
        assert [item.outcome for item in result.results] == [FileOutcome.CANCELLED, FileOutcome.CANCELLED]
        assert RunReporter.exit_code(result) == 128 + int(signal.SIGINT)
        assert RunReporter.status(result) == "Processing interrupted."

    @pytest.mark.skipif(not hasattr(os, "kill") or os.name == "nt", reason="POSIX signals required")
    def test_sigint_interrupts_blocked_dispatcher(self, make_reader, line_recorder, make_files) -> None:
        """A real SIGINT reaches the installed handler while the dispatcher waits for a slot."""
        paths = make_files(4)
        reader = make_reader(stall=True)
        scheduler = _scheduler(reader, line_recorder, jobs=2, handle_signals=True)
        previous = signal.getsignal(signal.SIGINT)

        def interrupt() -> None:
            if reader.wait_started(2):
                os.kill(os.getpid(), signal.SIGINT)

        trigger = threading.Thread(target=interrupt)
        trigger.start()
        result = scheduler.run(_tasks(paths))
        trigger.join()

        assert result.cancel_reason is CancelReason.INTERRUPT
        assert result.signal_number == signal.SIGINT
        assert result.dispatched == 2
        assert RunReporter.exit_code(result) == 130
        assert signal.getsignal(signal.SIGINT) is previous

    def test_counts_frozen_at_cancellation(self, make_reader, line_recorder, make_files) -> None:
        """Increments from workers finishing after cancellation do not change the result."""
        paths = make_files(3)
        reader = make_reader(stall=True)
        cancellation = CancellationHandler()
        scheduler = _scheduler(reader, line_recorder, jobs=3, cancellation=cancellation)

        def interrupt() -> None:
            assert reader.wait_started(3)
            cancellation.cancel(CancelReason.INTERRUPT, signal_number=int(signal.SIGTERM))

        trigger = threading.Thread(target=interrupt)
        trigger.start()
        result = scheduler.run(_tasks(paths))
        trigger.join()

        counters = scheduler._processor.counters
        assert counters.closed
        assert counters.snapshot() == (result.processed, result.failed)
        assert RunReporter.exit_code(result) == 128 + int(signal.SIGTERM)

    def test_cancel_during_drain_is_noticed_before_reads_finish(
        self, make_reader, line_recorder, make_files
    ) -> None:
        """The drain loop reacts to the token even while no worker completes."""
        (path,) = make_files(1)
        hold = threading.Event()
        reader = make_reader(hold=hold)
        cancellation = CancellationHandler()
        scheduler = _scheduler(reader, line_recorder, cancellation=cancellation)
        seen_cancelling = threading.Event()

        def interrupt() -> None:
            try:
                assert reader.wait_started(1)
                cancellation.cancel(CancelReason.INTERRUPT, signal_number=int(signal.SIGTERM))
                deadline = time.monotonic() + 2
                while time.monotonic() < deadline:
                    if scheduler.state is RunState.CANCELLING:
                        seen_cancelling.set()
                        break
                    time.sleep(0.01)
            finally:
                hold.set()

        trigger = threading.Thread(target=interrupt)
        trigger.start()
        result = scheduler.run(_tasks([path]))
        trigger.join()

        assert seen_cancelling.is_set()
        assert result.cancel_reason is CancelReason.INTERRUPT
        assert result.state is RunState.DONE
        assert RunReporter.exit_code(result) == 128 + int(signal.SIGTERM)
