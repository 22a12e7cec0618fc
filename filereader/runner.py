"""Run orchestration: wires the loader, counters, processor and scheduler together."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from filereader.cancellation import CancellationHandler
from filereader.counters import CounterStore
from filereader.loader import load_tasks
from filereader.processor import FileProcessor
from filereader.reporter import RunReporter, RunSummary
from filereader.run_config import RunConfig
from filereader.scheduler import WorkerPoolScheduler
from filereader.services.factory import ServiceFactory
from filereader.services.interfaces import BlockReader, LineEmitter
from filereader.types import FileTask, RunResult

LOGGER = logging.getLogger(__name__)


class FileReadRunner:
    """Reads every file of a list under one RunConfig.

    A runner performs a single run: it owns that run's counter store,
    cancellation handler and scheduler.
    """

    def __init__(
        self,
        config: RunConfig,
        emit: LineEmitter,
        *,
        block_reader: BlockReader | None = None,
        cancellation: CancellationHandler | None = None,
        handle_signals: bool = False,
    ) -> None:
        """Initialize the runner with its component dependencies.

        Args:
            config: Validated run configuration
            emit: Receives each progress line
            block_reader: Read primitive; built from config.reader_backend when omitted
            cancellation: Cancellation handler; a fresh one when omitted
            handle_signals: Install SIGINT/SIGTERM handlers while the run is active
        """
        config.validate()
        self.config = config
        self.counters = CounterStore()
        self.cancellation = cancellation or CancellationHandler()
        self.block_reader = block_reader or ServiceFactory.create_block_reader(config.reader_backend)
        self.processor = FileProcessor(
            block_reader=self.block_reader,
            counters=self.counters,
            block_size=config.block_size,
            block_size_bytes=config.block_size_bytes,
            emit=emit,
        )
        self.scheduler = WorkerPoolScheduler(
            self.processor,
            config,
            self.cancellation,
            handle_signals=handle_signals,
        )
        self._reporter = RunReporter()

        LOGGER.debug("Runner %s initialized with %s backend", self.run_id, self.block_reader.name)
        LOGGER.debug("Run configuration: %s", config.to_dict())

    @property
    def run_id(self) -> str:
        return self.counters.run_id

    def run(self, tasks: Sequence[FileTask]) -> RunResult:
        return self.scheduler.run(tasks)

    def run_file_list(self, source: str | Path) -> RunResult:
        """Load the list and run it. InputListError propagates before any dispatch."""
        return self.run(load_tasks(source))

    def summarize(self, result: RunResult) -> RunSummary:
        return self._reporter.summarize(result)
