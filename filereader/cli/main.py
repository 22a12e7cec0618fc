"""Unified CLI entrypoint for file-reader."""

from __future__ import annotations

import logging
import re
import signal
from pathlib import Path
from typing import Annotated, NoReturn

import click
import typer

from filereader.cli.ui import (
    display_config_table,
    display_processing_summary,
    display_run_statistics,
    print_error,
    print_line,
)
from filereader.config import setup_logging
from filereader.exceptions import ConfigError, InputListError
from filereader.loader import load_tasks
from filereader.reporter import EXIT_FAILURE, EXIT_SIGNAL_BASE, STATUS_INTERRUPTED
from filereader.run_config import RunConfig
from filereader.runner import FileReadRunner

LOGGER = logging.getLogger(__name__)

_JOBS_RE = re.compile(r"^[1-9][0-9]*$")

app = typer.Typer(
    name="file-reader",
    help="Read every file in a list and discard the data, at bounded concurrency",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _parse_jobs(raw: str | None) -> int | None:
    if raw is None:
        return None
    if not _JOBS_RE.match(raw.strip()):
        raise ConfigError(f"-j/--jobs requires a positive integer, got {raw!r}")
    return int(raw.strip())


def build_config(
    block_size: str | None = None,
    jobs: str | None = None,
    skip_errors: bool = False,
    backend: str | None = None,
) -> RunConfig:
    """Merge CLI options over FILE_READER_* environment defaults and validate.

    Raises:
        ConfigError: If any resulting value is invalid
    """
    config = RunConfig.from_env().with_overrides(
        block_size=block_size.strip() if block_size is not None else None,
        jobs=_parse_jobs(jobs),
        skip_errors=True if skip_errors else None,
        reader_backend=backend.strip().lower() if backend else None,
    )
    config.validate()
    return config


@app.command()
def read(
    file_list: Annotated[
        Path,
        typer.Argument(help="File containing list of file paths (one per line)", show_default=False),
    ],
    block_size: Annotated[
        str | None,
        typer.Option("--block-size", "-b", help="Block size per read, e.g. 512, 4K, 1M, 8M, 1G  [default: 1M]"),
    ] = None,
    jobs: Annotated[
        str | None,
        typer.Option("--jobs", "-j", help="Number of parallel jobs (positive integer)  [default: 1]"),
    ] = None,
    skip_errors: Annotated[
        bool,
        typer.Option("--skip-errors", "-s", help="Continue processing even if files can't be read"),
    ] = False,
    backend: Annotated[
        str | None,
        typer.Option("--backend", help="Read primitive: 'python' (in-process) or 'dd'  [default: python]"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logs")] = False,
) -> None:
    """Read files from FILE_LIST and write their content nowhere.

    \b
    Blank lines and lines starting with '#' are ignored.

    \b
    Examples:
      file-reader file_list.txt                # Basic file reading
      file-reader files.txt -b 8M -j 4         # 8M blocks with 4 parallel jobs
      file-reader files.txt -s -j 8            # Skip errors with 8 parallel jobs
    """
    setup_logging(logging.DEBUG if verbose else None)

    try:
        config = build_config(block_size=block_size, jobs=jobs, skip_errors=skip_errors, backend=backend)
    except ConfigError as error:
        print_error(str(error))
        raise typer.Exit(EXIT_FAILURE) from error

    try:
        tasks = load_tasks(file_list)
    except InputListError as error:
        print_error(str(error))
        raise typer.Exit(EXIT_FAILURE) from error

    runner = FileReadRunner(config, emit=print_line, handle_signals=True)
    display_config_table(str(file_list), len(tasks), config, runner.run_id)

    result = runner.run(tasks)
    summary = runner.summarize(result)

    display_processing_summary(summary)
    if verbose:
        display_run_statistics(result)

    raise typer.Exit(summary.exit_code)


def main() -> NoReturn:
    """Main entrypoint for the file-reader CLI.

    Usage errors exit with 1 rather than click's default of 2.
    """
    try:
        exit_code = app(standalone_mode=False)
    except click.exceptions.Abort:
        print_line(STATUS_INTERRUPTED)
        raise SystemExit(EXIT_SIGNAL_BASE + int(signal.SIGINT)) from None
    except click.ClickException as error:
        error.show()
        raise SystemExit(EXIT_FAILURE) from None
    raise SystemExit(exit_code or 0)


if __name__ == "__main__":
    main()
