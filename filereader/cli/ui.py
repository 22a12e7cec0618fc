"""UI utilities for CLI commands using Rich."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from filereader.reporter import RunSummary
from filereader.run_config import RunConfig
from filereader.types import RunResult

console = Console()

SEPARATOR = "================================="


def print_line(line: str) -> None:
    """Print a progress or summary line verbatim (paths may contain rich markup characters)."""
    console.print(line, markup=False, highlight=False, soft_wrap=True)


def print_error(message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False, soft_wrap=True)


def display_config_table(file_list: str, total: int, config: RunConfig, run_id: str) -> None:
    """Display run configuration using Rich.

    Args:
        file_list: Path to the file list
        total: Number of files to process
        config: Effective run configuration
        run_id: Unique identifier of this run
    """
    config_table = Table.grid(padding=(0, 2))
    config_table.add_row("[bold]Input file:[/bold]", escape(file_list))
    config_table.add_row("[bold]Total files to process:[/bold]", str(total))
    config_table.add_row("[bold]Block size:[/bold]", config.block_size)
    config_table.add_row("[bold]Parallel jobs:[/bold]", str(config.jobs))
    config_table.add_row("[bold]Skip errors:[/bold]", "yes" if config.skip_errors else "no")
    config_table.add_row("[bold]Reader backend:[/bold]", config.reader_backend)
    config_table.add_row("[bold]Run ID:[/bold]", run_id)

    console.print("\n[bold]File Reader - Starting processing[/bold]")
    console.print(Panel(config_table, border_style="blue", padding=(0, 1)))
    console.print()


def display_processing_summary(summary: RunSummary) -> None:
    """Display the final summary.

    The two count lines are printed verbatim so scripts can parse them.
    """
    console.print()
    print_line(SEPARATOR)
    if summary.exit_code == 0:
        console.print(f"[green]{summary.status}[/green]")
    else:
        console.print(f"[red]{summary.status}[/red]")
    for line in summary.lines:
        print_line(line)


def display_run_statistics(result: RunResult) -> None:
    """Display run statistics using Rich.

    Args:
        result: Final run result
    """
    bytes_read = sum(item.bytes_read for item in result.results)
    elapsed = result.elapsed_seconds
    throughput = bytes_read / elapsed / (1024 * 1024) if elapsed > 0 else 0.0

    stats_table = Table.grid(padding=(0, 2))
    stats_table.add_row("[bold]Dispatched:[/bold]", f"{result.dispatched} / {result.total}")
    stats_table.add_row("[bold]Peak parallel reads:[/bold]", str(result.peak_running))
    stats_table.add_row("[bold]Data read:[/bold]", f"{bytes_read / (1024 * 1024):.2f} MiB")
    stats_table.add_row("[bold]Total time:[/bold]", f"{elapsed:.2f} s")
    stats_table.add_row("[bold]Throughput:[/bold]", f"{throughput:.2f} MiB/s")

    console.print()
    console.print("[bold]Run Statistics[/bold]")
    console.print(Panel(stats_table, border_style="cyan", padding=(0, 1)))
