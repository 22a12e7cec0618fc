"""file-lister: discover files under a directory and write the list file-reader consumes."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, NoReturn

import typer

from filereader.cli.ui import SEPARATOR, print_error, print_line
from filereader.config import setup_logging
from filereader.exceptions import DiscoveryError
from filereader.lister import write_file_list

app = typer.Typer(
    name="file-lister",
    help="Write one absolute path per regular file under a directory",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.command()
def discover(
    root: Annotated[str, typer.Argument(help="Directory to walk (e.g. an NFS mount point)", show_default=False)],
    output_file: Annotated[Path, typer.Argument(help="File list to write", show_default=False)],
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Do not echo each path")] = False,
) -> None:
    """Walk ROOT recursively and write every regular file's path to OUTPUT_FILE."""
    setup_logging()

    print_line(f"Starting file discovery on: {root}")
    print_line(f"Files will be written to {output_file} and displayed on screen")
    print_line(SEPARATOR)

    try:
        total = write_file_list(root, output_file, emit=None if quiet else print_line)
    except DiscoveryError as error:
        print_error(str(error))
        raise typer.Exit(1) from error

    print_line(SEPARATOR)
    print_line(f"Discovery completed. Total files: {total}")


def main() -> NoReturn:
    """Main entrypoint for the file-lister CLI."""
    app()
    raise SystemExit(0)


if __name__ == "__main__":
    main()
