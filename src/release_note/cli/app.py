"""CLI entry point for release-note."""

from __future__ import annotations

import platform
import sys
from pathlib import Path

import typer
from rich.console import Console

from release_note import __version__
from release_note.cli.commands.generate import run_generate
from release_note.logging_config import setup_logging

app = typer.Typer(
    name="release-note",
    help="Generate a release note from conventional commits.",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"release-note: {__version__}")
        console.print(f"python:       {platform.python_version()}")
        console.print(f"platform:     {sys.platform}")
        raise typer.Exit()


@app.command()
def main(
    from_ref: str | None = typer.Argument(
        None,
        metavar="FROM",
        help="Start of the range (inclusive): a hash, tag, branch or relative ref. Defaults to HEAD.",
    ),
    to_ref: str | None = typer.Argument(
        None,
        metavar="TO",
        help="End of the range (exclusive). Defaults to the release before FROM.",
    ),
    path: Path = typer.Option(
        Path("."),
        "--path",
        metavar="DIR",
        help="Directory within the repository. A subdirectory limits the note to commits touching it.",
        file_okay=False,
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Prepend the note to this changelog file instead of printing it.",
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
    log_file: Path | None = typer.Option(
        None,
        "--log-file",
        help="Also append plain-text logs to this file.",
        dir_okay=False,
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Print version information",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """
    Generate a release note for the commits between FROM and TO.

    [bold cyan]Examples:[/bold cyan]

      release-note

      release-note v2.0.0

      release-note search/v1.2.0 --path packages/search

      release-note HEAD v1.0.0 -o CHANGELOG.md
    """
    setup_logging(verbose=verbose, quiet=quiet, log_file=str(log_file) if log_file else None)
    run_generate(from_ref, to_ref, str(path), output, console, err_console)
