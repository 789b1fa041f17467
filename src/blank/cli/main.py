"""Blank CLI Main Entry Point

Runs a self-contained template and writes what it produces to a file.

Usage:
    blank template._ output.txt                    # Run template, write output
    blank template._ output.txt -c vars.yaml       # Extra context values from YAML
    blank template._ output.txt --start-delim '<%' --end-delim '%>'
    blank --version                                # Show version
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional

import typer

from blank._version import __version__
from blank.cli.errors import exit_with_error, handle_error
from blank.cli.utils import setup_logging
from blank.config import (
    DEFAULT_END_DELIM,
    DEFAULT_START_DELIM,
    RenderOptions,
    load_context_file,
)
from blank.runtime.driver import run_sync

logger = logging.getLogger("blank.cli")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"blank {__version__}")
        raise typer.Exit()


typer_app = typer.Typer(add_completion=False)


@typer_app.command()
def cli(
    template: Path = typer.Argument(..., help="Template file to run."),
    output: Path = typer.Argument(..., help="File to write the output to."),
    context_file: Optional[Path] = typer.Option(
        None, "-c", "--context", help="YAML file with extra context values."
    ),
    start_delim: str = typer.Option(
        DEFAULT_START_DELIM, "--start-delim", help="Delimiter that opens code."
    ),
    end_delim: str = typer.Option(
        DEFAULT_END_DELIM, "--end-delim", help="Delimiter that closes code."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show progress."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Run TEMPLATE and write the concatenated output to OUTPUT as UTF-8."""
    setup_logging(verbose)

    chunks: List[str] = []

    def write(value: Any) -> None:
        chunks.append(str(value))

    try:
        extra = load_context_file(context_file) if context_file else {}
        if "write" in extra:
            exit_with_error("context file must not define 'write'")
        options = RenderOptions(start_delim=start_delim, end_delim=end_delim)

        logger.info("Running template from '%s'...", template)
        run_sync(template, {"write": write, **extra}, options)

        logger.info("Writing output to '%s'...", output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text("".join(chunks), encoding="utf-8")
        logger.info("Done.")
    except Exception as exc:
        handle_error(exc)


def app(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    `argv` defaults to ``sys.argv[1:]``.
    """
    typer_app(args=argv)


if __name__ == "__main__":
    app()
