"""Shared error handling for the blank CLI."""

import sys
from typing import NoReturn

import typer

from blank.exceptions import BlankError


def exit_with_error(message: str, exit_code: int = 1) -> NoReturn:
    """Exit the program with an error message."""
    typer.secho(f"Error: {message}", err=True, fg=typer.colors.RED)
    sys.exit(exit_code)


def handle_error(error: Exception) -> NoReturn:
    """Report a failed run and exit."""
    if isinstance(error, BlankError):
        exit_with_error(str(error))
    else:
        # Raised by template code
        exit_with_error(f"{type(error).__name__}: {error}")
