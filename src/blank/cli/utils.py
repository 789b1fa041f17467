"""Shared utilities for the CLI"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the blank CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level - shows progress messages
    - Debug (BLANK_DEBUG=1): DEBUG level - shows run state transitions too
    """
    debug = bool(os.environ.get("BLANK_DEBUG"))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    blank_logger = logging.getLogger("blank")
    blank_logger.setLevel(level)
    blank_logger.handlers = [handler]
    blank_logger.propagate = False
