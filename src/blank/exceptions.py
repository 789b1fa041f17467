"""Blank Exceptions

Errors raised while compiling and running templates.
"""

from __future__ import annotations

from pathlib import Path


class BlankError(Exception):
    """Base exception for all blank errors."""

    pass


class TranspileError(BlankError):
    """Raised when a template cannot be turned into procedure source."""

    def __init__(self, path: str | Path | None, message: str):
        self.path = str(path) if path is not None else "<template>"
        self.message = message
        super().__init__(f"File '{self.path}' {message}")


class ContextError(BlankError):
    """Raised when a context cannot run a template (no `write` capability)."""

    pass


class FileAccessError(BlankError):
    """Raised when a template file cannot be read."""

    def __init__(self, path: str | Path, reason: str | None = None):
        self.path = str(path)
        detail = f": {reason}" if reason else ""
        super().__init__(f"Could not read template: {self.path}{detail}")
