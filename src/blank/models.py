"""Template and run-state models"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from blank.exceptions import FileAccessError


class RunState(str, Enum):
    UNSTARTED = "unstarted"
    READING = "reading"
    TRANSPILING = "transpiling"
    CONTEXT_BUILDING = "context_building"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Template:
    """A template file read from disk.

    `directory` is the absolute parent directory, used to resolve relative
    includes and requires.
    """

    path: Path
    text: str

    @property
    def directory(self) -> Path:
        return self.path.parent

    @classmethod
    def read(cls, path: str | Path) -> "Template":
        """Read a template synchronously."""
        resolved = Path(path).absolute()
        try:
            # newline="" keeps carriage returns as written
            with open(resolved, "r", encoding="utf-8", newline="") as f:
                text = f.read()
        except OSError as exc:
            raise FileAccessError(path, exc.strerror or str(exc)) from exc
        except UnicodeDecodeError as exc:
            raise FileAccessError(path, "not valid UTF-8") from exc
        return cls(path=resolved, text=text)

    @classmethod
    async def read_async(cls, path: str | Path) -> "Template":
        """Read a template without blocking the event loop."""
        return await asyncio.to_thread(cls.read, path)
