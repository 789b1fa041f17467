"""Include resolver - nested templates with inherited context.

Includes are relative to the including template. The nested run sees the
parent's context, shallow-merged with an optional override where the
override's keys win.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from blank.exceptions import ContextError

logger = logging.getLogger(__name__)

SyncRunner = Callable[[Path, Dict[str, Any]], None]
AsyncRunner = Callable[[Path, Dict[str, Any]], Awaitable[None]]


def resolve_include_path(caller_dir: str | Path, target: str | Path) -> Path:
    """Resolve `target` against `caller_dir` unless it is already absolute."""
    p = Path(target)
    if p.is_absolute():
        return p
    return Path(caller_dir) / p


def merge_context(
    parent: Mapping[str, Any], override: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """Shallow, right-biased merge into a new dict.

    Neither argument is modified.
    """
    merged: Dict[str, Any] = dict(parent)
    if override is not None:
        if not isinstance(override, Mapping):
            raise ContextError(
                f"include context must be a mapping, got {type(override).__name__}"
            )
        merged.update(override)
    return merged


def make_include(
    directory: Path, parent_context: Mapping[str, Any], run: SyncRunner
) -> Callable[..., None]:
    """Create a blocking include bound to `directory`.

    Args:
        directory: Directory of the including template.
        parent_context: Context the including template was run with.
        run: Runs a template path with a context to completion.
    """

    def include(path: str | Path, context: Optional[Mapping[str, Any]] = None) -> None:
        target = resolve_include_path(directory, path)
        logger.debug("Including %s", target)
        run(target, merge_context(parent_context, context))

    return include


def make_async_include(
    directory: Path, parent_context: Mapping[str, Any], run: AsyncRunner
) -> Callable[..., Awaitable[None]]:
    """Create a suspending include bound to `directory`.

    The returned coroutine completes when the nested run does and raises the
    first error from anywhere in the nested chain.
    """

    async def include(
        path: str | Path, context: Optional[Mapping[str, Any]] = None
    ) -> None:
        target = resolve_include_path(directory, path)
        logger.debug("Including %s (async)", target)
        await run(target, merge_context(parent_context, context))

    return include
