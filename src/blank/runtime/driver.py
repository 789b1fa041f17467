"""Driver - blocking and suspending entry points.

Both run the same pipeline::

    read -> transpile -> build context -> construct -> invoke

The blocking driver reads synchronously and raises failures to its caller.
The suspending driver reads on a worker thread, runs the procedure as a
coroutine and awaits nested includes.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Set

from blank.compiler.lexer import transpile
from blank.compiler.procedure import construct, invoke
from blank.config import RenderOptions, coerce_options
from blank.models import RunState, Template
from blank.runtime.context import build_context, check_context
from blank.runtime.resolver import make_async_include, make_include

logger = logging.getLogger(__name__)

Callback = Callable[[Optional[BaseException]], Any]


class TemplateRun:
    """One run of one template file.

    Nested includes each get a fresh TemplateRun; nothing is shared between
    runs except the options, which are immutable.
    """

    def __init__(self, path: str | Path, options: Optional[RenderOptions] = None):
        self.path = Path(path)
        self.options = options or RenderOptions()
        self.state = RunState.UNSTARTED

    def _advance(self, state: RunState) -> None:
        logger.debug("%s: %s -> %s", self.path, self.state.value, state.value)
        self.state = state

    def execute(self, context: Mapping[str, Any]) -> None:
        """Run the template to completion, raising on failure."""
        try:
            check_context(context)

            self._advance(RunState.READING)
            template = Template.read(self.path)

            self._advance(RunState.TRANSPILING)
            source = transpile(
                template.text,
                suspending=False,
                start_delim=self.options.start_delim,
                end_delim=self.options.end_delim,
                name=template.path,
            )

            self._advance(RunState.CONTEXT_BUILDING)
            binding = build_context(
                context,
                template.directory,
                include_factory=lambda directory, parent: make_include(
                    directory, parent, self._run_nested
                ),
            )

            self._advance(RunState.EXECUTING)
            procedure = construct(
                source, binding.param_names, filename=str(template.path)
            )
            invoke(procedure, binding.arg_values)
        except Exception:
            self._advance(RunState.FAILED)
            raise
        self._advance(RunState.COMPLETED)

    async def execute_async(self, context: Mapping[str, Any]) -> None:
        """Run the template as a coroutine, raising on failure."""
        try:
            check_context(context)

            self._advance(RunState.READING)
            template = await Template.read_async(self.path)

            self._advance(RunState.TRANSPILING)
            source = transpile(
                template.text,
                suspending=True,
                start_delim=self.options.start_delim,
                end_delim=self.options.end_delim,
                name=template.path,
            )

            self._advance(RunState.CONTEXT_BUILDING)
            binding = build_context(
                context,
                template.directory,
                include_factory=lambda directory, parent: make_async_include(
                    directory, parent, self._run_nested_async
                ),
            )

            self._advance(RunState.EXECUTING)
            procedure = construct(
                source,
                binding.param_names,
                suspending=True,
                filename=str(template.path),
            )
            await invoke(procedure, binding.arg_values)
        except Exception:
            self._advance(RunState.FAILED)
            raise
        self._advance(RunState.COMPLETED)

    def _run_nested(self, path: Path, context: Mapping[str, Any]) -> None:
        TemplateRun(path, self.options).execute(context)

    async def _run_nested_async(self, path: Path, context: Mapping[str, Any]) -> None:
        await TemplateRun(path, self.options).execute_async(context)


def run_sync(
    path: str | Path,
    context: Mapping[str, Any],
    options: RenderOptions | Mapping[str, Any] | None = None,
) -> None:
    """Run a template, blocking until it and all its includes finish.

    Args:
        path: Template file path.
        context: Capabilities for the template; must include ``write``.
        options: Delimiter overrides, as RenderOptions or a mapping with
            ``start_delim``/``end_delim``.

    Raises:
        ContextError: If `context` has no ``write``; raised before any I/O.
        FileAccessError: If the template cannot be read.
        TranspileError: If the template has an unterminated code section.
        Exception: Anything raised by template code, unmodified.
    """
    TemplateRun(path, coerce_options(options)).execute(context)


async def render_async(path: str | Path, context: Mapping[str, Any]) -> None:
    """Run a template as a coroutine, raising the first error encountered."""
    await TemplateRun(path).execute_async(context)


# Runs scheduled by run_async on a running loop; held until they finish
_pending_runs: Set["asyncio.Task[None]"] = set()


def run_async(
    path: str | Path, context: Mapping[str, Any], callback: Callback
) -> Optional["asyncio.Task[None]"]:
    """Run a template as a coroutine and report completion through `callback`.

    `callback` is called exactly once: with the error on failure, with None
    on success. Run failures are not raised.

    Called from inside a running event loop, the run is scheduled as a task
    and that task is returned; the caller does not need to await it. Called
    with no loop running, the run is driven to completion before returning.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        try:
            asyncio.run(render_async(path, context))
        except Exception as exc:
            logger.debug("Async run of %s failed: %s", path, exc)
            callback(exc)
            return None
        callback(None)
        return None

    task = asyncio.ensure_future(render_async(path, context))
    _pending_runs.add(task)

    def _done(finished: "asyncio.Task[None]") -> None:
        _pending_runs.discard(finished)
        if finished.cancelled():
            callback(asyncio.CancelledError())
            return
        exc = finished.exception()
        if exc is not None:
            logger.debug("Async run of %s failed: %s", path, exc)
        callback(exc)

    task.add_done_callback(_done)
    return task
