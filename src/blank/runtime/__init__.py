"""Blank runtime - contexts, includes and the two execution drivers."""

from blank.runtime.context import (
    Capabilities,
    ContextBinding,
    build_context,
    check_context,
    make_require,
)
from blank.runtime.driver import TemplateRun, render_async, run_async, run_sync
from blank.runtime.resolver import (
    make_async_include,
    make_include,
    merge_context,
    resolve_include_path,
)

__all__ = [
    "Capabilities",
    "ContextBinding",
    "build_context",
    "check_context",
    "make_require",
    "TemplateRun",
    "render_async",
    "run_async",
    "run_sync",
    "make_async_include",
    "make_include",
    "merge_context",
    "resolve_include_path",
]
