"""Blank - templates with embedded Python code sections.

Everything between ``}%`` and ``%{`` is written out through a caller-supplied
``write`` function; everything between ``%{`` and ``}%`` runs as Python.
Templates can ``include`` other templates relative to their own location.
"""

from blank._version import __version__

# Compiler
from blank.compiler import Procedure, construct, invoke, transpile

# Configuration
from blank.config import RenderOptions

# Errors
from blank.exceptions import BlankError, ContextError, FileAccessError, TranspileError

# Models
from blank.models import RunState, Template

# Runtime
from blank.runtime import (
    Capabilities,
    ContextBinding,
    TemplateRun,
    build_context,
    merge_context,
    render_async,
    resolve_include_path,
    run_async,
    run_sync,
)

__all__ = [
    "__version__",
    # compiler
    "Procedure",
    "construct",
    "invoke",
    "transpile",
    # config
    "RenderOptions",
    # errors
    "BlankError",
    "ContextError",
    "FileAccessError",
    "TranspileError",
    # models
    "RunState",
    "Template",
    # runtime
    "Capabilities",
    "ContextBinding",
    "TemplateRun",
    "build_context",
    "merge_context",
    "render_async",
    "resolve_include_path",
    "run_async",
    "run_sync",
]
