"""Execution context - capabilities bound into a running template.

A context is an ordered mapping from name to value. Its keys become the
parameters of the template procedure, in order. ``write`` is required;
``require`` and ``include`` are injected when the caller leaves them out.
"""

from __future__ import annotations

import hashlib
import importlib
import importlib.util
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from blank.exceptions import ContextError

logger = logging.getLogger(__name__)

IncludeFactory = Callable[[Path, Mapping[str, Any]], Callable[..., Any]]


@dataclass(frozen=True)
class Capabilities:
    """Typed view of a caller context.

    ``include`` and ``require`` are None when the caller did not supply them.
    """

    write: Callable[[Any], Any]
    include: Optional[Callable[..., Any]] = None
    require: Optional[Callable[[str], Any]] = None

    @classmethod
    def from_context(cls, context: Any) -> "Capabilities":
        check_context(context)
        return cls(
            write=context["write"],
            include=context.get("include"),
            require=context.get("require"),
        )


@dataclass(frozen=True)
class ContextBinding:
    """Parameter names and argument values for one procedure call."""

    param_names: Tuple[str, ...]
    arg_values: Tuple[Any, ...]

    @property
    def capabilities(self) -> Dict[str, Any]:
        """The full post-injection context."""
        return dict(zip(self.param_names, self.arg_values))


def check_context(context: Any) -> None:
    """Raise ContextError unless `context` is a mapping with a callable write."""
    if not isinstance(context, Mapping) or not callable(context.get("write")):
        raise ContextError("context must be a mapping including a 'write' function.")


def build_context(
    context: Mapping[str, Any],
    directory: Path,
    *,
    include_factory: IncludeFactory,
) -> ContextBinding:
    """Build the ordered parameter and argument lists for a template run.

    Order is: caller keys as given, then ``require`` and ``include`` when
    injected. A caller key holding None counts as unset and is filled in
    place.

    Args:
        context: Caller-supplied context.
        directory: Directory of the running template.
        include_factory: Builds the include capability for ``directory``
            from the caller context.

    Raises:
        ContextError: If `context` has no `write` function.
    """
    capabilities = Capabilities.from_context(context)

    names = list(context.keys())
    values = list(context.values())

    def bind(name: str, value: Any) -> None:
        if name in context:
            values[names.index(name)] = value
        else:
            names.append(name)
            values.append(value)

    if capabilities.require is None:
        logger.debug("Injecting require for %s", directory)
        bind("require", make_require(directory))
    if capabilities.include is None:
        logger.debug("Injecting include for %s", directory)
        bind("include", include_factory(directory, context))

    return ContextBinding(param_names=tuple(names), arg_values=tuple(values))


def make_require(directory: Path) -> Callable[[str], ModuleType]:
    """Create a module loader bound to a template directory.

    ``./`` and ``../`` paths load a Python file relative to `directory`;
    anything else is imported by module name.
    """

    def require(name: str) -> ModuleType:
        if name.startswith("./") or name.startswith("../"):
            return load_module_file(Path(directory) / name)
        return importlib.import_module(name)

    return require


def load_module_file(path: Path) -> ModuleType:
    """Load a Python source file as a module, reusing it if already loaded."""
    candidate = Path(path)
    if not candidate.suffix and candidate.with_suffix(".py").exists():
        candidate = candidate.with_suffix(".py")
    elif candidate.is_dir():
        candidate = candidate / "__init__.py"
    resolved = candidate.resolve()

    digest = hashlib.sha256(str(resolved).encode()).hexdigest()[:16]
    module_name = f"_blank_required_{resolved.stem}_{digest}"

    cached = sys.modules.get(module_name)
    if cached is not None:
        return cached

    if not resolved.is_file():
        raise ModuleNotFoundError(f"Module not found: {path} (resolved to {resolved})")

    spec = importlib.util.spec_from_file_location(module_name, resolved)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load module from {resolved}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise

    logger.debug("Loaded %s from %s", module_name, resolved)
    return module
