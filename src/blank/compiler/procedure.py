"""Procedure - builds a callable from transpiled source.

The transpiled source is the body of a function whose parameters are the
names of the capabilities bound into the template. Building it goes through
``ast`` so line numbers in tracebacks point at the template lines the
generated code came from.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Any, Callable, Sequence


PROCEDURE_NAME = "__template__"


@dataclass(frozen=True)
class Procedure:
    """A compiled template procedure."""

    function: Callable[..., Any]
    param_names: tuple[str, ...]
    suspending: bool = False
    filename: str = "<template>"


def construct(
    source: str,
    param_names: Sequence[str],
    suspending: bool = False,
    *,
    filename: str = "<template>",
) -> Procedure:
    """Construct a procedure from a body and an ordered parameter list.

    Args:
        source: Procedure body, as produced by the lexer.
        param_names: Formal parameter names, in positional order.
        suspending: Build an ``async def`` instead of a plain function.
        filename: Name reported in syntax errors and tracebacks.

    Returns:
        A Procedure wrapping the compiled function.

    Raises:
        ValueError: If a parameter name is repeated.
        SyntaxError: If the body is not valid Python.
    """
    names = tuple(param_names)
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate parameter names: {list(names)}")

    line_map = getattr(source, "line_map", None) or ()
    try:
        body = ast.parse(source, filename=filename, mode="exec")
    except SyntaxError as exc:
        if line_map and exc.lineno is not None:
            exc.lineno = _template_line(line_map, exc.lineno)
            if getattr(exc, "end_lineno", None) is not None:
                exc.end_lineno = _template_line(line_map, exc.end_lineno)
        raise
    if line_map:
        _restamp(body, line_map)

    # Let the parser build the def node so its fields match the running Python
    keyword = "async def" if suspending else "def"
    stub = ast.parse(f"{keyword} {PROCEDURE_NAME}({', '.join(names)}):\n    pass\n")
    func_def = stub.body[0]
    func_def.body = body.body or func_def.body
    ast.fix_missing_locations(stub)

    code = compile(stub, filename, "exec", dont_inherit=True)
    namespace: dict[str, Any] = {}
    exec(code, namespace)

    return Procedure(
        function=namespace[PROCEDURE_NAME],
        param_names=names,
        suspending=suspending,
        filename=filename,
    )


def _template_line(line_map: Sequence[int], lineno: int) -> int:
    return line_map[max(1, min(lineno, len(line_map))) - 1]


def _restamp(body: ast.AST, line_map: Sequence[int]) -> None:
    """Move every node in `body` onto the template line it came from."""
    for node in ast.walk(body):
        if getattr(node, "lineno", None) is not None:
            node.lineno = _template_line(line_map, node.lineno)
        if getattr(node, "end_lineno", None) is not None:
            node.end_lineno = _template_line(line_map, node.end_lineno)


def invoke(procedure: Procedure, args: Sequence[Any]) -> Any:
    """Invoke a procedure with positional arguments.

    For a suspending procedure this returns the coroutine to await.
    """
    if len(args) != len(procedure.param_names):
        raise TypeError(
            f"{procedure.filename}: expected {len(procedure.param_names)} "
            f"arguments, got {len(args)}"
        )
    return procedure.function(*args)
