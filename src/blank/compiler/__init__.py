"""Blank compiler - turns templates into procedures."""

from blank.compiler.lexer import CompiledSource, transpile
from blank.compiler.procedure import Procedure, construct, invoke

__all__ = ["CompiledSource", "transpile", "Procedure", "construct", "invoke"]
