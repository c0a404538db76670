"""Predeclared identifiers of the universe scope."""

from __future__ import annotations

from gscope.analysis.scope import Scope
from gscope.analysis.objects import Object, Const, TypeName, Func, Nil


TYPE_NAMES = (
    "bool", "byte", "complex64", "complex128", "error",
    "float32", "float64",
    "int", "int8", "int16", "int32", "int64",
    "rune", "string",
    "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
)

CONST_NAMES = ("true", "false", "iota")

BUILTIN_FUNCS = (
    "append", "cap", "close", "complex", "copy", "delete", "imag",
    "len", "make", "new", "panic", "print", "println", "real", "recover",
)


def _build_universe() -> Scope:
    scope = Scope(comment="universe")
    objs: list[Object] = []
    objs.extend(TypeName(name, None) for name in TYPE_NAMES)
    objs.extend(Const(name, None) for name in CONST_NAMES)
    objs.append(Nil("nil", None))
    objs.extend(Func(name, None) for name in BUILTIN_FUNCS)
    for obj in objs:
        scope.insert(obj)
    return scope


# Populated once at import; only read afterwards.
UNIVERSE = _build_universe()


def lookup_universe(name: str) -> Object | None:
    return UNIVERSE.lookup(None, name)
