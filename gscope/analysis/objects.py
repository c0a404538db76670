"""Declared entities that can be bound into a scope."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from gscope.analysis.scope import Scope, is_exported
from gscope.parser.ast_nodes import SourceLocation


@dataclass(eq=False)
class Package:
    path: str
    name: str
    scope: Scope
    imports: dict[str, Package] = field(default_factory=dict)
    # file scopes in source order, filled in by the resolver
    file_scopes: list[Scope] = field(default_factory=list)

    def __repr__(self):
        return f"<Package {self.path!r}>"


@dataclass(eq=False)
class Object:
    name: str
    pkg: Optional[Package]
    loc: Optional[SourceLocation] = None
    _parent: Optional[Scope] = field(default=None, init=False, repr=False)

    @property
    def parent(self) -> Optional[Scope]:
        """The scope that first accepted this object, if any."""
        return self._parent

    def set_parent(self, scope: Scope) -> None:
        # Ownership is recorded once; a dot-import re-inserting the object
        # into another file scope must not steal it.
        if self._parent is None:
            self._parent = scope

    @property
    def exported(self) -> bool:
        return is_exported(self.name)

    def __str__(self):
        kind = type(self).__name__.lower()
        if self.pkg is not None:
            return f"{kind} {self.pkg.path}.{self.name}"
        return f"{kind} {self.name}"


@dataclass(eq=False)
class Const(Object):
    pass


@dataclass(eq=False)
class Var(Object):
    is_field: bool = False
    is_param: bool = False


@dataclass(eq=False)
class TypeName(Object):
    methods: Scope = field(default_factory=lambda: Scope(comment="methods"), repr=False)


@dataclass(eq=False)
class Func(Object):
    receiver: Optional[TypeName] = None


@dataclass(eq=False)
class Label(Object):
    pass


@dataclass(eq=False)
class PkgName(Object):
    """A file-local name for an imported package."""
    imported: Optional[Package] = None


@dataclass(eq=False)
class Nil(Object):
    pass
