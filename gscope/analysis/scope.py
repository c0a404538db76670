"""Lexical scopes with Go identifier-equality semantics.

A Scope holds an ordered set of objects and a link to its enclosing
(parent) scope.  Objects are inserted and looked up either by name alone or
by package and name.  ``None`` stands for an absent scope; the module-level
helpers below treat it like an empty scope for every read operation.
"""

from __future__ import annotations
import itertools
from typing import Iterator, Optional, Protocol


class PackageLike(Protocol):
    path: str


class ObjectLike(Protocol):
    """What a scope needs from a declared entity."""

    @property
    def name(self) -> str: ...

    @property
    def pkg(self) -> Optional[PackageLike]: ...

    def set_parent(self, scope: Scope) -> None: ...


_scope_ids = itertools.count(1)


def is_exported(name: str) -> bool:
    """Report whether name starts with an upper-case letter."""
    return bool(name) and name[0].isupper()


def _pkg_path(pkg: Optional[PackageLike]) -> str:
    # universe objects have no package
    return pkg.path if pkg is not None else ""


class Scope:
    def __init__(self, parent: Scope | None = None, comment: str = ""):
        self._parent = parent
        self.comment = comment
        self.id = next(_scope_ids)
        self._entries: list[ObjectLike] = []
        self._positions: dict[str, list[int]] = {}

    @property
    def parent(self) -> Scope | None:
        return self._parent

    def num_entries(self) -> int:
        return len(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def at(self, i: int) -> ObjectLike:
        """Return the i'th entry for 0 <= i < num_entries()."""
        if not 0 <= i < len(self._entries):
            raise IndexError(f"scope entry index {i} out of range")
        return self._entries[i]

    def __iter__(self) -> Iterator[ObjectLike]:
        return iter(self._entries)

    def index(self, pkg: Optional[PackageLike], name: str) -> int | None:
        """Return the position of the entry identified by (pkg, name).

        With pkg None only the name is compared and the first entry in
        insertion order wins.  Otherwise two identifiers are the same if
        they are spelled the same and are either exported or declared in
        the same package.  Parent scopes are not searched.
        """
        positions = self._positions.get(name)
        if not positions:
            return None
        if pkg is None or is_exported(name):
            return positions[0]
        for i in positions:
            if _pkg_path(self._entries[i].pkg) == pkg.path:
                return i
        return None

    def lookup(self, pkg: Optional[PackageLike], name: str) -> ObjectLike | None:
        i = self.index(pkg, name)
        if i is None:
            return None
        return self._entries[i]

    def lookup_parent(self, name: str) -> ObjectLike | None:
        """Return the innermost entry named name along the parent chain."""
        s: Scope | None = self
        while s is not None:
            obj = s.lookup(None, name)
            if obj is not None:
                return obj
            s = s._parent
        return None

    def insert(self, obj: ObjectLike) -> ObjectLike | None:
        """Insert obj unless an entry with the same identity exists.

        On conflict the scope is left unchanged and the existing entry is
        returned.  Otherwise obj is appended, this scope is recorded as its
        owner and the result is None.
        """
        alt = self.lookup(obj.pkg, obj.name)
        if alt is not None:
            return alt
        self._positions.setdefault(obj.name, []).append(len(self._entries))
        self._entries.append(obj)
        obj.set_parent(self)
        return None

    def __str__(self) -> str:
        header = f"scope {self.id}"
        if self.comment:
            header += f" {self.comment}"
        lines = [header + " {"]
        for obj in self._entries:
            lines.append(f"\t{obj.name}\t{type(obj).__name__}")
        lines.append("}")
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        return f"<Scope {self.id} entries={len(self._entries)}>"


# --- Absent-tolerant accessors ---

def num_entries(scope: Scope | None) -> int:
    return scope.num_entries() if scope is not None else 0


def is_empty(scope: Scope | None) -> bool:
    return scope is None or scope.is_empty()


def index(scope: Scope | None, pkg: Optional[PackageLike], name: str) -> int | None:
    return scope.index(pkg, name) if scope is not None else None


def lookup(scope: Scope | None, pkg: Optional[PackageLike], name: str) -> ObjectLike | None:
    return scope.lookup(pkg, name) if scope is not None else None


def lookup_parent(scope: Scope | None, name: str) -> ObjectLike | None:
    return scope.lookup_parent(name) if scope is not None else None


def scope_string(scope: Scope | None) -> str:
    return str(scope) if scope is not None else "scope {}\n"
