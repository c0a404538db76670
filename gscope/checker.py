"""Top-level package checking: imports, name resolution, identifier reports."""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from gscope.analysis.objects import Package
from gscope.analysis.resolver import IdentCallback, ResolveError, resolve_package
from gscope.analysis.scope import Scope
from gscope.builtins.universe import UNIVERSE
from gscope.parser.ast_nodes import File
from gscope.parser.tree_builder import parse_file

# Standard library search path
_STDLIB_DIR = Path(__file__).parent / "stdlib"


class Importer:
    """Finds, parses and checks imported packages, once per import path.

    Search order:
    1. stdlib directory (gscope/stdlib/<path>/*.go or <path>.go)
    2. each extra directory, in the order given
    """

    def __init__(self, search_path: Iterable[Path | str] = ()):
        self.search_path = [_STDLIB_DIR] + [Path(p) for p in search_path]
        self.packages: dict[str, Package] = {}
        self._importing: list[str] = []

    def find(self, path: str) -> list[Path]:
        for root in self.search_path:
            pkg_dir = root / path
            if pkg_dir.is_dir():
                files = sorted(pkg_dir.glob("*.go"))
                if files:
                    return files
            single = root / f"{path}.go"
            if single.is_file():
                return [single]
        searched = ", ".join(str(p) for p in self.search_path)
        raise ResolveError(f"could not import {path} (searched: {searched})")

    def import_package(self, path: str) -> Package:
        pkg = self.packages.get(path)
        if pkg is not None:
            return pkg
        if path in self._importing:
            cycle = " -> ".join(self._importing[self._importing.index(path):] + [path])
            raise ResolveError(f"import cycle not allowed: {cycle}")

        self._importing.append(path)
        try:
            files = [
                parse_file(p.read_text(encoding="utf-8"), str(p))
                for p in self.find(path)
            ]
            pkg = Context(importer=self).check(path, files)
        finally:
            self._importing.pop()
        self.packages[path] = pkg
        return pkg


@dataclass
class Context:
    """Settings for checking one package.

    ident, if set, is called for every identifier occurrence with the
    object it denotes (None for the blank identifier and for field or
    method selectors, which need type information).
    """
    ident: Optional[IdentCallback] = None
    importer: Optional[Importer] = None

    def check(self, path: str, files: list[File]) -> Package:
        if not files:
            raise ResolveError(f"no files to check for package {path}")
        name = files[0].package.name
        for f in files[1:]:
            if f.package.name != name:
                raise ResolveError(f"package {f.package.name}; expected {name}", f.package.loc)

        pkg = Package(path, name, Scope(UNIVERSE, comment=f"package {name}"))
        importer = self.importer if self.importer is not None else Importer()
        for f in files:
            for spec in f.imports:
                if spec.path == path:
                    raise ResolveError(f"import cycle not allowed: {path} imports itself", spec.loc)
                if spec.path not in pkg.imports:
                    pkg.imports[spec.path] = importer.import_package(spec.path)

        resolve_package(pkg, files, self.ident)
        return pkg


def check_files(
    paths: Iterable[Path | str],
    path: str | None = None,
    ident: IdentCallback | None = None,
    search_path: Iterable[Path | str] = (),
) -> Package:
    """Parse and check the given source files as one package."""
    files = []
    for p in paths:
        p = Path(p)
        files.append(parse_file(p.read_text(encoding="utf-8"), str(p)))
    if not files:
        raise ResolveError("no input files")
    ctx = Context(ident=ident, importer=Importer(search_path))
    return ctx.check(path or files[0].package.name, files)
