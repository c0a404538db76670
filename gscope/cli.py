"""Command-line interface for gscope."""

import argparse
import sys
from pathlib import Path

from gscope.analysis.objects import Object
from gscope.analysis.resolver import ResolveError
from gscope.checker import Context, Importer
from gscope.parser.ast_nodes import Ident
from gscope.parser.tree_builder import ParseError, parse_file


def format_binding(ident: Ident, obj: Object | None) -> str:
    target = str(obj) if obj is not None else "<unresolved>"
    where = f"{ident.loc}: " if ident.loc is not None else ""
    return f"{where}{ident.name} -> {target}"


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="gscope",
        description="Resolve the identifiers of a gosub package",
    )
    parser.add_argument("inputs", nargs="*", help="Input .go files of one package")
    parser.add_argument(
        "-I", "--import-path", type=Path, action="append", default=[],
        metavar="DIR", help="Extra directory to search for imported packages",
    )
    parser.add_argument(
        "--path", type=str, default=None,
        help="Import path of the checked package (default: its package name)",
    )
    parser.add_argument(
        "--dump-scopes", action="store_true",
        help="Print the package scope and every file scope",
    )
    parser.add_argument(
        "--bindings", action="store_true",
        help="Print the object each identifier resolves to",
    )
    parser.add_argument(
        "--version", action="version", version="gscope 0.1.0"
    )

    args = parser.parse_args(argv)

    if not args.inputs:
        parser.print_help()
        sys.exit(0)

    input_paths = [Path(p) for p in args.inputs]
    for p in input_paths:
        if not p.exists():
            print(f"Error: file not found: {p}", file=sys.stderr)
            sys.exit(1)

    bindings = []

    def record(ident, obj):
        bindings.append((ident, obj))

    try:
        files = [parse_file(p.read_text(encoding="utf-8"), str(p)) for p in input_paths]
        ctx = Context(
            ident=record if args.bindings else None,
            importer=Importer(args.import_path),
        )
        pkg = ctx.check(args.path or files[0].package.name, files)
    except (ParseError, ResolveError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.dump_scopes:
        print(pkg.scope, end="")
        for scope in pkg.file_scopes:
            print(scope, end="")

    if args.bindings:
        for ident, obj in bindings:
            print(format_binding(ident, obj))

    if not (args.dump_scopes or args.bindings):
        print(f"ok {pkg.path} ({len(files)} files, {pkg.scope.num_entries()} declarations)")
