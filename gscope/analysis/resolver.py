"""Name resolution for gosub packages.

Builds the scope chain (package -> file -> function -> block) for one
package and binds every identifier occurrence to the object it denotes.
Package-level declarations are collected before any body is walked, so
their order in the source does not matter; local declarations become
visible only after their own specification.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Optional

from gscope.analysis.scope import Scope
from gscope.analysis.objects import (
    Object, Package, Const, Var, TypeName, Func, Label, PkgName,
)
from gscope.parser.ast_nodes import (
    SourceLocation, Ident, File,
    ConstDecl, VarDecl, TypeDecl, FuncDecl,
    FieldDecl, PointerType, SliceType, ArrayType, MapType, StructType,
    InterfaceType, FuncType,
    Block, DeclStmt, ShortVarDecl, AssignStmt, IncDecStmt, ExprStmt,
    ReturnStmt, IfStmt, ForStmt, RangeStmt, LabeledStmt, BranchStmt,
    BasicLit, SelectorExpr, CallExpr, IndexExpr, UnaryOp, BinaryOp, FuncLit,
)

IdentCallback = Callable[[Ident, Optional[Object]], None]


class ResolveError(Exception):
    def __init__(self, message: str, loc: SourceLocation | None = None):
        super().__init__(f"{loc}: {message}" if loc else message)
        self.loc = loc


def resolve_package(pkg: Package, files: list[File], ident: IdentCallback | None = None) -> None:
    resolver = Resolver(pkg, ident)
    resolver.resolve(files)


@dataclass
class _FuncState:
    """Labels of one function body; branch targets are checked at the end."""
    labels: Scope = field(default_factory=lambda: Scope(comment="labels"))
    branches: list[Ident] = field(default_factory=list)


class Resolver:
    def __init__(self, pkg: Package, ident: IdentCallback | None = None):
        self.pkg = pkg
        self.ident = ident

    def resolve(self, files: list[File]) -> None:
        pending = []
        methods = []
        for f in files:
            comment = f"file {f.filename}" if f.filename else "file"
            file_scope = Scope(self.pkg.scope, comment=comment)
            self.pkg.file_scopes.append(file_scope)
            self._collect_imports(f, file_scope)
            for decl in f.decls:
                if isinstance(decl, FuncDecl) and decl.receiver is not None:
                    methods.append(decl)
                else:
                    self._collect_decl(decl)
                pending.append((decl, file_scope))

        self._check_import_conflicts()
        for decl in methods:
            self._collect_method(decl)

        for decl, file_scope in pending:
            self._resolve_package_decl(decl, file_scope)

    # --- Reporting ---

    def _report(self, ident: Ident, obj: Object | None) -> None:
        if self.ident is not None:
            self.ident(ident, obj)

    def _declare(self, scope: Scope, obj: Object, ident: Ident | None) -> None:
        alt = scope.insert(obj)
        if alt is not None:
            message = f"{obj.name} redeclared in this block"
            if alt.loc is not None:
                message += f" (previous declaration at {alt.loc})"
            raise ResolveError(message, obj.loc)
        if ident is not None:
            self._report(ident, obj)

    def _declare_name(self, scope: Scope, ident: Ident, obj: Object) -> None:
        if ident.is_blank:
            self._report(ident, None)
            return
        self._declare(scope, obj, ident)

    # --- Package-level collection ---

    def _collect_imports(self, f: File, file_scope: Scope) -> None:
        for spec in f.imports:
            imported = self.pkg.imports.get(spec.path)
            if imported is None:
                raise ResolveError(f"could not import {spec.path}", spec.loc)
            if spec.dot:
                for obj in imported.scope:
                    if obj.exported:
                        self._declare(file_scope, obj, None)
                continue
            if spec.name is not None and spec.name.is_blank:
                self._report(spec.name, None)
                continue
            name = spec.name.name if spec.name is not None else imported.name
            obj = PkgName(name, self.pkg, spec.loc, imported=imported)
            self._declare(file_scope, obj, spec.name)

    def _check_import_conflicts(self) -> None:
        for file_scope in self.pkg.file_scopes:
            for obj in file_scope:
                alt = self.pkg.scope.lookup(None, obj.name)
                if alt is None:
                    continue
                if isinstance(obj, PkgName):
                    how = f"import of package {obj.imported.path}"
                else:
                    how = f"dot-import of package {obj.pkg.path}"
                raise ResolveError(f"{obj.name} already declared through {how}", alt.loc)

    def _collect_decl(self, decl) -> None:
        scope = self.pkg.scope
        if isinstance(decl, ConstDecl):
            for ident in decl.names:
                self._declare_name(scope, ident, Const(ident.name, self.pkg, ident.loc))
        elif isinstance(decl, VarDecl):
            for ident in decl.names:
                self._declare_name(scope, ident, Var(ident.name, self.pkg, ident.loc))
        elif isinstance(decl, TypeDecl):
            self._declare_name(scope, decl.name, TypeName(decl.name.name, self.pkg, decl.name.loc))
        elif isinstance(decl, FuncDecl):
            obj = Func(decl.name.name, self.pkg, decl.name.loc)
            if decl.name.name == "init":
                # init functions are never declared
                self._report(decl.name, obj)
            else:
                self._declare_name(scope, decl.name, obj)

    def _collect_method(self, decl: FuncDecl) -> None:
        base = decl.receiver.type
        if isinstance(base, PointerType):
            base = base.elem
        recv_type = None
        if isinstance(base, Ident):
            recv_type = self.pkg.scope.lookup(self.pkg, base.name)
        if not isinstance(recv_type, TypeName):
            loc = base.loc if isinstance(base, Ident) else decl.name.loc
            raise ResolveError("invalid receiver type", loc)
        obj = Func(decl.name.name, self.pkg, decl.name.loc, receiver=recv_type)
        if decl.name.is_blank:
            self._report(decl.name, None)
            return
        alt = recv_type.methods.insert(obj)
        if alt is not None:
            raise ResolveError(f"method {recv_type.name}.{obj.name} already declared", decl.name.loc)
        self._report(decl.name, obj)

    def _resolve_package_decl(self, decl, file_scope: Scope) -> None:
        if isinstance(decl, (ConstDecl, VarDecl)):
            if decl.type is not None:
                self._resolve_type(decl.type, file_scope)
            for value in decl.values:
                self._resolve_expr(value, file_scope)
        elif isinstance(decl, TypeDecl):
            self._resolve_type(decl.type, file_scope)
        elif isinstance(decl, FuncDecl):
            self._resolve_func(decl.signature, decl.body, file_scope,
                               receiver=decl.receiver, name=decl.name.name)

    # --- Functions ---

    def _resolve_func(self, sig: FuncType, body: Block | None, outer: Scope,
                      receiver: FieldDecl | None = None, name: str = "") -> Scope:
        scope = Scope(outer, comment=f"function {name}" if name else "function")
        groups = ([receiver] if receiver is not None else []) + sig.params + sig.results
        for group in groups:
            self._resolve_type(group.type, scope)
        for group in groups:
            for ident in group.names:
                obj = Var(ident.name, self.pkg, ident.loc, is_param=True)
                self._declare_name(scope, ident, obj)
        if body is not None:
            state = _FuncState()
            for stmt in body.stmts:
                self._resolve_stmt(stmt, scope, state)
            self._resolve_branches(state)
        return scope

    def _resolve_branches(self, state: _FuncState) -> None:
        for ident in state.branches:
            label = state.labels.lookup(None, ident.name)
            if label is None:
                raise ResolveError(f"label {ident.name} not declared", ident.loc)
            self._report(ident, label)

    # --- Statements ---

    def _resolve_stmt(self, stmt, scope: Scope, state: _FuncState) -> None:
        if stmt is None:
            return

        if isinstance(stmt, Block):
            self._resolve_block(stmt, Scope(scope, comment="block"), state)

        elif isinstance(stmt, DeclStmt):
            for decl in stmt.decls:
                self._resolve_local_decl(decl, scope)

        elif isinstance(stmt, ShortVarDecl):
            for value in stmt.values:
                self._resolve_expr(value, scope)
            self._short_var_decl(stmt, scope)

        elif isinstance(stmt, AssignStmt):
            for target in stmt.targets:
                if isinstance(target, Ident) and target.is_blank:
                    self._report(target, None)
                else:
                    self._resolve_expr(target, scope)
            for value in stmt.values:
                self._resolve_expr(value, scope)

        elif isinstance(stmt, IncDecStmt):
            self._resolve_expr(stmt.expr, scope)

        elif isinstance(stmt, ExprStmt):
            self._resolve_expr(stmt.expr, scope)

        elif isinstance(stmt, ReturnStmt):
            for value in stmt.values:
                self._resolve_expr(value, scope)

        elif isinstance(stmt, IfStmt):
            inner = Scope(scope, comment="if")
            self._resolve_stmt(stmt.init, inner, state)
            self._resolve_expr(stmt.cond, inner)
            self._resolve_stmt(stmt.then_body, inner, state)
            self._resolve_stmt(stmt.else_body, inner, state)

        elif isinstance(stmt, ForStmt):
            inner = Scope(scope, comment="for")
            self._resolve_stmt(stmt.init, inner, state)
            if stmt.cond is not None:
                self._resolve_expr(stmt.cond, inner)
            self._resolve_stmt(stmt.post, inner, state)
            self._resolve_stmt(stmt.body, inner, state)

        elif isinstance(stmt, RangeStmt):
            # the range expression cannot see the iteration variables
            self._resolve_expr(stmt.expr, scope)
            inner = Scope(scope, comment="range")
            for ident in stmt.names:
                self._declare_name(inner, ident, Var(ident.name, self.pkg, ident.loc))
            self._resolve_stmt(stmt.body, inner, state)

        elif isinstance(stmt, LabeledStmt):
            if stmt.label.is_blank:
                self._report(stmt.label, None)
            else:
                label = Label(stmt.label.name, self.pkg, stmt.label.loc)
                alt = state.labels.insert(label)
                if alt is not None:
                    raise ResolveError(f"label {label.name} already declared", stmt.label.loc)
                self._report(stmt.label, label)
            self._resolve_stmt(stmt.stmt, scope, state)

        elif isinstance(stmt, BranchStmt):
            if stmt.label is not None:
                state.branches.append(stmt.label)

        else:
            raise ResolveError(f"Unknown statement type: {type(stmt).__name__}")

    def _resolve_block(self, block: Block, scope: Scope, state: _FuncState) -> None:
        for stmt in block.stmts:
            self._resolve_stmt(stmt, scope, state)

    def _resolve_local_decl(self, decl, scope: Scope) -> None:
        if isinstance(decl, TypeDecl):
            # visible inside its own definition
            obj = TypeName(decl.name.name, self.pkg, decl.name.loc)
            self._declare_name(scope, decl.name, obj)
            self._resolve_type(decl.type, scope)
            return
        if decl.type is not None:
            self._resolve_type(decl.type, scope)
        for value in decl.values:
            self._resolve_expr(value, scope)
        kind = Const if isinstance(decl, ConstDecl) else Var
        for ident in decl.names:
            self._declare_name(scope, ident, kind(ident.name, self.pkg, ident.loc))

    def _short_var_decl(self, stmt: ShortVarDecl, scope: Scope) -> None:
        seen = set()
        new_vars = 0
        for ident in stmt.names:
            if ident.is_blank:
                self._report(ident, None)
                continue
            if ident.name in seen:
                raise ResolveError(f"{ident.name} repeated on left side of :=", ident.loc)
            seen.add(ident.name)
            existing = scope.lookup(None, ident.name)
            if existing is not None:
                self._report(ident, existing)
                continue
            self._declare(scope, Var(ident.name, self.pkg, ident.loc), ident)
            new_vars += 1
        if new_vars == 0:
            loc = stmt.names[0].loc if stmt.names else None
            raise ResolveError("no new variables on left side of :=", loc)

    # --- Types ---

    def _resolve_type(self, node, scope: Scope) -> None:
        if isinstance(node, (Ident, SelectorExpr)):
            self._resolve_expr(node, scope)

        elif isinstance(node, (PointerType, SliceType)):
            self._resolve_type(node.elem, scope)

        elif isinstance(node, ArrayType):
            self._resolve_expr(node.length, scope)
            self._resolve_type(node.elem, scope)

        elif isinstance(node, MapType):
            self._resolve_type(node.key, scope)
            self._resolve_type(node.value, scope)

        elif isinstance(node, StructType):
            fields = Scope(comment="struct")
            for fd in node.fields:
                self._resolve_type(fd.type, scope)
                if fd.names:
                    for ident in fd.names:
                        obj = Var(ident.name, self.pkg, ident.loc, is_field=True)
                        self._declare_name(fields, ident, obj)
                else:
                    embedded = _embedded_name(fd.type)
                    self._declare(fields, Var(embedded.name, self.pkg, embedded.loc, is_field=True), None)

        elif isinstance(node, InterfaceType):
            methods = Scope(comment="interface")
            for embedded in node.embedded:
                self._resolve_type(embedded, scope)
            for spec in node.methods:
                self._declare_name(methods, spec.name, Func(spec.name.name, self.pkg, spec.name.loc))
                self._resolve_func(spec.signature, None, scope)

        elif isinstance(node, FuncType):
            self._resolve_func(node, None, scope)

        else:
            raise ResolveError(f"Unknown type expression: {type(node).__name__}")

    # --- Expressions ---

    def _use(self, ident: Ident, scope: Scope) -> Object:
        if ident.is_blank:
            raise ResolveError("cannot use _ as value", ident.loc)
        obj = scope.lookup_parent(ident.name)
        if obj is None:
            raise ResolveError(f"undeclared name: {ident.name}", ident.loc)
        self._report(ident, obj)
        return obj

    def _resolve_selector(self, expr: SelectorExpr, scope: Scope) -> None:
        x = expr.x
        if isinstance(x, Ident) and not x.is_blank:
            obj = scope.lookup_parent(x.name)
            if isinstance(obj, PkgName):
                self._report(x, obj)
                imported = obj.imported
                target = imported.scope.lookup(self.pkg, expr.sel.name)
                if target is None:
                    qualified = f"{x.name}.{expr.sel.name}"
                    if imported.scope.lookup(None, expr.sel.name) is not None:
                        raise ResolveError(f"cannot refer to unexported name {qualified}", expr.sel.loc)
                    raise ResolveError(f"undeclared name: {qualified}", expr.sel.loc)
                self._report(expr.sel, target)
                return
        self._resolve_expr(x, scope)
        # field and method selection needs type information
        self._report(expr.sel, None)

    def _resolve_expr(self, expr, scope: Scope) -> None:
        if isinstance(expr, Ident):
            self._use(expr, scope)

        elif isinstance(expr, BasicLit):
            pass

        elif isinstance(expr, SelectorExpr):
            self._resolve_selector(expr, scope)

        elif isinstance(expr, CallExpr):
            self._resolve_expr(expr.func, scope)
            for arg in expr.args:
                self._resolve_expr(arg, scope)

        elif isinstance(expr, IndexExpr):
            self._resolve_expr(expr.x, scope)
            self._resolve_expr(expr.index, scope)

        elif isinstance(expr, UnaryOp):
            self._resolve_expr(expr.operand, scope)

        elif isinstance(expr, BinaryOp):
            self._resolve_expr(expr.left, scope)
            self._resolve_expr(expr.right, scope)

        elif isinstance(expr, FuncLit):
            self._resolve_func(expr.signature, expr.body, scope)

        else:
            raise ResolveError(f"Unknown expression type: {type(expr).__name__}")


def _embedded_name(node) -> Ident:
    if isinstance(node, PointerType):
        node = node.elem
    if isinstance(node, SelectorExpr):
        return node.sel
    return node
