"""AST node definitions for gosub source files."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass
class SourceLocation:
    line: int
    column: int
    filename: str = ""

    def __str__(self):
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(eq=False)
class Ident:
    """One occurrence of an identifier in the source."""
    name: str
    loc: Optional[SourceLocation] = None

    @property
    def is_blank(self) -> bool:
        return self.name == "_"


# --- File ---

@dataclass
class File:
    package: Ident
    imports: list[ImportSpec] = field(default_factory=list)
    decls: list[Decl] = field(default_factory=list)
    filename: str = ""


@dataclass
class ImportSpec:
    path: str
    name: Optional[Ident] = None   # explicit local name
    dot: bool = False              # import . "path"
    loc: Optional[SourceLocation] = None


# --- Declarations ---

@dataclass
class ConstDecl:
    names: list[Ident]
    type: Optional[TypeExpr]
    values: list[Expr]


@dataclass
class VarDecl:
    names: list[Ident]
    type: Optional[TypeExpr]
    values: list[Expr] = field(default_factory=list)


@dataclass
class TypeDecl:
    name: Ident
    type: TypeExpr


@dataclass
class FuncDecl:
    name: Ident
    signature: FuncType
    body: Optional[Block] = None
    receiver: Optional[FieldDecl] = None


Decl = Union[ConstDecl, VarDecl, TypeDecl, FuncDecl]


# --- Types ---

@dataclass
class FieldDecl:
    """A parameter group or struct field; no names means embedded/unnamed."""
    names: list[Ident]
    type: TypeExpr


@dataclass
class PointerType:
    elem: TypeExpr


@dataclass
class SliceType:
    elem: TypeExpr


@dataclass
class ArrayType:
    length: Expr
    elem: TypeExpr


@dataclass
class MapType:
    key: TypeExpr
    value: TypeExpr


@dataclass
class StructType:
    fields: list[FieldDecl] = field(default_factory=list)


@dataclass
class MethodSpec:
    name: Ident
    signature: FuncType


@dataclass
class InterfaceType:
    methods: list[MethodSpec] = field(default_factory=list)
    embedded: list[TypeExpr] = field(default_factory=list)


@dataclass
class FuncType:
    params: list[FieldDecl] = field(default_factory=list)
    results: list[FieldDecl] = field(default_factory=list)


# Named types are plain Idents, qualified ones are SelectorExprs.
TypeExpr = Union[Ident, "SelectorExpr", PointerType, SliceType, ArrayType,
                 MapType, StructType, InterfaceType, FuncType]


# --- Statements ---

@dataclass
class Block:
    stmts: list[Stmt] = field(default_factory=list)


@dataclass
class DeclStmt:
    decls: list[Decl]


@dataclass
class ShortVarDecl:
    names: list[Ident]
    values: list[Expr]


@dataclass
class AssignStmt:
    targets: list[Expr]
    op: str
    values: list[Expr]


@dataclass
class IncDecStmt:
    expr: Expr
    op: str


@dataclass
class ExprStmt:
    expr: Expr


@dataclass
class ReturnStmt:
    values: list[Expr] = field(default_factory=list)


@dataclass
class IfStmt:
    init: Optional[Stmt]
    cond: Expr
    then_body: Block
    else_body: Union[IfStmt, Block, None] = None


@dataclass
class ForStmt:
    init: Optional[Stmt]
    cond: Optional[Expr]
    post: Optional[Stmt]
    body: Block


@dataclass
class RangeStmt:
    names: list[Ident]
    expr: Expr
    body: Block


@dataclass
class LabeledStmt:
    label: Ident
    stmt: Stmt


@dataclass
class BranchStmt:
    keyword: str               # "break", "continue" or "goto"
    label: Optional[Ident] = None


Stmt = Union[Block, DeclStmt, ShortVarDecl, AssignStmt, IncDecStmt, ExprStmt,
             ReturnStmt, IfStmt, ForStmt, RangeStmt, LabeledStmt, BranchStmt]


# --- Expressions ---

@dataclass
class BasicLit:
    kind: str   # "int", "float", "string"
    value: str


@dataclass
class SelectorExpr:
    x: Expr
    sel: Ident


@dataclass
class CallExpr:
    func: Expr
    args: list[Expr] = field(default_factory=list)


@dataclass
class IndexExpr:
    x: Expr
    index: Expr


@dataclass
class UnaryOp:
    op: str
    operand: Expr


@dataclass
class BinaryOp:
    op: str
    left: Expr
    right: Expr


@dataclass
class FuncLit:
    signature: FuncType
    body: Block


Expr = Union[Ident, BasicLit, SelectorExpr, CallExpr, IndexExpr, UnaryOp,
             BinaryOp, FuncLit]
