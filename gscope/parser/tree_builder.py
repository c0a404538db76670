"""Lark Transformer that builds our AST from the parse tree."""

from __future__ import annotations
from pathlib import Path
from lark import Lark, Transformer, Token
from lark.exceptions import UnexpectedInput

from gscope.parser.ast_nodes import (
    SourceLocation, Ident, File, ImportSpec,
    ConstDecl, VarDecl, TypeDecl, FuncDecl,
    FieldDecl, PointerType, SliceType, ArrayType, MapType, StructType,
    MethodSpec, InterfaceType, FuncType,
    Block, DeclStmt, ShortVarDecl, AssignStmt, IncDecStmt, ExprStmt,
    ReturnStmt, IfStmt, ForStmt, RangeStmt, LabeledStmt, BranchStmt,
    BasicLit, SelectorExpr, CallExpr, IndexExpr, UnaryOp, BinaryOp, FuncLit,
)

_GRAMMAR_PATH = Path(__file__).parent.parent / "grammar" / "gosub.lark"

_parser = Lark(
    _GRAMMAR_PATH.read_text(encoding="utf-8"),
    parser="earley",
    lexer="basic",
    propagate_positions=True,
    maybe_placeholders=True,
)


class ParseError(Exception):
    def __init__(self, message: str, loc: SourceLocation | None = None):
        super().__init__(f"{loc}: {message}" if loc else message)
        self.loc = loc


class GosubTransformer(Transformer):
    def __init__(self, filename: str = ""):
        super().__init__()
        self.filename = filename

    def _ident(self, tok: Token) -> Ident:
        loc = None
        if getattr(tok, "line", None) is not None:
            loc = SourceLocation(tok.line, tok.column, self.filename)
        return Ident(str(tok), loc)

    # --- File ---

    def start(self, items):
        package = items[0]
        imports, decls = [], []
        for item in items[1:]:
            for node in _as_list(item):
                if isinstance(node, ImportSpec):
                    imports.append(node)
                else:
                    decls.append(node)
        return File(package, imports, decls, self.filename)

    def package_clause(self, args):
        return self._ident(args[0])

    # --- Imports ---

    def import_decl(self, args):
        return [a for a in args if a is not None]

    def plain_import(self, args):
        return ImportSpec(_unquote(args[0]), loc=self._ident(args[0]).loc)

    def named_import(self, args):
        name = self._ident(args[0])
        return ImportSpec(_unquote(args[1]), name=name, loc=name.loc)

    def dot_import(self, args):
        return ImportSpec(_unquote(args[0]), dot=True, loc=self._ident(args[0]).loc)

    # --- Declarations ---

    def const_decl(self, args):
        return [a for a in args if a is not None]

    def const_spec(self, args):
        names, type_node, values = args
        return ConstDecl(names, type_node, values)

    def var_decl(self, args):
        return [a for a in args if a is not None]

    def typed_var_spec(self, args):
        names, type_node, values = args
        return VarDecl(names, type_node, values or [])

    def untyped_var_spec(self, args):
        names, values = args
        return VarDecl(names, None, values)

    def type_decl(self, args):
        return [a for a in args if a is not None]

    def type_spec(self, args):
        return TypeDecl(self._ident(args[0]), args[1])

    def func_decl(self, args):
        receiver, name, signature, body = args
        return FuncDecl(self._ident(name), signature, body, receiver)

    def receiver(self, args):
        name, type_node = args
        names = [self._ident(name)] if name is not None else []
        return FieldDecl(names, type_node)

    def func_body(self, args):
        return args[0] if args else None

    def signature(self, args):
        params, result = args
        if result is None:
            results = []
        elif isinstance(result, list):
            results = result
        else:
            results = [FieldDecl([], result)]
        return FuncType(params, results)

    def named_params(self, args):
        return [a for a in args if a is not None]

    def unnamed_params(self, args):
        return [FieldDecl([], a) for a in args if a is not None]

    def param_group(self, args):
        return FieldDecl(args[0], args[1])

    # --- Types ---

    def type_ident(self, args):
        return self._ident(args[0])

    def qualified_type(self, args):
        return SelectorExpr(self._ident(args[0]), self._ident(args[1]))

    def pointer_type(self, args):
        return PointerType(args[-1])

    def slice_type(self, args):
        return SliceType(args[0])

    def array_type(self, args):
        return ArrayType(args[0], args[1])

    def map_type(self, args):
        return MapType(args[0], args[1])

    def struct_type(self, args):
        return StructType([a for a in args if a is not None])

    def named_field(self, args):
        return FieldDecl(args[0], args[1])

    def embedded_field(self, args):
        if len(args) == 2:
            return FieldDecl([], PointerType(args[1]))
        return FieldDecl([], args[0])

    def interface_type(self, args):
        methods = [a for a in args if isinstance(a, MethodSpec)]
        embedded = [a for a in args if a is not None and not isinstance(a, MethodSpec)]
        return InterfaceType(methods, embedded)

    def method_spec(self, args):
        return MethodSpec(self._ident(args[0]), args[1])

    def embedded_interface(self, args):
        return args[0]

    def func_type(self, args):
        return args[0]

    # --- Statements ---

    def block(self, args):
        return Block([a for a in args if a is not None])

    def decl_stmt(self, args):
        return DeclStmt(args[0])

    def empty_stmt(self, args):
        return None

    def expr_stmt(self, args):
        return ExprStmt(args[0])

    def short_var_decl(self, args):
        return ShortVarDecl(args[0], args[1])

    def assign_stmt(self, args):
        if len(args) == 3:
            return AssignStmt(args[0], str(args[1]), args[2])
        return AssignStmt(args[0], "=", args[1])

    def inc_dec_stmt(self, args):
        return IncDecStmt(args[0], str(args[1]))

    def return_stmt(self, args):
        values = args[0] if args else None
        return ReturnStmt(values or [])

    def if_stmt(self, args):
        init, cond, then_body, else_body = args
        return IfStmt(init, cond, then_body, else_body)

    def for_cond_stmt(self, args):
        cond, body = args
        return ForStmt(None, cond, None, body)

    def for_clause_stmt(self, args):
        init, cond, post, body = args
        return ForStmt(init, cond, post, body)

    def for_range_stmt(self, args):
        names, expr, body = args
        return RangeStmt(names, expr, body)

    def labeled_stmt(self, args):
        return LabeledStmt(self._ident(args[0]), args[1])

    def break_stmt(self, args):
        return self._branch("break", args)

    def continue_stmt(self, args):
        return self._branch("continue", args)

    def goto_stmt(self, args):
        return self._branch("goto", args)

    def _branch(self, keyword, args):
        label = args[0] if args else None
        return BranchStmt(keyword, self._ident(label) if label is not None else None)

    # --- Expressions ---

    def expr_list(self, args):
        return list(args)

    def name_list(self, args):
        return [self._ident(a) for a in args]

    def or_expr(self, args):
        return _left_assoc_ops(args)

    def and_expr(self, args):
        return _left_assoc_ops(args)

    def cmp_expr(self, args):
        return _left_assoc_ops(args)

    def add_expr(self, args):
        return _left_assoc_ops(args)

    def mul_expr(self, args):
        return _left_assoc_ops(args)

    def unary(self, args):
        return UnaryOp(str(args[0]), args[1])

    def selector(self, args):
        return SelectorExpr(args[0], self._ident(args[1]))

    def call(self, args):
        call_args = args[1] if len(args) > 1 and isinstance(args[1], list) else []
        return CallExpr(args[0], call_args)

    def index(self, args):
        return IndexExpr(args[0], args[1])

    def name(self, args):
        return self._ident(args[0])

    def int_lit(self, args):
        return BasicLit("int", str(args[0]))

    def float_lit(self, args):
        return BasicLit("float", str(args[0]))

    def string_lit(self, args):
        return BasicLit("string", str(args[0]))

    def func_lit(self, args):
        return FuncLit(args[0], args[1])


def _as_list(item):
    return item if isinstance(item, list) else [item]


def _unquote(tok) -> str:
    return str(tok)[1:-1]


def _left_assoc_ops(args):
    """Handle interleaved value/op/value/op/value lists."""
    if len(args) == 1:
        return args[0]
    result = args[0]
    i = 1
    while i < len(args):
        op = str(args[i])
        right = args[i + 1]
        result = BinaryOp(op, result, right)
        i += 2
    return result


def parse_file(source: str, filename: str = "") -> File:
    try:
        tree = _parser.parse(source)
    except UnexpectedInput as e:
        loc = None
        line = getattr(e, "line", -1)
        if line is not None and line > 0:
            loc = SourceLocation(line, e.column, filename)
        token = getattr(e, "token", None)
        message = f"syntax error near {str(token)!r}" if token else "syntax error"
        raise ParseError(message, loc) from e
    return GosubTransformer(filename).transform(tree)
