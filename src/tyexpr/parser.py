"""Lark front end for the Go-flavoured expression syntax.

The builder only needs a ``tree.Node``; this module is one way to get one
from text. It recognises more than the builder compiles (bitwise and
ordering operators, indexing, slicing, type assertions, function literals)
so that those constructs reach the builder and are rejected there with a
positioned build error instead of a generic syntax error.

Positions are 1-based source offsets: binary nodes report their operator,
selectors their member name, and calls/index/slice/assertions their
leftmost operand.
"""
from __future__ import annotations

import ast
from functools import lru_cache
from typing import Iterable, Iterator, List, Tuple

from lark import Lark, Token, Transformer, UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, v_args
from lark.exceptions import VisitError

from .operators import INT_MAX
from .tree import Binary, Call, Ident, Literal, Node, Paren, Selector, Unary, Unsupported
from .types import ParseError

GRAMMAR = r"""
?start: expr

?expr: and_expr
     | expr OROR and_expr                    -> binary
?and_expr: cmp_expr
     | and_expr ANDAND cmp_expr              -> binary
?cmp_expr: add_expr
     | cmp_expr _cmp_op add_expr             -> binary
?add_expr: mul_expr
     | add_expr _add_op mul_expr             -> binary
?mul_expr: unary_expr
     | mul_expr _mul_op unary_expr           -> binary

_cmp_op: EQ | NEQ | LT | LTE | GT | GTE
_add_op: PLUS | MINUS | PIPE | CARET
_mul_op: STAR | SLASH | PERCENT | SHL | SHR | AMP | ANDNOT
_unary_op: PLUS | MINUS | BANG | CARET | AMP | ARROW

?unary_expr: primary
     | _unary_op unary_expr                  -> unary
     | STAR unary_expr                       -> star

?primary: operand
     | primary DOT IDENT                     -> selector
     | primary DOT LPAR type RPAR            -> type_assert
     | primary LSQB expr RSQB                -> index
     | primary LSQB [expr] COLON [expr] RSQB -> slice
     | primary LPAR [arguments] RPAR         -> call

arguments: expr (COMMA expr)* [COMMA]

?operand: INT                                -> int_lit
     | FLOAT                                 -> float_lit
     | STRING                                -> string_lit
     | RAW_STRING                            -> string_lit
     | CHAR                                  -> char_lit
     | IDENT                                 -> ident
     | LPAR expr RPAR                        -> paren
     | func_type
     | func_type block                       -> func_lit

func_type: FUNC LPAR [params] RPAR [IDENT]
params: param (COMMA param)* [COMMA]
param: IDENT type
     | type
type: IDENT
    | IDENT DOT IDENT
    | STAR type
    | LSQB RSQB type
    | MAP LSQB type RSQB type
    | FUNC LPAR [params] RPAR
block: LBRACE [RETURN expr] RBRACE

FUNC: "func"
MAP: "map"
RETURN: "return"

OROR: "||"
ANDAND: "&&"
EQ: "=="
NEQ: "!="
LT: "<"
LTE: "<="
GT: ">"
GTE: ">="
PLUS: "+"
MINUS: "-"
PIPE: "|"
CARET: "^"
STAR: "*"
SLASH: "/"
PERCENT: "%"
SHL: "<<"
SHR: ">>"
AMP: "&"
ANDNOT: "&^"
BANG: "!"
ARROW: "<-"

DOT: "."
COMMA: ","
COLON: ":"
LPAR: "("
RPAR: ")"
LSQB: "["
RSQB: "]"
LBRACE: "{"
RBRACE: "}"

IDENT: /[A-Za-z_][A-Za-z0-9_]*/
INT: /0[xX][0-9a-fA-F_]+|0[bB][01_]+|0[oO][0-7_]+|[0-9][0-9_]*/
FLOAT.2: /[0-9][0-9_]*\.[0-9]*([eE][+-]?[0-9]+)?|\.[0-9]+([eE][+-]?[0-9]+)?|[0-9][0-9_]*[eE][+-]?[0-9]+/
STRING: /"(?:[^"\\\n]|\\.)*"/
RAW_STRING: /`[^`]*`/
CHAR: /'(?:[^'\\\n]|\\.)*'/

%import common.WS
%ignore WS
"""


_NODE_TYPES = (Literal, Ident, Unary, Binary, Paren, Selector, Call, Unsupported)


@lru_cache(maxsize=1)
def make_parser() -> Lark:
    return Lark(GRAMMAR, parser="lalr", lexer="basic", maybe_placeholders=False)


def _pos(tok: Token) -> int:
    return tok.start_pos + 1


def _nodes(items: Iterable[object]) -> List[Node]:
    return [it for it in items if isinstance(it, _NODE_TYPES)]


def _parse_int(tok: Token) -> int:
    text = str(tok).replace("_", "")

    try:
        # Go keeps the legacy leading-zero octal form
        if len(text) > 1 and text[0] == "0" and text[1].isdigit():
            value = int(text, 8)
        else:
            value = int(text, 0)
    except ValueError as exc:
        raise ParseError("invalid integer literal", tok.line, tok.column, _pos(tok)) from exc

    if value > INT_MAX:
        raise ParseError("integer literal overflows int", tok.line, tok.column, _pos(tok))
    return value


def _unquote(tok: Token) -> str:
    try:
        value = ast.literal_eval(str(tok))
    except (SyntaxError, ValueError) as exc:
        raise ParseError(f"invalid literal {tok}", tok.line, tok.column, _pos(tok)) from exc

    if not isinstance(value, str):
        raise ParseError(f"invalid literal {tok}", tok.line, tok.column, _pos(tok))
    return value


@v_args(inline=True)
class ToNode(Transformer):
    """Turns the lark parse tree into ``tree.Node`` variants."""

    def int_lit(self, tok: Token) -> Node:
        return Literal("int", _parse_int(tok), _pos(tok))

    def float_lit(self, tok: Token) -> Node:
        return Literal("double", float(str(tok).replace("_", "")), _pos(tok))

    def string_lit(self, tok: Token) -> Node:
        if tok.type == "RAW_STRING":
            return Literal("string", str(tok)[1:-1].replace("\r", ""), _pos(tok))
        return Literal("string", _unquote(tok), _pos(tok))

    def char_lit(self, tok: Token) -> Node:
        value = _unquote(tok)
        if len(value) != 1:
            raise ParseError("illegal rune literal", tok.line, tok.column, _pos(tok))
        return Literal("char", value, _pos(tok))

    def ident(self, tok: Token) -> Node:
        name = str(tok)
        if name in ("true", "false"):
            return Literal("bool", name == "true", _pos(tok))
        return Ident(name, _pos(tok))

    def paren(self, lpar: Token, inner: Node, _rpar: Token) -> Node:
        return Paren(inner, _pos(lpar))

    def unary(self, op: Token, operand: Node) -> Node:
        return Unary(str(op), operand, _pos(op))

    def star(self, op: Token, operand: Node) -> Node:
        return Unsupported("star", _pos(op), (operand,))

    def binary(self, left: Node, op: Token, right: Node) -> Node:
        return Binary(str(op), left, right, _pos(op))

    def selector(self, target: Node, _dot: Token, name: Token) -> Node:
        return Selector(target, str(name), _pos(name))

    def type_assert(self, target: Node, *_rest: object) -> Node:
        return Unsupported("type_assert", target.pos, (target,))

    def index(self, target: Node, _lsqb: Token, key: Node, _rsqb: Token) -> Node:
        return Unsupported("index", target.pos, (target, key))

    def slice(self, target: Node, *rest: object) -> Node:
        return Unsupported("slice", target.pos, (target, *_nodes(rest)))

    def arguments(self, *items: object) -> Tuple[Node, ...]:
        return tuple(_nodes(items))

    def call(self, callee: Node, _lpar: Token, *rest: object) -> Node:
        args = next((r for r in rest if isinstance(r, tuple)), ())
        return Call(callee, args)

    def func_type(self, func: Token, *_rest: object) -> Node:
        return Unsupported("func_type", _pos(func))

    def block(self, *items: object) -> Tuple[Node, ...]:
        return tuple(_nodes(items))

    def func_lit(self, ftype: Node, body: Tuple[Node, ...]) -> Node:
        return Unsupported("func_lit", ftype.pos, body)


def _at_end(exc: UnexpectedInput) -> bool:
    if isinstance(exc, UnexpectedEOF):
        return True
    return isinstance(exc, UnexpectedToken) and exc.token.type == "$END"


def _error_location(text: str, exc: UnexpectedInput) -> Tuple[int, int]:
    line = getattr(exc, "line", -1)
    column = getattr(exc, "column", -1)

    # lark pins $END to the last token; report the end of the text instead
    if not _at_end(exc) and isinstance(line, int) and line > 0:
        return line, column

    lines = text.split("\n")
    return len(lines), len(lines[-1]) + 1


def _describe(exc: UnexpectedInput) -> str:
    if isinstance(exc, UnexpectedCharacters):
        return f"unexpected character {exc.char!r}"

    if _at_end(exc):
        return "unexpected end of expression"

    if isinstance(exc, UnexpectedToken):
        return f"unexpected {str(exc.token)!r}"

    return "syntax error"


def parse_expr(text: str) -> Node:
    """Parse ``text`` into an expression tree; raises ParseError on bad syntax."""
    try:
        parsed = make_parser().parse(text)
    except UnexpectedInput as exc:
        line, column = _error_location(text, exc)
        raise ParseError(_describe(exc), line, column) from exc

    try:
        return ToNode().transform(parsed)
    except VisitError as exc:
        if isinstance(exc.orig_exc, ParseError):
            raise exc.orig_exc from None
        raise


def tokenize(text: str) -> Iterator[Token]:
    """Lex ``text`` with the expression grammar's terminals (used for highlighting)."""
    return make_parser().lex(text)
