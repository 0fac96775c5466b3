from __future__ import annotations

import pytest

from tests.support.harness import ParseError, run_case
from tyexpr import parse_expr
from tyexpr.parser import tokenize
from tyexpr.tree import (
    Binary,
    Call,
    Ident,
    Literal,
    Paren,
    Selector,
    Unary,
    Unsupported,
    free_identifiers,
    render,
    selector_path,
    walk,
)

LITERALS = [
    pytest.param("42", ("int", 42), None, id="decimal"),
    pytest.param("0x1F", ("int", 31), None, id="hex"),
    pytest.param("0o17", ("int", 15), None, id="octal-prefix"),
    pytest.param("017", ("int", 15), None, id="octal-legacy"),
    pytest.param("0b101", ("int", 5), None, id="binary"),
    pytest.param("1_000_000", ("int", 1000000), None, id="underscores"),
    pytest.param("0", ("int", 0), None, id="zero"),
    pytest.param("3.5", ("double", 3.5), None, id="double"),
    pytest.param("1e3", ("double", 1000.0), None, id="exponent"),
    pytest.param(".5", ("double", 0.5), None, id="leading-dot"),
    pytest.param("2.", ("double", 2.0), None, id="trailing-dot"),
    pytest.param('"a\\tb"', ("string", "a\tb"), None, id="escaped-string"),
    pytest.param("`a\\tb`", ("string", "a\\tb"), None, id="raw-string"),
    pytest.param("'f'", ("string", "f"), None, id="char"),
    pytest.param("'\\n'", ("string", "\n"), None, id="escaped-char"),
    pytest.param("true", ("bool", True), None, id="true"),
    pytest.param("false", ("bool", False), None, id="false"),
    pytest.param(
        "9223372036854775808",
        None,
        (ParseError, "1:1: integer literal overflows int"),
        id="int-overflow",
    ),
    pytest.param(
        "'ab'",
        None,
        (ParseError, "1:1: illegal rune literal"),
        id="multi-char-rune",
    ),
    pytest.param(
        "1 +",
        None,
        (ParseError, "1:4: unexpected end of expression"),
        id="dangling-operator",
    ),
    pytest.param(
        "(1 + 2",
        None,
        (ParseError, "1:7: unexpected end of expression"),
        id="unclosed-paren",
    ),
    pytest.param(
        "08",
        None,
        (ParseError, "1:1: invalid integer literal"),
        id="bad-legacy-octal",
    ),
    pytest.param(
        "0x_",
        None,
        (ParseError, "1:1: invalid integer literal"),
        id="hex-without-digits",
    ),
    pytest.param(
        "0b_",
        None,
        (ParseError, "1:1: invalid integer literal"),
        id="binary-without-digits",
    ),
    pytest.param(
        '"fubar',
        None,
        (ParseError, "1:1: unexpected character '\"'"),
        id="unterminated-string",
    ),
    pytest.param(
        "5x",
        None,
        (ParseError, "1:2: unexpected 'x'"),
        id="number-followed-by-ident",
    ),
    pytest.param(
        "1 # 2",
        None,
        (ParseError, "1:3: unexpected character '#'"),
        id="bad-character",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_error", LITERALS)
def test_literals(source: str, expectation, expected_error) -> None:
    run_case(source, expectation, expected_error)


def test_binary_records_operator_position() -> None:
    node = parse_expr("x + 10")

    assert node == Binary("+", Ident("x", 1), Literal("int", 10, 5), 3)
    assert node.pos == 1


def test_precedence_shape() -> None:
    node = parse_expr("a || b && c == d + e * f")

    assert isinstance(node, Binary) and node.op == "||"
    assert render(node) == "a || b && c == d + e * f"
    assert [n.op for n in walk(node) if isinstance(n, Binary)] == ["||", "&&", "==", "+", "*"]


def test_selector_and_call_positions() -> None:
    node = parse_expr('req.Header.Get("k")')

    assert isinstance(node, Call)
    assert isinstance(node.callee, Selector)
    assert node.callee.name_pos == 12
    assert node.args == (Literal("string", "k", 16),)
    assert selector_path(node.callee) == "req.Header.Get"


def test_paren_and_unary_nodes() -> None:
    node = parse_expr("-(x)")

    assert node == Unary("-", Paren(Ident("x", 3), 2), 1)


def test_empty_argument_list() -> None:
    assert parse_expr("f()") == Call(Ident("f", 1), ())


def test_trailing_comma_in_arguments() -> None:
    node = parse_expr("f(1, 2,)")

    assert isinstance(node, Call)
    assert len(node.args) == 2


def test_unsupported_constructs_parse() -> None:
    assert parse_expr("a[1]") == Unsupported("index", 1, (Ident("a", 1), Literal("int", 1, 3)))
    assert isinstance(parse_expr("*p"), Unsupported)
    assert isinstance(parse_expr("x.(int)"), Unsupported)


def test_unsupported_binary_operators_still_parse() -> None:
    node = parse_expr("a &^ b")

    assert isinstance(node, Binary)
    assert node.op == "&^"
    assert node.op_pos == 3


def test_free_identifiers_skip_members() -> None:
    node = parse_expr('req.Header.Get("k") == x && f(x, y)')

    assert free_identifiers(node) == ["req", "x", "f", "y"]


def test_parse_error_is_positioned() -> None:
    with pytest.raises(ParseError) as info:
        parse_expr("x +\n* ")

    assert info.value.line == 2


def test_tokenize_yields_named_terminals() -> None:
    kinds = [tok.type for tok in tokenize('a.b("c") != 1.5')]

    assert kinds == ["IDENT", "DOT", "IDENT", "LPAR", "STRING", "RPAR", "NEQ", "FLOAT"]
