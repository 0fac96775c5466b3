from __future__ import annotations

import pytest

from tests.support.harness import (
    UnknownExpressionType,
    UnsupportedUnaryOperator,
    compile_case,
    run_case,
)
from tyexpr import build
from tyexpr.tree import Literal, Unsupported

SCENARIOS = [
    pytest.param("*x", "star", id="dereference"),
    pytest.param("x.(string)", "type_assert", id="type-assertion"),
    pytest.param("func(i int)(x)", "func_type", id="conversion-to-func-type"),
    pytest.param("func() int { return 1 }", "func_lit", id="function-literal"),
    pytest.param("a[0]", "index", id="index"),
    pytest.param("a[0:1]", "slice", id="slice"),
    pytest.param("a[:1]", "slice", id="slice-open-low"),
    pytest.param('m["foo"]', "index", id="map-index"),
    pytest.param("req.Header[0]", "index", id="index-of-selector"),
]


@pytest.mark.parametrize("source, kind", SCENARIOS)
def test_unknown_expression_type(source: str, kind: str) -> None:
    with pytest.raises(UnknownExpressionType) as info:
        compile_case(source)

    assert str(info.value) == "1: unknown expression type"
    assert info.value.kind == kind


def test_unsupported_operand_inside_binary() -> None:
    with pytest.raises(UnknownExpressionType) as info:
        compile_case("1 + a[0]")

    assert info.value.pos == 5


def test_unsupported_unary_wins_over_unsupported_operand() -> None:
    run_case(
        "^a[0]",
        None,
        (UnsupportedUnaryOperator, "1: unsupported unary operator: ^"),
    )


def test_foreign_node_is_unknown_expression() -> None:
    with pytest.raises(UnknownExpressionType):
        build({}, object())  # type: ignore[arg-type]


def test_hand_built_unsupported_node() -> None:
    node = Unsupported("composite_literal", 4, (Literal("int", 1, 5),))

    with pytest.raises(UnknownExpressionType) as info:
        build({}, node)

    assert info.value.pos == 4
    assert info.value.kind == "composite_literal"


def test_unknown_literal_kind() -> None:
    with pytest.raises(UnknownExpressionType):
        build({}, Literal("imaginary", 1, 1))
