from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .operators import SUPPORTED_BINARY, SUPPORTED_UNARY, lookup_binary, lookup_unary
from .resolver import invoke, read_member, resolve_callable, resolve_selector
from .symbols import TypesLike, TypeTable, ValuesLike, ValueTable, as_type_table, as_value_table
from .tree import (
    Binary,
    Call,
    Ident,
    Literal,
    Node,
    Paren,
    Selector,
    Unary,
    Unsupported,
    free_identifiers,
    render,
    selector_path,
    unwrap_parens,
)
from .types import (
    ArgumentCountMismatch,
    BuildError,
    ExecutionError,
    TxBool,
    TxDouble,
    TxInt,
    TxOpaque,
    TxString,
    TxType,
    TxValue,
    TypeMismatchInArgument,
    TypeMismatchInBinaryExpression,
    UnboundIdentifier,
    UnknownExpressionType,
    UnknownFunction,
    UnknownIdentifier,
    UnknownSelector,
    UnsupportedBinaryOperation,
    UnsupportedUnaryOperator,
    VariadicFunctionsNotSupported,
    assignable_to,
    is_tx_value,
)

log = logging.getLogger(__name__)

Evaluator = Callable[[ValueTable], TxValue]
Built = Tuple[TxType, Evaluator]


@dataclass(frozen=True)
class CompiledExpr:
    """Statically typed, reusable result of a build.

    Holds no mutable state, so one instance may be evaluated from several
    threads as long as each call brings its own value table.
    """
    type: TxType
    evaluator: Evaluator
    source: Optional[str] = None

    def evaluate(self, values: Optional[ValuesLike] = None) -> TxValue:
        return self.evaluator(as_value_table(values))

    __call__ = evaluate


def _attach_pos(exc: ExecutionError, pos: int) -> None:
    if exc.pos is None:
        exc.pos = pos


def _satisfies(value: object, t: TxType) -> bool:
    """Run-time half of the table contract: present, typed as declared, not nil."""
    if not is_tx_value(value) or not assignable_to(value.type, t):
        return False
    return not (isinstance(value, TxOpaque) and value.handle is None)

# ---------------- Public API ----------------

def build(types: Optional[TypesLike], node: Node) -> Built:
    """Type-check ``node`` against ``types`` and return (result type, evaluator)."""
    return _build(as_type_table(types), node)


def compile_expr(types: Optional[TypesLike], node: Node, source: Optional[str] = None) -> CompiledExpr:
    try:
        t, ev = build(types, node)
    except BuildError as exc:
        log.debug("build failed for %s: %s", source or render(node), exc)
        raise

    if log.isEnabledFor(logging.DEBUG):
        log.debug("compiled %s : %s reading %s", source or render(node), t, ", ".join(free_identifiers(node)) or "-")
    return CompiledExpr(t, ev, source)


def compile_source(types: Optional[TypesLike], text: str) -> CompiledExpr:
    """Parse ``text`` with the bundled front end and compile it."""
    from .parser import parse_expr

    return compile_expr(types, parse_expr(text), source=text)

# ---------------- Core builder ----------------

def _build(types: TypeTable, node: Node) -> Built:
    match node:
        case Literal():
            return _build_literal(node)
        case Unary():
            return _build_unary(types, node)
        case Binary():
            return _build_binary(types, node)
        case Paren(inner=inner):
            return _build(types, inner)
        case Ident():
            return _build_ident(types, node)
        case Selector():
            return _build_selector(types, node)
        case Call():
            return _build_call(types, node)
        case Unsupported(kind=kind, pos=pos):
            raise UnknownExpressionType(pos, kind=kind)
        case _:
            raise UnknownExpressionType(getattr(node, "pos", None), kind=type(node).__name__)


def _build_literal(node: Literal) -> Built:
    value: TxValue

    match node.kind:
        case "bool":
            value = TxBool(bool(node.value))
        case "int":
            value = TxInt(int(node.value))
        case "double":
            value = TxDouble(float(node.value))
        case "string" | "char":
            # char literals are single-character strings
            value = TxString(str(node.value))
        case _:
            raise UnknownExpressionType(node.pos, kind=f"{node.kind} literal")

    def eval_literal(_values: ValueTable) -> TxValue:
        return value

    return value.type, eval_literal


def _build_unary(types: TypeTable, node: Unary) -> Built:
    if node.op not in SUPPORTED_UNARY:
        raise UnsupportedUnaryOperator(node.op, node.pos)

    operand_t, operand = _build(types, node.operand)
    rule = lookup_unary(node.op, operand_t)

    if rule is None:
        raise UnsupportedUnaryOperator(node.op, node.pos)
    apply = rule.apply

    def eval_unary(values: ValueTable) -> TxValue:
        return apply(operand(values))

    return rule.result, eval_unary


def _build_binary(types: TypeTable, node: Binary) -> Built:
    op = node.op
    if op not in SUPPORTED_BINARY:
        raise UnsupportedBinaryOperation(op, node.op_pos)

    left_t, left = _build(types, node.left)
    right_t, right = _build(types, node.right)
    rule = lookup_binary(op, left_t, right_t)

    if rule is None:
        raise TypeMismatchInBinaryExpression(node.op_pos)
    apply = rule.apply

    if rule.short_circuit is not None:
        decided = rule.short_circuit

        def eval_logical(values: ValueTable) -> TxValue:
            lhs = left(values)
            if lhs.value == decided:
                return lhs
            return apply(lhs, right(values))

        return rule.result, eval_logical

    def eval_binary(values: ValueTable) -> TxValue:
        lhs = left(values)
        rhs = right(values)

        try:
            return apply(lhs, rhs)
        except ExecutionError as exc:
            _attach_pos(exc, node.op_pos)
            raise

    return rule.result, eval_binary


def _build_ident(types: TypeTable, node: Ident) -> Built:
    name = node.name
    t = types.get(name)

    if t is None:
        raise UnknownIdentifier(name, node.pos)

    def eval_ident(values: ValueTable) -> TxValue:
        value = values.get(name)

        if not _satisfies(value, t):
            raise UnboundIdentifier(name, node.pos)
        return value

    return t, eval_ident


def _build_selector(types: TypeTable, node: Selector) -> Built:
    target_t, target = _build(types, node.target)
    member_t = resolve_selector(target_t, node.name)

    if member_t is None:
        raise UnknownSelector(node.name, str(target_t), node.name_pos)
    name = node.name

    def eval_selector(values: ValueTable) -> TxValue:
        recv = target(values)

        try:
            return read_member(recv, name, target_t)
        except ExecutionError as exc:
            _attach_pos(exc, node.name_pos)
            raise

    return member_t, eval_selector


def _build_call(types: TypeTable, node: Call) -> Built:
    callee = unwrap_parens(node.callee)

    match callee:
        case Ident(name=name):
            label = name
            ftype = resolve_callable(types.get(name))
            if ftype is None:
                raise UnknownFunction(label, callee.pos)
            _, fn = _build_ident(types, callee)
        case Selector(name=name):
            label = selector_path(callee) or name
            callee_t, fn = _build_selector(types, callee)
            ftype = resolve_callable(callee_t)
            if ftype is None:
                raise UnknownFunction(label, callee.pos)
        case _:
            raise UnknownExpressionType(callee.pos, kind=getattr(callee, "kind", type(callee).__name__))

    if ftype.variadic:
        raise VariadicFunctionsNotSupported(label, node.pos)

    if len(node.args) != len(ftype.params):
        raise ArgumentCountMismatch(label, len(ftype.params), len(node.args), node.pos)

    args: List[Evaluator] = []

    for index, (arg, param_t) in enumerate(zip(node.args, ftype.params), start=1):
        arg_t, arg_ev = _build(types, arg)
        if not assignable_to(arg_t, param_t):
            raise TypeMismatchInArgument(index, arg.pos)
        args.append(arg_ev)

    def eval_call(values: ValueTable) -> TxValue:
        fn_value = fn(values)
        arg_values = [ev(values) for ev in args]

        try:
            return invoke(fn_value, ftype, arg_values, label)
        except ExecutionError as exc:
            _attach_pos(exc, node.pos)
            raise

    return ftype.result, eval_call
