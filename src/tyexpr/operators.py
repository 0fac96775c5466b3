"""Operator tables shared by the builder (typing) and the evaluators (computation).

Each legal ``(operator, operand type)`` pair has exactly one rule; both
operands of a binary operator must have the same type. Anything missing from
the tables is a type error at build time.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from .types import (
    BOOL,
    DOUBLE,
    INT,
    STRING,
    DivisionByZero,
    PrimitiveType,
    TxBool,
    TxDouble,
    TxInt,
    TxString,
    TxType,
    TxValue,
)

BinaryFn = Callable[[TxValue, TxValue], TxValue]
UnaryFn = Callable[[TxValue], TxValue]

SUPPORTED_BINARY: FrozenSet[str] = frozenset({"+", "-", "*", "/", "==", "!=", "&&", "||"})
SUPPORTED_UNARY: FrozenSet[str] = frozenset({"!", "-"})
LOGICAL: FrozenSet[str] = frozenset({"&&", "||"})

_INT_BITS = 64
_INT_MOD = 1 << _INT_BITS
INT_MAX = (1 << (_INT_BITS - 1)) - 1
INT_MIN = -INT_MAX - 1


@dataclass(frozen=True)
class BinaryRule:
    result: PrimitiveType
    apply: BinaryFn
    # logical operators: left operand value that decides the result alone
    short_circuit: Optional[bool] = None


@dataclass(frozen=True)
class UnaryRule:
    result: PrimitiveType
    apply: UnaryFn


def wrap_int(v: int) -> int:
    """Reduce to signed 64-bit two's complement."""
    v %= _INT_MOD
    return v - _INT_MOD if v > INT_MAX else v


def _int_div(a: int, b: int) -> int:
    if b == 0:
        raise DivisionByZero()

    q = abs(a) // abs(b)
    return wrap_int(q if (a < 0) == (b < 0) else -q)


def _float_div(a: float, b: float) -> float:
    if b != 0.0:
        return a / b

    if a == 0.0 or math.isnan(a):
        return math.nan

    return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _ints(fn: Callable[[int, int], int]) -> BinaryFn:
    return lambda l, r: TxInt(wrap_int(fn(l.value, r.value)))


def _doubles(fn: Callable[[float, float], float]) -> BinaryFn:
    return lambda l, r: TxDouble(fn(l.value, r.value))


def _equality(negate: bool) -> BinaryFn:
    return lambda l, r: TxBool((l.value == r.value) != negate)


def _logical_rhs(_l: TxValue, r: TxValue) -> TxValue:
    # only reached when the left operand did not decide the result
    return TxBool(bool(r.value))


BINARY_RULES: Dict[Tuple[str, TxType], BinaryRule] = {
    ("+", INT): BinaryRule(INT, _ints(lambda a, b: a + b)),
    ("-", INT): BinaryRule(INT, _ints(lambda a, b: a - b)),
    ("*", INT): BinaryRule(INT, _ints(lambda a, b: a * b)),
    ("/", INT): BinaryRule(INT, lambda l, r: TxInt(_int_div(l.value, r.value))),
    ("+", DOUBLE): BinaryRule(DOUBLE, _doubles(lambda a, b: a + b)),
    ("-", DOUBLE): BinaryRule(DOUBLE, _doubles(lambda a, b: a - b)),
    ("*", DOUBLE): BinaryRule(DOUBLE, _doubles(lambda a, b: a * b)),
    ("/", DOUBLE): BinaryRule(DOUBLE, _doubles(_float_div)),
    ("+", STRING): BinaryRule(STRING, lambda l, r: TxString(l.value + r.value)),
    ("&&", BOOL): BinaryRule(BOOL, _logical_rhs, short_circuit=False),
    ("||", BOOL): BinaryRule(BOOL, _logical_rhs, short_circuit=True),
}

for _t in (BOOL, INT, DOUBLE, STRING):
    BINARY_RULES[("==", _t)] = BinaryRule(BOOL, _equality(False))
    BINARY_RULES[("!=", _t)] = BinaryRule(BOOL, _equality(True))

UNARY_RULES: Dict[Tuple[str, TxType], UnaryRule] = {
    ("!", BOOL): UnaryRule(BOOL, lambda v: TxBool(not v.value)),
    ("-", INT): UnaryRule(INT, lambda v: TxInt(wrap_int(-v.value))),
    ("-", DOUBLE): UnaryRule(DOUBLE, lambda v: TxDouble(-v.value)),
}


def lookup_binary(op: str, left: TxType, right: TxType) -> Optional[BinaryRule]:
    if not isinstance(left, PrimitiveType) or left != right:
        return None

    return BINARY_RULES.get((op, left))


def lookup_unary(op: str, operand: TxType) -> Optional[UnaryRule]:
    if not isinstance(operand, PrimitiveType):
        return None

    return UNARY_RULES.get((op, operand))
