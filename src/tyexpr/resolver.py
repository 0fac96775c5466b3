from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from .host import function_value, struct_value
from .operators import INT_MAX, INT_MIN
from .types import (
    BOOL,
    DOUBLE,
    INT,
    STRING,
    ExecutionError,
    FuncType,
    FunctionFailed,
    StructHandle,
    StructType,
    TxBool,
    TxDouble,
    TxInt,
    TxOpaque,
    TxString,
    TxType,
    TxValue,
    assignable_to,
    is_tx_value,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class BoundMethod:
    """Method of a structured value, callable through the free-function path."""
    recv: StructHandle
    name: str

    def invoke(self, args: List[TxValue]) -> Any:
        return self.recv.call_method(self.name, args)


# ---------------- compile time ----------------

def resolve_selector(t: TxType, name: str) -> Optional[TxType]:
    if not isinstance(t, StructType):
        return None

    if name in t.fields:
        return t.fields[name]

    return t.methods.get(name)


def resolve_callable(t: Optional[TxType]) -> Optional[FuncType]:
    return t if isinstance(t, FuncType) else None


# ---------------- run time ----------------

def box(native: Any, t: TxType) -> TxValue:
    """Wrap a host result as a dynamic value of type ``t``.

    Raises TypeError when the Python kind cannot carry ``t``.
    """
    if is_tx_value(native):
        if isinstance(native, TxOpaque) and native.handle is None:
            raise TypeError(f"nil value is not {t}")
        if assignable_to(native.type, t):
            return native
        raise TypeError(f"value of type {native.type} is not {t}")

    if t == BOOL and isinstance(native, bool):
        return TxBool(native)

    if t == INT and isinstance(native, int) and not isinstance(native, bool):
        if not INT_MIN <= native <= INT_MAX:
            raise TypeError(f"value {native} overflows int")
        return TxInt(native)

    if t == DOUBLE and isinstance(native, (int, float)) and not isinstance(native, bool):
        return TxDouble(float(native))

    if t == STRING and isinstance(native, str):
        return TxString(native)

    if isinstance(t, StructType) and native is not None:
        return struct_value(native, t)

    if isinstance(t, FuncType) and native is not None:
        return function_value(native, t)

    raise TypeError(f"value of type {type(native).__name__} is not {t}")


def _host_result(native: Any, t: TxType, what: str) -> TxValue:
    try:
        return box(native, t)
    except TypeError as exc:
        raise FunctionFailed(f"{what} returned {exc}", failure=exc) from exc


def _has_failure(failure: Any) -> bool:
    if failure is None or failure is False:
        return False

    if isinstance(failure, str):
        return failure != ""

    return True


def read_member(recv: TxValue, name: str, t: StructType) -> TxValue:
    handle = recv.handle if isinstance(recv, TxOpaque) else None
    if handle is None:
        raise FunctionFailed(f"nil {t} has no member {name}")

    if name not in t.fields:
        return TxOpaque(BoundMethod(handle, name), t.methods[name])

    try:
        native = handle.get_field(name)
    except ExecutionError:
        raise
    except Exception as exc:
        raise FunctionFailed(str(exc), failure=exc) from exc

    return _host_result(native, t.fields[name], f"field {t}.{name}")


def invoke(fn: TxValue, t: FuncType, args: Sequence[TxValue], name: str = "function") -> TxValue:
    if not isinstance(fn, TxOpaque) or fn.handle is None:
        raise FunctionFailed(f"{name} is not callable")

    try:
        out = fn.handle.invoke(list(args))
    except ExecutionError:
        raise
    except Exception as exc:
        log.debug("host function %s raised %r", name, exc)
        raise FunctionFailed(str(exc), failure=exc) from exc

    if t.fallible:
        if not (isinstance(out, tuple) and len(out) == 2):
            raise FunctionFailed(f"{name} must return a (value, failure) pair")

        out, failure = out

        if _has_failure(failure):
            raise FunctionFailed(str(failure), failure=failure)

    return _host_result(out, t.result, name)
