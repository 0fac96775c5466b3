"""Adapters that let plain Python functions and objects act as host capabilities.

The core only talks to ``FunctionHandle``/``StructHandle``; these wrappers
are the usual way to get one.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Mapping

from .types import FuncType, StructType, TxOpaque, TxValue


@dataclass(frozen=True, eq=False)
class HostFunction:
    """Calls ``target`` with unboxed Python arguments.

    For ``VALUE_WITH_FAILURE`` signatures ``target`` returns ``(value, failure)``
    where ``failure`` is None on success.
    """
    target: Callable[..., Any]

    def invoke(self, args: List[TxValue]) -> Any:
        return self.target(*[unbox(a) for a in args])


@dataclass(frozen=True, eq=False)
class HostStruct:
    """Exposes attributes and methods of ``target``; mappings expose their keys as fields."""
    target: Any

    def get_field(self, name: str) -> Any:
        if isinstance(self.target, Mapping):
            return self.target[name]
        return getattr(self.target, name)

    def call_method(self, name: str, args: List[TxValue]) -> Any:
        method = getattr(self.target, name)
        return method(*[unbox(a) for a in args])


def unbox(value: TxValue) -> Any:
    if isinstance(value, TxOpaque):
        handle = value.handle
        if isinstance(handle, (HostFunction, HostStruct)):
            return handle.target
        return handle

    return value.native()


def function_value(fn: Any, ftype: FuncType) -> TxOpaque:
    handle = fn if hasattr(fn, "invoke") else HostFunction(fn)
    return TxOpaque(handle, ftype)


def struct_value(obj: Any, stype: StructType) -> TxOpaque:
    handle = obj if hasattr(obj, "get_field") and hasattr(obj, "call_method") else HostStruct(obj)
    return TxOpaque(handle, stype)
