from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Optional, TypeVar, Union

from .resolver import box
from .types import TxType, TxValue, TyexprError

V = TypeVar("V")


class _Table(Mapping[str, V]):
    """Read-only name table. Built once per compile or run call."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Mapping[str, V]] = None, **kwargs: V):
        merged: Dict[str, V] = dict(entries or {})
        merged.update(kwargs)
        self._entries = merged

    def __getitem__(self, name: str) -> V:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        body = ", ".join(f"{k}: {v!r}" for k, v in self._entries.items())
        return f"{type(self).__name__}({{{body}}})"

    def extend(self, entries: Optional[Mapping[str, V]] = None, **kwargs: V):
        """Return a new table with extra (or replaced) bindings."""
        merged: Dict[str, V] = dict(self._entries)
        merged.update(entries or {})
        merged.update(kwargs)
        return type(self)(merged)


class TypeTable(_Table[TxType]):
    """Compile-time table: name -> static type."""


class ValueTable(_Table[TxValue]):
    """Run-time table: name -> dynamic value.

    Entries are not checked here; an entry that breaks the compile-time
    contract surfaces as ``UnboundIdentifier`` when an expression reads it.
    """

    @classmethod
    def from_natives(cls, types: Mapping[str, TxType], natives: Mapping[str, Any]) -> 'ValueTable':
        """Box plain Python values using the declared types in ``types``."""
        entries: Dict[str, TxValue] = {}

        for name, native in natives.items():
            if name not in types:
                raise TyexprError(f"no declared type for '{name}'")
            entries[name] = box(native, types[name])

        return cls(entries)


TypesLike = Union[TypeTable, Mapping[str, TxType]]
ValuesLike = Union[ValueTable, Mapping[str, TxValue]]


def as_type_table(types: Optional[TypesLike]) -> TypeTable:
    if isinstance(types, TypeTable):
        return types
    return TypeTable(types)


def as_value_table(values: Optional[ValuesLike]) -> ValueTable:
    if isinstance(values, ValueTable):
        return values
    return ValueTable(values)
