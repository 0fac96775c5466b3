from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple
from typing_extensions import Protocol, TypeAlias, TypeGuard

# ---------- Type Descriptors ----------

@dataclass(frozen=True)
class PrimitiveType:
    name: str
    def __str__(self) -> str:
        return self.name

BOOL = PrimitiveType("bool")
INT = PrimitiveType("int")
DOUBLE = PrimitiveType("double")
STRING = PrimitiveType("string")

PRIMITIVES: Dict[str, PrimitiveType] = {
    "bool": BOOL,
    "int": INT,
    "double": DOUBLE,
    "string": STRING,
}

class ReturnConvention(Enum):
    SINGLE = "single"
    # (value, failure) pair; a non-empty failure aborts evaluation
    VALUE_WITH_FAILURE = "valueWithFailure"

@dataclass(frozen=True)
class FuncType:
    params: Tuple['TxType', ...]
    result: 'TxType'
    convention: ReturnConvention = ReturnConvention.SINGLE
    variadic: bool = False

    def __post_init__(self) -> None:
        # accept any sequence for convenience, store a tuple
        object.__setattr__(self, "params", tuple(self.params))

    @property
    def fallible(self) -> bool:
        return self.convention is ReturnConvention.VALUE_WITH_FAILURE

    def __str__(self) -> str:
        params = [str(p) for p in self.params]

        if self.variadic and params:
            params[-1] = "..." + params[-1]

        ret = str(self.result)
        if self.fallible:
            ret = f"({ret}, error)"

        return f"func({', '.join(params)}) {ret}"

@dataclass(frozen=True)
class StructType:
    """Signature set of a host structured type.

    Two struct types are compatible only when name, fields and methods all
    match; there is no subtyping. ``fields`` and ``methods`` are read-only
    views over copies of what the host passed in.
    """
    name: str
    fields: Mapping[str, 'TxType'] = field(default_factory=dict)
    methods: Mapping[str, FuncType] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "methods", MappingProxyType(dict(self.methods)))

    def __hash__(self) -> int:
        return hash((self.name, frozenset(self.fields.items()), frozenset(self.methods.items())))

    def __str__(self) -> str:
        return self.name

TxType: TypeAlias = PrimitiveType | StructType | FuncType

def assignable_to(actual: TxType, target: TxType) -> bool:
    return actual == target

# ---------- Dynamic Values ----------

@dataclass(frozen=True)
class TxBool:
    value: bool
    @property
    def type(self) -> TxType:
        return BOOL
    def native(self) -> bool:
        return self.value
    def __repr__(self) -> str:
        return "true" if self.value else "false"

@dataclass(frozen=True)
class TxInt:
    value: int
    @property
    def type(self) -> TxType:
        return INT
    def native(self) -> int:
        return self.value
    def __repr__(self) -> str:
        return str(self.value)

@dataclass(frozen=True)
class TxDouble:
    value: float
    @property
    def type(self) -> TxType:
        return DOUBLE
    def native(self) -> float:
        return self.value
    def __repr__(self) -> str:
        return repr(self.value)

@dataclass(frozen=True)
class TxString:
    value: str
    @property
    def type(self) -> TxType:
        return STRING
    def native(self) -> str:
        return self.value
    def __repr__(self) -> str:
        return f'"{self.value}"'

@dataclass(frozen=True, eq=False)
class TxOpaque:
    """Host value reachable only through its declared type.

    Compared by identity of the handle; the core never looks inside it.
    """
    handle: Any
    type: TxType

    def native(self) -> Any:
        return self.handle

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TxOpaque):
            return False
        return self.handle is other.handle and self.type == other.type

    def __hash__(self) -> int:
        return id(self.handle)

    def __repr__(self) -> str:
        return f"<{self.type}>"

TxValue: TypeAlias = TxBool | TxInt | TxDouble | TxString | TxOpaque

_TX_VALUE_TYPES: Tuple[type, ...] = (TxBool, TxInt, TxDouble, TxString, TxOpaque)

def is_tx_value(value: object) -> TypeGuard[TxValue]:
    return isinstance(value, _TX_VALUE_TYPES)

# ---------- Host capabilities ----------

class FunctionHandle(Protocol):
    def invoke(self, args: List[TxValue]) -> Any: ...

class StructHandle(Protocol):
    def get_field(self, name: str) -> Any: ...
    def call_method(self, name: str, args: List[TxValue]) -> Any: ...

# ---------- Exceptions ----------

class TyexprError(Exception):
    pos: Optional[int]

    def __init__(self, message: str, pos: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.pos = pos

    def __str__(self) -> str:
        if self.pos is None:
            return self.message
        return f"{self.pos}: {self.message}"

class ParseError(TyexprError):
    def __init__(self, message: str, line: int, column: int, pos: Optional[int] = None):
        super().__init__(message, pos)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.message}"

# Build errors: static, terminal for one compile attempt

class BuildError(TyexprError):
    pass

class UnsupportedUnaryOperator(BuildError):
    def __init__(self, op: str, pos: Optional[int] = None):
        super().__init__(f"unsupported unary operator: {op}", pos)
        self.op = op

class UnsupportedBinaryOperation(BuildError):
    def __init__(self, op: str, pos: Optional[int] = None):
        super().__init__(f"unsupported binary operation {op}", pos)
        self.op = op

class TypeMismatchInBinaryExpression(BuildError):
    def __init__(self, pos: Optional[int] = None):
        super().__init__("type mismatch in binary expression", pos)

class TypeMismatchInArgument(BuildError):
    def __init__(self, index: int, pos: Optional[int] = None):
        super().__init__(f"type mismatch in argument {index}", pos)
        self.index = index

class ArgumentCountMismatch(BuildError):
    def __init__(self, name: str, expected: int, got: int, pos: Optional[int] = None):
        super().__init__(f"wrong number of arguments in call to {name}: expected {expected}, got {got}", pos)
        self.name = name
        self.expected = expected
        self.got = got

class UnknownIdentifier(BuildError):
    def __init__(self, name: str, pos: Optional[int] = None):
        super().__init__(f"unknown identifier: {name}", pos)
        self.name = name

class UnknownSelector(BuildError):
    def __init__(self, name: str, type_name: str, pos: Optional[int] = None):
        super().__init__(f"unknown selector {name} for {type_name}", pos)
        self.name = name
        self.type_name = type_name

class UnknownFunction(BuildError):
    def __init__(self, name: str, pos: Optional[int] = None):
        super().__init__(f"unknown function {name}", pos)
        self.name = name

class VariadicFunctionsNotSupported(BuildError):
    def __init__(self, name: str, pos: Optional[int] = None):
        super().__init__(f"variadic functions are not supported: {name}", pos)
        self.name = name

class UnknownExpressionType(BuildError):
    def __init__(self, pos: Optional[int] = None, kind: Optional[str] = None):
        super().__init__("unknown expression type", pos)
        self.kind = kind

# Execution errors: abort the current evaluation only

class ExecutionError(TyexprError):
    pass

class FunctionFailed(ExecutionError):
    """An invoked host callable signalled failure.

    Renders as the underlying message alone so hosts see their own error text.
    """
    def __init__(self, message: str, pos: Optional[int] = None, failure: object = None):
        super().__init__(message, pos)
        self.failure = failure

    def __str__(self) -> str:
        return self.message

class UnboundIdentifier(ExecutionError):
    def __init__(self, name: str, pos: Optional[int] = None):
        super().__init__(f"unbound identifier: {name}", pos)
        self.name = name

class DivisionByZero(ExecutionError):
    def __init__(self, pos: Optional[int] = None):
        super().__init__("integer division by zero", pos)
