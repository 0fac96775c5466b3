"""Embeddable typed expression compiler.

Build once against a table of static types, evaluate many times against
tables of values::

    compiled = compile_source({"x": INT}, "5 + x")
    compiled.evaluate({"x": TxInt(2)})   # TxInt(7)
"""

from .builder import CompiledExpr, Evaluator, build, compile_expr, compile_source
from .host import HostFunction, HostStruct, function_value, struct_value, unbox
from .parser import parse_expr
from .resolver import BoundMethod, box
from .symbols import TypeTable, ValueTable
from .types import (
    BOOL,
    DOUBLE,
    INT,
    STRING,
    ArgumentCountMismatch,
    BuildError,
    DivisionByZero,
    ExecutionError,
    FuncType,
    FunctionFailed,
    FunctionHandle,
    ParseError,
    PrimitiveType,
    ReturnConvention,
    StructHandle,
    StructType,
    TxBool,
    TxDouble,
    TxInt,
    TxOpaque,
    TxString,
    TxType,
    TxValue,
    TyexprError,
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
)

__all__ = [
    "BOOL",
    "DOUBLE",
    "INT",
    "STRING",
    "ArgumentCountMismatch",
    "BoundMethod",
    "BuildError",
    "CompiledExpr",
    "DivisionByZero",
    "Evaluator",
    "ExecutionError",
    "FuncType",
    "FunctionFailed",
    "FunctionHandle",
    "HostFunction",
    "HostStruct",
    "ParseError",
    "PrimitiveType",
    "ReturnConvention",
    "StructHandle",
    "StructType",
    "TxBool",
    "TxDouble",
    "TxInt",
    "TxOpaque",
    "TxString",
    "TxType",
    "TxValue",
    "TyexprError",
    "TypeMismatchInArgument",
    "TypeMismatchInBinaryExpression",
    "TypeTable",
    "UnboundIdentifier",
    "UnknownExpressionType",
    "UnknownFunction",
    "UnknownIdentifier",
    "UnknownSelector",
    "UnsupportedBinaryOperation",
    "UnsupportedUnaryOperator",
    "ValueTable",
    "VariadicFunctionsNotSupported",
    "assignable_to",
    "box",
    "build",
    "compile_expr",
    "compile_source",
    "function_value",
    "parse_expr",
    "struct_value",
    "unbox",
]
