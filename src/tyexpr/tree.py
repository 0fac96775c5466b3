"""Expression tree node variants consumed by the builder.

Every node carries ``pos``, the 1-based source offset the parser attached to
it. Nodes are immutable; the builder never rewrites them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Union
from typing_extensions import TypeAlias


@dataclass(frozen=True)
class Literal:
    """``kind`` is one of ``bool``, ``int``, ``double``, ``string``, ``char``."""
    kind: str
    value: Union[bool, int, float, str]
    pos: int


@dataclass(frozen=True)
class Ident:
    name: str
    pos: int


@dataclass(frozen=True)
class Unary:
    op: str
    operand: Node
    pos: int


@dataclass(frozen=True)
class Binary:
    op: str
    left: Node
    right: Node
    op_pos: int

    @property
    def pos(self) -> int:
        return self.left.pos


@dataclass(frozen=True)
class Paren:
    inner: Node
    pos: int


@dataclass(frozen=True)
class Selector:
    target: Node
    name: str
    name_pos: int

    @property
    def pos(self) -> int:
        return self.target.pos


@dataclass(frozen=True)
class Call:
    callee: Node
    args: Tuple[Node, ...]

    @property
    def pos(self) -> int:
        return self.callee.pos


@dataclass(frozen=True)
class Unsupported:
    """A construct the parser recognised but the builder never compiles.

    ``kind`` names it (``index``, ``slice``, ``type_assert``, ``func_lit``,
    ``func_type``, ``star``) and ``children`` keeps sub-expressions for tools
    that walk the tree.
    """
    kind: str
    pos: int
    children: Tuple[Node, ...] = ()


Node: TypeAlias = Union[Literal, Ident, Unary, Binary, Paren, Selector, Call, Unsupported]


def tree_children(node: Node) -> List[Node]:
    match node:
        case Unary(operand=operand):
            return [operand]
        case Binary(left=left, right=right):
            return [left, right]
        case Paren(inner=inner):
            return [inner]
        case Selector(target=target):
            return [target]
        case Call(callee=callee, args=args):
            return [callee, *args]
        case Unsupported(children=children):
            return list(children)
        case _:
            return []


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal."""
    yield node

    for child in tree_children(node):
        yield from walk(child)


def unwrap_parens(node: Node) -> Node:
    while isinstance(node, Paren):
        node = node.inner

    return node


def free_identifiers(node: Node) -> List[str]:
    """Names an expression reads from its symbol table, in first-seen order.

    Selector names are members, not free identifiers, so only the leftmost
    operand of a chain is reported.
    """
    seen: List[str] = []

    for n in walk(node):
        if isinstance(n, Ident) and n.name not in seen:
            seen.append(n.name)

    return seen


def selector_path(node: Node) -> Optional[str]:
    """Dotted rendering of an identifier/selector chain, else None."""
    match unwrap_parens(node):
        case Ident(name=name):
            return name
        case Selector(target=target, name=name):
            head = selector_path(target)
            return None if head is None else f"{head}.{name}"
        case _:
            return None


def render(node: Node) -> str:
    """Compact source-like rendering, used in REPL and debug logs."""
    match node:
        case Literal(kind="string" | "char", value=value):
            return repr(value)
        case Literal(kind="bool", value=value):
            return "true" if value else "false"
        case Literal(value=value):
            return str(value)
        case Ident(name=name):
            return name
        case Unary(op=op, operand=operand):
            return f"{op}{render(operand)}"
        case Binary(op=op, left=left, right=right):
            return f"{render(left)} {op} {render(right)}"
        case Paren(inner=inner):
            return f"({render(inner)})"
        case Selector(target=target, name=name):
            return f"{render(target)}.{name}"
        case Call(callee=callee, args=args):
            return f"{render(callee)}({', '.join(render(a) for a in args)})"
        case Unsupported(kind=kind):
            return f"<{kind}>"
        case _:
            return repr(node)
