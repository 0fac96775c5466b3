"""Interactive REPL for tyexpr, powered by prompt_toolkit."""

from __future__ import annotations

import logging
import re
import sys
import traceback
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.shortcuts import clear

from .builder import compile_source
from .host import function_value
from .repl_highlight import ExprLexer
from .symbols import TypeTable, ValueTable
from .types import (
    BOOL,
    INT,
    PRIMITIVES,
    STRING,
    FuncType,
    ReturnConvention,
    TxType,
    TxValue,
    TyexprError,
)
from .utils import configure_logging, debug_py_trace_enabled, set_debug_py_trace

log = logging.getLogger(__name__)

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/let": ("Declare a variable from an expression", "NAME TYPE EXPR"),
    "/vars": ("List declared names and their types", ""),
    "/clear": ("Clear the terminal screen", ""),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/reset": ("Reset the REPL environment", ""),
}

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*$")


def _matches(pattern: str, text: str) -> Tuple[bool, object]:
    try:
        return re.search(pattern, text) is not None, None
    except re.error as exc:
        return False, f"bad pattern: {exc}"


def _builtin_functions() -> Dict[str, Tuple[FuncType, object]]:
    return {
        "matches": (FuncType((STRING, STRING), BOOL, ReturnConvention.VALUE_WITH_FAILURE), _matches),
        "len": (FuncType((STRING,), INT), len),
        "lower": (FuncType((STRING,), STRING), str.lower),
        "upper": (FuncType((STRING,), STRING), str.upper),
        "contains": (FuncType((STRING, STRING), BOOL), lambda s, sub: sub in s),
    }


@dataclass
class ReplState:
    """Symbol tables the REPL compiles and evaluates against."""
    types: TypeTable = field(default_factory=TypeTable)
    values: ValueTable = field(default_factory=ValueTable)

    @classmethod
    def with_builtins(cls) -> 'ReplState':
        funcs = _builtin_functions()
        types = TypeTable({name: ftype for name, (ftype, _) in funcs.items()})
        values = ValueTable({name: function_value(fn, ftype) for name, (ftype, fn) in funcs.items()})
        return cls(types, values)

    def bind(self, name: str, t: TxType, value: TxValue) -> None:
        self.types = self.types.extend({name: t})
        self.values = self.values.extend({name: value})


def repl_eval(text: str, state: ReplState) -> Tuple[TxValue, TxType]:
    """Compile ``text`` against the session tables and evaluate it once."""
    compiled = compile_source(state.types, text)
    return compiled.evaluate(state.values), compiled.type


def _let(arg: str, state: ReplState) -> str:
    parts = arg.split(None, 2)
    if len(parts) != 3:
        raise TyexprError("usage: /let NAME TYPE EXPR")

    name, type_name, expr = parts
    if not _NAME_RE.match(name):
        raise TyexprError(f"invalid name {name!r}")

    declared = PRIMITIVES.get(type_name)
    if declared is None:
        raise TyexprError(f"unknown type {type_name!r}; expected one of {', '.join(PRIMITIVES)}")

    value, actual = repl_eval(expr, state)
    if actual != declared:
        raise TyexprError(f"cannot use {actual} value as {declared}")

    state.bind(name, declared, value)
    return f"{name} : {declared} = {value!r}"


def _vars(state: ReplState) -> List[str]:
    return [f"{name} : {state.types[name]}" for name in sorted(state.types)]


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, _hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )


def handle_slash(line: str, state_box: List[ReplState]) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/py-traceback":
        if arg.lower() in ("on", "1", "true", "yes"):
            set_debug_py_trace(True)
        elif arg.lower() in ("off", "0", "false", "no"):
            set_debug_py_trace(False)
        elif arg == "":
            set_debug_py_trace(not debug_py_trace_enabled())
        else:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        state = "on" if debug_py_trace_enabled() else "off"
        print(f"Python traceback: {state}")
        return True

    if cmd == "/reset":
        state_box[0] = ReplState.with_builtins()
        print("Environment reset.")
        return True

    if cmd == "/vars":
        for row in _vars(state_box[0]):
            print(row)
        return True

    if cmd == "/let":
        try:
            print(_let(arg, state_box[0]))
        except TyexprError as exc:
            _report(exc)
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def _report(exc: TyexprError) -> None:
    print(f"Error: {exc}", file=sys.stderr)

    if debug_py_trace_enabled():
        print("\nPython traceback:", file=sys.stderr)
        traceback.print_exception(exc, file=sys.stderr)


def repl() -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    configure_logging()
    # mutable box so /reset can swap the state
    state_box: List[ReplState] = [ReplState.with_builtins()]

    session: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        lexer=ExprLexer(),
        completer=_SlashCompleter(),
        complete_while_typing=True,
    )

    print("tyexpr repl - Ctrl-D to exit, / for commands")

    while True:
        try:
            text = session.prompt(">>> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        if handle_slash(text, state_box):
            continue

        try:
            value, t = repl_eval(text, state_box[0])
        except TyexprError as exc:
            log.debug("evaluation of %r failed", text, exc_info=True)
            _report(exc)
            continue

        print(f"{value!r} : {t}")
