from __future__ import annotations

from typing import List

import pytest

from tests.support.harness import BOOL, INT, TxBool, TxInt, TxString, TyexprError, UnknownIdentifier
from tyexpr.repl import ReplState, handle_slash, repl_eval
from tyexpr.repl_highlight import GROUP_STYLE, highlight_line
from tyexpr.utils import DEBUG_PY_TRACE_ENV, debug_py_trace_enabled, log_level_from_env

SCENARIOS = [
    pytest.param('len("hello")', (TxInt(5), "int"), id="builtin-len"),
    pytest.param('upper("go") + lower("LANG")', (TxString("GOlang"), "string"), id="builtin-case"),
    pytest.param('contains("tyexpr", "expr")', (TxBool(True), "bool"), id="builtin-contains"),
    pytest.param('matches("^[0-9]+$", "2024")', (TxBool(True), "bool"), id="builtin-matches"),
    pytest.param("1 + 2 * 3", (TxInt(7), "int"), id="arithmetic"),
]


@pytest.mark.parametrize("source, expected", SCENARIOS)
def test_repl_eval(source: str, expected) -> None:
    value, t = repl_eval(source, ReplState.with_builtins())

    assert value == expected[0]
    assert str(t) == expected[1]


def test_let_binds_for_later_lines(capsys: pytest.CaptureFixture[str]) -> None:
    box: List[ReplState] = [ReplState.with_builtins()]

    assert handle_slash("/let n int 4 * 10", box)
    assert capsys.readouterr().out.strip() == "n : int = 40"

    value, t = repl_eval("n + 2", box[0])
    assert value == TxInt(42)
    assert t == INT


def test_let_rejects_declared_type_mismatch(capsys: pytest.CaptureFixture[str]) -> None:
    box: List[ReplState] = [ReplState.with_builtins()]

    assert handle_slash("/let flag bool 1 + 1", box)
    assert "cannot use int value as bool" in capsys.readouterr().err
    assert "flag" not in box[0].types


def test_let_usage_error(capsys: pytest.CaptureFixture[str]) -> None:
    box: List[ReplState] = [ReplState.with_builtins()]

    assert handle_slash("/let x", box)
    assert "usage: /let NAME TYPE EXPR" in capsys.readouterr().err


def test_vars_lists_bindings(capsys: pytest.CaptureFixture[str]) -> None:
    state = ReplState.with_builtins()
    state.bind("ready", BOOL, TxBool(True))

    assert handle_slash("/vars", [state])
    out = capsys.readouterr().out.splitlines()
    assert "ready : bool" in out
    assert "matches : func(string, string) (bool, error)" in out


def test_reset_drops_bindings(capsys: pytest.CaptureFixture[str]) -> None:
    box: List[ReplState] = [ReplState.with_builtins()]
    handle_slash("/let n int 1", box)

    assert handle_slash("/reset", box)
    with pytest.raises(UnknownIdentifier):
        repl_eval("n", box[0])
    assert "Environment reset." in capsys.readouterr().out


def test_unknown_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert handle_slash("/nope", [ReplState()])
    assert "Unknown command: /nope" in capsys.readouterr().err


def test_plain_lines_are_not_commands() -> None:
    assert handle_slash("1 + 1", [ReplState()]) is False


def test_py_traceback_toggle(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.delenv(DEBUG_PY_TRACE_ENV, raising=False)

    handle_slash("/py-traceback on", [ReplState()])
    assert debug_py_trace_enabled()

    handle_slash("/py-traceback", [ReplState()])
    assert not debug_py_trace_enabled()
    assert capsys.readouterr().out.splitlines() == ["Python traceback: on", "Python traceback: off"]


def test_repl_eval_surfaces_errors() -> None:
    with pytest.raises(TyexprError):
        repl_eval("1 +", ReplState())


def test_highlight_groups() -> None:
    fragments = highlight_line('len("x") + 1.5 == true')

    assert ("ansigreen", '"x"') in fragments
    assert ("ansimagenta", "1.5") in fragments
    assert (GROUP_STYLE["boolean"], "true") in fragments
    assert "".join(text for _style, text in fragments) == 'len("x") + 1.5 == true'


def test_highlight_marks_unlexable_tail() -> None:
    fragments = highlight_line("x + # oops")

    assert fragments[-1] == (GROUP_STYLE["error"], "# oops")
    assert "".join(text for _style, text in fragments) == "x + # oops"


def test_log_level_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TYEXPR_LOG_LEVEL", "debug")
    assert log_level_from_env() == 10

    monkeypatch.setenv("TYEXPR_LOG_LEVEL", "bogus")
    assert log_level_from_env(default=30) == 30


@pytest.mark.parametrize(
    "source",
    [
        pytest.param("08", id="bad-octal"),
        pytest.param("0x_", id="empty-hex"),
    ],
)
def test_malformed_int_is_a_reportable_error(source: str) -> None:
    with pytest.raises(TyexprError):
        repl_eval(source, ReplState())
