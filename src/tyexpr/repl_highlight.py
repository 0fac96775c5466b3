"""prompt_toolkit lexer for live expression highlighting in the REPL."""

from __future__ import annotations

from typing import Callable, List

from lark import UnexpectedCharacters
from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .parser import tokenize

GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "boolean": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "operator": "",
    "punctuation": "",
    "error": "bold ansired",
}

_TOKEN_GROUP = {
    "FUNC": "keyword",
    "MAP": "keyword",
    "RETURN": "keyword",
    "INT": "number",
    "FLOAT": "number",
    "STRING": "string",
    "RAW_STRING": "string",
    "CHAR": "string",
    "IDENT": "identifier",
    "DOT": "punctuation",
    "COMMA": "punctuation",
    "COLON": "punctuation",
    "LPAR": "punctuation",
    "RPAR": "punctuation",
    "LSQB": "punctuation",
    "RSQB": "punctuation",
    "LBRACE": "punctuation",
    "RBRACE": "punctuation",
}


def _group_for(tok_type: str, value: str) -> str:
    if tok_type == "IDENT" and value in ("true", "false"):
        return "boolean"
    return _TOKEN_GROUP.get(tok_type, "operator")


def highlight_line(line: str) -> StyleAndTextTuples:
    """Split one line into (style, text) fragments; unlexable tails are errors."""
    if line.startswith("/"):
        return [("bold", line)]

    fragments: StyleAndTextTuples = []
    cursor = 0

    try:
        for tok in tokenize(line):
            if tok.start_pos > cursor:
                fragments.append(("", line[cursor:tok.start_pos]))
            style = GROUP_STYLE[_group_for(tok.type, str(tok))]
            fragments.append((style, str(tok)))
            cursor = tok.end_pos
    except UnexpectedCharacters as exc:
        if exc.pos_in_stream > cursor:
            fragments.append(("", line[cursor:exc.pos_in_stream]))
        fragments.append((GROUP_STYLE["error"], line[exc.pos_in_stream:]))
        return fragments

    if cursor < len(line):
        fragments.append(("", line[cursor:]))

    return fragments


class ExprLexer(Lexer):
    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines: List[str] = document.lines

        def get_line(lineno: int) -> StyleAndTextTuples:
            try:
                return highlight_line(lines[lineno])
            except IndexError:
                return []

        return get_line
