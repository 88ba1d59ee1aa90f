"""Lightweight SQL lexer.

Only as much lexing as the execution layer needs: finding placeholders,
splitting a batch at statement boundaries, and locating the token an engine
error message refers to. It never validates SQL; that is the engine's job.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

# Token kinds
SPACE = "space"
COMMENT = "comment"
STRING = "string"
IDENTIFIER = "identifier"
PARAM = "param"
WORD = "word"
PUNCT = "punct"

_TRIVIA = frozenset({SPACE, COMMENT})

_NEAR_PATTERN = re.compile(r'near "(.*)": syntax error', re.DOTALL)
_UNRECOGNIZED_PATTERN = re.compile(r'unrecognized token: "(.*)"', re.DOTALL)
_NO_SUCH_PATTERN = re.compile(r"no such (?:table|column|function): (\S+)")


@dataclass(frozen=True)
class Token:
    """A lexical token and its character offset in the source text."""

    kind: str
    text: str
    start: int

    @property
    def end(self) -> int:
        return self.start + len(self.text)


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_" or ord(ch) > 127


def _scan_quoted(sql: str, i: int, quote: str) -> int:
    """Return the index just past the quoted run starting at *i*.

    Doubled quotes are escapes. An unterminated run extends to the end of
    the text; the engine reports it.
    """
    n = len(sql)
    j = i + 1
    while j < n:
        if sql[j] == quote:
            if j + 1 < n and sql[j + 1] == quote:
                j += 2
                continue
            return j + 1
        j += 1
    return n


def tokenize(sql: str) -> list[Token]:
    """Split *sql* into tokens covering every character of the input."""
    tokens: list[Token] = []
    i = 0
    n = len(sql)

    while i < n:
        ch = sql[i]
        if ch.isspace():
            j = i + 1
            while j < n and sql[j].isspace():
                j += 1
            kind = SPACE
        elif sql.startswith("--", i):
            j = sql.find("\n", i)
            j = n if j == -1 else j + 1
            kind = COMMENT
        elif sql.startswith("/*", i):
            j = sql.find("*/", i + 2)
            j = n if j == -1 else j + 2
            kind = COMMENT
        elif ch == "'":
            j = _scan_quoted(sql, i, ch)
            kind = STRING
        elif ch in "\"`":
            j = _scan_quoted(sql, i, ch)
            kind = IDENTIFIER
        elif ch == "[":
            j = sql.find("]", i + 1)
            j = n if j == -1 else j + 1
            kind = IDENTIFIER
        elif ch == "?":
            j = i + 1
            while j < n and sql[j].isdigit():
                j += 1
            kind = PARAM
        elif ch in ":@$" and i + 1 < n and _is_word_char(sql[i + 1]):
            j = i + 1
            while j < n and _is_word_char(sql[j]):
                j += 1
            kind = PARAM
        elif _is_word_char(ch):
            j = i + 1
            while j < n and (_is_word_char(sql[j]) or sql[j] == "$"):
                j += 1
            kind = WORD
        else:
            j = i + 1
            kind = PUNCT
        tokens.append(Token(kind, sql[i:j], i))
        i = j

    return tokens


def is_blank(sql: str) -> bool:
    """True when *sql* holds nothing but whitespace and comments."""
    return all(token.kind in _TRIVIA for token in tokenize(sql))


def first_keyword(sql: str) -> str | None:
    """Upper-cased first keyword of *sql*, skipping whitespace and comments."""
    for token in tokenize(sql):
        if token.kind in _TRIVIA:
            continue
        return token.text.upper() if token.kind == WORD else None
    return None


def split_statement(sql: str, complete: Callable[[str], bool]) -> tuple[str, str]:
    """Split *sql* after its first complete statement.

    Candidate boundaries are top-level semicolons; *complete* (the engine's
    lexical completeness check) decides whether a prefix really ends a
    statement, which keeps trigger bodies in one piece.

    Returns:
        ``(statement, remainder)``; remainder is ``""`` when *sql* holds a
        single statement.
    """
    for token in tokenize(sql):
        if token.kind == PUNCT and token.text == ";" and complete(sql[: token.end]):
            return sql[: token.end], sql[token.end :]
    return sql, ""


def _unquote(name: str) -> str:
    if len(name) >= 2 and name[0] in "\"`'[":
        return name[1:-1]
    return name


def find_error_offset(sql: str, message: str) -> int | None:
    """Best-effort character offset of the token an engine error refers to.

    Understands ``near "X": syntax error``, ``unrecognized token: "X"`` and
    ``no such table|column|function: X``. Returns ``None`` when the message
    names nothing that can be found in *sql*.
    """
    match = _NEAR_PATTERN.search(message)
    if match:
        target = match.group(1)
        for token in tokenize(sql):
            if token.kind not in _TRIVIA and token.text == target:
                return token.start
        return None

    match = _UNRECOGNIZED_PATTERN.search(message)
    if match:
        offset = sql.find(match.group(1))
        return offset if offset >= 0 else None

    match = _NO_SUCH_PATTERN.search(message)
    if match:
        target = match.group(1).rsplit(".", 1)[-1].lower()
        for token in tokenize(sql):
            if token.kind in (WORD, IDENTIFIER) and _unquote(token.text).lower() == target:
                return token.start
    return None
