"""Splitting an expanded command line into words, redirections and pipes."""

from __future__ import annotations

import enum
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .common import SYNTAX_ERROR, ShellError, is_wspace


class TokenType(enum.Enum):
    """Kinds of token the lexer produces."""

    WORD = 1
    REDIR = 2
    PIPE = 3


class RedirType(enum.IntEnum):
    """Redirection operators: ``>``, ``>>``, ``<`` and ``<<``."""

    TRUNCATE = 1
    APPEND = 2
    INPUT = 3
    HEREDOC = 4


_REDIR_OPERATORS = {
    ">": RedirType.TRUNCATE,
    ">>": RedirType.APPEND,
    "<": RedirType.INPUT,
    "<<": RedirType.HEREDOC,
}

_OPERATORS = ("<", ">", "|")
_WORD_STOP = frozenset("'\"<>|")


@dataclass(frozen=True)
class Token:
    """One token of a command line."""

    type: TokenType
    value: str


class ShellSyntaxError(ShellError):
    """The token sequence does not form a valid pipeline."""

    def __init__(self) -> None:
        super().__init__("syntax error", "unexpected tokens", SYNTAX_ERROR)


def redir_type(value: str) -> RedirType | None:
    """Return the redirection an operator string stands for, or None."""
    return _REDIR_OPERATORS.get(value)


def _skip_wspace(line: str, pos: int) -> int:
    while pos < len(line) and is_wspace(line[pos]):
        pos += 1
    return pos


def _pieces(line: str) -> Iterator[tuple[TokenType, str, bool]]:
    """Yield ``(kind, text, ends_token)`` for each lexical piece of ``line``.

    Adjacent pieces that do not end a token are glued together, so that
    ``a"b c"d`` forms a single word.
    """
    pos = _skip_wspace(line, 0)
    end = len(line)
    while pos < end:
        char = line[pos]
        if char in ("'", '"'):
            close = line.find(char, pos + 1)
            if close < 0:
                text, pos = line[pos + 1 :], end
            else:
                text, pos = line[pos + 1 : close], close + 1
            yield TokenType.WORD, text, line[pos : pos + 1] in _OPERATORS
        elif char in ("<", ">"):
            pos += 1
            following = line[pos : pos + 1]
            yield TokenType.REDIR, char, following != char and not is_wspace(following)
        elif char == "|":
            pos = _skip_wspace(line, pos + 1)
            yield TokenType.PIPE, char, True
        elif is_wspace(char):
            pos = _skip_wspace(line, pos)
            yield TokenType.WORD, "", True
        else:
            start = pos
            while pos < end and not is_wspace(line[pos]) and line[pos] not in _WORD_STOP:
                pos += 1
            yield TokenType.WORD, line[start:pos], line[pos : pos + 1] in _OPERATORS


def tokenize(line: str) -> list[Token]:
    """Split ``line`` into tokens, removing quotes and joining adjacent parts."""
    tokens: list[Token] = []
    kind: TokenType | None = None
    parts: list[str] = []
    for piece_kind, text, ends in _pieces(line):
        if kind is None:
            kind = piece_kind
        parts.append(text)
        if ends:
            tokens.append(Token(kind, "".join(parts)))
            kind, parts = None, []
    if kind is not None:
        tokens.append(Token(kind, "".join(parts)))
    return tokens


def check_syntax(tokens: Sequence[Token]) -> None:
    """Raise ShellSyntaxError unless ``tokens`` form a valid pipeline."""
    last: TokenType | None = None
    for token in tokens:
        if last is None and token.type is TokenType.PIPE:
            raise ShellSyntaxError()
        if last is TokenType.REDIR and token.type is not TokenType.WORD:
            raise ShellSyntaxError()
        if last is TokenType.PIPE and token.type is TokenType.PIPE:
            raise ShellSyntaxError()
        if token.type is TokenType.REDIR and redir_type(token.value) is None:
            raise ShellSyntaxError()
        last = token.type
    if last is not TokenType.WORD:
        raise ShellSyntaxError()