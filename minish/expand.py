"""Expansion of ``$NAME`` and ``$?`` in command lines and here-documents."""

from __future__ import annotations

import re

from .common import is_wspace
from .environment import Environment

_NAME = re.compile(r"[A-Za-z0-9_]*", re.ASCII)


def key_length(text: str) -> int:
    """Length of the variable name at the start of ``text`` (after ``$``).

    ``?`` counts as a one-character name; a leading digit gives zero.
    """
    if text.startswith("?"):
        return 1
    if text[:1].isascii() and text[:1].isdigit():
        return 0
    return _NAME.match(text).end()


def lookup(key: str, env: Environment, last_status: int) -> str:
    """Return the text a variable expands to; unset variables give ``""``."""
    if key.startswith("?"):
        return str(last_status)
    value = env.get(key)
    return value if value is not None else ""


def _starts_variable(line: str, pos: int) -> bool:
    following = line[pos + 1 : pos + 2]
    if following in ("", "'", '"'):
        return False
    return not is_wspace(following)


def _expand(line: str, env: Environment, last_status: int, quotes: bool) -> str:
    out: list[str] = []
    in_single = in_double = False
    pos = 0
    while pos < len(line):
        char = line[pos]
        if quotes:
            if char == '"':
                in_double = not in_double
            if not in_double and char == "'":
                in_single = not in_single
        if char == "$" and not in_single and _starts_variable(line, pos):
            length = key_length(line[pos + 1 :])
            out.append(lookup(line[pos + 1 : pos + 1 + length], env, last_status))
            pos += length + 1
        else:
            out.append(char)
            pos += 1
    return "".join(out)


def expand_line(line: str, env: Environment, last_status: int) -> str:
    """Expand variables in a command line, leaving single-quoted text alone."""
    return _expand(line, env, last_status, quotes=True)


def expand_heredoc_line(line: str, env: Environment, last_status: int) -> str:
    """Expand variables in a here-document line; quotes have no effect."""
    return _expand(line, env, last_status, quotes=False)