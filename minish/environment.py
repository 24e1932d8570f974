"""The shell's ordered environment table and process-wide state."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

INT_MAX = 2**31 - 1
INT_MIN = -(2**31)


def _is_alpha(char: str) -> bool:
    return "a" <= char <= "z" or "A" <= char <= "Z"


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def is_valid_key(key: str) -> bool:
    """Check that the name before any ``=`` is a valid variable identifier."""
    if not key or not (_is_alpha(key[0]) or key[0] == "_"):
        return False
    name = key.partition("=")[0]
    return all(_is_alpha(c) or _is_digit(c) or c == "_" for c in name[1:])


def make_key(entry: str) -> str:
    """Return the part of ``entry`` before the first ``=``."""
    return entry.partition("=")[0]


def parse_int(text: str) -> int:
    """Parse a leading integer like atoi.

    Leading whitespace and one sign are accepted; parsing stops at the first
    non-digit. Values above the 32-bit maximum give -1, values below the
    32-bit minimum give 0.
    """
    rest = text.lstrip("\t\n\v\f\r ")
    sign = 1
    if rest[:1] in ("-", "+"):
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    value = 0
    for char in rest:
        if not _is_digit(char):
            break
        value = value * 10 + int(char)
        if value * sign > INT_MAX:
            return -1
        if value * sign < INT_MIN:
            return 0
    return value * sign


class Environment:
    """Variables kept in the shell's insertion order.

    A variable may exist without a value (``export NAME``); such a variable
    is listed by ``items`` but left out of ``to_list``.
    """

    def __init__(self) -> None:
        self._entries: list[list] = []

    def _find(self, key: str) -> list | None:
        return next((item for item in self._entries if item[0] == key), None)

    def _insert(self, entry: str) -> None:
        key, sep, value = entry.partition("=")
        item = [key, value if sep else None]
        index = next(
            (i for i, (name, _) in enumerate(self._entries) if name >= entry),
            len(self._entries),
        )
        self._entries.insert(index, item)

    def get(self, key: str) -> str | None:
        """Return the value of ``key``, or None if unset or without a value."""
        item = self._find(key)
        return item[1] if item is not None else None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._find(key) is not None

    def set(self, entry: str) -> None:
        """Add or update a variable from a ``NAME=value`` or ``NAME`` entry.

        An existing variable keeps its value when ``entry`` has no ``=``.
        """
        key, sep, value = entry.partition("=")
        existing = self._find(key)
        if existing is None:
            self._insert(entry)
        elif sep:
            existing[1] = value

    def remove(self, key: str) -> bool:
        """Delete ``key``; return whether it existed."""
        item = self._find(key)
        if item is None:
            return False
        self._entries.remove(item)
        return True

    def items(self) -> Iterator[tuple[str, str | None]]:
        """Yield ``(key, value)`` pairs in order, values possibly None."""
        for key, value in self._entries:
            yield key, value

    def to_list(self) -> list[str]:
        """Return ``NAME=value`` strings for every variable with a value."""
        return [f"{key}={value}" for key, value in self._entries if value is not None]


@dataclass
class ShellState:
    """Everything the running shell carries between command lines."""

    env: Environment = field(default_factory=Environment)
    last_status: int = 0
    pid: int = field(default_factory=os.getpid)


def init_env(entries: Iterable[str]) -> Environment:
    """Build the environment from ``NAME=value`` strings and bump SHLVL."""
    env = Environment()
    for entry in entries:
        env._insert(entry)
    if "SHLVL" in env:
        level = parse_int(env.get("SHLVL") or "") + 1
        env.set(f"SHLVL={level}")
    else:
        env.set("SHLVL=1")
    return env