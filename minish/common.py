"""Errors, exit statuses and whitespace helpers shared by the shell."""

from __future__ import annotations

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
ERR_IS_A_DIRECTORY = 126
ERR_CMD_NOT_FOUND = 127
ERR_EXIT_NAN = 255
SYNTAX_ERROR = 258

_WSPACE = frozenset(" \t\v\f\r")


def format_error(cmd: str, msg: str) -> str:
    """Return an error line in the shell's ``cmd: msg`` form."""
    return f"{cmd}: {msg}"


class ShellError(Exception):
    """A reported error that sets the shell's last exit status."""

    def __init__(self, cmd: str, msg: str, status: int = EXIT_FAILURE) -> None:
        super().__init__(format_error(cmd, msg))
        self.cmd = cmd
        self.msg = msg
        self.status = status

    def __str__(self) -> str:
        return format_error(self.cmd, self.msg)


class ShellExit(Exception):
    """Raised to end the shell (or a child) with the given status."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def is_wspace(char: str) -> bool:
    """True for space, tab, vertical tab, form feed and carriage return."""
    return char in _WSPACE


def only_wspace(text: str) -> bool:
    """True if every character of ``text`` is whitespace (or it is empty)."""
    return all(is_wspace(char) for char in text)