"""Commands the shell runs itself: echo, cd, pwd, export, unset, env, exit."""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Sequence
from typing import TextIO

from .common import (
    ERR_EXIT_NAN,
    EXIT_FAILURE,
    EXIT_SUCCESS,
    ShellExit,
    format_error,
)
from .environment import INT_MAX, INT_MIN, ShellState, is_valid_key

BUILTINS = ("echo", "cd", "pwd", "export", "unset", "env", "exit")

_ECHO_OPTION = re.compile(r"-n+")
_EXIT_SPACE = "\t\n\v\f\r "


def _report(stderr: TextIO, cmd: str, msg: str) -> int:
    stderr.write(format_error(cmd, msg) + "\n")
    return EXIT_FAILURE


def _report_invalid_key(stderr: TextIO, prefix: str, arg: str) -> int:
    stderr.write(f"{prefix}{arg}': not a valid identifier\n")
    return EXIT_FAILURE


def is_builtin(argv: Sequence[str] | None) -> bool:
    """True if ``argv`` names one of the shell's own commands."""
    return bool(argv) and argv[0] in BUILTINS


def builtin_echo(argv: Sequence[str], stdout: TextIO) -> int:
    """Print the arguments; leading ``-n``, ``-nn``... options drop the newline."""
    args = list(argv[1:])
    skip = 0
    for arg in args:
        if not _ECHO_OPTION.fullmatch(arg):
            break
        skip += 1
    stdout.write(" ".join(args[skip:]))
    if skip == 0:
        stdout.write("\n")
    return EXIT_SUCCESS


def builtin_cd(state: ShellState, argv: Sequence[str], stderr: TextIO) -> int:
    """Change directory and update ``OLDPWD`` and ``PWD`` if they exist."""
    if len(argv) < 2:
        return EXIT_SUCCESS
    if len(argv) > 2:
        return _report(stderr, "cd", "too many arguments")
    target = argv[1]
    try:
        os.chdir(target)
    except OSError as exc:
        return _report(stderr, f"cd: {target}", exc.strerror or str(exc))
    try:
        cwd = os.getcwd()
    except OSError as exc:
        return _report(stderr, "cd", exc.strerror or str(exc))
    env = state.env
    if "OLDPWD" in env:
        previous = env.get("PWD") if "PWD" in env else ""
        env.set(f"OLDPWD={previous or ''}")
    if "PWD" in env:
        env.set(f"PWD={cwd}")
    return EXIT_SUCCESS


def builtin_pwd(argv: Sequence[str], stdout: TextIO, stderr: TextIO) -> int:
    """Print the current working directory."""
    if len(argv) > 1:
        return _report(stderr, "pwd", "too many arguments")
    try:
        cwd = os.getcwd()
    except OSError as exc:
        return _report(stderr, "pwd", exc.strerror or str(exc))
    stdout.write(cwd + "\n")
    return EXIT_SUCCESS


def builtin_env(
    state: ShellState, argv: Sequence[str], stdout: TextIO, stderr: TextIO
) -> int:
    """Print every variable that has a value as ``NAME=value``."""
    if len(argv) > 1:
        return _report(stderr, "env", "too many arguments")
    for key, value in state.env.items():
        if value is not None:
            stdout.write(f"{key}={value}\n")
    return EXIT_SUCCESS


def builtin_export(
    state: ShellState, argv: Sequence[str], stdout: TextIO, stderr: TextIO
) -> int:
    """Define variables, or list them all in ``declare -x`` form."""
    if len(argv) < 2:
        for key, value in state.env.items():
            line = f"declare -x {key}"
            if value is not None:
                line += f'="{value}"'
            stdout.write(line + "\n")
        return EXIT_SUCCESS
    status = EXIT_SUCCESS
    for arg in argv[1:]:
        if not is_valid_key(arg):
            status = _report_invalid_key(stderr, "export: `", arg)
            state.last_status = status
        else:
            state.env.set(arg)
    return status


def builtin_unset(state: ShellState, argv: Sequence[str], stderr: TextIO) -> int:
    """Remove variables; names that are not set and not valid are reported."""
    status = EXIT_SUCCESS
    for arg in argv[1:]:
        if state.env.remove(arg):
            continue
        if not is_valid_key(arg):
            status = _report_invalid_key(stderr, "unset: `", arg)
            state.last_status = status
    return status


def parse_exit_code(text: str) -> int | None:
    """Read an ``exit`` argument as a status byte, or None if it is not numeric.

    Leading whitespace and one sign are allowed; anything after the digits,
    or a value outside the 32-bit range, makes the argument invalid.
    """
    rest = text.lstrip(_EXIT_SPACE)
    sign = 1
    if rest[:1] in ("-", "+"):
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    digits = re.match(r"[0-9]*", rest).group()
    if not digits or len(digits) != len(rest):
        return None
    value = 0
    for char in digits:
        value = value * 10 + int(char)
        if not INT_MIN <= value * sign <= INT_MAX:
            return None
    return (value * sign) & 0xFF


def builtin_exit(
    state: ShellState,
    argv: Sequence[str],
    stdout: TextIO,
    stderr: TextIO,
    in_child: bool,
) -> int:
    """End the shell by raising ShellExit.

    With more than one argument the error is reported and nothing happens.
    """
    if len(argv) > 2:
        return _report(stderr, "exit", "too many arguments")
    if len(argv) == 2:
        code = parse_exit_code(argv[1])
    else:
        code = state.last_status
    if code is None:
        _report(stderr, "exit", "numeric argument required")
        state.last_status = ERR_EXIT_NAN
        raise ShellExit(ERR_EXIT_NAN)
    if not in_child:
        stdout.write("exit\n")
    raise ShellExit(code)


def run_builtin(
    state: ShellState,
    argv: Sequence[str],
    stdout: TextIO,
    stderr: TextIO,
    in_child: bool,
) -> int:
    """Run a builtin and return the status the shell records for it.

    As in the shell this follows, a builtin that returns always counts as
    a success: in the shell process the last status is reset to zero.
    """
    handlers: dict[str, Callable[[], int]] = {
        "echo": lambda: builtin_echo(argv, stdout),
        "cd": lambda: builtin_cd(state, argv, stderr),
        "pwd": lambda: builtin_pwd(argv, stdout, stderr),
        "export": lambda: builtin_export(state, argv, stdout, stderr),
        "unset": lambda: builtin_unset(state, argv, stderr),
        "env": lambda: builtin_env(state, argv, stdout, stderr),
        "exit": lambda: builtin_exit(state, argv, stdout, stderr, in_child),
    }
    handler = handlers.get(argv[0]) if argv else None
    if handler is not None:
        handler()
    if not in_child:
        state.last_status = EXIT_SUCCESS
    return EXIT_SUCCESS