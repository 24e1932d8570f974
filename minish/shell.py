"""The interactive loop of the shell and its command-line entry point."""

from __future__ import annotations

import os
import signal
import sys
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager

from .common import EXIT_FAILURE, ShellError, ShellExit
from .environment import ShellState, init_env
from .executor import execute
from .parser import parse_line

try:
    import readline
except ImportError:  # pragma: no cover - platforms without readline
    readline = None  # type: ignore[assignment]

try:
    import termios
except ImportError:  # pragma: no cover - platforms without a terminal API
    termios = None  # type: ignore[assignment]

PROMPT = "minishell > "

Reader = Callable[[str], "str | None"]


def _unset_echoctl() -> None:
    if termios is None or not hasattr(termios, "ECHOCTL"):
        return
    try:
        if not os.isatty(0):
            return
        attrs = termios.tcgetattr(0)
        attrs[3] &= ~termios.ECHOCTL
        termios.tcsetattr(0, termios.TCSANOW, attrs)
    except (termios.error, OSError):
        pass


@contextmanager
def _quit_ignored() -> Iterator[None]:
    signum = getattr(signal, "SIGQUIT", None)
    if signum is None or threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signum, signal.SIG_IGN)
    try:
        yield
    finally:
        signal.signal(signum, previous if previous is not None else signal.SIG_DFL)


def _read_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def run_line(state: ShellState, line: str, reader: Reader) -> int:
    """Parse and run one input line; return the new last status.

    Syntax errors are reported and give status 258. Raises ShellExit when
    the line ends the shell.
    """
    try:
        commands = parse_line(line, state.env, state.last_status)
    except ShellError as exc:
        sys.stderr.write(f"{exc}\n")
        state.last_status = exc.status
        return state.last_status
    if not commands:
        return state.last_status
    return execute(state, commands, reader)


def repl(state: ShellState, reader: Reader) -> int:
    """Read and run lines until end of input or ``exit``; return the status."""
    while True:
        _unset_echoctl()
        try:
            line = reader(PROMPT)
        except KeyboardInterrupt:
            sys.stdout.write("\n")
            sys.stdout.flush()
            state.last_status = EXIT_FAILURE
            continue
        if line is None:
            sys.stdout.write("exit\n")
            sys.stdout.flush()
            return state.last_status
        if not line:
            continue
        if readline is not None:
            readline.add_history(line)
        try:
            run_line(state, line, reader)
        except ShellExit as exc:
            sys.stdout.flush()
            return exc.status


def main(argv: Sequence[str] | None = None) -> int:
    """Start the interactive shell; it takes no arguments."""
    args = sys.argv[1:] if argv is None else list(argv)
    if args:
        sys.stderr.write("too many arguments\n")
        return EXIT_FAILURE
    state = ShellState(env=init_env(f"{key}={value}" for key, value in os.environ.items()))
    with _quit_ignored():
        return repl(state, _read_line)


if __name__ == "__main__":
    raise SystemExit(main())