"""Running parsed pipelines: here-documents, redirections, builtins and programs."""

from __future__ import annotations

import copy
import os
import signal
import stat
import subprocess
import sys
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass

from .builtins import is_builtin, run_builtin
from .common import (
    ERR_CMD_NOT_FOUND,
    ERR_IS_A_DIRECTORY,
    EXIT_FAILURE,
    EXIT_SUCCESS,
    ShellError,
    ShellExit,
)
from .environment import Environment, ShellState
from .expand import expand_heredoc_line
from .lexer import RedirType
from .parser import Command, Redirection

try:
    import termios
except ImportError:  # pragma: no cover - platforms without a terminal API
    termios = None  # type: ignore[assignment]

Reader = Callable[[str], "str | None"]

HEREDOC_PROMPT = "> "

_OPEN_MODES = {
    RedirType.TRUNCATE: (os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o644),
    RedirType.APPEND: (os.O_CREAT | os.O_APPEND | os.O_WRONLY, 0o644),
    RedirType.INPUT: (os.O_RDONLY, 0),
    RedirType.HEREDOC: (os.O_RDONLY, 0),
}


def _report(exc: ShellError) -> None:
    sys.stderr.write(f"{exc}\n")
    sys.stderr.flush()


def _set_echoctl(enabled: bool) -> None:
    if termios is None or not hasattr(termios, "ECHOCTL"):
        return
    try:
        if not os.isatty(0):
            return
        attrs = termios.tcgetattr(0)
        if enabled:
            attrs[3] |= termios.ECHOCTL
        else:
            attrs[3] &= ~termios.ECHOCTL
        termios.tcsetattr(0, termios.TCSANOW, attrs)
    except (termios.error, OSError):
        pass


def _ignore(signum: int, frame: object) -> None:
    """Signal handler that does nothing; programs started meanwhile get defaults."""


@contextmanager
def _signals_deferred() -> Iterator[None]:
    """Keep the shell alive on SIGINT/SIGQUIT while children run."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    saved = {}
    for name in ("SIGINT", "SIGQUIT"):
        signum = getattr(signal, name, None)
        if signum is not None:
            saved[signum] = signal.signal(signum, _ignore)
    try:
        yield
    finally:
        for signum, handler in saved.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)


def _check_not_directory(path: str) -> bool:
    """Return whether ``path`` exists; raise if it is a directory."""
    try:
        info = os.stat(path)
    except OSError:
        return False
    if stat.S_ISDIR(info.st_mode):
        raise ShellError(path, "is a directory", ERR_IS_A_DIRECTORY)
    return True


def find_executable(name: str, env: Environment) -> str | None:
    """Resolve a command name to the path to run.

    Names containing ``/`` are used as given. Other names are looked up in
    the directories of ``PATH``; None means nothing was found. Raises
    ShellError for an empty name, ``.``/``..``, directories and a missing
    ``PATH``.
    """
    if name in ("", ".", ".."):
        raise ShellError(name, "command not found", ERR_CMD_NOT_FOUND)
    if "/" in name:
        _check_not_directory(name)
        return name
    if "PATH" not in env:
        raise ShellError(name, "No such file or directory", EXIT_FAILURE)
    for directory in (env.get("PATH") or "").split(":"):
        if not directory:
            continue
        candidate = f"{directory}/{name}"
        if _check_not_directory(candidate):
            return candidate
    return None


def open_redirection(redir: Redirection) -> int:
    """Open the file of a redirection and return its descriptor.

    Here-document redirections open their prepared file for reading.
    Raises ShellError naming the file when it cannot be opened.
    """
    flags, mode = _OPEN_MODES[redir.type]
    try:
        return os.open(redir.target, flags, mode)
    except OSError as exc:
        raise ShellError(redir.target, exc.strerror or str(exc), EXIT_FAILURE) from exc


def _open_last(redirs: Sequence[Redirection]) -> int | None:
    """Open every redirection in order and keep only the last descriptor."""
    fd: int | None = None
    for redir in redirs:
        if fd is not None:
            os.close(fd)
            fd = None
        fd = open_redirection(redir)
    return fd


def _write_heredoc(redir: Redirection, state: ShellState, reader: Reader) -> None:
    try:
        os.unlink(redir.target)
    except OSError:
        pass
    try:
        fd = os.open(redir.target, os.O_CREAT | os.O_WRONLY, 0o400)
    except OSError as exc:
        raise ShellError(redir.target, exc.strerror or str(exc), EXIT_FAILURE) from exc
    with os.fdopen(fd, "w") as handle:
        while True:
            line = reader(HEREDOC_PROMPT)
            if line is None or line == redir.delimiter:
                break
            handle.write(expand_heredoc_line(line, state.env, state.last_status) + "\n")


def prepare_heredocs(
    commands: Sequence[Command], state: ShellState, reader: Reader
) -> int:
    """Read the text of every here-document into its temporary file.

    Returns 0 on success and 1 if reading was interrupted or a file could
    not be written. When any here-document exists, the result becomes the
    shell's last status.
    """
    if not any(command.heredocs for command in commands):
        return EXIT_SUCCESS
    status = EXIT_SUCCESS
    try:
        for command in commands:
            for redir in command.heredocs:
                _write_heredoc(redir, state, reader)
    except KeyboardInterrupt:
        sys.stdout.write("\n")
        sys.stdout.flush()
        status = EXIT_FAILURE
    except ShellError as exc:
        _report(exc)
        status = exc.status
    state.last_status = status
    return status


def cleanup_heredocs(commands: Sequence[Command]) -> None:
    """Remove the temporary files of all here-documents."""
    for command in commands:
        for redir in command.heredocs:
            try:
                os.unlink(redir.target)
            except OSError:
                pass


def _run_single_builtin(state: ShellState, command: Command) -> None:
    try:
        out_fd = _open_last(command.outputs)
        try:
            in_fd = _open_last(command.inputs)
        except ShellError:
            if out_fd is not None:
                os.close(out_fd)
            raise
    except ShellError as exc:
        _report(exc)
        state.last_status = exc.status
        return
    if in_fd is not None:
        os.close(in_fd)
    if out_fd is None:
        try:
            run_builtin(state, command.argv, sys.stdout, sys.stderr, False)
        finally:
            sys.stdout.flush()
        return
    with os.fdopen(out_fd, "w") as stdout:
        run_builtin(state, command.argv, stdout, sys.stderr, False)


def _decode_returncode(code: int) -> int:
    sigint = int(signal.SIGINT)
    sigquit = int(getattr(signal, "SIGQUIT", 3))
    if code == -sigint:
        sys.stdout.write("\n")
        sys.stdout.flush()
        return 128 + sigint
    if code == -sigquit:
        sys.stdout.write(f"Quit: {sigquit}\n")
        sys.stdout.flush()
        return 128 + sigquit
    if code < 0:
        return EXIT_SUCCESS
    return code


@dataclass
class _Stage:
    process: subprocess.Popen | None = None
    thread: threading.Thread | None = None
    status: int = EXIT_SUCCESS

    def wait(self) -> int:
        if self.thread is not None:
            self.thread.join()
        if self.process is not None:
            self.status = _decode_returncode(self.process.wait())
        return self.status


def _builtin_worker(
    stage: _Stage, state: ShellState, argv: list[str], out_fd: int | None
) -> None:
    stdout = os.fdopen(out_fd, "w") if out_fd is not None else sys.stdout
    try:
        stage.status = run_builtin(state, argv, stdout, sys.stderr, True)
    except ShellExit as exc:
        stage.status = exc.status
    except OSError:
        pass
    finally:
        try:
            if out_fd is not None:
                stdout.close()
            else:
                stdout.flush()
        except OSError:
            pass


def _child_env(env: Environment) -> dict[str, str]:
    return {
        key: value
        for key, _, value in (entry.partition("=") for entry in env.to_list())
    }


def _start_stage(
    state: ShellState, command: Command, stdin_fd: int | None, stdout_fd: int | None
) -> _Stage:
    stage = _Stage()
    try:
        out_fd = _open_last(command.outputs)
        try:
            in_fd = _open_last(command.inputs)
        except ShellError:
            if out_fd is not None:
                os.close(out_fd)
            raise
    except ShellError as exc:
        _report(exc)
        stage.status = exc.status
        return stage
    argv = command.argv
    if is_builtin(argv):
        if in_fd is not None:
            os.close(in_fd)
        if out_fd is not None:
            thread_fd: int | None = out_fd
        elif stdout_fd is not None:
            thread_fd = os.dup(stdout_fd)
        else:
            thread_fd = None
        stage.thread = threading.Thread(
            target=_builtin_worker,
            args=(stage, copy.deepcopy(state), list(argv), thread_fd),
            daemon=True,
        )
        stage.thread.start()
        return stage
    owned = [fd for fd in (out_fd, in_fd) if fd is not None]
    try:
        if not argv:
            return stage
        path = find_executable(argv[0], state.env)
        if path is None:
            raise ShellError(argv[0], "command not found", ERR_CMD_NOT_FOUND)
        sys.stdout.flush()
        sys.stderr.flush()
        stage.process = subprocess.Popen(
            list(argv),
            executable=path,
            stdin=in_fd if in_fd is not None else stdin_fd,
            stdout=out_fd if out_fd is not None else stdout_fd,
            env=_child_env(state.env),
            close_fds=True,
        )
    except ShellError as exc:
        _report(exc)
        stage.status = exc.status
    except OSError as exc:
        _report(ShellError(argv[0], exc.strerror or str(exc), EXIT_FAILURE))
        stage.status = EXIT_FAILURE
    finally:
        for fd in owned:
            os.close(fd)
    return stage


def _create_pipes(count: int) -> list[tuple[int, int]]:
    pipes: list[tuple[int, int]] = []
    try:
        for _ in range(count):
            pipes.append(os.pipe())
    except OSError as exc:
        for read_end, write_end in pipes:
            os.close(read_end)
            os.close(write_end)
        raise ShellError("pipe", exc.strerror or str(exc), EXIT_FAILURE) from exc
    return pipes


def _run_pipeline(state: ShellState, commands: Sequence[Command]) -> None:
    try:
        pipes = _create_pipes(len(commands) - 1)
    except ShellError as exc:
        _report(exc)
        state.last_status = exc.status
        return
    stages: list[_Stage] = []
    with _signals_deferred():
        try:
            for index, command in enumerate(commands):
                stdin_fd = pipes[index - 1][0] if index > 0 else None
                stdout_fd = pipes[index][1] if index < len(pipes) else None
                stages.append(_start_stage(state, command, stdin_fd, stdout_fd))
        finally:
            for read_end, write_end in pipes:
                os.close(read_end)
                os.close(write_end)
        status = EXIT_SUCCESS
        for stage in stages:
            status = stage.wait()
    state.last_status = status


def execute(state: ShellState, commands: Sequence[Command], reader: Reader) -> int:
    """Run the commands of one pipeline and return the new last status.

    A lone builtin runs in the shell itself, so its changes persist; every
    other stage runs on its own, builtins on a copy of the state. Raises
    ShellExit when a lone ``exit`` ends the shell.
    """
    if not commands:
        return state.last_status
    try:
        if prepare_heredocs(commands, state, reader) != EXIT_SUCCESS:
            return state.last_status
        _set_echoctl(True)
        if len(commands) == 1 and is_builtin(commands[0].argv):
            _run_single_builtin(state, commands[0])
        else:
            _run_pipeline(state, commands)
    finally:
        cleanup_heredocs(commands)
    return state.last_status