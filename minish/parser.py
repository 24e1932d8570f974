"""Turning a command line into the commands of a pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .common import only_wspace
from .environment import Environment
from .expand import expand_line
from .lexer import RedirType, Token, TokenType, check_syntax, redir_type, tokenize

HEREDOC_PREFIX = "/tmp/.0"


@dataclass(frozen=True)
class Redirection:
    """A redirection of a command to or from ``target``.

    For a here-document the target is the temporary file that will hold its
    text; the delimiter follows the fixed prefix in the file name.
    """

    type: RedirType
    target: str

    @property
    def delimiter(self) -> str | None:
        """The here-document delimiter, or None for other redirections."""
        if self.type is RedirType.HEREDOC:
            return self.target[len(HEREDOC_PREFIX) :]
        return None


@dataclass
class Command:
    """One stage of a pipeline: its words and its redirections in order.

    ``inputs`` holds ``<`` and ``<<`` redirections, ``outputs`` holds ``>``
    and ``>>``; ``heredocs`` repeats the ``<<`` entries for preparation.
    """

    argv: list[str] = field(default_factory=list)
    inputs: list[Redirection] = field(default_factory=list)
    outputs: list[Redirection] = field(default_factory=list)
    heredocs: list[Redirection] = field(default_factory=list)


def build_commands(tokens: Sequence[Token]) -> list[Command]:
    """Group checked tokens into pipeline stages.

    Raises ShellSyntaxError if the tokens do not form a valid pipeline.
    """
    check_syntax(tokens)
    commands = [Command()]
    pending: RedirType | None = None
    for token in tokens:
        current = commands[-1]
        if token.type is TokenType.PIPE:
            commands.append(Command())
            pending = None
        elif token.type is TokenType.REDIR:
            pending = redir_type(token.value)
        else:
            if pending is None:
                current.argv.append(token.value)
            elif pending is RedirType.HEREDOC:
                redirection = Redirection(pending, HEREDOC_PREFIX + token.value)
                current.inputs.append(redirection)
                current.heredocs.append(redirection)
            elif pending is RedirType.INPUT:
                current.inputs.append(Redirection(pending, token.value))
            else:
                current.outputs.append(Redirection(pending, token.value))
            pending = None
    return commands


def parse_line(line: str, env: Environment, last_status: int) -> list[Command]:
    """Expand and parse one input line.

    Returns an empty list when there is nothing to run; raises
    ShellSyntaxError for a malformed line.
    """
    expanded = expand_line(line, env, last_status)
    if only_wspace(expanded):
        return []
    tokens = tokenize(expanded)
    if not tokens:
        return []
    return build_commands(tokens)