import pytest

from minish.common import SYNTAX_ERROR
from minish.environment import Environment
from minish.lexer import RedirType, ShellSyntaxError, tokenize
from minish.parser import (
    HEREDOC_PREFIX,
    Command,
    Redirection,
    build_commands,
    parse_line,
)


@pytest.fixture
def env():
    environment = Environment()
    environment.set("FOO=bar")
    environment.set("EMPTY=")
    return environment


def test_single_command(env):
    assert parse_line("echo hi", env, 0) == [Command(argv=["echo", "hi"])]


def test_pipeline_splits_commands(env):
    commands = parse_line("ls -l | grep x | wc", env, 0)
    assert [command.argv for command in commands] == [["ls", "-l"], ["grep", "x"], ["wc"]]


def test_redirections_are_sorted_into_inputs_and_outputs(env):
    (command,) = parse_line("cat < in > out >> app", env, 0)
    assert command.argv == ["cat"]
    assert command.inputs == [Redirection(RedirType.INPUT, "in")]
    assert command.outputs == [
        Redirection(RedirType.TRUNCATE, "out"),
        Redirection(RedirType.APPEND, "app"),
    ]
    assert command.heredocs == []


def test_heredoc_is_listed_as_input_and_heredoc(env):
    (command,) = parse_line("cat << EOF", env, 0)
    assert command.inputs == [Redirection(RedirType.HEREDOC, HEREDOC_PREFIX + "EOF")]
    assert command.heredocs == command.inputs
    assert command.heredocs[0].delimiter == "EOF"


def test_heredoc_target_uses_fixed_prefix(env):
    (command,) = parse_line("cat <<END", env, 0)
    assert command.heredocs[0].target == "/tmp/.0END"


def test_delimiter_is_none_for_other_redirections():
    assert Redirection(RedirType.INPUT, "in").delimiter is None


def test_redirection_order_is_kept_with_heredocs(env):
    (command,) = parse_line("cat < a << b < c", env, 0)
    assert [redir.type for redir in command.inputs] == [
        RedirType.INPUT,
        RedirType.HEREDOC,
        RedirType.INPUT,
    ]
    assert len(command.heredocs) == 1


def test_command_with_only_redirection(env):
    (command,) = parse_line("> out", env, 0)
    assert command.argv == []
    assert command.outputs == [Redirection(RedirType.TRUNCATE, "out")]


def test_redirections_belong_to_their_stage(env):
    first, second = parse_line("a > x | b < y", env, 0)
    assert first.outputs == [Redirection(RedirType.TRUNCATE, "x")]
    assert first.inputs == []
    assert second.inputs == [Redirection(RedirType.INPUT, "y")]
    assert second.outputs == []


def test_variables_expand_except_in_single_quotes(env):
    (command,) = parse_line("echo $FOO '$FOO' \"$FOO\"", env, 0)
    assert command.argv == ["echo", "bar", "$FOO", "bar"]


def test_last_status_expands(env):
    (command,) = parse_line("echo $?", env, 42)
    assert command.argv == ["echo", str(42)]


def test_expanded_operators_are_parsed(env):
    env.set("P=a|b")
    commands = parse_line("echo $P", env, 0)
    assert [command.argv for command in commands] == [["echo", "a"], ["b"]]


@pytest.mark.parametrize("line", ["", "   ", "\t \v", "$NOPE", "$EMPTY  "])
def test_nothing_to_run(env, line):
    assert parse_line(line, env, 0) == []


@pytest.mark.parametrize("line", ["| cat", "cat |", "cat >", "a || b", "a >>> b"])
def test_syntax_errors(env, line):
    with pytest.raises(ShellSyntaxError) as info:
        parse_line(line, env, 0)
    assert info.value.status == SYNTAX_ERROR


def test_build_commands_from_tokens():
    commands = build_commands(tokenize("a b|c>d"))
    assert commands == [
        Command(argv=["a", "b"]),
        Command(argv=["c"], outputs=[Redirection(RedirType.TRUNCATE, "d")]),
    ]


def test_build_commands_rejects_bad_tokens():
    with pytest.raises(ShellSyntaxError):
        build_commands(tokenize("a <"))


def test_word_count_matches_tokens():
    line = "one two three four"
    (command,) = build_commands(tokenize(line))
    assert command.argv == line.split()