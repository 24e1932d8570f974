import pytest

from minish.common import (
    ShellError,
    ShellExit,
    format_error,
    is_wspace,
    only_wspace,
)


def test_format_error_joins_command_and_message():
    assert format_error("cd", "too many arguments") == "cd: too many arguments"


def test_shell_error_str_matches_format_error():
    err = ShellError("export", "not a valid identifier", 1)
    assert str(err) == format_error("export", "not a valid identifier")
    assert err.cmd == "export"
    assert err.msg == "not a valid identifier"


def test_shell_error_default_status_is_failure():
    assert ShellError("pwd", "oops").status == 1


def test_shell_error_keeps_custom_status():
    assert ShellError("ls", "command not found", 127).status == 127


@pytest.mark.parametrize("status", [0, 1, 255])
def test_shell_exit_carries_status(status):
    err = ShellExit(status)
    assert err.status == status


@pytest.mark.parametrize("char", [" ", "\t", "\v", "\f", "\r"])
def test_is_wspace_true(char):
    assert is_wspace(char) is True


@pytest.mark.parametrize("char", ["\n", "a", "", "$", "|"])
def test_is_wspace_false(char):
    assert is_wspace(char) is False


@pytest.mark.parametrize("text", ["", " ", " \t\r ", "\v\f"])
def test_only_wspace_true(text):
    assert only_wspace(text) is True


@pytest.mark.parametrize("text", [" a ", "x", "\t|\t", "\n"])
def test_only_wspace_false(text):
    assert only_wspace(text) is False