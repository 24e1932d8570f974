import pytest

from minish.environment import (
    Environment,
    ShellState,
    init_env,
    is_valid_key,
    make_key,
    parse_int,
)


@pytest.mark.parametrize("key", ["HOME", "_x1", "A=1=2", "A=", "a_b_C9"])
def test_is_valid_key_accepts(key):
    assert is_valid_key(key) is True


@pytest.mark.parametrize("key", ["1A", "", "=x", "A-B=1", "A B", "$X"])
def test_is_valid_key_rejects(key):
    assert is_valid_key(key) is False


@pytest.mark.parametrize(
    "entry, key",
    [("KEY=VAL", "KEY"), ("KEY", "KEY"), ("A=b=c", "A"), ("X=", "X")],
)
def test_make_key(entry, key):
    assert make_key(entry) == key


@pytest.mark.parametrize(
    "text, value",
    [
        ("42", 42),
        ("  -17", -17),
        ("+5abc", 5),
        ("abc", 0),
        ("", 0),
        ("2147483647", 2147483647),
        ("-2147483648", -2147483648),
        ("2147483648", -1),
        ("-2147483649", 0),
    ],
)
def test_parse_int(text, value):
    assert parse_int(text) == value


def test_set_and_get():
    env = Environment()
    env.set("HOME=/home/user")
    assert env.get("HOME") == "/home/user"
    assert "HOME" in env


def test_get_missing_is_none():
    env = Environment()
    assert env.get("NOPE") is None
    assert "NOPE" not in env


def test_set_without_value_is_present_but_not_listed():
    env = Environment()
    env.set("FLAG")
    assert "FLAG" in env
    assert env.get("FLAG") is None
    assert env.to_list() == []
    assert list(env.items()) == [("FLAG", None)]


def test_set_existing_without_equals_keeps_value():
    env = Environment()
    env.set("A=1")
    env.set("A")
    assert env.get("A") == "1"


def test_set_existing_overwrites_value():
    env = Environment()
    env.set("A=1")
    env.set("A=2")
    assert env.get("A") == "2"
    assert len(list(env.items())) == 1


def test_remove():
    env = Environment()
    env.set("A=1")
    assert env.remove("A") is True
    assert "A" not in env
    assert env.remove("A") is False


def test_items_are_ordered_by_name():
    env = Environment()
    for entry in ["B=2", "C=3", "A=1"]:
        env.set(entry)
    assert [key for key, _ in env.items()] == ["A", "B", "C"]


def test_to_list_round_trips_entries():
    env = Environment()
    entries = ["A=1", "B=two", "C="]
    for entry in entries:
        env.set(entry)
    assert sorted(env.to_list()) == sorted(entries)


def test_init_env_adds_shlvl_when_missing():
    env = init_env(["HOME=/home/user"])
    assert env.get("SHLVL") == "1"
    assert env.get("HOME") == "/home/user"


def test_init_env_increments_shlvl():
    env = init_env(["SHLVL=5"])
    assert env.get("SHLVL") == "6"


def test_init_env_non_numeric_shlvl_restarts():
    env = init_env(["SHLVL=abc"])
    assert env.get("SHLVL") == "1"


def test_shell_state_defaults():
    state = ShellState()
    assert state.last_status == 0
    assert list(state.env.items()) == []