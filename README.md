# minish

A small interactive shell. It reads a line, expands variables, splits it
into a pipeline of commands and runs them, with a handful of commands built in.

## Install

    pip install .

## Run

    minish

The shell takes no arguments; given any, it prints `too many arguments` and
exits with status 1. It prints the prompt `minishell > ` and reads commands
until end of input (Ctrl-D), where it prints `exit` and leaves with the status
of the last command. Ctrl-C at the prompt starts a fresh line and sets the
status to 1.

## What it understands

- Words, single quotes (no expansion) and double quotes (`$` expansion only).
  Quoted and unquoted parts written next to each other form one word.
- Variables: `$NAME` and `$?` for the status of the last command. Variables
  are expanded before the line is split, so a value containing spaces gives
  several words.
- Pipes: `ls | grep py | wc -l`
- Redirections: `< file`, `> file`, `>> file`, and here-documents
  `<< END`. A here-document reads lines after the prompt `> ` until the
  delimiter and expands variables in them; its text is kept in a temporary
  file under `/tmp` that is removed once the line has run.
- Builtins: `echo` (with `-n`, `-nn`, ...), `cd`, `pwd`, `export`, `unset`,
  `env`, `exit`. A builtin on its own runs in the shell, so `cd` and `export`
  last; inside a pipeline it runs on a copy of the shell's state.

A syntax error, such as a pipe with nothing before it or a redirection with
no file after it, prints `syntax error: unexpected tokens` and sets the status
to 258. An unknown command sets 127, a directory given as a command sets 126.
`exit` with a non-numeric argument ends the shell with status 255. A builtin
that returns normally leaves the status at 0, even after printing an error.

The environment is inherited from the process that started the shell, and
`SHLVL` is raised by one.

## What it does not do

There are no command lists (`;`, `&&`, `||`), no background jobs, no
subshells, no wildcard expansion and no backslash escapes. File descriptors
other than standard input and output cannot be redirected.

## From Python

The parts can be used on their own:

    from minish.environment import ShellState, init_env
    from minish.parser import parse_line

    state = ShellState(env=init_env(["HOME=/home/me", "PATH=/usr/bin:/bin"]))
    commands = parse_line('echo "$HOME" | cat > out.txt', state.env, state.last_status)

`parse_line` returns a list of `Command` objects, each with `argv`, `inputs`,
`outputs` and `heredocs`, and raises `ShellSyntaxError` for a malformed line.

`minish.shell.run_line(state, line, reader)` parses and runs one line and
returns the new status, and `minish.shell.repl(state, reader)` runs the
read-eval loop over any reader callable that takes a prompt and returns a
line, or `None` at end of input. The reader also supplies here-document
lines. An `exit` raises `minish.common.ShellExit` from `run_line`; `repl`
turns it into its return value.

## Tests

    pip install .[test]
    pytest