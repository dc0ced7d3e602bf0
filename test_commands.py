"""
Tests for shell command jobs and the execution context.
"""

import argparse
import io
import time

import pytest

from cronjobs.commands import ShellCommandCron, CommandError
from cronjobs.context import ExecutionContext


def test_render_command_uses_configured_arguments():
    job = ShellCommandCron(command="echo hello {name}", arguments="name:world")
    assert job.render_command() == "echo hello world"


def test_render_command_prefers_context():
    job = ShellCommandCron(command="backup --target {target} --target-again {target}", arguments="target:db1")
    context = ExecutionContext({"target": "db2"})
    assert job.render_command(context) == "backup --target db2 --target-again db2"


def test_render_command_missing_argument():
    job = ShellCommandCron(command="echo {missing}")
    with pytest.raises(CommandError):
        job.render_command()


def test_execute_streams_output():
    output = io.StringIO()
    job = ShellCommandCron(command="echo hello {name}", arguments="name:world", alias="hello")

    status = job.run(ExecutionContext(output=output))

    assert status == 0
    assert output.getvalue() == "hello world\n"


def test_execute_returns_exit_code():
    job = ShellCommandCron(command="exit 3")
    assert job.run(ExecutionContext(output=io.StringIO())) == 3


def test_execute_timeout():
    job = ShellCommandCron(command="exec sleep 5", timeout=1)
    with pytest.raises(CommandError):
        job.run(ExecutionContext(output=io.StringIO()))


def test_execute_timeout_kills_compound_command():
    job = ShellCommandCron(command="sleep 6; echo done", timeout=1)
    output = io.StringIO()

    started = time.monotonic()
    with pytest.raises(CommandError):
        job.run(ExecutionContext(output=output))

    assert time.monotonic() - started < 3
    assert "done" not in output.getvalue()


def test_context_from_pairs():
    context = ExecutionContext.from_pairs(["target=db2", "expr=a=b"])
    assert context.get_argument("target") == "db2"
    assert context.get_argument("expr") == "a=b"
    assert not context.has_argument("other")


def test_context_from_pairs_rejects_malformed_pair():
    with pytest.raises(ValueError):
        ExecutionContext.from_pairs(["target"])


def test_context_from_namespace():
    namespace = argparse.Namespace(target="db2", dry_run=None)
    context = ExecutionContext.from_namespace(namespace)
    assert context.has_argument("target")
    assert not context.has_argument("dry_run")
