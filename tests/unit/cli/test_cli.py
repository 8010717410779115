import os
import sys
import textwrap

import pytest
from click.testing import CliRunner

from stackwrapper import constants
from stackwrapper.cli.stackwrapper import cancel_on_signals
from stackwrapper.cli.stackwrapper import stackwrapper as cli
from stackwrapper.cloudformation import orchestrator
from tests.unit.fakes import ROLLED_BACK, FakeCloudFormationClient


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def client(monkeypatch):
    client = FakeCloudFormationClient()
    monkeypatch.setattr(orchestrator, "default_client_provider", lambda spec: client)
    return client


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "template.yml").write_text("Resources: {}\n")
    return tmp_path


def write_job(workspace, content: str) -> str:
    path = workspace / "job.yml"
    path.write_text(textwrap.dedent(content))
    return str(path)


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip() == constants.VERSION


def test_help(runner):
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "Usage: stackwrapper" in result.output


def test_regions(runner):
    result = runner.invoke(cli, ["regions", "--format", "plain"])
    assert result.exit_code == 0
    assert "us-east-1=cloudformation.us-east-1.amazonaws.com" in result.output


def test_config_show(runner):
    result = runner.invoke(cli, ["config", "show", "--format", "plain"])
    assert result.exit_code == 0
    assert "STACK_POLL_INTERVAL=" in result.output
    assert "STACK_OUTPUT_FILE=" in result.output


def test_create(runner, client, workspace):
    client.outputs["demo"] = {"Url": "http://example.com"}
    job = write_job(
        workspace,
        """
        stacks:
          - name: demo
            template: template.yml
            output_prefix: web
        """,
    )

    result = runner.invoke(cli, ["create", "-f", job, "-w", str(workspace)])

    assert result.exit_code == 0, result.output
    assert client.requests == [("create", "demo")]
    content = (workspace / "aws_stack_output.properties").read_text()
    assert content.startswith("#AWS properties\n")
    assert "demo_Url=http\\://example.com" in content
    assert "web_Url=http\\://example.com" in content
    assert "demo_stack_id=" in content


def test_create_custom_output_file(runner, client, workspace):
    job = write_job(workspace, "stacks: [{name: demo, template: template.yml}]\n")

    result = runner.invoke(
        cli, ["create", "-f", job, "-w", str(workspace), "--output-file", "out/stacks.properties"]
    )

    assert result.exit_code == 0, result.output
    assert (workspace / "out" / "stacks.properties").exists()


def test_create_failure(runner, client, workspace):
    client.create_statuses["second"] = ROLLED_BACK
    job = write_job(
        workspace,
        """
        stacks:
          - name: first
            template: template.yml
          - name: second
            template: template.yml
        """,
    )

    result = runner.invoke(cli, ["create", "-f", job, "-w", str(workspace)])

    assert result.exit_code == 1
    assert "stack processing failed" in result.output
    assert client.requests == [("create", "first"), ("create", "second"), ("delete", "first")]
    assert not (workspace / "aws_stack_output.properties").exists()


def test_create_invalid_job(runner, client, workspace):
    job = write_job(workspace, "stacks: [{name: demo}]\n")

    result = runner.invoke(cli, ["create", "-f", job, "-w", str(workspace)])

    assert result.exit_code == 1
    assert "empty template file" in result.output
    assert client.requests == []


def test_create_rejects_auto_delete_stacks(runner, client, workspace):
    job = write_job(
        workspace,
        """
        stacks:
          - name: kept
            template: template.yml
          - name: temporary
            template: template.yml
            mode: create_and_delete
        """,
    )

    result = runner.invoke(cli, ["create", "-f", job, "-w", str(workspace)])

    assert result.exit_code == 1
    assert "use the wrap command" in result.output
    assert "temporary" in result.output
    assert client.requests == []


def test_delete(runner, client, workspace):
    client.add_stack("old")
    job = write_job(workspace, "stacks: [{name: old, mode: delete_only}]\n")

    result = runner.invoke(cli, ["delete", "-f", job, "-w", str(workspace)])

    assert result.exit_code == 0, result.output
    assert client.requests == [("delete", "old")]


def test_delete_failure(runner, client, workspace):
    client.add_stack("old")
    client.delete_statuses["old"] = ["DELETE_FAILED"]
    job = write_job(workspace, "stacks: [{name: old, mode: delete_only}]\n")

    result = runner.invoke(cli, ["delete", "-f", job, "-w", str(workspace)])

    assert result.exit_code == 1


def test_wrap(runner, client, workspace):
    client.outputs["demo"] = {"Url": "http://example.com"}
    job = write_job(workspace, "stacks: [{name: demo, template: template.yml, mode: create_and_delete}]\n")
    check = "import os, sys; sys.exit(0 if os.environ.get('demo_Url') == 'http://example.com' else 3)"

    result = runner.invoke(
        cli, ["wrap", "-f", job, "-w", str(workspace), "--", sys.executable, "-c", check]
    )

    assert result.exit_code == 0, result.output
    assert client.requests == [("create", "demo"), ("delete", "demo")]


def test_wrap_propagates_exit_code(runner, client, workspace):
    job = write_job(workspace, "stacks: [{name: demo, template: template.yml, mode: create_and_delete}]\n")

    result = runner.invoke(
        cli, ["wrap", "-f", job, "-w", str(workspace), "--", sys.executable, "-c", "exit(7)"]
    )

    assert result.exit_code == 7
    # stacks are deleted even if the command fails
    assert client.requests == [("create", "demo"), ("delete", "demo")]


def test_cancel_on_signals_restores_handlers():
    import signal

    previous = signal.getsignal(signal.SIGTERM)

    with cancel_on_signals() as cancel:
        assert signal.getsignal(signal.SIGTERM) is not previous
        os.kill(os.getpid(), signal.SIGTERM)
        assert cancel.wait(5)

    assert signal.getsignal(signal.SIGTERM) is previous


def test_signal_handler_only_sets_the_event(monkeypatch, caplog):
    import signal

    from stackwrapper.cli.console import console

    def _fail(*args, **kwargs):
        raise AssertionError("the signal handler must not print")

    monkeypatch.setattr(console, "print", _fail)

    with cancel_on_signals() as cancel:
        os.kill(os.getpid(), signal.SIGINT)
        assert cancel.wait(5)

    assert "Stopped waiting for stacks" in caplog.text
