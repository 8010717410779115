import contextlib
import json
import logging
import os
import signal
import subprocess
import sys
import threading
from typing import Iterator, List, Tuple

import click

from stackwrapper import __version__, config

from .console import console
from .exceptions import CLIError

LOG = logging.getLogger(__name__)


def _setup_cli_debug():
    from stackwrapper.logging.setup import setup_logging_for_cli

    config.DEBUG = True
    os.environ["DEBUG"] = "1"

    setup_logging_for_cli(logging.DEBUG if config.DEBUG else logging.INFO)


@contextlib.contextmanager
def cancel_on_signals(signals=(signal.SIGINT, signal.SIGTERM)) -> Iterator[threading.Event]:
    """
    Installs handlers for the given signals that set the returned event instead of interrupting the process, so that
    waits for stacks end in an orderly way. The previous handlers are restored on exit.
    """
    cancel = threading.Event()

    # only sets the event, the poll loops log the interruption
    def _handler(signum, frame):
        cancel.set()

    previous = {}
    for sig in signals:
        try:
            previous[sig] = signal.signal(sig, _handler)
        except ValueError:
            # signal handlers can only be installed in the main thread
            LOG.debug("Unable to install handler for signal %s", sig)
    try:
        yield cancel
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        if cancel.is_set():
            LOG.warning("Stopped waiting for stacks after an interruption signal")


def _load_job(job_file: str):
    from stackwrapper.cloudformation.exceptions import ConfigurationError
    from stackwrapper.cloudformation.jobs import load_job_file

    try:
        return load_job_file(job_file)
    except ConfigurationError as e:
        raise CLIError(str(e)) from e


def _new_orchestrator(workspace: str, cancel: threading.Event):
    from stackwrapper.cloudformation.orchestrator import StackOrchestrator
    from stackwrapper.utils.environment import BuildEnvironment

    return StackOrchestrator(
        BuildEnvironment.from_os_environ({"WORKSPACE": os.path.abspath(workspace)}),
        workspace=workspace,
        cancel=cancel,
    )


@click.group(
    name="stackwrapper",
    help="Create and tear down AWS CloudFormation stacks as part of a build",
)
@click.version_option(version=__version__, message="%(version)s")
@click.option("--debug", is_flag=True, help="Enable CLI debugging mode")
@click.option("-p", "--profile", type=str, help="Set the configuration profile")
def stackwrapper(debug, profile):
    if profile:
        os.environ["CONFIG_PROFILE"] = profile
    if debug:
        _setup_cli_debug()
    else:
        from stackwrapper.logging.setup import setup_logging_from_config

        setup_logging_from_config()


@stackwrapper.group(name="config", help="Inspect your stackwrapper configuration")
def stackwrapper_config():
    pass


@stackwrapper_config.command(name="show", help="Print the current stackwrapper config values")
@click.option("--format", type=click.Choice(["table", "plain", "json"]), default="table")
def cmd_config_show(format):
    items = config.collect_config_items()
    if format == "table":
        print_table(["Key", "Value"], [(key, str(value)) for key, value in items])
    elif format == "json":
        console.print(json.dumps(dict(items)))
    else:
        for key, value in items:
            console.print(f"{key}={value}")


@stackwrapper.command(name="regions", help="List the AWS regions stacks can be created in")
@click.option("--format", type=click.Choice(["table", "plain", "json"]), default="table")
def cmd_regions(format):
    from stackwrapper.aws.regions import Region

    rows = [(region.short_name, region.readable_name, region.endpoint) for region in Region]
    if format == "table":
        print_table(["Region", "Name", "Endpoint"], rows)
    elif format == "json":
        console.print(json.dumps({short_name: endpoint for short_name, _, endpoint in rows}))
    else:
        for short_name, _, endpoint in rows:
            console.print(f"{short_name}={endpoint}")


@stackwrapper.command(
    name="create",
    help="Create the stacks of a job and store their outputs in a properties file",
)
@click.option("-f", "--job-file", required=True, type=click.Path(dir_okay=False), help="The job file")
@click.option(
    "-w",
    "--workspace",
    default=".",
    type=click.Path(file_okay=False),
    help="Directory template paths are relative to, and the outputs file is written to",
)
@click.option(
    "-o",
    "--output-file",
    default=None,
    help="Name of the outputs properties file (relative to the workspace)",
)
def cmd_create(job_file: str, workspace: str, output_file: str):
    from stackwrapper.cloudformation.exceptions import ConfigurationError
    from stackwrapper.cloudformation.models import StackMode
    from stackwrapper.constants import OUTPUT_FILE_COMMENT
    from stackwrapper.utils.files import write_properties

    definitions = _load_job(job_file)
    auto_delete = [d.name for d in definitions if d.mode is StackMode.CREATE_AND_DELETE]
    if auto_delete:
        raise CLIError(
            "the create command keeps the stacks it creates, use the wrap command for create_and_delete "
            f"stacks: {', '.join(auto_delete)}"
        )

    with cancel_on_signals() as cancel:
        orchestrator = _new_orchestrator(workspace, cancel)
        try:
            session = orchestrator.run(definitions)
        except ConfigurationError as e:
            raise CLIError(str(e)) from e

    if not session.success:
        raise CLIError(
            "stack processing failed, see the log for details", session.leftover_stacks
        )

    if session.outputs:
        output_path = os.path.join(workspace, output_file or config.STACK_OUTPUT_FILE)
        write_properties(output_path, session.outputs, comment=OUTPUT_FILE_COMMENT)
    console.print(f"[green]:heavy_check_mark:[/green] created {len(session.controllers)} stack(s)")


@stackwrapper.command(
    name="wrap",
    help="Create the stacks of a job, run a command with their outputs as environment variables, and "
    "delete the stacks marked for deletion afterwards",
    context_settings={"ignore_unknown_options": True},
)
@click.option("-f", "--job-file", required=True, type=click.Path(dir_okay=False), help="The job file")
@click.option(
    "-w",
    "--workspace",
    default=".",
    type=click.Path(file_okay=False),
    help="Directory template paths are relative to, and the command is run in",
)
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
def cmd_wrap(job_file: str, workspace: str, command: Tuple[str, ...]):
    from stackwrapper.cloudformation.exceptions import ConfigurationError

    definitions = _load_job(job_file)

    with cancel_on_signals() as cancel:
        orchestrator = _new_orchestrator(workspace, cancel)
        try:
            session = orchestrator.begin(definitions)
        except ConfigurationError as e:
            raise CLIError(str(e)) from e

        if not session.success:
            raise CLIError(
                "stack processing failed, see the log for details", session.leftover_stacks
            )

        try:
            LOG.info("Running command: %s", " ".join(command))
            process = subprocess.run(list(command), cwd=workspace, env=dict(orchestrator.environment))
            exit_code = process.returncode
        except OSError as e:
            console.print(f"[bold][red]:heavy_multiplication_x: ERROR[/red][/bold]: {e}")
            exit_code = 127
        finally:
            torn_down = orchestrator.end(session)

    if not torn_down:
        CLIError("failed to delete stacks after the command", session.failed_teardowns).show()
        sys.exit(exit_code or 1)
    sys.exit(exit_code)


@stackwrapper.command(name="delete", help="Delete the stacks a job marks as delete_only")
@click.option("-f", "--job-file", required=True, type=click.Path(dir_okay=False), help="The job file")
@click.option(
    "-w",
    "--workspace",
    default=".",
    type=click.Path(file_okay=False),
    help="Directory template paths are relative to",
)
def cmd_delete(job_file: str, workspace: str):
    definitions = _load_job(job_file)

    with cancel_on_signals() as cancel:
        orchestrator = _new_orchestrator(workspace, cancel)
        deleted = orchestrator.delete_stacks(definitions)

    if not deleted:
        raise CLIError("failed to delete stacks, see the log for details")
    console.print("[green]:heavy_check_mark:[/green] stacks deleted")


def print_table(columns: List[str], rows: List[Tuple[str, ...]]):
    from rich.table import Table

    grid = Table(show_header=True)
    for column in columns:
        grid.add_column(column)
    for row in rows:
        grid.add_row(*row)

    console.print(grid)

