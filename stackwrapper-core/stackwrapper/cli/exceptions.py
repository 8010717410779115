import typing as t

import click
from click import ClickException, echo
from click._compat import get_text_stderr


class CLIError(ClickException):
    """A ClickException with a red error message, which optionally lists the stacks a failed job left behind."""

    def __init__(self, message: str, stacks: t.Optional[t.List[str]] = None):
        super().__init__(message)
        self.stacks = stacks or []

    def format_message(self) -> str:
        message = f"❌ Error: {self.message}"
        if self.stacks:
            message += f"\nThe following stacks may still exist: {', '.join(self.stacks)}"
        return click.style(message, fg="red")

    def show(self, file: t.Optional[t.IO[t.Any]] = None) -> None:
        if file is None:
            file = get_text_stderr()

        echo(self.format_message(), file=file)
