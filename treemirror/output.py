"""Console output helpers."""

import json
from typing import Any

import click


class OutputFormatter:
    """Formats user-facing messages for the terminal.

    Info and success messages are suppressed in quiet mode; warnings and
    errors always go to stderr. In JSON mode only ``print_json`` writes to
    stdout so that the output stays machine-readable.
    """

    def __init__(self, json_output: bool = False, quiet: bool = False):
        self.json_output = json_output
        self.quiet = quiet

    def print(self, message: str = "") -> None:
        """Print a plain line."""
        if not self.json_output:
            click.echo(message)

    def info(self, message: str) -> None:
        """Print an informational message."""
        if not self.quiet and not self.json_output:
            click.echo(message)

    def success(self, message: str) -> None:
        """Print a success message."""
        if not self.quiet and not self.json_output:
            click.secho(message, fg="green")

    def warning(self, message: str) -> None:
        """Print a warning to stderr."""
        click.secho(f"Warning: {message}", fg="yellow", err=True)

    def error(self, message: str) -> None:
        """Print an error to stderr."""
        click.secho(f"Error: {message}", fg="red", err=True)

    def print_json(self, data: Any) -> None:
        """Print data as indented JSON."""
        click.echo(json.dumps(data, indent=2))
