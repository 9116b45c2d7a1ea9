"""Prefixed operator-facing log lines.

Step, info, warning and error lines are what an operator watching an install
pipeline reads. Diagnostic detail goes to the module loggers instead and is
only shown with --debug.
"""

import click


def log_step(message: str) -> None:
    """Announce the start of a pipeline step."""
    click.secho(f"\n==> {message}", fg="blue", bold=True)


def log_info(message: str) -> None:
    """Print an informational line. An empty message prints a blank line."""
    if not message:
        click.echo("")
        return
    click.echo(click.style("[INFO] ", fg="green") + message)


def log_warn(message: str) -> None:
    """Print a warning line to stderr."""
    click.echo(click.style("[WARN] ", fg="yellow") + message, err=True)


def log_error(message: str) -> None:
    """Print an error line to stderr."""
    click.echo(click.style("[ERROR] ", fg="red", bold=True) + message, err=True)
