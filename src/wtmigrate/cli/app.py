"""Main CLI application."""

from __future__ import annotations

import typer

from wtmigrate import __version__
from wtmigrate.cli import config, doctor, migrate
from wtmigrate.cli.context import CLIContext
from wtmigrate.infrastructure.logging import configure_logging

# Main application
app = typer.Typer(
    name="wtmigrate",
    help="Convert git repositories between the regular and bare-in-.git layouts.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("to-bare")(migrate.to_bare)
app.command("to-regular")(migrate.to_regular)
app.command("doctor")(doctor.doctor)
app.add_typer(config.app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"wtmigrate {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(  # noqa: ARG001 - handled by callback
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug output, including every git command.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only print results, warnings and errors.",
    ),
) -> None:
    """wtmigrate: move a repository between layouts without losing work.

    A bare-in-.git repository keeps its git directory at the root and every
    branch, including the main one, in its own worktree.
    """
    ctx = CLIContext.get()
    ctx.verbose = verbose
    ctx.quiet = quiet and not verbose

    configure_logging(debug=verbose)
