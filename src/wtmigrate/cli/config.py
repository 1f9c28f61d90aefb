"""Global configuration CLI commands."""

from __future__ import annotations

from dataclasses import replace
from typing import Annotated

import typer

from wtmigrate.cli.context import CLIContext
from wtmigrate.cli.formatters import print_config, print_error, print_success
from wtmigrate.infrastructure.config import (
    ConfigError,
    load_global_config,
    save_global_config,
)
from wtmigrate.infrastructure.paths import default_resolver

app = typer.Typer(
    name="config",
    help="Show or change default settings.",
    no_args_is_help=True,
)


@app.command("show")
def show() -> None:
    """Show the effective configuration."""
    print_config(CLIContext.get().get_config(), default_resolver.global_config())


@app.command("set")
def set_config(
    worktree_format: Annotated[
        str | None,
        typer.Option(
            "--worktree-format",
            help='Default worktree path format, e.g. "{branch}" or "../{repo}-{branch}"',
        ),
    ] = None,
) -> None:
    """Change one or more configuration values."""
    if worktree_format is None:
        print_error("Nothing to set; pass --worktree-format")
        raise typer.Exit(1)

    current = load_global_config()
    updated = replace(current, worktree_format=worktree_format)
    try:
        save_global_config(updated)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    CLIContext.get().config = updated
    print_success(f"Worktree format set to {updated.worktree_format}")
