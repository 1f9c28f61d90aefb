"""Layout conversion CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from wtmigrate.cli.context import CLIContext
from wtmigrate.cli.formatters import (
    print_bare_plan,
    print_error,
    print_info,
    print_migration_warnings,
    print_regular_plan,
    print_success,
    print_worktree_table,
)
from wtmigrate.infrastructure import git
from wtmigrate.modules.migration import (
    MigrationError,
    MigrationOptions,
    migrate_to_bare,
    migrate_to_regular,
    validate_migration,
    validate_migration_to_regular,
)
from wtmigrate.modules.migration.inspector import resolve_repo_path

__all__ = ["to_bare", "to_regular"]

PathArgument = Annotated[
    Path,
    typer.Argument(help="Repository root (defaults to the current directory)"),
]
FormatOption = Annotated[
    str | None,
    typer.Option(
        "--format",
        "-f",
        help="Worktree path format using {repo} and {branch} (default from config)",
    ),
]
NameOption = Annotated[
    str | None,
    typer.Option("--name", "-n", help="Value for {repo} (default: directory name)"),
]
DryRunOption = Annotated[
    bool,
    typer.Option("--dry-run", "-d", help="Validate and show the plan without changes"),
]


def _options(path: Path, fmt: str | None, name: str | None) -> MigrationOptions:
    return MigrationOptions(
        worktree_format=CLIContext.get().worktree_format(fmt),
        repo_name=name or resolve_repo_path(path).name,
    )


def _show_worktrees(git_dir: Path) -> None:
    try:
        worktrees = git.worktree_list(cwd=git_dir)
    except git.GitError as e:
        print_error(f"Could not list worktrees: {e.stderr}")
        return
    print_worktree_table(worktrees)


def to_bare(
    path: PathArgument = Path("."),
    worktree_format: FormatOption = None,
    name: NameOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Convert a regular repository to the bare-in-.git layout.

    \b
    Examples:
        wtmigrate to-bare .                       # main/ inside the repo
        wtmigrate to-bare . -f "../{repo}-{branch}"
        wtmigrate to-bare ~/src/app --dry-run
    """
    try:
        plan = validate_migration(path, _options(path, worktree_format, name))
    except (MigrationError, git.GitError) as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    print_bare_plan(plan)
    if dry_run:
        print_info("Dry run: no changes made")
        return

    try:
        result = migrate_to_bare(plan)
    except MigrationError as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    print_migration_warnings(result.warnings)
    print_success(f"Converted to bare-in-.git; main worktree at {result.main_worktree_path}")
    _show_worktrees(result.git_dir)


def to_regular(
    path: PathArgument = Path("."),
    worktree_format: FormatOption = None,
    name: NameOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Convert a bare-in-.git repository back to a regular repository.

    The default branch's worktree becomes the working tree at the root.
    """
    try:
        plan = validate_migration_to_regular(path, _options(path, worktree_format, name))
    except (MigrationError, git.GitError) as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    print_regular_plan(plan)
    if dry_run:
        print_info("Dry run: no changes made")
        return

    try:
        result = migrate_to_regular(plan)
    except MigrationError as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    print_migration_warnings(result.warnings)
    print_success(f"Converted to regular repository at {result.repo_path}")
    _show_worktrees(result.repo_path)
