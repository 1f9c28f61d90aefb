"""Worktree link health check command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from wtmigrate.cli.formatters import (
    print_error,
    print_info,
    print_link_report,
    print_repository_summary,
    print_success,
    print_warning,
)
from wtmigrate.infrastructure import git
from wtmigrate.modules.migration import MigrationError, inspect_repository
from wtmigrate.modules.migration.links import (
    LinkCheck,
    LinkStatus,
    check_worktree_links,
    repair_worktree,
)

__all__ = ["doctor"]


def doctor(
    path: Annotated[
        Path,
        typer.Argument(help="Repository root (defaults to the current directory)"),
    ] = Path("."),
    fix: Annotated[
        bool,
        typer.Option("--fix", help="Repair links that git can repair"),
    ] = False,
) -> None:
    """Check that every linked worktree points at valid metadata.

    Exits with status 1 if any link is left unhealthy.
    """
    try:
        repo = inspect_repository(path)
        checks = check_worktree_links(repo.path)
    except (MigrationError, git.GitError) as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    print_repository_summary(repo)
    print_link_report(checks)

    if fix:
        try:
            checks = _fix(repo.path, checks)
        except git.GitError as e:
            print_error(str(e))
            raise typer.Exit(1) from e

    broken = [c for c in checks if c.status is not LinkStatus.HEALTHY]
    if broken:
        if not fix:
            print_info("Run with --fix to repair what can be repaired")
        raise typer.Exit(1)

    print_success("All worktree links are healthy")


def _fix(repo_path: Path, checks: list[LinkCheck]) -> list[LinkCheck]:
    for check in checks:
        if check.status is not LinkStatus.REPAIRABLE:
            continue
        try:
            repair_worktree(repo_path, check.path)
        except git.GitError as e:
            print_error(f"Could not repair {check.path}: {e.stderr}")
        else:
            print_success(f"Repaired {check.branch} ({check.path})")

    remaining = check_worktree_links(repo_path)
    for check in remaining:
        if check.status is LinkStatus.UNREPAIRABLE:
            print_warning(
                f"{check.path} cannot be repaired automatically; fix its .git file, "
                f"then run 'git -C {repo_path} worktree repair {check.path}'"
            )
        elif check.status is LinkStatus.PRUNABLE:
            # A moved worktree also looks prunable, so never prune automatically
            print_warning(
                f"{check.path} no longer exists; if it was moved run "
                f"'git -C {repo_path} worktree repair <new path>', "
                f"otherwise 'git -C {repo_path} worktree prune'"
            )
    return remaining
