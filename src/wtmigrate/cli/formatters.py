"""Rich console output formatting utilities."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from wtmigrate.cli.context import CLIContext
from wtmigrate.modules.migration.links import LinkStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from wtmigrate.infrastructure.config import GlobalConfig
    from wtmigrate.infrastructure.git import WorktreeInfo
    from wtmigrate.modules.migration.inspector import Repository
    from wtmigrate.modules.migration.links import LinkCheck
    from wtmigrate.modules.migration.types import (
        MigrationPlan,
        MigrationWarning,
        RegularMigrationPlan,
        WorktreeMigration,
    )

__all__ = [
    "console",
    "error_console",
    "print_bare_plan",
    "print_config",
    "print_error",
    "print_info",
    "print_link_report",
    "print_migration_warnings",
    "print_regular_plan",
    "print_repository_summary",
    "print_success",
    "print_warning",
    "print_worktree_table",
]

# Shared console instance
console = Console()
error_console = Console(stderr=True)

_STATUS_STYLES = {
    LinkStatus.HEALTHY: "green",
    LinkStatus.REPAIRABLE: "yellow",
    LinkStatus.UNREPAIRABLE: "red",
    LinkStatus.PRUNABLE: "dim",
}


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message.

    Suppressed when --quiet flag is set.
    """
    if not CLIContext.get().quiet:
        console.print(f"[blue]i[/blue] {message}")


def _worktree_moves(migrations: Sequence[WorktreeMigration]) -> list[str]:
    lines = []
    for m in migrations:
        if m.needs_move:
            lines.append(f"  [cyan]{m.branch}[/cyan]: {m.old_path} → {m.new_path}")
        else:
            lines.append(f"  [cyan]{m.branch}[/cyan]: {m.old_path} (relink only)")
    return lines


def print_bare_plan(plan: MigrationPlan) -> None:
    """Print what a conversion to bare-in-.git will do."""
    if CLIContext.get().quiet:
        return

    lines = [
        f"[bold]Repository:[/bold]    {plan.repo_path}",
        f"[bold]Branch:[/bold]        {plan.current_branch}",
        f"[bold]Main worktree:[/bold] {plan.main_worktree_path}",
    ]
    if plan.main_branch_upstream:
        lines.append(f"[bold]Upstream:[/bold]      origin/{plan.main_branch_upstream}")
    if plan.worktrees_to_fix:
        lines.append("[bold]Worktrees:[/bold]")
        lines.extend(_worktree_moves(plan.worktrees_to_fix))

    console.print(
        Panel(
            "\n".join(lines),
            title="[blue]Convert to bare-in-.git[/blue]",
            border_style="blue",
        )
    )


def print_regular_plan(plan: RegularMigrationPlan) -> None:
    """Print what a conversion back to a regular repository will do."""
    if CLIContext.get().quiet:
        return

    lines = [
        f"[bold]Repository:[/bold]     {plan.repo_path}",
        f"[bold]Default branch:[/bold] {plan.default_branch}",
        f"[bold]Checkout from:[/bold]  {plan.default_branch_worktree}",
    ]
    if plan.default_branch_upstream:
        lines.append(f"[bold]Upstream:[/bold]       origin/{plan.default_branch_upstream}")
    if plan.worktrees_to_fix:
        lines.append("[bold]Worktrees:[/bold]")
        lines.extend(_worktree_moves(plan.worktrees_to_fix))

    console.print(
        Panel(
            "\n".join(lines),
            title="[blue]Convert to regular[/blue]",
            border_style="blue",
        )
    )


def print_migration_warnings(warnings: Sequence[MigrationWarning]) -> None:
    for warning in warnings:
        print_warning(f"{warning.phase.value}: {warning.message}")


def print_worktree_table(worktrees: Sequence[WorktreeInfo]) -> None:
    """Print the repository's worktrees after a conversion."""
    if CLIContext.get().quiet:
        return

    table = Table(title="Worktrees")
    table.add_column("Branch", style="cyan")
    table.add_column("Commit", style="dim")
    table.add_column("Path")

    for wt in worktrees:
        if wt.is_bare:
            table.add_row("[dim](bare)[/dim]", "-", str(wt.path))
            continue
        table.add_row(wt.branch, wt.commit[:8] or "-", str(wt.path))

    console.print(table)


def print_repository_summary(repo: Repository) -> None:
    lines = [
        f"[bold]Path:[/bold]   {repo.path}",
        f"[bold]Layout:[/bold] {repo.layout.value}",
        f"[bold]Branch:[/bold] {repo.branch}",
    ]
    if repo.upstream:
        lines.append(f"[bold]Upstream:[/bold] origin/{repo.upstream}")
    if repo.origin_url:
        lines.append(f"[bold]Origin:[/bold] {repo.origin_url}")

    console.print(Panel("\n".join(lines), title="Repository", border_style="blue"))


def print_link_report(checks: Sequence[LinkCheck]) -> None:
    """Print one row per linked worktree with its link status."""
    if not checks:
        print_info("No linked worktrees")
        return

    table = Table(title="Worktree links")
    table.add_column("Branch", style="cyan")
    table.add_column("Status")
    table.add_column("Path")

    for check in checks:
        style = _STATUS_STYLES[check.status]
        table.add_row(check.branch, f"[{style}]{check.status.value}[/{style}]", str(check.path))

    console.print(table)


def print_config(config: GlobalConfig, path: Path) -> None:
    lines = [
        f"[bold]File:[/bold]            {path}",
        f"[bold]Worktree format:[/bold] {config.worktree_format}",
    ]
    console.print(Panel("\n".join(lines), title="Configuration", border_style="blue"))
