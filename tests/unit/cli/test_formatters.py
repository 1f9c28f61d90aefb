"""Tests for CLI formatter functions."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

from rich.panel import Panel
from rich.table import Table

from wtmigrate.cli.context import CLIContext
from wtmigrate.cli.formatters import (
    print_bare_plan,
    print_info,
    print_link_report,
    print_migration_warnings,
    print_regular_plan,
)
from wtmigrate.modules.migration.errors import Phase
from wtmigrate.modules.migration.links import LinkCheck, LinkStatus
from wtmigrate.modules.migration.types import (
    MigrationPlan,
    MigrationWarning,
    RegularMigrationPlan,
    WorktreeMigration,
)

REPO = Path("/src/app")


def _printed(mock_console: MagicMock, kind: type) -> Any:
    for call in mock_console.print.call_args_list:
        if call.args and isinstance(call.args[0], kind):
            return call.args[0]
    msg = f"No {kind.__name__} in console.print calls"
    raise AssertionError(msg)


def _bare_plan() -> MigrationPlan:
    return MigrationPlan(
        repo_path=REPO,
        git_dir=REPO / ".git",
        current_branch="main",
        main_branch_upstream="main",
        main_worktree_path=REPO / "main",
        worktrees_to_fix=(
            WorktreeMigration(
                old_path=Path("/src/wt-x"),
                new_path=REPO / "feature-x",
                branch="feature/x",
                upstream="",
                old_name="wt-x",
                new_name="feature-x",
            ),
        ),
    )


class TestPrintInfo:
    """Tests for print_info function."""

    def test_prints_message_normally(self) -> None:
        with patch("wtmigrate.cli.formatters.console") as mock_console:
            print_info("Test message")

        mock_console.print.assert_called_once()
        assert "Test message" in mock_console.print.call_args[0][0]

    def test_suppressed_in_quiet_mode(self) -> None:
        CLIContext.get().quiet = True

        with patch("wtmigrate.cli.formatters.console") as mock_console:
            print_info("Test message")

        mock_console.print.assert_not_called()


class TestPrintPlans:
    """Tests for plan panels."""

    def test_bare_plan_panel(self) -> None:
        with patch("wtmigrate.cli.formatters.console") as mock_console:
            print_bare_plan(_bare_plan())

        panel = _printed(mock_console, Panel)
        body = str(panel.renderable)
        assert "bare-in-.git" in str(panel.title)
        assert str(REPO / "main") in body
        assert "origin/main" in body
        assert "feature/x" in body
        assert str(REPO / "feature-x") in body

    def test_regular_plan_panel(self) -> None:
        plan = RegularMigrationPlan(
            repo_path=REPO,
            git_dir=REPO / ".git",
            default_branch="main",
            default_branch_worktree=REPO / "main",
            default_branch_metadata_name="main",
            default_branch_upstream="",
        )

        with patch("wtmigrate.cli.formatters.console") as mock_console:
            print_regular_plan(plan)

        body = str(_printed(mock_console, Panel).renderable)
        assert "Default branch" in body
        assert "Upstream" not in body

    def test_plans_suppressed_in_quiet_mode(self) -> None:
        CLIContext.get().quiet = True

        with patch("wtmigrate.cli.formatters.console") as mock_console:
            print_bare_plan(_bare_plan())

        mock_console.print.assert_not_called()


class TestPrintMigrationWarnings:
    """Tests for warning output."""

    def test_prints_phase_and_message(self) -> None:
        warnings = [MigrationWarning(phase=Phase.PRUNE, message="could not prune")]

        with patch("wtmigrate.cli.formatters.console") as mock_console:
            print_migration_warnings(warnings)

        printed = mock_console.print.call_args[0][0]
        assert "prune" in printed
        assert "could not prune" in printed

    def test_warnings_not_suppressed_by_quiet(self) -> None:
        CLIContext.get().quiet = True
        warnings = [MigrationWarning(phase=Phase.PRUNE, message="could not prune")]

        with patch("wtmigrate.cli.formatters.console") as mock_console:
            print_migration_warnings(warnings)

        mock_console.print.assert_called_once()


class TestPrintLinkReport:
    """Tests for the link report table."""

    def test_table_rows(self) -> None:
        checks = [
            LinkCheck(path=REPO / "main", branch="main", status=LinkStatus.HEALTHY),
            LinkCheck(path=REPO / "dev", branch="dev", status=LinkStatus.REPAIRABLE),
        ]

        with patch("wtmigrate.cli.formatters.console") as mock_console:
            print_link_report(checks)

        table = _printed(mock_console, Table)
        assert table.row_count == 2

    def test_no_worktrees(self) -> None:
        with patch("wtmigrate.cli.formatters.console") as mock_console:
            print_link_report([])

        assert "No linked worktrees" in mock_console.print.call_args[0][0]
