"""Tests for the wtmigrate command line."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import patch

from typer.testing import CliRunner

from wtmigrate import __version__
from wtmigrate.cli.app import app
from wtmigrate.infrastructure.paths import default_resolver
from wtmigrate.modules.migration.inspector import RepoLayout, detect_layout
from wtmigrate.modules.migration.links import (
    LinkCheck,
    LinkStatus,
    is_worktree_link_valid,
)

if TYPE_CHECKING:
    from collections.abc import Callable

runner = CliRunner()


class TestMain:
    """Tests for the top-level callback."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"wtmigrate {__version__}" in result.output

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])

        assert "to-bare" in result.output
        assert "to-regular" in result.output


class TestToBare:
    """Tests for the to-bare command."""

    def test_converts(self, git_repo: Path) -> None:
        result = runner.invoke(app, ["to-bare", str(git_repo)])

        assert result.exit_code == 0, result.output
        assert detect_layout(git_repo) is RepoLayout.BARE
        assert (git_repo / "main" / "README.md").exists()
        assert "Converted" in result.output

    def test_dry_run_changes_nothing(self, git_repo: Path) -> None:
        before = sorted(p.name for p in git_repo.iterdir())

        result = runner.invoke(app, ["to-bare", str(git_repo), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "Dry run" in result.output
        assert detect_layout(git_repo) is RepoLayout.REGULAR
        assert sorted(p.name for p in git_repo.iterdir()) == before

    def test_format_and_name(self, git_repo: Path, temp_dir: Path) -> None:
        result = runner.invoke(
            app, ["to-bare", str(git_repo), "-f", "../{repo}-{branch}", "-n", "app"]
        )

        assert result.exit_code == 0, result.output
        assert (temp_dir / "app-main" / "README.md").exists()

    def test_uses_configured_format(self, git_repo: Path, temp_dir: Path) -> None:
        config = default_resolver.global_config()
        config.parent.mkdir(parents=True, exist_ok=True)
        config.write_text(json.dumps({"version": "1", "worktree_format": "../{repo}-{branch}"}))

        result = runner.invoke(app, ["to-bare", str(git_repo)])

        assert result.exit_code == 0, result.output
        assert (temp_dir / "test-repo-main").is_dir()

    def test_already_bare_fails(self, bare_repo: Path) -> None:
        result = runner.invoke(app, ["to-bare", str(bare_repo)])

        assert result.exit_code == 1
        assert "already using" in result.output

    def test_conflict_fails(self, git_repo: Path) -> None:
        (git_repo / "main").mkdir()

        result = runner.invoke(app, ["to-bare", str(git_repo)])

        assert result.exit_code == 1
        assert "conflict" in result.output
        assert detect_layout(git_repo) is RepoLayout.REGULAR

    def test_not_a_repository(self, temp_dir: Path) -> None:
        result = runner.invoke(app, ["to-bare", str(temp_dir)])

        assert result.exit_code == 1
        assert "not a git repository" in result.output

    def test_quiet_hides_plan(self, git_repo: Path) -> None:
        result = runner.invoke(app, ["--quiet", "to-bare", str(git_repo), "--dry-run"])

        assert result.exit_code == 0
        assert "Dry run" not in result.output


class TestToRegular:
    """Tests for the to-regular command."""

    def test_converts(self, bare_repo: Path) -> None:
        result = runner.invoke(app, ["to-regular", str(bare_repo)])

        assert result.exit_code == 0, result.output
        assert detect_layout(bare_repo) is RepoLayout.REGULAR
        assert (bare_repo / "README.md").exists()
        assert not (bare_repo / "main").exists()

    def test_dry_run(self, bare_repo: Path) -> None:
        result = runner.invoke(app, ["to-regular", str(bare_repo), "-d"])

        assert result.exit_code == 0, result.output
        assert detect_layout(bare_repo) is RepoLayout.BARE

    def test_regular_repo_fails(self, git_repo: Path) -> None:
        result = runner.invoke(app, ["to-regular", str(git_repo)])

        assert result.exit_code == 1
        assert "already using" in result.output


class TestDoctor:
    """Tests for the doctor command."""

    def test_healthy(self, bare_repo: Path) -> None:
        result = runner.invoke(app, ["doctor", str(bare_repo)])

        assert result.exit_code == 0, result.output
        assert "healthy" in result.output

    def test_broken_link_fails(self, bare_repo: Path) -> None:
        (bare_repo / "main" / ".git").write_text("garbage\n")

        result = runner.invoke(app, ["doctor", str(bare_repo)])

        assert result.exit_code == 1

    def test_fix_repairs(self, bare_repo: Path) -> None:
        wt = bare_repo / "main"
        broken = [LinkCheck(path=wt, branch="main", status=LinkStatus.REPAIRABLE)]
        fixed = [LinkCheck(path=wt, branch="main", status=LinkStatus.HEALTHY)]

        with (
            patch("wtmigrate.cli.doctor.check_worktree_links", side_effect=[broken, fixed]),
            patch("wtmigrate.cli.doctor.repair_worktree") as mock_repair,
        ):
            result = runner.invoke(app, ["doctor", str(bare_repo), "--fix"])

        assert result.exit_code == 0, result.output
        mock_repair.assert_called_once_with(bare_repo, wt)

    def test_fix_repairs_link_to_old_repository_location(
        self, bare_repo: Path, temp_dir: Path
    ) -> None:
        wt = bare_repo / "main"
        old = temp_dir / "old-location" / ".git" / "worktrees" / "main"
        (wt / ".git").write_text(f"gitdir: {old}\n")

        result = runner.invoke(app, ["doctor", str(bare_repo), "--fix"])

        assert result.exit_code == 0, result.output
        assert is_worktree_link_valid(wt)

    def test_not_a_repository(self, temp_dir: Path) -> None:
        result = runner.invoke(app, ["doctor", str(temp_dir)])

        assert result.exit_code == 1


class TestConfigCommands:
    """Tests for config show/set."""

    def test_show_defaults(self) -> None:
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "{branch}" in result.output

    def test_set_worktree_format(self) -> None:
        result = runner.invoke(app, ["config", "set", "--worktree-format", "../{repo}-{branch}"])

        assert result.exit_code == 0, result.output
        data = json.loads(default_resolver.global_config().read_text())
        assert data["worktree_format"] == "../{repo}-{branch}"

    def test_set_invalid_format(self) -> None:
        result = runner.invoke(app, ["config", "set", "--worktree-format", "{nope}"])

        assert result.exit_code == 1
        assert not default_resolver.global_config().exists()

    def test_set_nothing(self) -> None:
        result = runner.invoke(app, ["config", "set"])

        assert result.exit_code == 1


def test_to_bare_result_is_bare_to_git(run_git: Callable[..., str], git_repo: Path) -> None:
    runner.invoke(app, ["to-bare", str(git_repo)])

    assert run_git("rev-parse", "--is-bare-repository", cwd=git_repo / ".git") == "true"
