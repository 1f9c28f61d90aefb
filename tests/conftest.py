"""Shared test fixtures for wtmigrate tests."""

from __future__ import annotations

import subprocess
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import structlog

from wtmigrate.cli.context import CLIContext
from wtmigrate.infrastructure.paths import default_resolver
from wtmigrate.modules.migration import (
    MigrationOptions,
    migrate_to_bare,
    validate_migration,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Generator


def _git(*args: str, cwd: Path) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture(autouse=True)
def _isolated_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Keep config, CLI context and logging from leaking between tests."""
    monkeypatch.setattr(default_resolver, "base", tmp_path / ".wtmigrate")
    CLIContext.reset()
    yield
    CLIContext.reset()
    structlog.reset_defaults()


@pytest.fixture
def run_git() -> Callable[..., str]:
    """Run a git command and return its stripped stdout."""
    return _git


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        # Resolve so paths compare equal to what git reports (/var -> /private/var)
        yield Path(tmpdir).resolve()


@pytest.fixture
def git_repo(temp_dir: Path) -> Path:
    """Create a regular git repository on branch main with one commit.

    Returns the path to the repository root.
    """
    repo_path = temp_dir / "test-repo"
    repo_path.mkdir()

    _git("init", "-b", "main", cwd=repo_path)

    # Configure git user (required for commits)
    _git("config", "user.email", "test@example.com", cwd=repo_path)
    _git("config", "user.name", "Test User", cwd=repo_path)
    _git("config", "commit.gpgsign", "false", cwd=repo_path)

    (repo_path / "README.md").write_text("# Test Repo\n")
    (repo_path / "src").mkdir()
    (repo_path / "src" / "app.py").write_text("print('hello')\n")

    _git("add", ".", cwd=repo_path)
    _git("commit", "-m", "Initial commit", cwd=repo_path)

    return repo_path


@pytest.fixture
def git_repo_with_origin(git_repo: Path, temp_dir: Path) -> Path:
    """Regular repository whose main branch tracks origin/main.

    The origin is a bare repository next to the working repository.
    """
    origin = temp_dir / "origin.git"
    _git("init", "--bare", "-b", "main", str(origin), cwd=temp_dir)
    _git("remote", "add", "origin", str(origin), cwd=git_repo)
    _git("push", "-u", "origin", "main", cwd=git_repo)
    return git_repo


@pytest.fixture
def bare_repo(git_repo: Path) -> Path:
    """Repository already converted to the bare-in-.git layout.

    The main branch lives in ``<repo>/main``.
    """
    plan = validate_migration(
        git_repo, MigrationOptions(worktree_format="{branch}", repo_name=git_repo.name)
    )
    migrate_to_bare(plan)
    return git_repo
