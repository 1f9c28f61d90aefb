"""Read-only classification of a repository's on-disk layout."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

import structlog

from wtmigrate.infrastructure import git
from wtmigrate.modules.migration.errors import (
    NotAGitRepositoryError,
    PathIsWorktreeError,
)

__all__ = [
    "RepoLayout",
    "Repository",
    "detect_layout",
    "get_worktree_metadata_name",
    "has_submodules",
    "inspect_repository",
    "is_bare_repo",
    "resolve_repo_path",
]

logger = structlog.get_logger()


class RepoLayout(enum.Enum):
    REGULAR = "regular"
    BARE = "bare-in-.git"


@dataclass(frozen=True)
class Repository:
    """Snapshot of a repository as seen by the inspector.

    ``branch`` is the checked-out branch for a regular repository and the
    default branch for a bare-in-.git one.
    """

    path: Path
    layout: RepoLayout
    git_dir: Path
    branch: str
    upstream: str | None = None
    origin_url: str | None = None


def resolve_repo_path(path: Path | str) -> Path:
    """Make a path absolute with symlinks resolved (/tmp -> /private/tmp)."""
    return Path(path).expanduser().resolve()


def is_bare_repo(git_dir: Path) -> bool:
    """Check whether a directory is a bare git repository.

    Structural check plus ``core.bare`` read straight from its config file,
    so this works no matter what the current directory is.
    """
    if not git_dir.is_dir():
        return False
    if not (git_dir / "HEAD").is_file() or not (git_dir / "config").is_file():
        return False
    return git.config_get_bool(git_dir / "config", "core.bare") is True


def has_submodules(checkout: Path) -> bool:
    return (checkout / ".gitmodules").exists()


def detect_layout(repo_path: Path) -> RepoLayout:
    """Classify a repository root.

    Args:
        repo_path: Absolute repository root.

    Returns:
        The layout of the repository.

    Raises:
        NotAGitRepositoryError: If there is no .git entry.
        PathIsWorktreeError: If .git is a file (a linked worktree).
    """
    git_path = repo_path / ".git"
    if not git_path.exists():
        raise NotAGitRepositoryError(repo_path)
    if not git_path.is_dir():
        raise PathIsWorktreeError(repo_path)
    if is_bare_repo(git_path):
        return RepoLayout.BARE
    return RepoLayout.REGULAR


def get_worktree_metadata_name(worktree_path: Path) -> str:
    """Return the directory name git uses under <gitdir>/worktrees/.

    The name may differ from the worktree's folder name when the folder
    was renamed after creation.

    Raises:
        git.GitError: If the path is not a git checkout.
    """
    return git.get_git_dir(worktree_path).name


def inspect_repository(path: Path | str) -> Repository:
    """Inspect a repository root without modifying it.

    Args:
        path: Repository root (relative paths and symlinks are resolved).

    Returns:
        Repository snapshot.

    Raises:
        NotAGitRepositoryError: If there is no .git entry.
        PathIsWorktreeError: If .git is a file.
        git.GitError: If git cannot read the repository.
    """
    repo_path = resolve_repo_path(path)
    layout = detect_layout(repo_path)
    git_dir = repo_path / ".git"

    if layout is RepoLayout.BARE:
        branch = git.get_default_branch(cwd=git_dir)
        cwd = git_dir
    else:
        branch = git.get_current_branch(cwd=repo_path)
        cwd = repo_path

    upstream = None
    if branch != git.DETACHED:
        upstream = git.get_upstream_branch(branch, cwd=cwd) or None

    repo = Repository(
        path=repo_path,
        layout=layout,
        git_dir=git_dir,
        branch=branch,
        upstream=upstream,
        origin_url=git.get_origin_url(cwd=cwd),
    )
    logger.debug(
        "repository_inspected",
        path=str(repo_path),
        layout=layout.value,
        branch=branch,
        upstream=upstream,
    )
    return repo
