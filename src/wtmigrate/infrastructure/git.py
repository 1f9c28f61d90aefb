"""Git operations via subprocess."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "DEFAULT_TIMEOUT",
    "DETACHED",
    "ORIGIN_FETCH_REFSPEC",
    "GitError",
    "GitTimeoutError",
    "WorktreeInfo",
    "config_get_bool",
    "config_set",
    "get_current_branch",
    "get_default_branch",
    "get_git_dir",
    "get_origin_url",
    "get_upstream_branch",
    "has_remote",
    "local_branch_exists",
    "remote_branch_exists",
    "set_upstream_branch",
    "worktree_list",
    "worktree_prune",
    "worktree_repair",
]

logger = structlog.get_logger()


# Default timeout for git operations (30 seconds)
DEFAULT_TIMEOUT = 30

# Branch placeholder reported for worktrees with a detached HEAD
DETACHED = "(detached)"

# Fetch refspec for a bare clone so every remote branch is tracked
ORIGIN_FETCH_REFSPEC = "+refs/heads/*:refs/remotes/origin/*"


class GitError(Exception):
    """Raised when a git operation fails."""

    def __init__(self, message: str, returncode: int, stderr: str) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class GitTimeoutError(GitError):
    """Raised when a git operation times out."""

    def __init__(self, message: str, timeout: float) -> None:
        super().__init__(
            message, returncode=-1, stderr=f"Operation timed out after {timeout}s"
        )
        self.timeout = timeout


@dataclass(frozen=True)
class WorktreeInfo:
    """Information about a git worktree."""

    path: Path
    branch: str
    commit: str
    is_bare: bool = False
    is_prunable: bool = False

    @property
    def is_detached(self) -> bool:
        return self.branch == DETACHED


def _run_git(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    check: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
) -> subprocess.CompletedProcess[str]:
    """Run a git command and return the result.

    Args:
        args: Git command arguments (without 'git' prefix).
        cwd: Working directory for the command.
        check: Whether to raise GitError on non-zero exit.
        timeout: Maximum time in seconds to wait for the command.

    Returns:
        CompletedProcess with stdout/stderr.

    Raises:
        GitError: If check=True and command fails.
        GitTimeoutError: If the command times out.
    """
    cmd = ["git", *args]
    logger.debug("git_command", cmd=cmd, cwd=str(cwd) if cwd else None)

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise GitTimeoutError(
            f"Git command timed out: {' '.join(cmd)}",
            timeout=timeout,
        ) from e
    except OSError as e:
        # Missing cwd or git binary
        raise GitError(
            f"Git command failed: {' '.join(cmd)}",
            returncode=-1,
            stderr=str(e),
        ) from e

    if check and result.returncode != 0:
        raise GitError(
            f"Git command failed: {' '.join(cmd)}",
            returncode=result.returncode,
            stderr=result.stderr.strip(),
        )

    return result


def get_current_branch(cwd: Path | None = None) -> str:
    """Get the current branch name.

    Args:
        cwd: Directory to check.

    Returns:
        Current branch name, or DETACHED for a detached HEAD.
    """
    result = _run_git(["branch", "--show-current"], cwd=cwd)
    return result.stdout.strip() or DETACHED


def get_git_dir(cwd: Path) -> Path:
    """Get the per-worktree git directory for a checkout.

    For a linked worktree this is ``<common>/worktrees/<name>``.

    Args:
        cwd: Worktree directory.

    Returns:
        Absolute path to the git directory.
    """
    result = _run_git(["rev-parse", "--absolute-git-dir"], cwd=cwd)
    return Path(result.stdout.strip())


def get_upstream_branch(branch: str, *, cwd: Path | None = None) -> str:
    """Get the remote branch name a local branch tracks.

    Args:
        branch: Local branch name.
        cwd: Repository directory.

    Returns:
        Upstream branch name without the refs/heads/ prefix (e.g. "main"),
        or an empty string when no upstream is configured.
    """
    result = _run_git(["config", f"branch.{branch}.merge"], cwd=cwd, check=False)
    if result.returncode != 0:
        return ""
    return result.stdout.strip().removeprefix("refs/heads/")


def set_upstream_branch(branch: str, upstream: str, *, cwd: Path | None = None) -> None:
    """Make a local branch track origin/<upstream>.

    Raises:
        GitError: If git rejects the tracking configuration.
    """
    logger.info("set_upstream_branch", branch=branch, upstream=upstream)
    _run_git(["branch", f"--set-upstream-to=origin/{upstream}", branch], cwd=cwd)


def has_remote(name: str, *, cwd: Path | None = None) -> bool:
    """Check if a remote is configured."""
    result = _run_git(["remote", "get-url", name], cwd=cwd, check=False)
    return result.returncode == 0


def get_origin_url(cwd: Path | None = None) -> str | None:
    """Get the origin remote URL, or None when there is no origin."""
    result = _run_git(["remote", "get-url", "origin"], cwd=cwd, check=False)
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def remote_branch_exists(branch: str, *, cwd: Path | None = None) -> bool:
    """Check if origin/<branch> exists as a remote-tracking ref."""
    result = _run_git(
        ["rev-parse", "--verify", "--quiet", f"refs/remotes/origin/{branch}"],
        cwd=cwd,
        check=False,
    )
    return result.returncode == 0


def local_branch_exists(branch: str, *, cwd: Path | None = None) -> bool:
    """Check if a local branch exists in the repository.

    Args:
        branch: Branch name to check.
        cwd: Repository directory.

    Returns:
        True if the branch exists, False otherwise.
    """
    result = _run_git(
        ["rev-parse", "--verify", "--quiet", f"refs/heads/{branch}"],
        cwd=cwd,
        check=False,
    )
    return result.returncode == 0


def get_default_branch(cwd: Path | None = None) -> str:
    """Get the default branch of the repository.

    Resolution order: origin's HEAD symbolic ref, then origin/main,
    origin/master, local main, local master, and finally "main".

    Args:
        cwd: Repository (or git) directory.

    Returns:
        Default branch name.
    """
    result = _run_git(
        ["symbolic-ref", "--quiet", "refs/remotes/origin/HEAD"],
        cwd=cwd,
        check=False,
    )
    if result.returncode == 0 and result.stdout.strip():
        # refs/remotes/origin/main -> main
        return result.stdout.strip().removeprefix("refs/remotes/origin/")

    for candidate in ("main", "master"):
        if remote_branch_exists(candidate, cwd=cwd):
            return candidate

    for candidate in ("main", "master"):
        if local_branch_exists(candidate, cwd=cwd):
            return candidate

    return "main"


def config_set(key: str, value: str, *, cwd: Path | None = None) -> None:
    """Set a repository configuration value.

    Raises:
        GitError: If the value cannot be written.
    """
    logger.debug("config_set", key=key, value=value)
    _run_git(["config", key, value], cwd=cwd)


def config_get_bool(config_file: Path, key: str) -> bool | None:
    """Read a boolean from a specific git config file.

    Reads the file directly so no repository discovery takes place.

    Returns:
        The value, or None when the key is unset or the file is unreadable.
    """
    result = _run_git(
        ["config", "--file", str(config_file), "--bool", key],
        check=False,
    )
    if result.returncode != 0:
        return None
    return result.stdout.strip() == "true"


def worktree_repair(
    *paths: Path,
    cwd: Path | None = None,
) -> None:
    """Run ``git worktree repair`` for all (or the given) worktrees.

    Args:
        *paths: Specific worktree paths to repair; all when empty.
        cwd: Repository or git directory to run from.

    Raises:
        GitError: If repair fails.
    """
    logger.info("worktree_repair", paths=[str(p) for p in paths], cwd=str(cwd))
    _run_git(["worktree", "repair", *(str(p) for p in paths)], cwd=cwd)


def worktree_prune(cwd: Path | None = None) -> None:
    """Run ``git worktree prune`` to drop stale worktree metadata.

    Raises:
        GitError: If prune fails.
    """
    logger.info("worktree_prune", cwd=str(cwd))
    _run_git(["worktree", "prune"], cwd=cwd)


def _entry_to_info(entry: dict[str, str]) -> WorktreeInfo:
    if "detached" in entry:
        branch = DETACHED
    else:
        branch = entry.get("branch", "").removeprefix("refs/heads/")
    return WorktreeInfo(
        path=Path(entry["worktree"]),
        branch=branch,
        commit=entry.get("HEAD", ""),
        is_bare="bare" in entry,
        is_prunable="prunable" in entry,
    )


def worktree_list(cwd: Path | None = None) -> list[WorktreeInfo]:
    """List all worktrees for the repository.

    Args:
        cwd: Repository directory.

    Returns:
        List of WorktreeInfo for each worktree.
    """
    result = _run_git(["worktree", "list", "--porcelain"], cwd=cwd)
    worktrees: list[WorktreeInfo] = []

    current: dict[str, str] = {}
    for line in result.stdout.splitlines():
        if not line:
            if current:
                worktrees.append(_entry_to_info(current))
                current = {}
            continue

        key, _, value = line.partition(" ")
        current[key] = value

    # Handle last entry
    if current:
        worktrees.append(_entry_to_info(current))

    return worktrees
