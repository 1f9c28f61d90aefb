"""Errors raised while planning and executing a layout migration.

Two tiers:

* ``ValidationError`` subclasses come from the planner only. Nothing has been
  written when one is raised, so the user can fix the cause and retry.
* ``PhaseError`` comes from the executor after mutation has begun. It names
  the phase that failed and what to run by hand to finish or undo the step.
  Nothing is rolled back automatically.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

__all__ = [
    "AlreadyMigratedError",
    "DetachedHeadError",
    "FileWorktreeNameConflictError",
    "InvalidOptionsError",
    "MetadataNameConflictError",
    "MigrationError",
    "NoDefaultBranchWorktreeError",
    "NotAGitRepositoryError",
    "PathIsWorktreeError",
    "Phase",
    "PhaseError",
    "RootEntryConflictError",
    "SubmodulesUnsupportedError",
    "TargetPathConflictError",
    "ValidationError",
    "WorktreeContainerConflictError",
]


class MigrationError(Exception):
    """Base exception for layout migrations."""


class ValidationError(MigrationError):
    """Raised by the planner before anything is written."""


class InvalidOptionsError(ValidationError):
    """Raised when migration options are unusable."""


class NotAGitRepositoryError(ValidationError):
    """Raised when the path has no .git entry."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"not a git repository: {path}")
        self.path = path


class AlreadyMigratedError(ValidationError):
    """Raised when the repository already uses the requested layout."""

    def __init__(self, path: Path, layout: str) -> None:
        super().__init__(f"repository is already using {layout} structure: {path}")
        self.path = path
        self.layout = layout


class PathIsWorktreeError(ValidationError):
    """Raised when the path is a linked worktree rather than a repository root."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"path is a worktree, not a repository: {path}")
        self.path = path


class SubmodulesUnsupportedError(ValidationError):
    """Raised when the checkout to be moved contains .gitmodules."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"repositories with submodules are not yet supported: {path}")
        self.path = path


class DetachedHeadError(ValidationError):
    """Raised when the repository root has no branch checked out."""

    def __init__(self, path: Path) -> None:
        super().__init__(
            f"repository is in detached HEAD state: {path} "
            "(check out a branch before converting)"
        )
        self.path = path


class TargetPathConflictError(ValidationError):
    """Raised when a computed target path already exists."""

    def __init__(self, source: Path, target: Path) -> None:
        super().__init__(
            f"target path conflict: worktree {str(source)!r} would be moved to "
            f"{str(target)!r} which already exists"
        )
        self.source = source
        self.target = target


class MetadataNameConflictError(ValidationError):
    """Raised when a metadata name is claimed twice or already in use."""

    def __init__(self, name: str, branches: Sequence[str]) -> None:
        super().__init__(
            f"worktree metadata name {name!r} needed for branch "
            f"{', '.join(repr(b) for b in branches)} is already taken"
        )
        self.name = name
        self.branches = tuple(branches)


class NoDefaultBranchWorktreeError(ValidationError):
    """Raised when no worktree holds the default branch."""

    def __init__(self, default_branch: str, available: Sequence[str], git_dir: Path) -> None:
        listed = ", ".join(available) if available else "none"
        super().__init__(
            f"no worktree found for default branch {default_branch!r} "
            f"(worktrees exist for: {listed}); create one with "
            f"'git -C {git_dir} worktree add <path> {default_branch}'"
        )
        self.default_branch = default_branch
        self.available = tuple(available)


class FileWorktreeNameConflictError(ValidationError):
    """Raised when moving the default worktree up would collide with a worktree."""

    def __init__(self, name: str, source: Path, worktree_path: Path) -> None:
        super().__init__(
            f"{name!r} in {source} conflicts with worktree directory {worktree_path}"
        )
        self.name = name
        self.source = source
        self.worktree_path = worktree_path


class RootEntryConflictError(ValidationError):
    """Raised when moving the default worktree up would overwrite a root entry."""

    def __init__(self, name: str, source: Path, existing: Path) -> None:
        super().__init__(
            f"{name!r} in {source} conflicts with existing {existing} "
            "at the repository root"
        )
        self.name = name
        self.source = source
        self.existing = existing


class WorktreeContainerConflictError(ValidationError):
    """Raised when a linked worktree shares a directory with checkout files."""

    def __init__(self, entry: Path, worktree_path: Path) -> None:
        super().__init__(
            f"{entry} would be left behind: it shares a directory with worktree "
            f"{worktree_path} (move the worktree out of the checkout first)"
        )
        self.entry = entry
        self.worktree_path = worktree_path


class Phase(enum.Enum):
    """Executor phases, in the order they can occur."""

    MOVE_GIT_DIR = "move-git-dir"
    CONFIGURE = "configure"
    CREATE_MAIN_WORKTREE = "create-main-worktree"
    MOVE_FILES = "move-files"
    WRITE_METADATA = "write-metadata"
    WRITE_GIT_FILE = "write-git-file"
    MOVE_INDEX = "move-index"
    REMOVE_METADATA = "remove-metadata"
    REMOVE_WORKTREE_DIR = "remove-worktree-dir"
    WRITE_HEAD = "write-head"
    UPDATE_WORKTREES = "update-worktrees"
    REPAIR = "repair"
    RESTORE_UPSTREAM = "restore-upstream"
    PRUNE = "prune"


class PhaseError(MigrationError):
    """Raised when an executor phase fails after mutation has begun.

    Attributes:
        phase: The phase that failed.
        path: Repository path the migration was operating on.
        remediation: What to run by hand to finish or undo the step.
    """

    def __init__(
        self,
        phase: Phase,
        path: Path,
        detail: str,
        *,
        remediation: str | None = None,
    ) -> None:
        message = f"{phase.value} failed for {path}: {detail}"
        if remediation:
            message = f"{message}; {remediation}"
        super().__init__(message)
        self.phase = phase
        self.path = path
        self.detail = detail
        self.remediation = remediation
