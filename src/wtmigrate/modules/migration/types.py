"""Plans and results exchanged between the planner, executor and callers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path  # noqa: TC003 - used at runtime in dataclass

from wtmigrate.modules.migration.errors import InvalidOptionsError, Phase

__all__ = [
    "MigrateToBareResult",
    "MigrateToRegularResult",
    "MigrationOptions",
    "MigrationPlan",
    "MigrationWarning",
    "RegularMigrationPlan",
    "WorktreeMigration",
]


@dataclass(frozen=True)
class MigrationOptions:
    """How a migration computes worktree paths.

    Attributes:
        worktree_format: Format string, e.g. "{branch}" or "../{repo}-{branch}".
        repo_name: Value substituted for {repo}.
    """

    worktree_format: str
    repo_name: str

    def validate(self) -> None:
        """Raise InvalidOptionsError if the options cannot be used."""
        if not self.worktree_format:
            raise InvalidOptionsError("worktree format must not be empty")


@dataclass(frozen=True)
class WorktreeMigration:
    """A linked worktree that is moved and/or relinked during migration."""

    old_path: Path
    new_path: Path
    branch: str
    upstream: str
    # Directory names under <gitdir>/worktrees/
    old_name: str
    new_name: str

    @property
    def needs_move(self) -> bool:
        return self.old_path != self.new_path


@dataclass(frozen=True)
class MigrationPlan:
    """Regular to bare-in-.git plan, produced by validate_migration."""

    repo_path: Path
    git_dir: Path
    current_branch: str
    main_branch_upstream: str
    main_worktree_path: Path
    worktrees_to_fix: tuple[WorktreeMigration, ...] = ()


@dataclass(frozen=True)
class RegularMigrationPlan:
    """Bare-in-.git to regular plan, produced by validate_migration_to_regular."""

    repo_path: Path
    git_dir: Path
    default_branch: str
    default_branch_worktree: Path
    default_branch_metadata_name: str
    default_branch_upstream: str
    worktrees_to_fix: tuple[WorktreeMigration, ...] = ()


@dataclass(frozen=True)
class MigrationWarning:
    """A best-effort step that failed without affecting the outcome."""

    phase: Phase
    message: str


@dataclass(frozen=True)
class MigrateToBareResult:
    main_worktree_path: Path
    git_dir: Path
    warnings: tuple[MigrationWarning, ...] = ()


@dataclass(frozen=True)
class MigrateToRegularResult:
    repo_path: Path
    git_dir: Path
    warnings: tuple[MigrationWarning, ...] = ()
