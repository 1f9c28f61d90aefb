"""Execution of validated migration plans.

Each executor runs a fixed sequence of phases against a plan produced by the
planner. Essential phases raise ``PhaseError`` on failure and stop; nothing
already done is rolled back. Best-effort phases (fetch refspec, upstream
tracking, prune) record a ``MigrationWarning`` and continue.
"""

from __future__ import annotations

import contextlib
import os
import shutil
from typing import TYPE_CHECKING

import structlog

from wtmigrate.infrastructure import git
from wtmigrate.infrastructure.paths import sanitize_branch_name
from wtmigrate.modules.migration import links
from wtmigrate.modules.migration.errors import Phase, PhaseError
from wtmigrate.modules.migration.planner import top_level_entry
from wtmigrate.modules.migration.types import (
    MigrateToBareResult,
    MigrateToRegularResult,
    MigrationWarning,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from wtmigrate.modules.migration.types import (
        MigrationPlan,
        RegularMigrationPlan,
        WorktreeMigration,
    )

__all__ = [
    "MIGRATING_SUFFIX",
    "migrate_to_bare",
    "migrate_to_regular",
]

logger = structlog.get_logger()

MIGRATING_SUFFIX = ".migrating"


@contextlib.contextmanager
def _phase(phase: Phase, repo_path: Path, remediation: str | None = None) -> Iterator[None]:
    """Run one essential phase, converting failures into PhaseError."""
    logger.debug("phase_start", phase=phase.value, repo=str(repo_path))
    try:
        yield
    except git.GitError as e:
        raise PhaseError(phase, repo_path, e.stderr or str(e), remediation=remediation) from e
    except OSError as e:
        raise PhaseError(phase, repo_path, str(e), remediation=remediation) from e


class _Warnings:
    """Collects best-effort failures for the result and the log."""

    def __init__(self) -> None:
        self.items: list[MigrationWarning] = []

    def add(self, phase: Phase, message: str, *, event: str = "migration_warning") -> None:
        self.items.append(MigrationWarning(phase=phase, message=message))
        logger.warning(event, phase=phase.value, detail=message)


def _restore_upstream(
    worktree_path: Path, branch: str, upstream: str, warnings: _Warnings
) -> None:
    """Re-point a branch at origin/<upstream> if that remote branch exists."""
    if not upstream:
        return
    try:
        if not git.remote_branch_exists(upstream, cwd=worktree_path):
            logger.debug("upstream_skipped", branch=branch, upstream=upstream)
            return
        git.set_upstream_branch(branch, upstream, cwd=worktree_path)
    except git.GitError as e:
        warnings.add(
            Phase.RESTORE_UPSTREAM,
            f"could not restore upstream origin/{upstream} for {branch}: {e.stderr}",
            event="upstream_restore_failed",
        )
        return
    logger.debug("upstream_restored", branch=branch, upstream=upstream)


def _remove_empty_containers(path: Path, repo_path: Path) -> None:
    """Drop directories such as repo/worktrees/ left empty once ``path`` is gone."""
    parent = path.parent
    while parent != repo_path and parent.is_relative_to(repo_path) and not any(parent.iterdir()):
        parent.rmdir()
        parent = parent.parent


def _update_worktrees(
    repo_path: Path, git_dir: Path, migrations: tuple[WorktreeMigration, ...]
) -> None:
    for m in migrations:
        remediation = (
            f"move {m.old_path} to {m.new_path} if it is not there yet, then run "
            f"'git -C {git_dir} worktree repair {m.new_path}'"
        )
        with _phase(Phase.UPDATE_WORKTREES, repo_path, remediation):
            links.update_worktree_links(repo_path, m)
            if m.needs_move:
                _remove_empty_containers(m.old_path, repo_path)


def _move_git_dir(repo_path: Path, git_dir: Path) -> None:
    """Move the git directory's contents through a temporary directory."""
    tmp = repo_path / f".git{MIGRATING_SUFFIX}"
    if tmp.exists():
        raise PhaseError(
            Phase.MOVE_GIT_DIR,
            repo_path,
            f"{tmp} already exists",
            remediation="inspect it; if it holds a previous attempt's git data, "
            f"move its contents back into {git_dir} and remove it",
        )

    remediation = (
        f"move everything in {tmp} back into {git_dir}; do not delete {tmp}"
    )
    with _phase(Phase.MOVE_GIT_DIR, repo_path, remediation):
        tmp.mkdir()
        for entry in sorted(git_dir.iterdir()):
            entry.rename(tmp / entry.name)
        git_dir.rmdir()
        tmp.rename(git_dir)


def migrate_to_bare(plan: MigrationPlan) -> MigrateToBareResult:
    """Convert a regular repository into the bare-in-.git layout.

    The working tree at the root moves into ``plan.main_worktree_path``,
    which becomes a linked worktree for the current branch. Other linked
    worktrees are moved to their planned paths and relinked.

    Args:
        plan: Plan from ``validate_migration``.

    Returns:
        Result with the main worktree path and any warnings.

    Raises:
        PhaseError: If an essential phase fails.
    """
    repo = plan.repo_path
    git_dir = plan.git_dir
    main = plan.main_worktree_path
    warnings = _Warnings()

    logger.info(
        "migrate_to_bare_start",
        repo=str(repo),
        branch=plan.current_branch,
        main_worktree=str(main),
        worktrees=len(plan.worktrees_to_fix),
    )

    _move_git_dir(repo, git_dir)

    with _phase(
        Phase.CONFIGURE, repo, f"run 'git -C {git_dir} config core.bare true'"
    ):
        git.config_set("core.bare", "true", cwd=git_dir)
    try:
        if git.has_remote("origin", cwd=git_dir):
            git.config_set("remote.origin.fetch", git.ORIGIN_FETCH_REFSPEC, cwd=git_dir)
    except git.GitError as e:
        warnings.add(
            Phase.CONFIGURE,
            f"could not set origin fetch refspec: {e.stderr}",
            event="fetch_refspec_failed",
        )

    recover = (
        f"move the remaining files from {repo} into {main}, then run "
        f"'git -C {git_dir} worktree repair {main}'"
    )
    with _phase(Phase.CREATE_MAIN_WORKTREE, repo, recover):
        main.mkdir(parents=True, exist_ok=True)

    # Worktree directories and their containers stay put; the planner has
    # rejected containers that also hold checkout files
    keep = {".git"}
    for path in (main, *(m.old_path for m in plan.worktrees_to_fix)):
        top = top_level_entry(path, repo)
        if top is not None:
            keep.add(top)

    with _phase(Phase.MOVE_FILES, repo, recover):
        for entry in sorted(repo.iterdir()):
            if entry.name in keep:
                continue
            entry.rename(main / entry.name)

    metadata_dir = links.metadata_dir_for(git_dir, sanitize_branch_name(plan.current_branch))
    relink = f"run 'git -C {git_dir} worktree repair {main}'"
    with _phase(Phase.WRITE_METADATA, repo, relink):
        metadata_dir.mkdir(parents=True, exist_ok=True)
        (metadata_dir / "HEAD").write_text(
            f"ref: refs/heads/{plan.current_branch}\n", encoding="utf-8"
        )
        links.write_metadata_gitdir(metadata_dir, main)
        # metadata_dir is always <git_dir>/worktrees/<name>
        (metadata_dir / "commondir").write_text("../..\n", encoding="utf-8")
        index = git_dir / "index"
        if index.exists():
            index.rename(metadata_dir / "index")
        (metadata_dir / "logs").mkdir(exist_ok=True)

    with _phase(Phase.WRITE_GIT_FILE, repo, relink):
        links.write_git_file(main, metadata_dir)

    _update_worktrees(repo, git_dir, plan.worktrees_to_fix)

    with _phase(Phase.REPAIR, repo, f"run 'git worktree repair' manually from {git_dir}"):
        git.worktree_repair(cwd=git_dir)

    if plan.main_branch_upstream:
        _restore_upstream(main, plan.current_branch, plan.main_branch_upstream, warnings)
    for m in plan.worktrees_to_fix:
        _restore_upstream(m.new_path, m.branch, m.upstream, warnings)

    logger.info(
        "migrate_to_bare_complete",
        repo=str(repo),
        main_worktree=str(main),
        warnings=len(warnings.items),
    )
    return MigrateToBareResult(
        main_worktree_path=main,
        git_dir=git_dir,
        warnings=tuple(warnings.items),
    )


def migrate_to_regular(plan: RegularMigrationPlan) -> MigrateToRegularResult:
    """Convert a bare-in-.git repository back into the regular layout.

    The default branch's worktree contents move up to the repository root,
    its metadata is dropped, and ``core.bare`` is cleared. Remaining
    worktrees are moved to their planned paths and relinked.

    Args:
        plan: Plan from ``validate_migration_to_regular``.

    Returns:
        Result with the repository path and any warnings.

    Raises:
        PhaseError: If an essential phase fails.
    """
    repo = plan.repo_path
    git_dir = plan.git_dir
    source = plan.default_branch_worktree
    metadata_dir = links.metadata_dir_for(git_dir, plan.default_branch_metadata_name)
    warnings = _Warnings()

    logger.info(
        "migrate_to_regular_start",
        repo=str(repo),
        default_branch=plan.default_branch,
        source=str(source),
        worktrees=len(plan.worktrees_to_fix),
    )

    recover = f"move the remaining files from {source} into {repo}"
    with _phase(Phase.MOVE_FILES, repo, recover):
        # repo/main containing its own main/ must be moved aside first
        if source.parent == repo and os.path.lexists(source / source.name):
            aside = repo / f".{source.name}{MIGRATING_SUFFIX}"
            if os.path.lexists(aside):
                raise FileExistsError(f"{aside} already exists")
            source.rename(aside)
            source = aside
            recover = f"move the remaining files from {source} into {repo}"
        for entry in sorted(source.iterdir()):
            if entry.name == ".git":
                continue
            entry.rename(repo / entry.name)

    with _phase(Phase.MOVE_INDEX, repo, f"move {metadata_dir / 'index'} to {git_dir / 'index'}"):
        index = metadata_dir / "index"
        if index.exists():
            index.replace(git_dir / "index")

    with _phase(Phase.REMOVE_METADATA, repo, f"remove {metadata_dir}"):
        if metadata_dir.exists():
            shutil.rmtree(metadata_dir)

    with _phase(Phase.REMOVE_WORKTREE_DIR, repo, f"remove {source}"):
        (source / ".git").unlink(missing_ok=True)
        source.rmdir()
        _remove_empty_containers(source, repo)

    with _phase(Phase.CONFIGURE, repo, f"run 'git -C {repo} config core.bare false'"):
        git.config_set("core.bare", "false", cwd=git_dir)

    with _phase(Phase.WRITE_HEAD, repo, f"run 'git -C {repo} checkout {plan.default_branch}'"):
        (git_dir / "HEAD").write_text(f"ref: refs/heads/{plan.default_branch}\n", encoding="utf-8")

    _update_worktrees(repo, git_dir, plan.worktrees_to_fix)

    with _phase(Phase.REPAIR, repo, f"run 'git worktree repair' manually from {repo}"):
        git.worktree_repair(cwd=repo)

    if plan.default_branch_upstream:
        _restore_upstream(repo, plan.default_branch, plan.default_branch_upstream, warnings)
    for m in plan.worktrees_to_fix:
        _restore_upstream(m.new_path, m.branch, m.upstream, warnings)

    try:
        git.worktree_prune(cwd=repo)
    except git.GitError as e:
        warnings.add(
            Phase.PRUNE,
            f"could not prune worktree metadata: {e.stderr}",
            event="worktree_prune_failed",
        )

    logger.info(
        "migrate_to_regular_complete",
        repo=str(repo),
        warnings=len(warnings.items),
    )
    return MigrateToRegularResult(
        repo_path=repo,
        git_dir=git_dir,
        warnings=tuple(warnings.items),
    )
