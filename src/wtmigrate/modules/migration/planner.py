"""Dry-run validation of a layout migration.

The planner inspects a repository, computes every target path and metadata
name, and reports the first invariant violation. It never writes to disk;
the executor consumes the returned plan without recomputing anything.
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from wtmigrate.infrastructure import git
from wtmigrate.infrastructure.paths import resolve_worktree_path, sanitize_branch_name
from wtmigrate.modules.migration.errors import (
    AlreadyMigratedError,
    DetachedHeadError,
    FileWorktreeNameConflictError,
    MetadataNameConflictError,
    NoDefaultBranchWorktreeError,
    RootEntryConflictError,
    SubmodulesUnsupportedError,
    TargetPathConflictError,
    ValidationError,
    WorktreeContainerConflictError,
)
from wtmigrate.modules.migration.inspector import (
    RepoLayout,
    detect_layout,
    get_worktree_metadata_name,
    has_submodules,
    resolve_repo_path,
)
from wtmigrate.modules.migration.types import (
    MigrationOptions,
    MigrationPlan,
    RegularMigrationPlan,
    WorktreeMigration,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = [
    "top_level_entry",
    "validate_migration",
    "validate_migration_to_regular",
]

logger = structlog.get_logger()


def top_level_entry(path: Path, root: Path) -> str | None:
    """Name of the entry directly under ``root`` that contains ``path``.

    Returns None when ``path`` is ``root`` itself or lies outside it.
    """
    if path == root or not path.is_relative_to(root):
        return None
    return path.relative_to(root).parts[0]


def _linked_worktrees(repo_path: Path, cwd: Path) -> list[git.WorktreeInfo]:
    """Worktrees other than the repository root and the bare entry."""
    try:
        worktrees = git.worktree_list(cwd=cwd)
    except git.GitError as e:
        raise ValidationError(f"cannot list worktrees of {repo_path}: {e.stderr}") from e

    linked: list[git.WorktreeInfo] = []
    for wt in worktrees:
        if wt.is_bare or wt.path.resolve() == repo_path:
            continue
        if wt.is_prunable:
            logger.warning("prunable_worktree_skipped", path=str(wt.path), branch=wt.branch)
            continue
        linked.append(wt)
    return linked


def _metadata_name(worktree_path: Path) -> str:
    try:
        return get_worktree_metadata_name(worktree_path)
    except git.GitError as e:
        raise ValidationError(
            f"cannot read worktree metadata for {worktree_path}: {e.stderr}"
        ) from e


def _plan_worktree(
    repo_path: Path, wt: git.WorktreeInfo, opts: MigrationOptions
) -> WorktreeMigration:
    old_path = wt.path.resolve()
    old_name = _metadata_name(old_path)

    # Without a branch there is nothing to derive a location from
    if wt.is_detached:
        return WorktreeMigration(
            old_path=old_path,
            new_path=old_path,
            branch=wt.branch,
            upstream="",
            old_name=old_name,
            new_name=old_name,
        )

    new_path = resolve_worktree_path(repo_path, opts.repo_name, wt.branch, opts.worktree_format)
    if new_path != old_path and (new_path.exists() or new_path.is_symlink()):
        raise TargetPathConflictError(old_path, new_path)

    return WorktreeMigration(
        old_path=old_path,
        new_path=new_path,
        branch=wt.branch,
        upstream=git.get_upstream_branch(wt.branch, cwd=old_path),
        old_name=old_name,
        new_name=sanitize_branch_name(wt.branch),
    )


def _check_unique_targets(
    migrations: Iterable[WorktreeMigration], reserved: dict[Path, Path]
) -> None:
    """Reject two worktrees planned onto the same directory.

    Args:
        migrations: Planned worktrees.
        reserved: Target paths already claimed, mapped to their source.
    """
    claimed = dict(reserved)
    for m in migrations:
        if m.new_path in claimed:
            raise TargetPathConflictError(m.old_path, m.new_path)
        claimed[m.new_path] = m.old_path


def _check_metadata_names(
    git_dir: Path,
    claims: Iterable[tuple[str, str, str | None]],
    freed: Iterable[str] = (),
) -> None:
    """Reject metadata names claimed twice or already taken on disk.

    Args:
        git_dir: Shared git directory.
        claims: (new_name, branch, old_name) for every metadata directory the
            executor will create or rename into. old_name is None for a
            directory created from scratch.
        freed: Names whose directories are deleted before any rename.
    """
    by_name: dict[str, list[str]] = defaultdict(list)
    for name, branch, _ in claims:
        by_name[name].append(branch)
    for name, branches in by_name.items():
        if len(branches) > 1:
            raise MetadataNameConflictError(name, branches)

    freed_names = set(freed)
    for name, branch, old_name in claims:
        if name == old_name or name in freed_names:
            continue
        if (git_dir / "worktrees" / name).exists():
            raise MetadataNameConflictError(name, [branch])


def _check_main_worktree_target(
    repo_path: Path, main_path: Path, migrations: Iterable[WorktreeMigration]
) -> None:
    if main_path == repo_path or main_path.exists() or main_path.is_symlink():
        raise TargetPathConflictError(repo_path, main_path)

    # A nested target such as repo/worktrees/main must not land inside an
    # existing top-level entry, which would otherwise be swallowed whole.
    top = top_level_entry(main_path, repo_path)
    if top is None or main_path.parent == repo_path:
        return
    top_path = repo_path / top
    holds_worktree = any(top_level_entry(m.old_path, repo_path) == top for m in migrations)
    if top_path.exists() and not holds_worktree:
        raise TargetPathConflictError(repo_path, top_path)


def _check_worktree_containers(
    repo_path: Path, migrations: Iterable[WorktreeMigration]
) -> None:
    """Reject checkout files living beside a worktree nested below the root.

    The executor leaves every top-level entry that holds a linked worktree in
    place, so such an entry may contain only worktrees and the directories
    leading to them.
    """
    worktrees = [m.old_path for m in migrations if top_level_entry(m.old_path, repo_path)]
    nested = [wt for wt in worktrees if wt.parent != repo_path]

    def walk(directory: Path) -> None:
        for entry in sorted(directory.iterdir()):
            if entry in worktrees:
                continue
            inner = next((wt for wt in nested if wt.is_relative_to(entry)), None)
            if inner is None or entry.is_symlink() or not entry.is_dir():
                owner = next(wt for wt in nested if wt.is_relative_to(directory))
                raise WorktreeContainerConflictError(entry, owner)
            walk(entry)

    containers = {repo_path / top_level_entry(wt, repo_path) for wt in nested}
    for container in sorted(containers):
        walk(container)


def validate_migration(repo_path: Path | str, opts: MigrationOptions) -> MigrationPlan:
    """Plan the conversion of a regular repository to bare-in-.git.

    Args:
        repo_path: Repository root.
        opts: Worktree format and repository name.

    Returns:
        The migration plan.

    Raises:
        ValidationError: The first problem found; nothing is modified.
    """
    opts.validate()
    repo_path = resolve_repo_path(repo_path)

    if detect_layout(repo_path) is RepoLayout.BARE:
        raise AlreadyMigratedError(repo_path, RepoLayout.BARE.value)

    git_dir = repo_path / ".git"

    if has_submodules(repo_path):
        raise SubmodulesUnsupportedError(repo_path)

    try:
        branch = git.get_current_branch(cwd=repo_path)
    except git.GitError as e:
        raise ValidationError(f"cannot read current branch of {repo_path}: {e.stderr}") from e
    if branch == git.DETACHED:
        raise DetachedHeadError(repo_path)

    upstream = git.get_upstream_branch(branch, cwd=repo_path)
    main_path = resolve_worktree_path(repo_path, opts.repo_name, branch, opts.worktree_format)

    migrations = [
        _plan_worktree(repo_path, wt, opts)
        for wt in _linked_worktrees(repo_path, cwd=repo_path)
    ]

    _check_main_worktree_target(repo_path, main_path, migrations)
    _check_worktree_containers(repo_path, migrations)
    _check_unique_targets(migrations, {main_path: repo_path})
    _check_metadata_names(
        git_dir,
        [
            (sanitize_branch_name(branch), branch, None),
            *((m.new_name, m.branch, m.old_name) for m in migrations),
        ],
    )

    plan = MigrationPlan(
        repo_path=repo_path,
        git_dir=git_dir,
        current_branch=branch,
        main_branch_upstream=upstream,
        main_worktree_path=main_path,
        worktrees_to_fix=tuple(migrations),
    )
    logger.info(
        "migration_planned",
        direction="bare",
        repo=str(repo_path),
        branch=branch,
        main_worktree=str(main_path),
        worktrees=len(migrations),
    )
    return plan


def _check_root_collisions(
    repo_path: Path, source: Path, migrations: Iterable[WorktreeMigration]
) -> None:
    """Reject entries of ``source`` that would collide once moved to the root."""
    # Keyed by top-level entry so repo/wt/feature claims "wt" as well
    worktree_dirs: dict[str, Path] = {}
    for m in migrations:
        for path in (m.old_path, m.new_path):
            top = top_level_entry(path, repo_path)
            if top is not None and repo_path / top != source:
                worktree_dirs.setdefault(top, path)

    for entry in sorted(source.iterdir()):
        name = entry.name
        if name == ".git":
            continue
        if name in worktree_dirs:
            raise FileWorktreeNameConflictError(name, source, worktree_dirs[name])

        existing = repo_path / name
        if existing == source:
            # The executor renames the worktree aside first
            continue
        if existing.exists() or existing.is_symlink():
            raise RootEntryConflictError(name, source, existing)


def validate_migration_to_regular(
    repo_path: Path | str, opts: MigrationOptions
) -> RegularMigrationPlan:
    """Plan the conversion of a bare-in-.git repository back to regular.

    The default branch's worktree becomes the working tree at the root.

    Args:
        repo_path: Repository root (the directory holding .git).
        opts: Worktree format and repository name for remaining worktrees.

    Returns:
        The migration plan.

    Raises:
        ValidationError: The first problem found; nothing is modified.
    """
    opts.validate()
    repo_path = resolve_repo_path(repo_path)

    if detect_layout(repo_path) is RepoLayout.REGULAR:
        raise AlreadyMigratedError(repo_path, RepoLayout.REGULAR.value)

    git_dir = repo_path / ".git"
    default_branch = git.get_default_branch(cwd=git_dir)
    worktrees = _linked_worktrees(repo_path, cwd=git_dir)

    default_wt = next((wt for wt in worktrees if wt.branch == default_branch), None)
    if default_wt is None:
        raise NoDefaultBranchWorktreeError(
            default_branch, sorted(wt.branch for wt in worktrees), git_dir
        )

    source = default_wt.path.resolve()
    if has_submodules(source):
        raise SubmodulesUnsupportedError(source)

    default_name = _metadata_name(source)
    migrations = [
        _plan_worktree(repo_path, wt, opts) for wt in worktrees if wt is not default_wt
    ]

    _check_unique_targets(migrations, {repo_path: source})
    _check_metadata_names(
        git_dir,
        [(m.new_name, m.branch, m.old_name) for m in migrations],
        freed=[default_name],
    )
    _check_root_collisions(repo_path, source, migrations)

    plan = RegularMigrationPlan(
        repo_path=repo_path,
        git_dir=git_dir,
        default_branch=default_branch,
        default_branch_worktree=source,
        default_branch_metadata_name=default_name,
        default_branch_upstream=git.get_upstream_branch(default_branch, cwd=git_dir),
        worktrees_to_fix=tuple(migrations),
    )
    logger.info(
        "migration_planned",
        direction="regular",
        repo=str(repo_path),
        default_branch=default_branch,
        source=str(source),
        worktrees=len(migrations),
    )
    return plan
