"""Maintenance of the two-way link between a worktree and its metadata.

A linked worktree is tied to the shared git directory by two pointers:

    <worktree>/.git                      gitdir: <gitdir>/worktrees/<name>
    <gitdir>/worktrees/<name>/gitdir     <worktree>/.git

Each side is resolved independently (``resolve_metadata`` and
``resolve_worktree``) and a link is valid only when both agree.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from wtmigrate.infrastructure import git

if TYPE_CHECKING:
    from wtmigrate.modules.migration.types import WorktreeMigration

__all__ = [
    "GITDIR_PREFIX",
    "LinkCheck",
    "LinkStatus",
    "can_repair_worktree",
    "check_worktree_links",
    "is_worktree_link_valid",
    "metadata_dir_for",
    "repair_worktree",
    "resolve_metadata",
    "resolve_worktree",
    "update_worktree_links",
    "write_git_file",
    "write_metadata_gitdir",
]

logger = structlog.get_logger()

GITDIR_PREFIX = "gitdir: "


class LinkStatus(enum.Enum):
    HEALTHY = "healthy"
    REPAIRABLE = "repairable"
    UNREPAIRABLE = "unrepairable"
    PRUNABLE = "prunable"


@dataclass(frozen=True)
class LinkCheck:
    """Result of checking one linked worktree."""

    path: Path
    branch: str
    status: LinkStatus


def metadata_dir_for(git_dir: Path, name: str) -> Path:
    return git_dir / "worktrees" / name


def write_git_file(worktree_path: Path, metadata_dir: Path) -> None:
    """Point ``<worktree>/.git`` at a metadata directory (relative path)."""
    rel = os.path.relpath(metadata_dir, worktree_path)
    (worktree_path / ".git").write_text(f"{GITDIR_PREFIX}{rel}\n", encoding="utf-8")


def write_metadata_gitdir(metadata_dir: Path, worktree_path: Path) -> None:
    """Point a metadata directory back at ``<worktree>/.git`` (absolute path)."""
    (metadata_dir / "gitdir").write_text(f"{worktree_path / '.git'}\n", encoding="utf-8")


def resolve_metadata(worktree_path: Path) -> Path | None:
    """Follow ``<worktree>/.git`` to the metadata directory it names.

    Returns:
        Resolved metadata directory, or None if the .git file is missing,
        is a directory, or does not contain a gitdir line.
    """
    git_file = worktree_path / ".git"
    if not git_file.is_file():
        return None

    try:
        content = git_file.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError):
        return None

    if not content.startswith(GITDIR_PREFIX.strip()):
        return None
    raw = content[len(GITDIR_PREFIX.strip()):].strip()
    if not raw:
        return None

    target = Path(raw)
    if not target.is_absolute():
        target = worktree_path / target
    return target.resolve()


def resolve_worktree(metadata_dir: Path) -> Path | None:
    """Follow ``<metadata>/gitdir`` back to the worktree it names.

    Returns:
        Resolved worktree directory, or None if the gitdir file is
        missing or empty.
    """
    gitdir_file = metadata_dir / "gitdir"
    try:
        raw = gitdir_file.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError):
        return None
    if not raw:
        return None

    target = Path(raw)
    if not target.is_absolute():
        target = metadata_dir / target
    # gitdir names the worktree's .git file
    return target.parent.resolve()


def is_worktree_link_valid(worktree_path: Path) -> bool:
    """Check that both pointers of a worktree link agree."""
    metadata_dir = resolve_metadata(worktree_path)
    if metadata_dir is None or not metadata_dir.is_dir():
        return False
    return resolve_worktree(metadata_dir) == worktree_path.resolve()


def can_repair_worktree(worktree_path: Path) -> bool:
    """Check whether ``git worktree repair`` can restore a broken link.

    A worktree qualifies when its .git file holds a gitdir line but the link
    does not validate. The named metadata directory may be gone, as after the
    repository itself was moved; git finds the metadata by name from the
    repository it is run in.
    """
    if is_worktree_link_valid(worktree_path):
        return False
    return resolve_metadata(worktree_path) is not None


def repair_worktree(repo_path: Path, worktree_path: Path) -> None:
    """Run ``git worktree repair`` for one worktree.

    Args:
        repo_path: Repository root (regular or bare-in-.git).
        worktree_path: Worktree whose link should be repaired.

    Raises:
        git.GitError: If git cannot repair the link.
    """
    git.worktree_repair(worktree_path, cwd=repo_path / ".git")


def check_worktree_links(repo_path: Path) -> list[LinkCheck]:
    """Check the link of every linked worktree of a repository.

    The repository root itself (regular layout) and the bare entry are
    not linked worktrees and are skipped.

    Raises:
        git.GitError: If the worktree list cannot be read.
    """
    repo_path = repo_path.resolve()
    checks: list[LinkCheck] = []

    for wt in git.worktree_list(cwd=repo_path / ".git"):
        if wt.is_bare or wt.path.resolve() == repo_path:
            continue

        if wt.is_prunable or not wt.path.exists():
            status = LinkStatus.PRUNABLE
        elif is_worktree_link_valid(wt.path):
            status = LinkStatus.HEALTHY
        elif can_repair_worktree(wt.path):
            status = LinkStatus.REPAIRABLE
        else:
            status = LinkStatus.UNREPAIRABLE

        checks.append(LinkCheck(path=wt.path, branch=wt.branch, status=status))

    logger.debug("worktree_links_checked", repo=str(repo_path), count=len(checks))
    return checks


def update_worktree_links(repo_path: Path, migration: WorktreeMigration) -> None:
    """Move a worktree (if planned) and rewrite both sides of its link.

    Args:
        repo_path: Repository root holding the shared .git directory.
        migration: Planned move for this worktree.

    Raises:
        OSError: If the move, metadata rename, or a pointer write fails.
            A failed move is not recovered here.
    """
    git_dir = repo_path / ".git"

    if migration.needs_move:
        migration.new_path.parent.mkdir(parents=True, exist_ok=True)
        migration.old_path.rename(migration.new_path)

    worktree_path = migration.new_path
    new_meta = metadata_dir_for(git_dir, migration.new_name)

    write_git_file(worktree_path, new_meta)

    if migration.old_name != migration.new_name:
        metadata_dir_for(git_dir, migration.old_name).rename(new_meta)

    write_metadata_gitdir(new_meta, worktree_path)

    logger.info(
        "worktree_links_updated",
        branch=migration.branch,
        path=str(worktree_path),
        moved=migration.needs_move,
        metadata=migration.new_name,
    )

