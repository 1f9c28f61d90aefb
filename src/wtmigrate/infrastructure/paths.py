"""Path resolution for worktree targets and wtmigrate storage."""

from __future__ import annotations

import os
import re
from pathlib import Path

__all__ = [
    "DEFAULT_WORKTREE_FORMAT",
    "InvalidFormatError",
    "PathResolver",
    "VALID_PLACEHOLDERS",
    "default_resolver",
    "resolve_worktree_path",
    "sanitize_branch_name",
    "validate_format",
]

# Nested inside the repository, one directory per branch
DEFAULT_WORKTREE_FORMAT = "{branch}"

VALID_PLACEHOLDERS: tuple[str, ...] = ("{repo}", "{branch}")

_PLACEHOLDER_RE = re.compile(r"\{[a-z-]+\}")


class InvalidFormatError(ValueError):
    """Raised when a worktree format string is not usable."""


def sanitize_branch_name(branch: str) -> str:
    """Convert a branch name to a directory and metadata name.

    Replaces slashes with hyphens to handle branches like 'feature/auth'.

    Args:
        branch: Git branch name.

    Returns:
        Sanitized name suitable for directory naming.
    """
    return branch.replace("/", "-")


def validate_format(fmt: str) -> None:
    """Check that a worktree format string is usable.

    Args:
        fmt: Format string such as "{branch}" or "../{repo}-{branch}".

    Raises:
        InvalidFormatError: If the format is empty, uses an unknown
            placeholder, or has no placeholder at all.
    """
    if not fmt:
        raise InvalidFormatError("worktree format must not be empty")

    for match in _PLACEHOLDER_RE.findall(fmt):
        if match not in VALID_PLACEHOLDERS:
            raise InvalidFormatError(
                f"unknown placeholder {match!r} in format {fmt!r} "
                f"(valid: {', '.join(VALID_PLACEHOLDERS)})"
            )

    if not any(p in fmt for p in VALID_PLACEHOLDERS):
        raise InvalidFormatError(
            f"format {fmt!r} must contain at least one placeholder "
            f"({', '.join(VALID_PLACEHOLDERS)})"
        )


def resolve_worktree_path(repo_path: Path, repo_name: str, branch: str, fmt: str) -> Path:
    """Compute the worktree path for a branch from a format string.

    Supported shapes:
        "{branch}" or "./{branch}"   nested inside the repository
        "../{repo}-{branch}"         sibling of the repository
        "~/worktrees/{repo}-{branch}" under the home directory
        "/abs/{repo}-{branch}"       absolute

    Args:
        repo_path: Absolute repository root.
        repo_name: Value for the {repo} placeholder.
        branch: Branch name; slashes become hyphens.
        fmt: Format string.

    Returns:
        Normalized absolute path.
    """
    path = fmt.replace("{repo}", repo_name)
    path = path.replace("{branch}", sanitize_branch_name(branch))

    if path.startswith("../"):
        resolved = repo_path.parent / path[3:]
    elif path.startswith("~/"):
        resolved = Path.home() / path[2:]
    elif path.startswith("/"):
        resolved = Path(path)
    else:
        resolved = repo_path / path.removeprefix("./")

    return Path(os.path.normpath(resolved))


class PathResolver:
    """Resolves paths for wtmigrate's own storage.

    Storage layout:
        ~/.wtmigrate/
        └── config.json
    """

    def __init__(self, base: Path | None = None) -> None:
        """Initialize path resolver.

        Args:
            base: Base directory for storage. Defaults to ~/.wtmigrate.
        """
        self.base = base or Path.home() / ".wtmigrate"

    def ensure_base(self) -> Path:
        """Ensure base directory exists and return it."""
        self.base.mkdir(parents=True, exist_ok=True)
        return self.base

    def global_config(self) -> Path:
        """Path to global configuration file."""
        return self.base / "config.json"


# Default resolver instance
default_resolver = PathResolver()
