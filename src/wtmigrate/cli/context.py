"""CLI context state management."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from wtmigrate.infrastructure.config import GlobalConfig

__all__ = ["CLIContext"]


@dataclass
class CLIContext:
    """Global CLI state shared by all commands.

    Mutable singleton; set once by the app callback and read by commands.
    """

    verbose: bool = False
    quiet: bool = False
    config: GlobalConfig | None = None

    _instance: ClassVar[CLIContext | None] = None

    @classmethod
    def get(cls) -> CLIContext:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance (used by tests)."""
        cls._instance = None

    def get_config(self) -> GlobalConfig:
        """Load the global config on first access and cache it."""
        if self.config is None:
            from wtmigrate.infrastructure.config import load_global_config

            self.config = load_global_config()
        return self.config

    def worktree_format(self, override: str | None) -> str:
        """Pick the --format value, falling back to the configured format."""
        if override:
            return override
        return self.get_config().worktree_format
