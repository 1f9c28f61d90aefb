"""Tests for global configuration module."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from wtmigrate.infrastructure.config import (
    MAX_CONFIG_SIZE,
    ConfigError,
    GlobalConfig,
    load_global_config,
    save_global_config,
)
from wtmigrate.infrastructure.paths import DEFAULT_WORKTREE_FORMAT, PathResolver

if TYPE_CHECKING:
    from pathlib import Path


def _write_config(resolver: PathResolver, content: str) -> None:
    path = resolver.global_config()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


class TestGlobalConfig:
    """Tests for GlobalConfig dataclass."""

    def test_config_is_frozen(self) -> None:
        config = GlobalConfig()

        with pytest.raises((AttributeError, TypeError)):
            config.worktree_format = "../{repo}-{branch}"  # type: ignore

    def test_config_defaults(self) -> None:
        assert GlobalConfig().worktree_format == DEFAULT_WORKTREE_FORMAT == "{branch}"


class TestLoadGlobalConfig:
    """Tests for load_global_config function."""

    def test_returns_defaults_when_file_missing(self, tmp_path: Path) -> None:
        config = load_global_config(PathResolver(base=tmp_path))

        assert config == GlobalConfig()

    def test_loads_config_from_file(self, tmp_path: Path) -> None:
        resolver = PathResolver(base=tmp_path)
        _write_config(
            resolver,
            json.dumps({"version": "1", "worktree_format": "../{repo}-{branch}"}),
        )

        config = load_global_config(resolver)

        assert config.worktree_format == "../{repo}-{branch}"

    def test_handles_invalid_json(self, tmp_path: Path) -> None:
        resolver = PathResolver(base=tmp_path)
        _write_config(resolver, "{not json")

        assert load_global_config(resolver) == GlobalConfig()

    def test_handles_schema_version_mismatch(self, tmp_path: Path) -> None:
        """A newer schema is still read on a best-effort basis."""
        resolver = PathResolver(base=tmp_path)
        _write_config(resolver, json.dumps({"version": "99", "worktree_format": "wt/{branch}"}))

        assert load_global_config(resolver).worktree_format == "wt/{branch}"

    def test_rejects_oversized_file(self, tmp_path: Path) -> None:
        resolver = PathResolver(base=tmp_path)
        _write_config(resolver, "x" * (MAX_CONFIG_SIZE + 1))

        assert load_global_config(resolver) == GlobalConfig()

    def test_handles_missing_fields_with_defaults(self, tmp_path: Path) -> None:
        resolver = PathResolver(base=tmp_path)
        _write_config(resolver, json.dumps({"version": "1"}))

        assert load_global_config(resolver).worktree_format == DEFAULT_WORKTREE_FORMAT

    def test_invalid_stored_format_uses_defaults(self, tmp_path: Path) -> None:
        resolver = PathResolver(base=tmp_path)
        _write_config(resolver, json.dumps({"version": "1", "worktree_format": "{nope}"}))

        assert load_global_config(resolver) == GlobalConfig()

    def test_non_string_format_uses_defaults(self, tmp_path: Path) -> None:
        resolver = PathResolver(base=tmp_path)
        _write_config(resolver, json.dumps({"version": "1", "worktree_format": 42}))

        assert load_global_config(resolver) == GlobalConfig()


class TestSaveGlobalConfig:
    """Tests for save_global_config function."""

    def test_saves_config_with_schema_version(self, tmp_path: Path) -> None:
        resolver = PathResolver(base=tmp_path)

        save_global_config(GlobalConfig(worktree_format="../{repo}-{branch}"), resolver)

        data = json.loads(resolver.global_config().read_text())
        assert data == {"version": "1", "worktree_format": "../{repo}-{branch}"}

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        resolver = PathResolver(base=tmp_path / "nonexistent")

        save_global_config(GlobalConfig(), resolver)

        assert resolver.global_config().exists()

    def test_leaves_no_temp_files(self, tmp_path: Path) -> None:
        resolver = PathResolver(base=tmp_path)

        save_global_config(GlobalConfig(), resolver)

        assert [p.name for p in tmp_path.iterdir()] == ["config.json"]

    def test_rejects_invalid_format(self, tmp_path: Path) -> None:
        resolver = PathResolver(base=tmp_path)

        with pytest.raises(ConfigError, match="Invalid worktree format"):
            save_global_config(GlobalConfig(worktree_format="worktrees"), resolver)

        assert not resolver.global_config().exists()

    def test_save_then_load(self, tmp_path: Path) -> None:
        resolver = PathResolver(base=tmp_path)
        config = GlobalConfig(worktree_format="~/wt/{repo}/{branch}")

        save_global_config(config, resolver)

        assert load_global_config(resolver) == config
