"""Global configuration persistence.

Handles reading and writing global config.json with schema versioning
and atomic write operations.
"""

from __future__ import annotations

import json
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import structlog

from wtmigrate.infrastructure.paths import (
    DEFAULT_WORKTREE_FORMAT,
    InvalidFormatError,
    PathResolver,
    default_resolver,
    validate_format,
)

__all__ = [
    "ConfigError",
    "GlobalConfig",
    "load_global_config",
    "save_global_config",
]

logger = structlog.get_logger()

# Current schema version - increment when making breaking changes
# v1: Initial schema with worktree_format
SCHEMA_VERSION = "1"

# Maximum config file size (1MB)
MAX_CONFIG_SIZE = 1 * 1024 * 1024


class ConfigError(Exception):
    """Raised when configuration operations fail."""


@dataclass(frozen=True)
class GlobalConfig:
    """Immutable global configuration for wtmigrate.

    Attributes:
        worktree_format: Format used to place worktrees during conversion
            when no --format option is given.
    """

    worktree_format: str = DEFAULT_WORKTREE_FORMAT


def _write_json_atomically(path: Path, data: dict[str, Any]) -> None:
    """Write JSON next to ``path`` and rename it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(name)
    try:
        with open(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def save_global_config(
    config: GlobalConfig, resolver: PathResolver | None = None
) -> None:
    """Validate and persist the global configuration.

    The file is replaced atomically, so a reader never sees a partial write.

    Raises:
        ConfigError: If the configuration is invalid or cannot be written.
    """
    try:
        validate_format(config.worktree_format)
    except InvalidFormatError as e:
        raise ConfigError(f"Invalid worktree format: {e}") from e

    path = (resolver or default_resolver).global_config()
    try:
        _write_json_atomically(path, _config_to_dict(config))
    except OSError as e:
        raise ConfigError(f"Failed to save config to {path}: {e}") from e

    logger.debug("config_saved", path=str(path), worktree_format=config.worktree_format)


def _read_config_data(path: Path) -> dict[str, Any] | None:
    """Read the raw JSON object, or None (with a logged warning) if unusable."""
    size = path.stat().st_size
    if size > MAX_CONFIG_SIZE:
        logger.warning("config_too_large", path=str(path), size=size, max_size=MAX_CONFIG_SIZE)
        return None

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        logger.warning("config_not_an_object", path=str(path))
        return None

    version = data.get("version")
    if version and version != SCHEMA_VERSION:
        # Newer files are read best-effort
        logger.warning(
            "config_version_mismatch", path=str(path), expected=SCHEMA_VERSION, found=version
        )
    return data


def load_global_config(resolver: PathResolver | None = None) -> GlobalConfig:
    """Load the global configuration.

    Never fails: a missing, oversized, unreadable or invalid file yields
    the defaults, and every case except a missing file logs a warning.
    """
    path = (resolver or default_resolver).global_config()
    if not path.exists():
        logger.debug("config_not_found", path=str(path))
        return GlobalConfig()

    try:
        data = _read_config_data(path)
        return GlobalConfig() if data is None else _dict_to_config(data)
    except json.JSONDecodeError as e:
        logger.warning("config_invalid_json", path=str(path), error=str(e))
    except (TypeError, ValueError) as e:
        logger.warning("config_parse_error", path=str(path), error=str(e))
    except OSError as e:
        logger.warning("config_read_error", path=str(path), error=str(e))
    return GlobalConfig()


def _config_to_dict(config: GlobalConfig) -> dict[str, Any]:
    return {"version": SCHEMA_VERSION, **asdict(config)}


def _dict_to_config(data: dict[str, Any]) -> GlobalConfig:
    """Build a GlobalConfig from stored data.

    Raises:
        TypeError: If the format is not a string.
        ValueError: If the stored format is not valid.
    """
    fmt = data.get("worktree_format", DEFAULT_WORKTREE_FORMAT)
    if not isinstance(fmt, str):
        raise TypeError(f"worktree_format must be a string, got {type(fmt).__name__}")
    # InvalidFormatError is a ValueError
    validate_format(fmt)
    return GlobalConfig(worktree_format=fmt)
