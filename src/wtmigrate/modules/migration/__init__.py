"""Repository layout migration module."""

from wtmigrate.modules.migration.errors import (
    AlreadyMigratedError,
    DetachedHeadError,
    FileWorktreeNameConflictError,
    InvalidOptionsError,
    MetadataNameConflictError,
    MigrationError,
    NoDefaultBranchWorktreeError,
    NotAGitRepositoryError,
    PathIsWorktreeError,
    Phase,
    PhaseError,
    RootEntryConflictError,
    SubmodulesUnsupportedError,
    TargetPathConflictError,
    ValidationError,
    WorktreeContainerConflictError,
)
from wtmigrate.modules.migration.executor import migrate_to_bare, migrate_to_regular
from wtmigrate.modules.migration.inspector import (
    RepoLayout,
    Repository,
    detect_layout,
    inspect_repository,
    is_bare_repo,
)
from wtmigrate.modules.migration.planner import (
    validate_migration,
    validate_migration_to_regular,
)
from wtmigrate.modules.migration.types import (
    MigrateToBareResult,
    MigrateToRegularResult,
    MigrationOptions,
    MigrationPlan,
    MigrationWarning,
    RegularMigrationPlan,
    WorktreeMigration,
)

__all__ = [
    "AlreadyMigratedError",
    "DetachedHeadError",
    "FileWorktreeNameConflictError",
    "InvalidOptionsError",
    "MetadataNameConflictError",
    "MigrateToBareResult",
    "MigrateToRegularResult",
    "MigrationError",
    "MigrationOptions",
    "MigrationPlan",
    "MigrationWarning",
    "NoDefaultBranchWorktreeError",
    "NotAGitRepositoryError",
    "PathIsWorktreeError",
    "Phase",
    "PhaseError",
    "RegularMigrationPlan",
    "RepoLayout",
    "Repository",
    "RootEntryConflictError",
    "SubmodulesUnsupportedError",
    "TargetPathConflictError",
    "ValidationError",
    "WorktreeContainerConflictError",
    "WorktreeMigration",
    "detect_layout",
    "inspect_repository",
    "is_bare_repo",
    "migrate_to_bare",
    "migrate_to_regular",
    "validate_migration",
    "validate_migration_to_regular",
]
