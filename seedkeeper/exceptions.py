"""
Custom exceptions for SeedKeeper.

This module provides a hierarchy of exceptions that enable type-safe error
handling throughout the schema lifecycle. All exceptions inherit from the base
SeedKeeperError for consistent catching.

Exception Hierarchy:
    SeedKeeperError (base)
    ├── ConfigurationError
    │   ├── ConfigFileNotFoundError
    │   └── ConfigValidationError
    └── DatabaseError
        ├── AssetIOError
        ├── StatementExecutionError
        ├── IdentifierParseError
        └── DatabaseVersionError

Propagation policy:
    - Table creation and migration failures roll back their own transaction
      and propagate to the caller (fatal for that open attempt).
    - Seed copy and merge failures are caught, logged and degraded.
    - IdentifierParseError is always degraded to "skip this file".

Usage:
    from seedkeeper.exceptions import StatementExecutionError

    try:
        apply_range(conn, assets, old_version, new_version, mode)
    except StatementExecutionError as e:
        logger.error(f"Migration failed on: {e.statement}")
        raise
"""


class SeedKeeperError(Exception):
    """
    Base exception for all SeedKeeper errors.

    All custom exceptions in this package inherit from this class.
    This enables catching all package-specific errors with a single except clause.
    """

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(SeedKeeperError):
    """
    Base class for configuration-related errors.

    Raised when configuration loading, parsing, or validation fails.
    Should be caught and result in exit code 1 (configuration error).
    """

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """
    Configuration file does not exist at the specified path.

    Example:
        raise ConfigFileNotFoundError("/path/to/seedkeeper.config.yaml")
    """

    pass


class ConfigValidationError(ConfigurationError):
    """
    Configuration file is invalid (schema validation failed).

    Should include details about which field(s) failed validation.

    Example:
        raise ConfigValidationError("Field 'database.version' must be >= 0")
    """

    pass


# ============================================================================
# Database Errors
# ============================================================================


class DatabaseError(SeedKeeperError):
    """
    Base class for database lifecycle errors.

    Should be caught and result in exit code 2 (database error).
    """

    pass


class AssetIOError(DatabaseError):
    """
    Reading a bundled asset or exporting the live database failed.

    Covers seed image reads, migration script reads and backup export.

    Example:
        raise AssetIOError("Seed asset not found: app.db")
    """

    pass


class StatementExecutionError(DatabaseError):
    """
    A single SQL statement failed against the engine.

    Attributes:
        statement: str | None - The SQL text that failed
        source: str | None - Where the statement came from (script name,
                             table definition), if known

    Example:
        raise StatementExecutionError(
            "near 'CREAT': syntax error",
            statement="CREAT TABLE notes (id INTEGER)",
            source="3.sql",
        )
    """

    def __init__(
        self,
        message: str,
        statement: str | None = None,
        source: str | None = None,
    ):
        super().__init__(message)
        self.statement = statement
        self.source = source


class IdentifierParseError(DatabaseError):
    """
    Migration file name does not parse to an integer version.

    Always non-fatal: the file is skipped with a warning.

    Attributes:
        file_name: str - The offending migration file name

    Example:
        raise IdentifierParseError("Invalid migration name", file_name="README.sql")
    """

    def __init__(self, message: str, file_name: str):
        super().__init__(message)
        self.file_name = file_name


class DatabaseVersionError(DatabaseError):
    """
    Stored schema version is newer than the configured target.

    Downgrades are not supported.

    Example:
        raise DatabaseVersionError("Database is at v7 but target is v5")
    """

    pass
