"""
Configuration constants for SeedKeeper.

This module contains global constants used across the storage layer
to avoid tight coupling between modules.
"""

# Directory (relative to the asset root) holding versioned change scripts
MIGRATION_PATH = "migrations"

# Migration file names are "<integer><MIGRATION_SUFFIX>", e.g. "12.sql"
MIGRATION_SUFFIX = ".sql"

# Buffer size for streaming seed images; memory stays bounded regardless of
# database size
COPY_BUFFER_SIZE = 8192

# Schema alias the backup image is attached under during a merge
BACKUP_SCHEMA_ALIAS = "old"

# Suffix of the transient backup file written next to the live database
BACKUP_SUFFIX = ".bak"

# Suffix of the staging copy of the seed image used during a merge
SEED_STAGING_SUFFIX = ".seed"

# First SQLite release with enforced foreign key constraints
FOREIGN_KEYS_MIN_SQLITE_VERSION = (3, 6, 19)
