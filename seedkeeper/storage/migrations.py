"""
Versioned migration scripts.

Migrations are plain SQL files in the asset bundle's migrations/ directory,
named "<version>.sql". apply_range() runs every script whose version v
satisfies old_version < v <= new_version, in natural file-name order, inside
ONE transaction: either every statement of every selected script commits, or
nothing does.

Migration Philosophy:
- Migrations are one-way (no downgrades)
- The script set is re-read from the asset bundle on every call
- Badly named files are skipped with a warning, never fatal
- Any failing statement rolls back the whole batch and propagates

Example:
    assets/migrations/
        1.sql   -- ALTER TABLE notes ADD COLUMN pinned INTEGER DEFAULT 0;
        2.sql
        10.sql
        README.txt          (skipped: not a version number)

    >>> apply_range(conn, assets, old_version=1, new_version=10)
    True   # ran 2.sql then 10.sql
"""

import logging
import re
import sqlite3
from dataclasses import dataclass

from seedkeeper.config.constants import MIGRATION_PATH, MIGRATION_SUFFIX
from seedkeeper.exceptions import DatabaseError, IdentifierParseError
from seedkeeper.storage.assets import AssetBundle
from seedkeeper.storage.sql_parser import ParserMode, parse_script
from seedkeeper.storage.transaction import execute_statement, transaction
from seedkeeper.utils.natural_order import natural_sorted

logger = logging.getLogger(__name__)

_VERSION = re.compile(r"\d+", re.ASCII)


@dataclass(frozen=True)
class MigrationScript:
    """One migration file: its version, file name and raw bytes."""

    version: int
    name: str
    raw_text: bytes


def parse_identifier(file_name: str) -> int:
    """
    Derive the schema version from a migration file name.

    The fixed suffix is removed and the remainder must be a base-10 integer.

    Raises:
        IdentifierParseError: If the remainder is not an integer
    """
    identifier = file_name.removesuffix(MIGRATION_SUFFIX)
    if not _VERSION.fullmatch(identifier):
        raise IdentifierParseError(
            f"Migration file name is not a version number: {file_name}",
            file_name=file_name,
        )
    return int(identifier)


def list_migration_files(assets: AssetBundle) -> list[str]:
    """List the migration directory in natural order ("2.sql" before "10.sql")."""
    return natural_sorted(assets.list(MIGRATION_PATH))


def select_migrations(
    file_names: list[str], old_version: int, new_version: int
) -> list[tuple[int, str]]:
    """
    Pick the files whose version lies in (old_version, new_version].

    File order is preserved. Names that do not parse are logged and skipped.

    Returns:
        (version, file_name) pairs in input order
    """
    selected = []
    for file_name in file_names:
        try:
            version = parse_identifier(file_name)
        except IdentifierParseError as e:
            logger.warning(f"Skipping invalidly named file: {e.file_name}")
            continue

        if old_version < version <= new_version:
            selected.append((version, file_name))
    return selected


def load_script(assets: AssetBundle, version: int, file_name: str) -> MigrationScript:
    """
    Read a migration file from the asset bundle.

    Raises:
        AssetIOError: If the file cannot be read
    """
    raw_text = assets.read_bytes(f"{MIGRATION_PATH}/{file_name}")
    return MigrationScript(version=version, name=file_name, raw_text=raw_text)


def execute_script(
    conn: sqlite3.Connection,
    script: MigrationScript,
    mode: ParserMode | str = ParserMode.LEGACY,
) -> int:
    """
    Parse a script and execute its statements in order.

    Must run inside the caller's transaction; nothing is committed here.

    Returns:
        Number of statements executed

    Raises:
        AssetIOError: If the script text cannot be decoded
        StatementExecutionError: If a statement fails
    """
    statements = parse_script(script.raw_text, mode)
    for statement in statements:
        execute_statement(conn, statement, source=script.name)
    return len(statements)


def apply_range(
    conn: sqlite3.Connection,
    assets: AssetBundle,
    old_version: int,
    new_version: int,
    mode: ParserMode | str = ParserMode.LEGACY,
) -> bool:
    """
    Apply every migration with version in (old_version, new_version].

    All selected scripts run in one transaction, in natural file-name order.
    old_version == new_version selects nothing.

    Args:
        conn: Open SQLite connection, not inside a transaction
        assets: Asset bundle holding the migrations/ directory
        old_version: Version the database is at (-1 for a brand new schema)
        new_version: Target version
        mode: Script parsing strategy

    Returns:
        True if at least one script was applied

    Raises:
        AssetIOError: If a selected script cannot be read (batch rolled back)
        StatementExecutionError: If any statement fails (batch rolled back)
    """
    selected = select_migrations(list_migration_files(assets), old_version, new_version)
    if not selected:
        logger.debug(f"No migrations between v{old_version} and v{new_version}")
        return False

    logger.info(
        f"Applying {len(selected)} migration(s): v{old_version} -> v{new_version}"
    )

    try:
        with transaction(conn):
            for version, file_name in selected:
                script = load_script(assets, version, file_name)
                count = execute_script(conn, script, mode)
                logger.info(f"{file_name} executed successfully ({count} statements).")
    except DatabaseError as e:
        logger.error(
            f"Migration v{old_version} -> v{new_version} failed, rolled back: {e}",
            exc_info=True,
        )
        raise

    return True
