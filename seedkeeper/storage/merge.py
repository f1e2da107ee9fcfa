"""
Seed merge on upgrade.

After an upgrade has created tables and run migrations against the old live
file, the merge replaces the live database with the freshly shipped seed
image and then restores the tables the new seed does not have:

1. export the live database to a transient backup file
2. overwrite the live database with the seed image
3. list the backup's tables (SQLite internal tables excluded)
4. ATTACH the backup as schema "old"
5. in one transaction, for every backup table:
       CREATE TABLE IF NOT EXISTS t AS SELECT * FROM old.t
6. commit (or roll back the whole copy), then DETACH unconditionally

Step 5 works at table granularity. A table that exists in the new seed is
left exactly as the seed ships it; the rows the backup held for that table
are discarded. Restored tables keep their rows and column names but not
their constraints or indexes (CREATE TABLE ... AS SELECT semantics).

Nothing here raises to the caller. Every failure is logged and reported
through MergeResult.outcome so the upgrade itself still completes:
- BACKUP_FAILED: the live database is left as the migrations produced it
- SEED_FAILED: the live database is unchanged (seed could not be applied)
- RESTORE_FAILED: the live database is the seed image, nothing restored
The backup file is deleted in every case.
"""

import logging
import sqlite3
from contextlib import closing
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from seedkeeper.config.constants import (
    BACKUP_SCHEMA_ALIAS,
    BACKUP_SUFFIX,
    SEED_STAGING_SUFFIX,
)
from seedkeeper.exceptions import AssetIOError
from seedkeeper.storage.assets import AssetBundle
from seedkeeper.storage.schema import quote_identifier
from seedkeeper.storage.seed import write_seed
from seedkeeper.storage.transaction import execute_statement, transaction
from seedkeeper.utils.logging import log_with_context
from seedkeeper.utils.time import file_slug_from_timestamp

logger = logging.getLogger(__name__)


class MergeOutcome(StrEnum):
    MERGED = "merged"
    BACKUP_FAILED = "backup_failed"
    SEED_FAILED = "seed_failed"
    RESTORE_FAILED = "restore_failed"


@dataclass
class MergeResult:
    """
    What a merge did.

    Attributes:
        outcome: Which step the merge reached
        backup_path: Transient backup file used (already deleted)
        restored_tables: Tables copied back from the backup
        error: Error message for failed outcomes
    """

    outcome: MergeOutcome
    backup_path: Path | None = None
    restored_tables: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is MergeOutcome.MERGED


def backup_path_for(db_path: str | Path) -> Path:
    """Backup file name next to the live database, e.g. app.db.2025-11-02T08-30-45Z.bak"""
    db_path = Path(db_path)
    return db_path.with_name(f"{db_path.name}.{file_slug_from_timestamp()}{BACKUP_SUFFIX}")


def export_database(conn: sqlite3.Connection, backup_path: str | Path) -> Path:
    """
    Export the live database to backup_path with SQLite's online backup API.

    Raises:
        AssetIOError: If the backup cannot be written
    """
    backup_path = Path(backup_path)
    try:
        with closing(sqlite3.connect(backup_path)) as target:
            conn.backup(target)
    except (sqlite3.Error, OSError) as e:
        raise AssetIOError(f"Failed to export database to {backup_path}: {e}") from e
    return backup_path


def overwrite_with_seed(
    conn: sqlite3.Connection,
    assets: AssetBundle,
    database_name: str,
    db_path: str | Path,
) -> None:
    """
    Replace the live database content with the seed image.

    The seed is byte-copied to a staging file next to the live database and
    then restored into the live database through conn, so the open handle
    sees the new content instead of stale cached pages.

    Raises:
        AssetIOError: If the seed cannot be read or is not a database
    """
    db_path = Path(db_path)
    staging_path = db_path.with_name(db_path.name + SEED_STAGING_SUFFIX)
    try:
        write_seed(assets, database_name, staging_path)
        try:
            with closing(sqlite3.connect(staging_path)) as seed:
                seed.backup(conn)
        except sqlite3.Error as e:
            raise AssetIOError(
                f"Failed to overwrite {db_path} with seed image: {e}"
            ) from e
    finally:
        staging_path.unlink(missing_ok=True)


def list_backup_tables(backup_path: str | Path) -> list[str]:
    """
    List the tables of the backup image, read-only.

    SQLite's internal tables (sqlite_sequence, sqlite_stat*) are excluded;
    they are reserved names and cannot be recreated by CREATE TABLE.
    """
    uri = f"{Path(backup_path).resolve().as_uri()}?mode=ro"
    with closing(sqlite3.connect(uri, uri=True)) as backup:
        rows = backup.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY rowid"
        ).fetchall()
    return [name for (name,) in rows if not name.lower().startswith("sqlite_")]


def _main_table_names(conn: sqlite3.Connection) -> set[str]:
    rows = conn.execute("SELECT name FROM main.sqlite_master WHERE type='table'").fetchall()
    return {name.lower() for (name,) in rows}


def restore_missing_tables(conn: sqlite3.Connection, backup_path: str | Path) -> list[str]:
    """
    Copy tables that are absent from the live database back from the backup.

    Returns:
        Names of the tables that were restored

    Raises:
        sqlite3.Error / StatementExecutionError: On failure; the copy phase
        is rolled back and the backup detached
    """
    tables = list_backup_tables(backup_path)

    # ATTACH is not allowed inside a transaction
    if conn.in_transaction:
        conn.commit()

    conn.execute(f"ATTACH DATABASE ? AS {BACKUP_SCHEMA_ALIAS}", (str(backup_path),))
    try:
        existing = _main_table_names(conn)
        restored = [table for table in tables if table.lower() not in existing]

        with transaction(conn):
            for table in tables:
                name = quote_identifier(table)
                execute_statement(
                    conn,
                    f"CREATE TABLE IF NOT EXISTS {name} "
                    f"AS SELECT * FROM {BACKUP_SCHEMA_ALIAS}.{name}",
                    source=table,
                )
    finally:
        try:
            conn.execute(f"DETACH DATABASE {BACKUP_SCHEMA_ALIAS}")
        except sqlite3.Error as e:
            logger.warning(f"Failed to detach backup database: {e}")

    return restored


def merge_seed_database(
    conn: sqlite3.Connection,
    assets: AssetBundle,
    database_name: str,
    db_path: str | Path,
) -> MergeResult:
    """
    Reset the live database to the new seed image, keeping tables it lacks.

    Args:
        conn: Connection to the live database, migrations already committed
        assets: Asset bundle holding the seed image
        database_name: Seed asset key
        db_path: Path of the live database file

    Returns:
        MergeResult describing how far the merge got. Never raises.
    """
    db_path = Path(db_path)
    backup_path = backup_path_for(db_path)

    if conn.in_transaction:
        conn.commit()

    try:
        try:
            export_database(conn, backup_path)
        except AssetIOError as e:
            logger.error(f"Database backup failed, skipping seed merge: {e}")
            return MergeResult(MergeOutcome.BACKUP_FAILED, error=str(e))

        try:
            overwrite_with_seed(conn, assets, database_name, db_path)
        except AssetIOError as e:
            logger.error(f"Seed overwrite failed, keeping migrated database: {e}")
            return MergeResult(MergeOutcome.SEED_FAILED, backup_path, error=str(e))

        try:
            restored = restore_missing_tables(conn, backup_path)
        except Exception as e:
            logger.error(f"Failed to restore tables from backup: {e}", exc_info=True)
            return MergeResult(MergeOutcome.RESTORE_FAILED, backup_path, error=str(e))
    finally:
        backup_path.unlink(missing_ok=True)

    log_with_context(
        logger,
        logging.INFO,
        "Seed merge finished",
        context={"restored_tables": restored},
        database=database_name,
    )
    return MergeResult(MergeOutcome.MERGED, backup_path, restored)
