"""
Database lifecycle: create, upgrade and open.

DatabaseHelper ties the storage pieces together behind three explicit entry
points, each taking an open connection:

    on_open(conn)                 every open: session settings
    on_create(conn)               first open: settings, tables, migrations
                                  (-1 -> target), indexes
    on_upgrade(conn, old, new)    target raised: settings, tables, migrations
                                  (old -> new), seed merge

open_database() is the driver that decides which of them fires. It keeps the
schema version in SQLite's PRAGMA user_version: 0 means "no schema yet"
(or, for a file this helper did not provision, "created at target 0"),
anything lower than the configured target triggers an upgrade, anything
higher is refused (downgrades are not supported).

Table creation and migrations propagate their errors; the seed copy and the
merge only log and degrade, since by then a usable schema already exists.

Example usage:
    >>> from seedkeeper.storage.db import init_database
    >>> conn = init_database("seedkeeper.config.yaml")
    # Copies the seed image on first run, then creates, migrates or merges
    # as needed and returns an open connection.
"""

import logging
import sqlite3
from pathlib import Path

from seedkeeper.config.loader import load_config
from seedkeeper.config.schema import RuntimeConfig
from seedkeeper.exceptions import DatabaseVersionError
from seedkeeper.storage.assets import AssetBundle
from seedkeeper.storage.merge import MergeResult, merge_seed_database
from seedkeeper.storage.migrations import apply_range
from seedkeeper.storage.pragmas import apply_session_settings
from seedkeeper.storage.schema import SchemaRegistry, create_all, create_all_indexes
from seedkeeper.storage.seed import SeedOutcome, ensure_seed
from seedkeeper.storage.sql_parser import ParserMode
from seedkeeper.utils.logging import log_with_context

logger = logging.getLogger(__name__)

# Version passed as "old" when creating a schema from scratch
NO_SCHEMA_VERSION = -1


def get_user_version(conn: sqlite3.Connection) -> int:
    """Read the schema version stored in PRAGMA user_version (0 if never set)."""
    return conn.execute("PRAGMA user_version").fetchone()[0]


def set_user_version(conn: sqlite3.Connection, version: int) -> None:
    """Persist the schema version in PRAGMA user_version."""
    # PRAGMA does not accept bound parameters
    conn.execute(f"PRAGMA user_version = {int(version)}")
    conn.commit()


class DatabaseHelper:
    """
    Lifecycle driver for one database file.

    Construction provisions the seed image if the live file does not exist
    yet. The helper performs no locking; callers must not open the same
    database from several threads at once.

    Attributes:
        seed_outcome: Result of the seed provisioning done at construction
        previous_version: Stored version seen by the last open_database()
        last_merge: MergeResult of the last upgrade, if any
    """

    def __init__(
        self,
        config: RuntimeConfig,
        registry: SchemaRegistry | None = None,
        assets: AssetBundle | None = None,
    ):
        self.config = config
        self.registry = registry if registry is not None else config.registry
        self.assets = assets if assets is not None else AssetBundle(config.assets_dir)
        self.parser_mode = ParserMode.from_config(config.database.sql_parser)
        self.previous_version: int | None = None
        self.last_merge: MergeResult | None = None
        self.seed_outcome: SeedOutcome = ensure_seed(
            self.assets, self.database_name, self.database_path
        )
        # a file provisioned here still needs on_create, even at target 0
        self._pending_create = self.seed_outcome is not SeedOutcome.PRESENT

    @property
    def database_name(self) -> str:
        return self.config.database.name

    @property
    def database_path(self) -> Path:
        return self.config.database_path

    @property
    def target_version(self) -> int:
        return self.config.database.version

    def _apply_pragmas(self, conn: sqlite3.Connection) -> None:
        apply_session_settings(conn, self.config.database.foreign_keys)

    def on_open(self, conn: sqlite3.Connection) -> None:
        """Apply per-connection session settings."""
        self._apply_pragmas(conn)

    def on_create(self, conn: sqlite3.Connection) -> None:
        """
        Build the schema from scratch.

        Order: session settings, tables, migrations (-1 -> target), indexes.
        Indexes come last so migrations can still reshape tables.

        Raises:
            StatementExecutionError / AssetIOError: Table creation, migration
            or index creation failed (that phase was rolled back)
        """
        self._apply_pragmas(conn)
        create_all(conn, self.registry)
        apply_range(
            conn, self.assets, NO_SCHEMA_VERSION, self.target_version, self.parser_mode
        )
        create_all_indexes(conn, self.registry)
        log_with_context(
            logger,
            logging.INFO,
            f"Created schema v{self.target_version}",
            context={"tables": len(self.registry)},
            database=self.database_name,
        )

    def on_upgrade(
        self, conn: sqlite3.Connection, old_version: int, new_version: int
    ) -> MergeResult:
        """
        Upgrade the schema and merge in the new seed image.

        Raises:
            StatementExecutionError / AssetIOError: Table creation or a
            migration failed (that phase was rolled back). Merge failures
            are never raised; inspect the returned MergeResult instead.
        """
        self._apply_pragmas(conn)
        create_all(conn, self.registry)
        apply_range(conn, self.assets, old_version, new_version, self.parser_mode)
        result = merge_seed_database(
            conn, self.assets, self.database_name, self.database_path
        )
        log_with_context(
            logger,
            logging.INFO if result.ok else logging.WARNING,
            f"Upgraded schema v{old_version} -> v{new_version}",
            context={"merge": result.outcome.value, "restored": result.restored_tables},
            database=self.database_name,
        )
        return result

    def open_database(self) -> sqlite3.Connection:
        """
        Open the live database, creating or upgrading it as needed.

        Returns:
            Open connection; the caller owns it and must close it

        Raises:
            DatabaseVersionError: If the stored version is newer than the target
            StatementExecutionError / AssetIOError: If create or upgrade failed
        """
        path = self.database_path
        path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(path)
        try:
            version = get_user_version(conn)
            self.previous_version = version
            target = self.target_version

            if version == 0 and (target != 0 or self._pending_create):
                self.on_create(conn)
                set_user_version(conn, target)
                self._pending_create = False
            elif version < target:
                self.last_merge = self.on_upgrade(conn, version, target)
                set_user_version(conn, target)
            elif version > target:
                raise DatabaseVersionError(
                    f"Database schema version {version} is newer than "
                    f"expected {target}. Update your software or "
                    f"use a different database file."
                )

            self.on_open(conn)
        except Exception:
            conn.close()
            raise

        return conn


def init_database(config_path: str | Path) -> sqlite3.Connection:
    """
    Load a config file and open its database through a DatabaseHelper.

    Raises:
        ConfigurationError: If the config cannot be loaded
        DatabaseError: If create or upgrade failed
    """
    return DatabaseHelper(load_config(config_path)).open_database()
