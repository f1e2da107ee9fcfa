"""
Table definitions and the schema definer.

The schema registry is an explicit, immutable value handed to the
DatabaseHelper at construction; nothing here is cached process-wide.

Creation runs in two separate phases:
- create_all(): one transaction issuing CREATE TABLE for every definition
- create_all_indexes(): a second transaction, run only after migrations have
  finished reshaping the tables, issuing CREATE INDEX for every definition

Both phases are all-or-nothing: a failing statement rolls back the phase and
raises StatementExecutionError to the caller.

Example:
    >>> registry = SchemaRegistry([
    ...     TableDefinition(
    ...         name="notes",
    ...         columns=(
    ...             ColumnDefinition("id", "INTEGER", primary_key=True, autoincrement=True),
    ...             ColumnDefinition("body", "TEXT", not_null=True),
    ...         ),
    ...         indexes=(IndexDefinition("body", ("body",)),),
    ...     )
    ... ])
    >>> [create_table_sql(table) for table in registry]
    ['CREATE TABLE IF NOT EXISTS "notes" ("id" INTEGER PRIMARY KEY AUTOINCREMENT, "body" TEXT NOT NULL)']
"""

import logging
import sqlite3
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from seedkeeper.exceptions import DatabaseError
from seedkeeper.storage.transaction import execute_statement, transaction

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Quote an SQL identifier with double quotes, escaping embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


@dataclass(frozen=True)
class ColumnDefinition:
    name: str
    sql_type: str = "TEXT"
    primary_key: bool = False
    autoincrement: bool = False
    not_null: bool = False
    unique: bool = False
    default: str | None = None
    references: str | None = None
    on_delete: str | None = None
    on_update: str | None = None


@dataclass(frozen=True)
class IndexDefinition:
    name: str
    columns: tuple[str, ...]
    unique: bool = False


@dataclass(frozen=True)
class TableDefinition:
    name: str
    columns: tuple[ColumnDefinition, ...]
    indexes: tuple[IndexDefinition, ...] = ()


class SchemaRegistry:
    """
    Ordered, read-only collection of table definitions.

    Tables are created in registry order, so a table referenced by a foreign
    key should be listed before the tables referencing it.
    """

    def __init__(self, tables: Iterable[TableDefinition] = ()):
        self._tables = tuple(tables)

    def __iter__(self) -> Iterator[TableDefinition]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        names = ", ".join(table.name for table in self._tables)
        return f"SchemaRegistry([{names}])"


def _column_sql(column: ColumnDefinition) -> str:
    parts = [quote_identifier(column.name), column.sql_type]

    if column.primary_key:
        parts.append("PRIMARY KEY")
        if column.autoincrement:
            parts.append("AUTOINCREMENT")
    if column.not_null:
        parts.append("NOT NULL")
    if column.unique:
        parts.append("UNIQUE")
    if column.default is not None:
        parts.append(f"DEFAULT {column.default}")
    if column.references:
        parts.append(f"REFERENCES {column.references}")
        if column.on_delete:
            parts.append(f"ON DELETE {column.on_delete}")
        if column.on_update:
            parts.append(f"ON UPDATE {column.on_update}")

    return " ".join(parts)


def create_table_sql(table: TableDefinition) -> str:
    """Render the CREATE TABLE IF NOT EXISTS statement for a definition."""
    columns = ", ".join(_column_sql(column) for column in table.columns)
    return f"CREATE TABLE IF NOT EXISTS {quote_identifier(table.name)} ({columns})"


def create_index_sql(table: TableDefinition) -> list[str]:
    """
    Render one CREATE INDEX IF NOT EXISTS statement per index of a table.

    Index names are prefixed "index_<table>_" so equally named indexes on
    different tables do not collide.
    """
    statements = []
    for index in table.indexes:
        unique = "UNIQUE " if index.unique else ""
        index_name = quote_identifier(f"index_{table.name}_{index.name}")
        columns = ", ".join(quote_identifier(column) for column in index.columns)
        statements.append(
            f"CREATE {unique}INDEX IF NOT EXISTS {index_name} "
            f"ON {quote_identifier(table.name)} ({columns})"
        )
    return statements


def create_all(conn: sqlite3.Connection, registry: SchemaRegistry) -> None:
    """
    Create every registered table in a single transaction.

    Args:
        conn: Open SQLite connection, not inside a transaction
        registry: Tables to create

    Raises:
        StatementExecutionError: If any CREATE TABLE fails (all rolled back)
    """
    try:
        with transaction(conn):
            for table in registry:
                execute_statement(conn, create_table_sql(table), source=table.name)
    except DatabaseError as e:
        logger.error(f"Table creation failed, rolled back: {e}")
        raise

    logger.debug(f"Ensured {len(registry)} tables exist")


def create_all_indexes(conn: sqlite3.Connection, registry: SchemaRegistry) -> None:
    """
    Create every registered index in a single transaction.

    Runs after the migration engine so indexes are built against the final
    table shape.

    Raises:
        StatementExecutionError: If any CREATE INDEX fails (all rolled back)
    """
    count = 0
    try:
        with transaction(conn):
            for table in registry:
                for statement in create_index_sql(table):
                    execute_statement(conn, statement, source=table.name)
                    count += 1
    except DatabaseError as e:
        logger.error(f"Index creation failed, rolled back: {e}")
        raise

    logger.debug(f"Ensured {count} indexes exist")
