"""
Transaction scope and statement execution helpers.

Every multi-statement phase (table creation, migrations, index creation,
merge copy) runs inside exactly one transaction() block: it commits when the
block finishes and rolls back when anything inside raises.

The connection is expected to use Python's default transaction handling (or
isolation_level=None); the explicit BEGIN keeps DDL inside the transaction.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from seedkeeper.exceptions import StatementExecutionError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Run the enclosed block as one all-or-nothing transaction.

    A failure at COMMIT (e.g. a deferred foreign key violation) also rolls
    back and is raised as StatementExecutionError.

    Raises:
        sqlite3.OperationalError: If the connection is already inside a transaction
        StatementExecutionError: If the commit itself is rejected
    """
    conn.execute("BEGIN")
    try:
        yield conn
        try:
            conn.commit()
        except sqlite3.Error as e:
            raise StatementExecutionError(f"Commit failed: {e}", statement="COMMIT") from e
    except Exception:
        conn.rollback()
        logger.debug("Transaction rolled back")
        raise


def execute_statement(
    conn: sqlite3.Connection, statement: str, source: str | None = None
) -> None:
    """
    Execute a single SQL statement, translating engine errors.

    Args:
        conn: Open SQLite connection
        statement: Exactly one SQL statement
        source: Where the statement came from, for error messages

    Raises:
        StatementExecutionError: If SQLite rejects the statement
    """
    try:
        conn.execute(statement)
    except (sqlite3.Error, sqlite3.Warning) as e:
        location = f" in {source}" if source else ""
        raise StatementExecutionError(
            f"Statement failed{location}: {e}",
            statement=statement,
            source=source,
        ) from e
