"""
Per-connection session settings.

Foreign key enforcement is connection-scoped in SQLite, so it has to be
switched on again for every new connection handle, before any other
statement runs.
"""

import functools
import logging
import sqlite3

from seedkeeper.config.constants import FOREIGN_KEYS_MIN_SQLITE_VERSION

logger = logging.getLogger(__name__)


@functools.cache
def foreign_keys_supported() -> bool:
    """Whether the linked SQLite library enforces foreign keys (probed once)."""
    return sqlite3.sqlite_version_info >= FOREIGN_KEYS_MIN_SQLITE_VERSION


def apply_session_settings(
    conn: sqlite3.Connection, foreign_keys: bool | None = None
) -> bool:
    """
    Apply engine-level session settings to a connection.

    Args:
        conn: Freshly obtained connection, not inside a transaction
        foreign_keys: Explicit override; None uses foreign_keys_supported()

    Returns:
        True if foreign key enforcement was enabled
    """
    enabled = foreign_keys_supported() if foreign_keys is None else foreign_keys
    if enabled:
        conn.execute("PRAGMA foreign_keys=ON")
        logger.info("Foreign keys supported. Enabling foreign key features.")
    return enabled
