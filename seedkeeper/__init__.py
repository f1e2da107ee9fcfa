"""
SeedKeeper - lifecycle management for embedded SQLite databases.

Provisions a bundled seed image, applies versioned migration scripts in one
transaction per upgrade, and merges a newly shipped seed image with the
tables users accumulated before the upgrade.

Key exports:
    - DatabaseHelper: create / upgrade / open lifecycle driver
    - init_database: Load a config file and open its database
"""

__version__ = "0.1.0"

from seedkeeper.storage.db import DatabaseHelper, init_database

__all__ = [
    "DatabaseHelper",
    "__version__",
    "init_database",
]
