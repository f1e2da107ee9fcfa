"""
Tests for storage.schema, storage.transaction and storage.pragmas.

Tests cover:
- DDL rendering for tables and indexes
- SchemaRegistry lookup and iteration
- create_all() / create_all_indexes() atomicity
- transaction() commit and rollback
- Session settings (foreign keys)
"""

import logging
import sqlite3
from unittest.mock import patch

import pytest

from seedkeeper.exceptions import StatementExecutionError
from seedkeeper.storage import pragmas
from seedkeeper.storage.pragmas import apply_session_settings, foreign_keys_supported
from seedkeeper.storage.schema import (
    ColumnDefinition,
    IndexDefinition,
    SchemaRegistry,
    TableDefinition,
    create_all,
    create_all_indexes,
    create_index_sql,
    create_table_sql,
    quote_identifier,
)
from seedkeeper.storage.transaction import execute_statement, transaction

NOTES = TableDefinition(
    name="notes",
    columns=(
        ColumnDefinition("id", "INTEGER", primary_key=True, autoincrement=True),
        ColumnDefinition("title", "TEXT", not_null=True),
        ColumnDefinition("pinned", "INTEGER", default="0"),
    ),
    indexes=(IndexDefinition("title", ("title",)),),
)

TAGS = TableDefinition(
    name="tags",
    columns=(
        ColumnDefinition("id", "INTEGER", primary_key=True),
        ColumnDefinition(
            "note_id", "INTEGER", references="notes(id)", on_delete="CASCADE"
        ),
        ColumnDefinition("label", "TEXT", unique=True),
    ),
    indexes=(IndexDefinition("note_label", ("note_id", "label"), unique=True),),
)


@pytest.fixture
def conn(tmp_path):
    connection = sqlite3.connect(tmp_path / "test.db")
    yield connection
    connection.close()


def _table_names(conn):
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    return {name for (name,) in rows}


def _index_names(conn):
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='index'").fetchall()
    return {name for (name,) in rows}


# ============================================================================
# DDL rendering
# ============================================================================


class TestDdlRendering:
    def test_quote_identifier_escapes_quotes(self):
        assert quote_identifier("notes") == '"notes"'
        assert quote_identifier('we"ird') == '"we""ird"'

    def test_create_table_sql(self):
        assert create_table_sql(NOTES) == (
            'CREATE TABLE IF NOT EXISTS "notes" ('
            '"id" INTEGER PRIMARY KEY AUTOINCREMENT, '
            '"title" TEXT NOT NULL, '
            '"pinned" INTEGER DEFAULT 0)'
        )

    def test_create_table_sql_with_foreign_key(self):
        sql = create_table_sql(TAGS)
        assert '"note_id" INTEGER REFERENCES notes(id) ON DELETE CASCADE' in sql
        assert '"label" TEXT UNIQUE' in sql

    def test_create_index_sql_prefixes_table_name(self):
        assert create_index_sql(NOTES) == [
            'CREATE INDEX IF NOT EXISTS "index_notes_title" ON "notes" ("title")'
        ]

    def test_create_unique_index_sql(self):
        assert create_index_sql(TAGS) == [
            'CREATE UNIQUE INDEX IF NOT EXISTS "index_tags_note_label" '
            'ON "tags" ("note_id", "label")'
        ]

    def test_table_without_indexes(self):
        table = TableDefinition("plain", (ColumnDefinition("x"),))
        assert create_index_sql(table) == []
        assert create_table_sql(table) == 'CREATE TABLE IF NOT EXISTS "plain" ("x" TEXT)'


class TestSchemaRegistry:
    def test_preserves_order(self):
        registry = SchemaRegistry([NOTES, TAGS])
        assert [table.name for table in registry] == ["notes", "tags"]
        assert len(registry) == 2

    def test_generator_input_can_be_iterated_twice(self):
        registry = SchemaRegistry(table for table in (NOTES, TAGS))
        assert list(registry) == [NOTES, TAGS]
        assert list(registry) == [NOTES, TAGS]

    def test_empty_registry(self):
        registry = SchemaRegistry()
        assert len(registry) == 0
        assert repr(registry) == "SchemaRegistry([])"


# ============================================================================
# Creation phases
# ============================================================================


class TestCreateAll:
    def test_creates_every_table(self, conn):
        create_all(conn, SchemaRegistry([NOTES, TAGS]))

        assert {"notes", "tags"} <= _table_names(conn)
        assert not conn.in_transaction

    def test_is_idempotent(self, conn):
        registry = SchemaRegistry([NOTES])
        create_all(conn, registry)
        conn.execute("INSERT INTO notes (title) VALUES ('kept')")
        conn.commit()

        create_all(conn, registry)

        assert conn.execute("SELECT title FROM notes").fetchall() == [("kept",)]

    def test_failure_rolls_back_every_table(self, conn, caplog):
        broken = TableDefinition(
            "broken", (ColumnDefinition("x", "INTEGER", default="(("),)
        )

        with caplog.at_level(logging.ERROR):
            with pytest.raises(StatementExecutionError) as exc_info:
                create_all(conn, SchemaRegistry([NOTES, broken]))

        assert "broken" in str(exc_info.value)
        assert exc_info.value.source == "broken"
        assert "notes" not in _table_names(conn)
        assert "Table creation failed" in caplog.text

    def test_indexes_are_separate_phase(self, conn):
        registry = SchemaRegistry([NOTES, TAGS])
        create_all(conn, registry)
        assert not any(name.startswith("index_") for name in _index_names(conn))

        create_all_indexes(conn, registry)

        assert {"index_notes_title", "index_tags_note_label"} <= _index_names(conn)

    def test_index_failure_rolls_back_all_indexes(self, conn):
        registry = SchemaRegistry([NOTES])
        create_all(conn, registry)
        bad = TableDefinition(
            "notes",
            NOTES.columns,
            indexes=(IndexDefinition("missing", ("no_such_column",)),),
        )

        with pytest.raises(StatementExecutionError):
            create_all_indexes(conn, SchemaRegistry([NOTES, bad]))

        assert "index_notes_title" not in _index_names(conn)


# ============================================================================
# Transactions
# ============================================================================


class TestTransaction:
    def test_commits_on_success(self, conn):
        conn.execute("CREATE TABLE t (x)")
        with transaction(conn):
            conn.execute("INSERT INTO t VALUES (1)")
            conn.execute("INSERT INTO t VALUES (2)")

        assert not conn.in_transaction
        assert conn.execute("SELECT count(*) FROM t").fetchone()[0] == 2

    def test_rolls_back_and_reraises(self, conn):
        conn.execute("CREATE TABLE t (x)")

        with pytest.raises(RuntimeError):
            with transaction(conn):
                conn.execute("INSERT INTO t VALUES (1)")
                raise RuntimeError("boom")

        assert not conn.in_transaction
        assert conn.execute("SELECT count(*) FROM t").fetchone()[0] == 0

    def test_ddl_is_rolled_back(self, conn):
        with pytest.raises(StatementExecutionError):
            with transaction(conn):
                conn.execute("CREATE TABLE created_then_undone (x)")
                execute_statement(conn, "NOT VALID SQL")

        assert "created_then_undone" not in _table_names(conn)

    def test_execute_statement_wraps_errors(self, conn):
        with pytest.raises(StatementExecutionError) as exc_info:
            execute_statement(conn, "SELECT * FROM nowhere", source="3.sql")

        error = exc_info.value
        assert "3.sql" in str(error)
        assert error.statement == "SELECT * FROM nowhere"
        assert isinstance(error.__cause__, sqlite3.Error)


# ============================================================================
# Session settings
# ============================================================================


class TestSessionSettings:
    def test_foreign_keys_supported_on_modern_sqlite(self):
        assert foreign_keys_supported() is True

    def test_enables_foreign_keys(self, conn, caplog):
        with caplog.at_level(logging.INFO):
            assert apply_session_settings(conn) is True

        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        assert "Enabling foreign key features" in caplog.text

    def test_explicit_override_off(self, conn):
        assert apply_session_settings(conn, foreign_keys=False) is False
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 0

    def test_old_library_leaves_foreign_keys_off(self, conn):
        with patch.object(pragmas, "foreign_keys_supported", return_value=False):
            assert apply_session_settings(conn) is False
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 0

    def test_foreign_keys_are_enforced(self, conn):
        apply_session_settings(conn, foreign_keys=True)
        create_all(conn, SchemaRegistry([NOTES, TAGS]))

        with pytest.raises(sqlite3.IntegrityError):
            conn.execute("INSERT INTO tags (note_id, label) VALUES (42, 'x')")
