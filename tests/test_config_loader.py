"""
Tests for config.loader and config.schema modules.

This module tests configuration loading and validation:
- YAML loading and parsing
- Pydantic schema validation (all validators)
- Relative path resolution against the config file's directory
- Schema registry construction from table specs
- Error handling for missing files, invalid YAML, and empty files
"""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from seedkeeper.config.loader import build_registry, load_config
from seedkeeper.config.schema import (
    ColumnSpec,
    DatabaseSettings,
    IndexSpec,
    RuntimeConfig,
    SeedKeeperConfig,
    TableSpec,
)
from seedkeeper.exceptions import ConfigFileNotFoundError, ConfigValidationError
from seedkeeper.storage.schema import create_table_sql

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def valid_config_dict():
    """Return a valid configuration dictionary for testing."""
    return {
        "database": {"name": "app.db", "version": 3, "sql_parser": "Delimited"},
        "paths": {"assets_dir": "./assets", "databases_dir": "./data"},
        "tables": [
            {
                "name": "notes",
                "columns": [
                    {
                        "name": "id",
                        "type": "integer",
                        "primary_key": True,
                        "autoincrement": True,
                    },
                    {"name": "title", "not_null": True},
                    {"name": "archived", "type": "INTEGER", "default": False},
                ],
                "indexes": [{"name": "title", "columns": ["title"]}],
            },
            {
                "name": "tags",
                "columns": [
                    {"name": "label", "unique": True},
                    {
                        "name": "note_id",
                        "type": "INTEGER",
                        "references": "notes(id)",
                        "on_delete": "CASCADE",
                    },
                ],
            },
        ],
    }


@pytest.fixture
def config_file(tmp_path, valid_config_dict):
    path = tmp_path / "seedkeeper.config.yaml"
    path.write_text(yaml.dump(valid_config_dict))
    return path


# ============================================================================
# load_config
# ============================================================================


class TestLoadConfig:
    def test_returns_runtime_config(self, config_file):
        config = load_config(config_file)

        assert isinstance(config, RuntimeConfig)
        assert config.database.name == "app.db"
        assert config.database.version == 3
        assert config.database.sql_parser == "delimited"

    def test_relative_paths_resolve_against_config_directory(self, config_file, tmp_path):
        config = load_config(config_file)

        assert config.assets_dir == tmp_path.resolve() / "assets"
        assert config.databases_dir == tmp_path.resolve() / "data"
        assert config.database_path == tmp_path.resolve() / "data" / "app.db"

    def test_absolute_paths_are_kept(self, tmp_path, valid_config_dict):
        valid_config_dict["paths"]["databases_dir"] = str(tmp_path / "elsewhere")
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump(valid_config_dict))

        assert load_config(path).databases_dir == tmp_path / "elsewhere"

    def test_paths_default_when_omitted(self, tmp_path, valid_config_dict):
        del valid_config_dict["paths"]
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump(valid_config_dict))

        config = load_config(path)

        assert config.assets_dir == tmp_path.resolve() / "assets"
        assert config.databases_dir == tmp_path.resolve() / "data"

    def test_builds_registry_in_order(self, config_file):
        registry = load_config(config_file).registry

        assert [table.name for table in registry] == ["notes", "tags"]
        assert list(registry)[0].indexes[0].columns == ("title",)

    def test_accepts_string_path(self, config_file):
        assert load_config(str(config_file)).database.name == "app.db"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigFileNotFoundError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("database: [unclosed\n")

        with pytest.raises(ConfigValidationError, match="Invalid YAML syntax"):
            load_config(path)

    def test_empty_file_raises(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        with pytest.raises(ConfigValidationError, match="empty"):
            load_config(path)

    def test_validation_errors_are_listed_by_location(self, tmp_path, valid_config_dict):
        valid_config_dict["database"]["version"] = -1
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump(valid_config_dict))

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(path)

        message = str(exc_info.value)
        assert "Configuration validation failed" in message
        assert "database.version" in message

    def test_example_config_loads(self):
        example = Path(__file__).parent.parent / "examples" / "seedkeeper.config.yaml"
        config = load_config(example)

        assert config.database.name == "app.db"
        assert len(config.registry) >= 1


# ============================================================================
# build_registry
# ============================================================================


class TestBuildRegistry:
    def test_bool_default_renders_as_integer(self, valid_config_dict):
        tables = SeedKeeperConfig.model_validate(valid_config_dict).tables
        notes = list(build_registry(tables))[0]

        assert notes.columns[2].default == "0"
        assert '"archived" INTEGER DEFAULT 0' in create_table_sql(notes)

    def test_foreign_key_is_carried(self, valid_config_dict):
        tables = SeedKeeperConfig.model_validate(valid_config_dict).tables
        tags = list(build_registry(tables))[1]

        assert "REFERENCES notes(id) ON DELETE CASCADE" in create_table_sql(tags)

    def test_empty_tables(self):
        assert len(build_registry([])) == 0


# ============================================================================
# Schema validation
# ============================================================================


class TestDatabaseSettings:
    def test_defaults(self):
        settings = DatabaseSettings(name="app.db", version=1)
        assert settings.sql_parser == "legacy"
        assert settings.foreign_keys is None

    @pytest.mark.parametrize("name", ["", "   ", "dir/app.db", "..", "a\\b.db"])
    def test_rejects_bad_names(self, name):
        with pytest.raises(ValidationError):
            DatabaseSettings(name=name, version=1)

    def test_rejects_negative_version(self):
        with pytest.raises(ValidationError, match="version must be >= 0"):
            DatabaseSettings(name="app.db", version=-1)

    def test_sql_parser_is_case_insensitive(self):
        assert DatabaseSettings(name="a.db", version=1, sql_parser=" LEGACY ").sql_parser == "legacy"

    def test_rejects_unknown_sql_parser(self):
        with pytest.raises(ValidationError):
            DatabaseSettings(name="a.db", version=1, sql_parser="fancy")


class TestColumnSpec:
    def test_type_is_uppercased(self):
        assert ColumnSpec(name="x", type=" integer ").type == "INTEGER"

    def test_rejects_non_identifier_name(self):
        with pytest.raises(ValidationError, match="plain SQL identifier"):
            ColumnSpec(name="bad name")

    def test_autoincrement_requires_integer_primary_key(self):
        with pytest.raises(ValidationError, match="autoincrement"):
            ColumnSpec(name="id", type="TEXT", primary_key=True, autoincrement=True)
        with pytest.raises(ValidationError, match="autoincrement"):
            ColumnSpec(name="id", type="INTEGER", autoincrement=True)

    def test_rejects_malformed_reference(self):
        with pytest.raises(ValidationError, match="references"):
            ColumnSpec(name="x", references="notes(id")

    def test_actions_require_reference(self):
        with pytest.raises(ValidationError, match="require references"):
            ColumnSpec(name="x", on_delete="CASCADE")

    def test_rejects_unknown_action(self):
        with pytest.raises(ValidationError):
            ColumnSpec(name="x", references="notes", on_delete="EXPLODE")


class TestTableSpec:
    def test_rejects_reserved_prefix(self):
        with pytest.raises(ValidationError, match="reserved"):
            TableSpec(name="sqlite_things", columns=[ColumnSpec(name="x")])

    def test_requires_columns(self):
        with pytest.raises(ValidationError, match="at least one column"):
            TableSpec(name="t", columns=[])

    def test_rejects_duplicate_columns(self):
        with pytest.raises(ValidationError, match="duplicate column"):
            TableSpec(name="t", columns=[ColumnSpec(name="x"), ColumnSpec(name="X")])

    def test_rejects_two_primary_keys(self):
        with pytest.raises(ValidationError, match="more than one primary key"):
            TableSpec(
                name="t",
                columns=[
                    ColumnSpec(name="a", primary_key=True),
                    ColumnSpec(name="b", primary_key=True),
                ],
            )

    def test_rejects_index_on_unknown_column(self):
        with pytest.raises(ValidationError, match="unknown columns"):
            TableSpec(
                name="t",
                columns=[ColumnSpec(name="a")],
                indexes=[IndexSpec(name="b", columns=["b"])],
            )

    def test_rejects_empty_index(self):
        with pytest.raises(ValidationError, match="at least one column"):
            IndexSpec(name="i", columns=[])


def test_rejects_duplicate_table_names(valid_config_dict):
    valid_config_dict["tables"][1]["name"] = "NOTES"
    with pytest.raises(ValidationError, match="duplicate table name"):
        SeedKeeperConfig.model_validate(valid_config_dict)
