"""
Configuration schema models for SeedKeeper.

This module defines Pydantic models for validating and parsing the
seedkeeper.config.yaml file. All models use Pydantic v2 field validators.

Models:
    DatabaseSettings: Database name, target schema version, parser mode, FK flag
    PathSettings: Asset bundle root and live database directory
    ColumnSpec: One column of a table definition
    IndexSpec: One index of a table definition
    TableSpec: Table definition (the schema registry entries)
    SeedKeeperConfig: Root configuration model (validates entire YAML)
    RuntimeConfig: Resolved configuration with absolute paths and a built registry
"""

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from seedkeeper.storage.schema import SchemaRegistry

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_REFERENCE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\([A-Za-z_][A-Za-z0-9_]*\))?$")

ForeignKeyAction = Literal["CASCADE", "SET NULL", "SET DEFAULT", "RESTRICT", "NO ACTION"]


def _validate_identifier(value: str, what: str) -> str:
    if not _IDENTIFIER.match(value):
        raise ValueError(
            f"{what} must be a plain SQL identifier (letters, digits, underscore), "
            f"got: {value!r}"
        )
    return value


class DatabaseSettings(BaseModel):
    """
    Database identity and lifecycle settings.

    Attributes:
        name: Database file name; also the key of the bundled seed image
        version: Target schema version (>= 0)
        sql_parser: Migration script parsing mode ("legacy" or "delimited",
                    matched case-insensitively)
        foreign_keys: Force foreign key enforcement on/off. None probes the
                      linked SQLite library.
    """

    name: str
    version: int
    sql_parser: Literal["legacy", "delimited"] = "legacy"
    foreign_keys: bool | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate name is a bare, non-empty file name."""
        if not v or v.isspace():
            raise ValueError("database name cannot be empty")
        if "/" in v or "\\" in v or v in {".", ".."}:
            raise ValueError(f"database name must be a file name, not a path: {v}")
        return v

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: int) -> int:
        """Validate version is non-negative."""
        if v < 0:
            raise ValueError(f"version must be >= 0, got: {v}")
        return v

    @field_validator("sql_parser", mode="before")
    @classmethod
    def normalize_sql_parser(cls, v):
        """Accept any casing, e.g. 'Delimited'."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


class PathSettings(BaseModel):
    """
    Filesystem locations.

    Attributes:
        assets_dir: Root of the bundled assets (seed image + migrations/)
        databases_dir: Directory holding the live database file
    """

    assets_dir: str = "./assets"
    databases_dir: str = "./data"


class ColumnSpec(BaseModel):
    """
    Column of a table definition.

    default is written into the DDL as-is, so string literals need their own
    quotes (e.g. "'draft'"). references is "table" or "table(column)".
    """

    name: str
    type: str = "TEXT"
    primary_key: bool = False
    autoincrement: bool = False
    not_null: bool = False
    unique: bool = False
    default: str | int | float | None = None
    references: str | None = None
    on_delete: ForeignKeyAction | None = None
    on_update: ForeignKeyAction | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _validate_identifier(v, "column name")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if not v or v.isspace():
            raise ValueError("column type cannot be empty")
        return v.strip().upper()

    @field_validator("references")
    @classmethod
    def validate_references(cls, v: str | None) -> str | None:
        if v is not None and not _REFERENCE.match(v):
            raise ValueError(f"references must look like 'table' or 'table(column)', got: {v!r}")
        return v

    @model_validator(mode="after")
    def validate_autoincrement(self) -> "ColumnSpec":
        """SQLite only allows AUTOINCREMENT on an INTEGER PRIMARY KEY."""
        if self.autoincrement and not (self.primary_key and self.type == "INTEGER"):
            raise ValueError(
                f"column '{self.name}': autoincrement requires type INTEGER and primary_key"
            )
        if (self.on_delete or self.on_update) and not self.references:
            raise ValueError(
                f"column '{self.name}': on_delete/on_update require references"
            )
        return self


class IndexSpec(BaseModel):
    """Index of a table definition."""

    name: str
    columns: list[str]
    unique: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _validate_identifier(v, "index name")

    @field_validator("columns")
    @classmethod
    def validate_columns(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("index must have at least one column")
        return v


class TableSpec(BaseModel):
    """Table definition as written in the config file."""

    name: str
    columns: list[ColumnSpec]
    indexes: list[IndexSpec] = []

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        _validate_identifier(v, "table name")
        if v.lower().startswith("sqlite_"):
            raise ValueError(f"table names starting with 'sqlite_' are reserved: {v}")
        return v

    @model_validator(mode="after")
    def validate_columns(self) -> "TableSpec":
        """Require columns, unique column names, and indexes on known columns."""
        if not self.columns:
            raise ValueError(f"table '{self.name}' must have at least one column")

        names = [column.name.lower() for column in self.columns]
        if len(names) != len(set(names)):
            raise ValueError(f"table '{self.name}' has duplicate column names")

        primary_keys = [column.name for column in self.columns if column.primary_key]
        if len(primary_keys) > 1:
            raise ValueError(
                f"table '{self.name}' declares more than one primary key column: "
                f"{primary_keys}"
            )

        known = set(names)
        for index in self.indexes:
            unknown = [c for c in index.columns if c.lower() not in known]
            if unknown:
                raise ValueError(
                    f"index '{index.name}' on table '{self.name}' references "
                    f"unknown columns: {unknown}"
                )
        return self


class SeedKeeperConfig(BaseModel):
    """
    Root configuration model for seedkeeper.config.yaml.

    Attributes:
        database: Database identity and lifecycle settings
        paths: Asset and database locations
        tables: Schema registry entries, in creation order
    """

    database: DatabaseSettings
    paths: PathSettings = PathSettings()
    tables: list[TableSpec] = []

    @field_validator("tables")
    @classmethod
    def validate_unique_tables(cls, v: list[TableSpec]) -> list[TableSpec]:
        """SQLite table names are case-insensitive; reject duplicates."""
        seen: set[str] = set()
        for table in v:
            key = table.name.lower()
            if key in seen:
                raise ValueError(f"duplicate table name: {table.name}")
            seen.add(key)
        return v


class RuntimeConfig(BaseModel):
    """
    Resolved configuration handed to the DatabaseHelper.

    Paths are absolute (relative config paths are resolved against the
    config file's directory) and the table specs are built into a
    SchemaRegistry.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    database: DatabaseSettings
    assets_dir: Path
    databases_dir: Path
    registry: SchemaRegistry

    @property
    def database_path(self) -> Path:
        """Path of the live database file."""
        return self.databases_dir / self.database.name
