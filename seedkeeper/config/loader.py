"""
Configuration loader for SeedKeeper.

This module loads YAML configuration files, validates them with Pydantic models,
and resolves them into a RuntimeConfig: absolute asset/database paths and a
SchemaRegistry built from the table specs.

Functions:
    load_config: Main entrypoint to load and validate seedkeeper.config.yaml
    build_registry: Convert validated table specs into a SchemaRegistry
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from seedkeeper.exceptions import ConfigFileNotFoundError, ConfigValidationError
from seedkeeper.storage.schema import (
    ColumnDefinition,
    IndexDefinition,
    SchemaRegistry,
    TableDefinition,
)

from .schema import ColumnSpec, RuntimeConfig, SeedKeeperConfig, TableSpec


def load_config(config_path: str | Path) -> RuntimeConfig:
    """
    Load seedkeeper.config.yaml and resolve it for the database helper.

    This function:
    1. Loads YAML from the specified path
    2. Validates structure using the SeedKeeperConfig Pydantic model
    3. Resolves relative paths against the config file's directory
    4. Builds the SchemaRegistry from the table specs

    Args:
        config_path: Path to the YAML file (relative or absolute)

    Returns:
        RuntimeConfig ready for DatabaseHelper

    Raises:
        ConfigFileNotFoundError: If config file doesn't exist at the specified path
        ConfigValidationError: If YAML is invalid or config validation fails

    Example:
        >>> config = load_config("examples/seedkeeper.config.yaml")
        >>> config.database.version
        3
        >>> config.database_path
        PosixPath('/abs/path/examples/data/app.db')
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML syntax in {config_path}: {e}") from e
    except Exception as e:
        raise ConfigValidationError(
            f"Failed to read configuration file {config_path}: {e}"
        ) from e

    if raw_config is None:
        raise ConfigValidationError(f"Configuration file is empty: {config_path}")

    try:
        config = SeedKeeperConfig.model_validate(raw_config)
    except ValidationError as e:
        # Format validation errors in a user-friendly way
        error_messages = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            msg = error["msg"]
            error_messages.append(f"  - {loc}: {msg}")

        raise ConfigValidationError(
            f"Configuration validation failed in {config_path}:\n"
            + "\n".join(error_messages)
        ) from e

    base_dir = config_path.resolve().parent

    return RuntimeConfig(
        database=config.database,
        assets_dir=_resolve_path(base_dir, config.paths.assets_dir),
        databases_dir=_resolve_path(base_dir, config.paths.databases_dir),
        registry=build_registry(config.tables),
    )


def _resolve_path(base_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path


def _column_definition(spec: ColumnSpec) -> ColumnDefinition:
    default = spec.default
    if isinstance(default, bool):
        default = int(default)
    return ColumnDefinition(
        name=spec.name,
        sql_type=spec.type,
        primary_key=spec.primary_key,
        autoincrement=spec.autoincrement,
        not_null=spec.not_null,
        unique=spec.unique,
        default=None if default is None else str(default),
        references=spec.references,
        on_delete=spec.on_delete,
        on_update=spec.on_update,
    )


def build_registry(tables: list[TableSpec]) -> SchemaRegistry:
    """Convert validated table specs into an immutable SchemaRegistry."""
    return SchemaRegistry(
        TableDefinition(
            name=table.name,
            columns=tuple(_column_definition(column) for column in table.columns),
            indexes=tuple(
                IndexDefinition(
                    name=index.name,
                    columns=tuple(index.columns),
                    unique=index.unique,
                )
                for index in table.indexes
            ),
        )
        for table in tables
    )
