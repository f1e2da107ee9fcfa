"""
CLI entrypoint for SeedKeeper.

Operator tooling around the database lifecycle, with two output modes:
- Human-friendly output: Rich spinners, tables, colored text
- Agent-friendly output: Structured JSON for automation (--format json)

Commands:
    open: Provision, create or upgrade (with seed merge) and open the database
    migrations: List migration files in execution order and the selected range
    parse: Show how a script splits into statements in either parser mode
    validate: Validate configuration without touching the database

Exit codes:
    0: Success
    1: Configuration error (missing file, invalid YAML, failed validation)
    2: Database error (table creation, migration or script read failed)

Examples:
    seedkeeper open --config seedkeeper.config.yaml
    seedkeeper migrations --config seedkeeper.config.yaml --from 2 --to 5
    seedkeeper parse assets/migrations/3.sql --mode delimited --format json
"""

import sqlite3
from pathlib import Path
from typing import NoReturn

import typer
from rich.traceback import install as install_rich_traceback

from seedkeeper.config.loader import load_config
from seedkeeper.exceptions import (
    ConfigurationError,
    DatabaseError,
    IdentifierParseError,
)
from seedkeeper.storage.assets import AssetBundle
from seedkeeper.storage.db import DatabaseHelper
from seedkeeper.storage.migrations import list_migration_files, parse_identifier
from seedkeeper.storage.sql_parser import ParserMode, parse_script
from seedkeeper.utils.console import (
    error,
    info,
    output_mode,
    print_banner,
    print_migrations_table,
    print_statements_table,
    spinner,
    success,
    warning,
)
from seedkeeper.utils.logging import setup_logging

install_rich_traceback(show_locals=False)

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1  # Config missing or invalid
EXIT_DB_ERROR = 2  # Create, migrate or script read failed

app = typer.Typer(
    name="seedkeeper",
    help="Seed, migrate and merge embedded SQLite databases",
    add_completion=False,
)

_CONFIG_OPTION = typer.Option(
    ...,
    "--config",
    "-c",
    help="Path to YAML configuration file",
    exists=True,
    file_okay=True,
    dir_okay=False,
)
_FORMAT_OPTION = typer.Option(
    "text",
    "--format",
    "-f",
    help="Output format: 'text' (human-friendly) or 'json' (machine-readable)",
)


def _set_output_format(format: str) -> None:
    if format not in ("text", "json"):
        raise typer.BadParameter(
            f"Invalid format: {format}. Must be 'text' or 'json'", param_hint="--format"
        )
    output_mode.format = format


def _fail(message: str, exit_code: int) -> NoReturn:
    error(message)
    output_mode.flush_json()
    raise typer.Exit(exit_code)


@app.command("open")
def open_database(
    config: Path = _CONFIG_OPTION,
    format: str = _FORMAT_OPTION,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
):
    """
    Open the configured database, running the lifecycle as needed.

    On first run the seed image is copied, tables are created, every
    migration up to the target version runs, then indexes are built.
    When the target version is higher than the stored one, migrations
    run and the new seed image is merged in.

    Exit codes:
      0: Database opened (merge problems are reported as warnings)
      1: Configuration error
      2: Database error
    """
    _set_output_format(format)
    setup_logging(verbose=verbose, quiet_logs=output_mode.is_human())
    print_banner(_read_version())

    try:
        with spinner("Loading configuration..."):
            runtime_config = load_config(config)
    except ConfigurationError as e:
        _fail(f"Configuration error: {e}", EXIT_CONFIG_ERROR)

    try:
        with spinner("Opening database..."):
            helper = DatabaseHelper(runtime_config)
            conn = helper.open_database()
            conn.close()
    except (DatabaseError, sqlite3.Error, OSError) as e:
        _fail(f"Failed to open database: {e}", EXIT_DB_ERROR)

    previous = helper.previous_version
    target = helper.target_version
    if previous == target:
        event = "opened"
    elif previous == 0:
        event = "created"
    else:
        event = "upgraded"

    success(f"Database {event}: {helper.database_path}")
    info(f"Seed image: {helper.seed_outcome.value}")
    info(f"Schema version: v{previous} -> v{target}")

    merge = helper.last_merge if event == "upgraded" else None
    if merge is not None:
        if merge.ok:
            restored = ", ".join(merge.restored_tables) or "none"
            info(f"Seed merge restored tables: {restored}")
        else:
            warning(f"Seed merge {merge.outcome.value}: {merge.error}")

    if output_mode.is_agent():
        output_mode.add_json("event", event)
        output_mode.add_json("database_path", str(helper.database_path))
        output_mode.add_json("seed", helper.seed_outcome.value)
        output_mode.add_json("previous_version", previous)
        output_mode.add_json("target_version", target)
        if merge is not None:
            output_mode.add_json(
                "merge",
                {
                    "outcome": merge.outcome.value,
                    "restored_tables": merge.restored_tables,
                    "error": merge.error,
                },
            )
        output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def migrations(
    config: Path = _CONFIG_OPTION,
    from_version: int = typer.Option(
        -1,
        "--from",
        help="Version the database is at (-1 for a new database)",
    ),
    to_version: int | None = typer.Option(
        None,
        "--to",
        help="Target version (defaults to database.version from the config)",
    ),
    format: str = _FORMAT_OPTION,
):
    """
    List migration files in execution order.

    Each file is marked "selected" when its version lies in (--from, --to],
    "out of range" otherwise, or "skipped" when its name is not a version.
    """
    _set_output_format(format)
    setup_logging(quiet_logs=True)

    try:
        runtime_config = load_config(config)
    except ConfigurationError as e:
        _fail(f"Configuration error: {e}", EXIT_CONFIG_ERROR)

    target = runtime_config.database.version if to_version is None else to_version

    try:
        file_names = list_migration_files(AssetBundle(runtime_config.assets_dir))
    except DatabaseError as e:
        _fail(f"Failed to list migrations: {e}", EXIT_DB_ERROR)

    rows = []
    for file_name in file_names:
        try:
            version = parse_identifier(file_name)
        except IdentifierParseError:
            rows.append({"file": file_name, "version": None, "status": "skipped"})
            continue
        status = "selected" if from_version < version <= target else "out of range"
        rows.append({"file": file_name, "version": version, "status": status})

    selected = sum(1 for row in rows if row["status"] == "selected")
    info(f"Range: (v{from_version}, v{target}] - {selected} of {len(rows)} files selected")
    print_migrations_table(rows)

    if output_mode.is_agent():
        output_mode.add_json("from_version", from_version)
        output_mode.add_json("to_version", target)
        output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def parse(
    script: Path = typer.Argument(
        ...,
        help="SQL script to parse",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    mode: str = typer.Option(
        "legacy",
        "--mode",
        "-m",
        help="Parser mode: 'legacy' (one statement per line) or 'delimited'",
    ),
    format: str = _FORMAT_OPTION,
):
    """
    Show the statements a script splits into.

    Useful to check how a migration will execute before shipping it; the two
    modes disagree on multi-line statements and trigger bodies.
    """
    _set_output_format(format)

    try:
        parser_mode = ParserMode.from_config(mode)
    except ValueError as e:
        _fail(str(e), EXIT_CONFIG_ERROR)

    try:
        with script.open("rb") as stream:
            statements = parse_script(stream, parser_mode)
    except (DatabaseError, OSError) as e:
        _fail(f"Failed to read {script}: {e}", EXIT_DB_ERROR)

    print_statements_table(statements, title=f"{script.name} ({parser_mode.value})")

    if output_mode.is_agent():
        output_mode.add_json("script", str(script))
        output_mode.add_json("mode", parser_mode.value)
        output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def validate(
    config: Path = _CONFIG_OPTION,
    format: str = _FORMAT_OPTION,
):
    """
    Validate configuration file without touching the database.

    Exit codes:
      0: Configuration is valid
      1: Configuration is invalid
    """
    _set_output_format(format)

    try:
        runtime_config = load_config(config)
    except ConfigurationError as e:
        if output_mode.is_agent():
            output_mode.add_json("valid", False)
        _fail(f"Validation failed: {e}", EXIT_CONFIG_ERROR)

    database = runtime_config.database
    success("Configuration is valid")
    info(f"Database: {database.name} (target v{database.version})")
    info(f"Parser mode: {database.sql_parser}")
    info(f"Tables: {len(runtime_config.registry)}")
    info(f"Assets: {runtime_config.assets_dir}")

    if output_mode.is_agent():
        output_mode.add_json("valid", True)
        output_mode.add_json("database", database.name)
        output_mode.add_json("target_version", database.version)
        output_mode.add_json("sql_parser", database.sql_parser)
        output_mode.add_json("tables_count", len(runtime_config.registry))
        output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
):
    """
    SeedKeeper - seed, migrate and merge embedded SQLite databases.

    Use 'seedkeeper COMMAND --help' for detailed command documentation.
    """
    if version:
        from rich.console import Console

        Console().print(f"[bold cyan]seedkeeper[/bold cyan] version {_read_version()}")
        raise typer.Exit(EXIT_SUCCESS)

    if ctx.invoked_subcommand is None:
        from rich.console import Console

        Console().print("[yellow]Use --help to see available commands[/yellow]")


def _read_version() -> str:
    """Read version from package metadata, falling back to the source version."""
    try:
        from importlib.metadata import version

        return version("seedkeeper")
    except Exception:
        from seedkeeper import __version__

        return __version__


if __name__ == "__main__":
    app()
