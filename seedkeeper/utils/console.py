"""
Rich console utilities for dual-mode CLI output.

Provides terminal output for humans and structured JSON for automation.
All output functions adapt based on the global output_mode setting.

This module provides:
- OutputMode: Class to manage output format (text/json)
- Context manager: spinner()
- Output functions: success(), error(), warning(), info()
- Display functions: print_banner(), print_statements_table(),
  print_migrations_table()

Human Mode (--format text):
    - Rich spinners and colored tables
    - ANSI colors and Unicode symbols

Agent Mode (--format json):
    - Structured JSON output to stdout
    - No ANSI codes or spinners
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table


class OutputMode:
    """
    Output mode configuration for dual-mode CLI.

    Attributes:
        format: Output format - "text" (human) or "json" (agent)
        _json_buffer: Internal buffer for JSON output in agent mode
    """

    def __init__(self, format_type: str = "text"):
        if format_type not in ["text", "json"]:
            raise ValueError(f"Invalid format: {format_type}. Must be 'text' or 'json'")

        self.format = format_type
        self._json_buffer: dict[str, Any] = {}

    def is_human(self) -> bool:
        return self.format == "text"

    def is_agent(self) -> bool:
        return self.format == "json"

    def add_json(self, key: str, value: Any) -> None:
        """Add key-value pair to the JSON buffer (flushed by flush_json())."""
        self._json_buffer[key] = value

    def flush_json(self) -> None:
        """
        Output buffered JSON to stdout and clear buffer.

        Only outputs in agent mode. In human mode, this is a no-op.
        """
        if self.is_agent() and self._json_buffer:
            json.dump(self._json_buffer, sys.stdout, indent=2, default=str)
            sys.stdout.write("\n")
            sys.stdout.flush()
            self._json_buffer.clear()


# Global output mode instance (set by CLI flags)
output_mode = OutputMode()

# Global Rich console instances for human mode
console = Console()  # stdout
console_err = Console(stderr=True)  # stderr


@contextmanager
def spinner(message: str):
    """
    Context manager for showing a spinner during operations.

    Displays a Rich spinner with message in human mode, silent otherwise.
    """
    if output_mode.is_human():
        with console.status(f"[bold blue]{message}", spinner="dots") as status:
            yield status
    else:
        yield None


def success(message: str) -> None:
    """Green checkmark in human mode; buffered status in agent mode."""
    if output_mode.is_human():
        console.print(f"[green]✓[/green] {message}")
    elif output_mode.is_agent():
        output_mode.add_json("status", "success")
        output_mode.add_json("message", message)


def error(message: str) -> None:
    """Red X to stderr in human mode; buffered error in agent mode."""
    if output_mode.is_human():
        console_err.print(f"[red]✗[/red] {message}", style="red")
    elif output_mode.is_agent():
        output_mode.add_json("status", "error")
        output_mode.add_json("error", message)


def warning(message: str) -> None:
    """Yellow warning symbol in human mode; appended to 'warnings' in agent mode."""
    if output_mode.is_human():
        console.print(f"[yellow]⚠[/yellow] {message}")
    elif output_mode.is_agent():
        warnings = output_mode._json_buffer.setdefault("warnings", [])
        warnings.append(message)


def info(message: str) -> None:
    """Blue info line in human mode; silent in agent mode."""
    if output_mode.is_human():
        console.print(f"[blue]ℹ[/blue] {message}")


def print_banner(version: str) -> None:
    """Print the startup banner (human mode only)."""
    if not output_mode.is_human():
        return

    banner = f"""
[bold cyan]╔{"═" * 39}╗
║   SeedKeeper v{version:<23} ║
║   Seed, migrate and merge SQLite      ║
╚{"═" * 39}╝[/bold cyan]
"""

    console.print(banner)


def print_statements_table(statements: list[str], title: str = "Statements") -> None:
    """
    Print parsed statements, one row each.

    Human mode: Rich table with index and statement text
    Agent mode: Buffers {"statements": [...]}
    """
    if output_mode.is_agent():
        output_mode.add_json("statements", statements)
        return

    table = Table(title=title, box=box.ROUNDED, show_lines=True)
    table.add_column("#", justify="right", style="cyan", no_wrap=True)
    table.add_column("Statement", overflow="fold")

    for index, statement in enumerate(statements, start=1):
        table.add_row(str(index), escape(statement))

    console.print(table)


def print_migrations_table(rows: list[dict]) -> None:
    """
    Print discovered migration files.

    Each row: {"file": str, "version": int | None, "status": str} where status
    is "selected", "out of range" or "skipped".
    """
    if output_mode.is_agent():
        output_mode.add_json("migrations", rows)
        return

    table = Table(title="Migrations", box=box.ROUNDED)
    table.add_column("File", style="cyan")
    table.add_column("Version", justify="right")
    table.add_column("Status")

    styles = {"selected": "green", "out of range": "dim", "skipped": "yellow"}
    for row in rows:
        version = "-" if row["version"] is None else str(row["version"])
        style = styles.get(row["status"], "white")
        table.add_row(escape(row["file"]), version, f"[{style}]{row['status']}[/{style}]")

    console.print(table)
