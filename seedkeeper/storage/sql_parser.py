"""
Migration script parsing: raw script text to an ordered list of statements.

Two strategies share the same contract and are selected by configuration:

LEGACY (default):
    Each non-blank line is one statement; a trailing ';' and surrounding
    whitespace are stripped. Statements spanning several lines, or whose
    body contains ';' (trigger bodies, string literals), are split wrongly.
    Existing scripts rely on this behavior, so it is kept as-is.

DELIMITED:
    A character-level scanner that
    - drops '-- line' and '/* block */' comments,
    - keeps quoted text ('...', "...", `...`) verbatim, including ';',
    - collapses whitespace runs outside quotes to a single space,
    - honours 'DELIMITER <token>' lines, which redefine the statement
      delimiter for the rest of the script ('DELIMITER ;' restores it),
    - with the default ';' delimiter, does not split inside a
      CREATE TRIGGER ... BEGIN ... END body.

Reading failures raise AssetIOError and no partial statement list is
returned.

Example:
    >>> script = '''
    ... CREATE TABLE a (x INTEGER);
    ... CREATE TRIGGER t AFTER INSERT ON a
    ... BEGIN
    ...   UPDATE a SET x = x + 1;
    ... END;
    ... '''
    >>> len(parse_script(script, ParserMode.DELIMITED))
    2
    >>> len(parse_script(script, ParserMode.LEGACY))
    5
"""

import re
import sqlite3
from enum import StrEnum
from typing import IO

from seedkeeper.exceptions import AssetIOError

DEFAULT_DELIMITER = ";"

_DIRECTIVE = re.compile(r"[ \t]*DELIMITER[ \t]+(\S+)[ \t]*(?:\r?\n|$)", re.IGNORECASE)

ScriptSource = bytes | str | IO[bytes] | IO[str]


class ParserMode(StrEnum):
    LEGACY = "legacy"
    DELIMITED = "delimited"

    @classmethod
    def from_config(cls, value: "str | ParserMode") -> "ParserMode":
        """Parse a configuration value, ignoring case and surrounding whitespace."""
        if isinstance(value, ParserMode):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            allowed = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Unknown SQL parser mode {value!r} (expected {allowed})") from e


def read_script_text(source: ScriptSource) -> str:
    """
    Read a script source fully into text.

    Accepts bytes, str, or a binary/text stream. Bytes are decoded as UTF-8;
    a leading byte-order mark is dropped.

    Raises:
        AssetIOError: If reading or decoding fails
    """
    if isinstance(source, str):
        return source

    data = source
    if not isinstance(source, bytes | bytearray):
        try:
            data = source.read()
        except UnicodeDecodeError as e:
            raise AssetIOError(f"Script is not valid UTF-8: {e}") from e
        except OSError as e:
            raise AssetIOError(f"Failed to read script: {e}") from e
        if isinstance(data, str):
            return data

    try:
        return bytes(data).decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise AssetIOError(f"Script is not valid UTF-8: {e}") from e


def parse_legacy(source: ScriptSource) -> list[str]:
    """Split a script into one statement per non-blank line."""
    statements = []
    for line in read_script_text(source).splitlines():
        line = line.strip().rstrip(DEFAULT_DELIMITER).strip()
        if line:
            statements.append(line)
    return statements


class _State:
    NONE = 0
    QUOTED = 1
    LINE_COMMENT = 2
    BLOCK_COMMENT = 3


def _append_space(buffer: list[str]) -> None:
    if buffer and buffer[-1] != " ":
        buffer.append(" ")


def parse_delimited(source: ScriptSource) -> list[str]:
    """Split a script into statements, honouring delimiters, quotes and comments."""
    text = read_script_text(source)
    statements: list[str] = []
    buffer: list[str] = []
    delimiter = DEFAULT_DELIMITER
    state = _State.NONE
    quote = ""
    line_start = True
    i = 0
    n = len(text)

    def flush() -> None:
        statement = "".join(buffer).strip()
        if statement:
            statements.append(statement)
        buffer.clear()

    while i < n:
        if state == _State.NONE and line_start:
            directive = _DIRECTIVE.match(text, i)
            if directive:
                flush()
                delimiter = directive.group(1)
                i = directive.end()
                continue
        line_start = False

        char = text[i]

        if state == _State.LINE_COMMENT:
            if char == "\n":
                # let the NONE branch treat the newline as whitespace
                state = _State.NONE
                continue
            i += 1
            continue

        if state == _State.BLOCK_COMMENT:
            if text.startswith("*/", i):
                state = _State.NONE
                _append_space(buffer)
                i += 2
            else:
                i += 1
            continue

        if state == _State.QUOTED:
            buffer.append(char)
            if char == quote:
                if text.startswith(quote, i + 1):
                    # doubled quote is an escaped quote
                    buffer.append(quote)
                    i += 2
                    continue
                state = _State.NONE
            i += 1
            continue

        if text.startswith("--", i):
            state = _State.LINE_COMMENT
            i += 2
            continue

        if text.startswith("/*", i):
            state = _State.BLOCK_COMMENT
            i += 2
            continue

        if text.startswith(delimiter, i):
            pending = "".join(buffer).strip()
            if (
                delimiter == DEFAULT_DELIMITER
                and pending
                and not sqlite3.complete_statement(pending + DEFAULT_DELIMITER)
            ):
                # inside a trigger body: the ';' belongs to the statement
                buffer.append(DEFAULT_DELIMITER)
                i += 1
                continue
            flush()
            i += len(delimiter)
            continue

        if char in "'\"`":
            state = _State.QUOTED
            quote = char
            buffer.append(char)
            i += 1
            continue

        if char.isspace():
            _append_space(buffer)
            if char == "\n":
                line_start = True
            i += 1
            continue

        buffer.append(char)
        i += 1

    flush()
    return statements


_PARSERS = {
    ParserMode.LEGACY: parse_legacy,
    ParserMode.DELIMITED: parse_delimited,
}


def parse_script(source: ScriptSource, mode: "ParserMode | str" = ParserMode.LEGACY) -> list[str]:
    """
    Parse a script with the given strategy.

    Args:
        source: Script bytes, text, or stream
        mode: ParserMode or its configuration string ("legacy" / "delimited")

    Returns:
        Statements in script order

    Raises:
        AssetIOError: If the source cannot be read
        ValueError: If mode is not a known parser mode
    """
    return _PARSERS[ParserMode.from_config(mode)](source)
