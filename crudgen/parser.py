# File: crudgen/parser.py
"""
crudgen - SQL Schema Parser
============================
Turns the text of a single-table ``.sql`` file into a ``TableDescriptor``.

This is a deliberately narrow, line-oriented reader for hand-written
MySQL-style DDL, not a SQL grammar:

- one ``CREATE TABLE`` statement per file;
- one column or constraint definition per line, separated by ``,\\n``;
- the column block runs from the first ``(`` after the table name to the
  *last* ``)`` in the file, so table options that themselves contain
  parentheses after the closing bracket will confuse it.

``DECIMAL(10,2)`` and friends are fine: their comma is never followed by a
newline.

Usage::

    from crudgen.parser import load_table, SiblingSchemaResolver

    table = load_table(Path("schema/orders.sql"))
    resolve = SiblingSchemaResolver(Path("schema"))
    customers = resolve("customers")   # TableDescriptor or None
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from crudgen.errors import ErrorReason, SchemaError
from crudgen.models import ForeignKeyDescriptor, TableDescriptor

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.parser")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_TABLE_NAME_RE: re.Pattern[str] = re.compile(
    r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?([`\"]?)(\w+)\1",
    re.IGNORECASE,
)

_LINE_SPLIT_RE: re.Pattern[str] = re.compile(r",[ \t]*\n")

_COLUMN_NAME_RE: re.Pattern[str] = re.compile(r"^`?(\w+)`?")

_FOREIGN_KEY_RE: re.Pattern[str] = re.compile(
    r"(?:CONSTRAINT\s+`?\w+`?\s+)?"
    r"FOREIGN\s+KEY\s*\(\s*`?(\w+)`?\s*\)\s*"
    r"REFERENCES\s+`?(\w+)`?\s*\(\s*`?(\w+)`?\s*\)",
    re.IGNORECASE,
)

# Lines inside the column block that define constraints, not columns
NON_COLUMN_PREFIXES: Tuple[str, ...] = (
    "PRIMARY KEY",
    "UNIQUE KEY",
    "KEY",
    "CONSTRAINT",
    "INDEX",
    "FOREIGN KEY",
)

SCHEMA_SUFFIX: str = ".sql"


# ---------------------------------------------------------------------------
# Schema Reader
# ---------------------------------------------------------------------------


def normalise_newlines(text: str) -> str:
    """Convert ``\\r\\n`` and bare ``\\r`` line endings to ``\\n``."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def read_schema(path: Path) -> str:
    """
    Read the raw text of a schema file.

    Raises:
        SchemaError: ``SCHEMA_FILE_NOT_FOUND`` if *path* is missing or not a
            regular file, ``SCHEMA_FILE_UNREADABLE`` on I/O or decode errors.
    """
    if not path.is_file():
        raise SchemaError(ErrorReason.SCHEMA_FILE_NOT_FOUND, path)

    try:
        text: str = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SchemaError(
            ErrorReason.SCHEMA_FILE_UNREADABLE, path, f"{type(exc).__name__}: {exc}"
        ) from exc

    logger.debug("Read %d characters from %s.", len(text), path)
    return normalise_newlines(text)


def load_table(path: Path) -> TableDescriptor:
    """Read and parse one schema file; parse errors are bound to *path*."""
    text: str = read_schema(path)
    return parse_table(text, source=path)


# ---------------------------------------------------------------------------
# Table / column parser
# ---------------------------------------------------------------------------


def _match_table_name(schema_text: str) -> re.Match[str]:
    match: Optional[re.Match[str]] = _TABLE_NAME_RE.search(schema_text)
    if match is None:
        raise SchemaError(ErrorReason.NO_TABLE_NAME)
    return match


def parse_table_name(schema_text: str) -> str:
    """
    Return the identifier following the first ``CREATE TABLE``.

    Raises:
        SchemaError: ``NO_TABLE_NAME`` when no ``CREATE TABLE`` is found.
    """
    return _match_table_name(schema_text).group(2)


def extract_column_block(schema_text: str) -> str:
    """
    Return the text between the first ``(`` after the table name and the
    last ``)`` of the schema.

    Raises:
        SchemaError: ``NO_TABLE_NAME`` or ``INVALID_COLUMN_BLOCK``.
    """
    name_match: re.Match[str] = _match_table_name(schema_text)

    open_index: int = schema_text.find("(", name_match.end())
    if open_index == -1:
        raise SchemaError(ErrorReason.INVALID_COLUMN_BLOCK, detail="no opening parenthesis")

    close_index: int = schema_text.rfind(")")
    if close_index <= open_index:
        raise SchemaError(ErrorReason.INVALID_COLUMN_BLOCK, detail="no closing parenthesis")

    return schema_text[open_index + 1:close_index]


def is_column_definition(line: str) -> bool:
    """True unless the trimmed, upper-cased *line* starts with a constraint keyword."""
    upper: str = line.strip().upper()
    return not upper.startswith(NON_COLUMN_PREFIXES)


def strip_comment_lines(chunk: str) -> str:
    """Drop whole-line ``--`` comments from a column-block chunk."""
    return "\n".join(
        line for line in chunk.splitlines() if not line.strip().startswith("--")
    )


def parse_columns(schema_text: str) -> List[str]:
    """
    Return column names in declaration order.

    Raises:
        SchemaError: ``NO_TABLE_NAME``, ``INVALID_COLUMN_BLOCK`` or
            ``NO_COLUMNS`` (a block with no column definitions).
    """
    block: str = extract_column_block(normalise_newlines(schema_text))

    columns: List[str] = []
    for raw_line in _LINE_SPLIT_RE.split(block):
        line: str = strip_comment_lines(raw_line).strip()
        if not line or not is_column_definition(line):
            continue
        match: Optional[re.Match[str]] = _COLUMN_NAME_RE.match(line)
        if match is None:
            logger.debug("Ignoring unrecognised line in column block: %r", line)
            continue
        columns.append(match.group(1))

    if not columns:
        raise SchemaError(ErrorReason.NO_COLUMNS)

    return columns


# ---------------------------------------------------------------------------
# Foreign-key extractor
# ---------------------------------------------------------------------------


def parse_foreign_keys(schema_text: str) -> List[ForeignKeyDescriptor]:
    """
    Return every ``FOREIGN KEY (...) REFERENCES ...`` in source order.

    Never fails; returns an empty list when the schema declares no keys.
    """
    return [
        ForeignKeyDescriptor(
            column=match.group(1),
            parent_table=match.group(2),
            parent_column=match.group(3),
        )
        for match in _FOREIGN_KEY_RE.finditer(schema_text)
    ]


def parse_table(
    schema_text: str,
    source: Optional[Union[str, Path]] = None,
) -> TableDescriptor:
    """
    Parse a full schema text into a ``TableDescriptor``.

    Raises:
        SchemaError: any parse failure, bound to *source* when given.
    """
    text: str = normalise_newlines(schema_text)
    try:
        name: str = parse_table_name(text)
        columns: List[str] = parse_columns(text)
    except SchemaError as exc:
        if source is not None and exc.path is None:
            raise exc.with_path(source) from None
        raise

    foreign_keys: List[ForeignKeyDescriptor] = parse_foreign_keys(text)

    table: TableDescriptor = TableDescriptor(
        name=name,
        columns=columns,
        foreign_keys=foreign_keys,
        source_file=str(source) if source is not None else None,
    )
    logger.info(
        "Parsed table '%s': %d columns, %d foreign keys.",
        table.name,
        len(table.columns),
        len(table.foreign_keys),
    )
    return table


# ---------------------------------------------------------------------------
# Parent-schema resolution
# ---------------------------------------------------------------------------


class SiblingSchemaResolver:
    """
    Resolve a parent table to ``<schema_dir>/<table>.sql``.

    Calling the resolver returns the parsed ``TableDescriptor`` or ``None``
    when the sibling file does not exist.  A sibling that exists but fails
    to parse raises ``SchemaError``.  Results are cached per table name for
    the lifetime of the resolver.
    """

    def __init__(self, schema_dir: Path) -> None:
        self._schema_dir: Path = schema_dir
        self._cache: Dict[str, Optional[TableDescriptor]] = {}

    @property
    def schema_dir(self) -> Path:
        return self._schema_dir

    def path_for(self, table_name: str) -> Path:
        return self._schema_dir / f"{table_name}{SCHEMA_SUFFIX}"

    def __call__(self, table_name: str) -> Optional[TableDescriptor]:
        if table_name in self._cache:
            return self._cache[table_name]

        path: Path = self.path_for(table_name)
        resolved: Optional[TableDescriptor] = None
        if path.is_file():
            resolved = load_table(path)
        else:
            logger.debug("No sibling schema for '%s' at %s.", table_name, path)

        self._cache[table_name] = resolved
        return resolved


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "NON_COLUMN_PREFIXES",
    "SCHEMA_SUFFIX",
    "normalise_newlines",
    "read_schema",
    "load_table",
    "parse_table_name",
    "extract_column_block",
    "is_column_definition",
    "strip_comment_lines",
    "parse_columns",
    "parse_foreign_keys",
    "parse_table",
    "SiblingSchemaResolver",
]

logger.debug("crudgen.parser loaded.")
