# File: crudgen/errors.py
"""
crudgen - Error Taxonomy
=========================

Every fatal condition the generator can hit carries a tagged reason so the
CLI can map it to an exit code and print a human-readable cause next to the
offending path.

    SchemaError        — the schema file is missing, unreadable or unparsable
    StubNotFoundError  — a template stub could not be located
    ConfigError        — the generator configuration is invalid

Relation-resolution problems are *not* errors; they surface as warnings on
the ``GenerationPlan`` (see ``crudgen.inference``).
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional, Union


class ErrorReason(str, Enum):
    """Tagged reasons attached to ``SchemaError``."""

    NO_TABLE_NAME = "NoTableName"
    NO_COLUMNS = "NoColumns"
    INVALID_COLUMN_BLOCK = "InvalidColumnBlock"
    SCHEMA_FILE_NOT_FOUND = "SchemaFileNotFound"
    SCHEMA_FILE_UNREADABLE = "SchemaFileUnreadable"


_REASON_MESSAGES = {
    ErrorReason.NO_TABLE_NAME: "could not find a CREATE TABLE statement with a table name",
    ErrorReason.NO_COLUMNS: "no columns could be parsed from the column block",
    ErrorReason.INVALID_COLUMN_BLOCK: "could not locate the parenthesised column block",
    ErrorReason.SCHEMA_FILE_NOT_FOUND: "schema file not found",
    ErrorReason.SCHEMA_FILE_UNREADABLE: "schema file could not be read",
}


class CrudGenError(Exception):
    """Base class for all crudgen errors."""


class SchemaError(CrudGenError):
    """
    Raised when a schema file cannot be turned into a ``TableDescriptor``.

    Attributes:
        reason: The tagged ``ErrorReason``.
        path:   The schema file involved, when known.
        detail: Optional extra context appended to the message.
    """

    def __init__(
        self,
        reason: ErrorReason,
        path: Optional[Union[str, Path]] = None,
        detail: Optional[str] = None,
    ) -> None:
        self.reason: ErrorReason = reason
        self.path: Optional[str] = str(path) if path is not None else None
        self.detail: Optional[str] = detail
        super().__init__(self._format())

    def with_path(self, path: Union[str, Path]) -> "SchemaError":
        """Return a copy of this error bound to *path*."""
        return SchemaError(self.reason, path, self.detail)

    def _format(self) -> str:
        message: str = _REASON_MESSAGES[self.reason]
        if self.detail:
            message = f"{message} ({self.detail})"
        if self.path:
            return f"[{self.reason.value}] {self.path}: {message}"
        return f"[{self.reason.value}] {message}"


class StubNotFoundError(CrudGenError):
    """Raised when a template stub cannot be found on disk."""

    def __init__(self, stub_name: str, searched: Path) -> None:
        self.stub_name: str = stub_name
        self.searched: Path = searched
        super().__init__(f"Template stub '{stub_name}' not found in {searched}")


class ConfigError(CrudGenError):
    """Raised when the generator configuration cannot be loaded or validated."""


__all__: List[str] = [
    "ErrorReason",
    "CrudGenError",
    "SchemaError",
    "StubNotFoundError",
    "ConfigError",
]
