# File: crudgen/utils.py
"""
crudgen - Utility Functions & Helpers
======================================
Naming transformations, checksums and a timing helper used throughout the
generation pipeline.

Naming strategy:
- The generated class, file and property names all flow through
  ``studly_case`` / ``camel_case`` / ``singularize``.  These are
  intentionally crude (``singularize`` strips a single trailing ``s``) and
  any change to them renames generated files, so they are pinned by tests.
- String-conversion functions are decorated with ``@lru_cache(maxsize=None)``
  because the same table and column names are converted many times per run.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import re
import time
from typing import List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_WORD_SEPARATOR_RE: re.Pattern[str] = re.compile(r"[-_]")


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def ucfirst(value: str) -> str:
    """Upper-case the first character, leave the rest untouched."""
    return value[:1].upper() + value[1:]


@functools.lru_cache(maxsize=None)
def lcfirst(value: str) -> str:
    """Lower-case the first character, leave the rest untouched."""
    return value[:1].lower() + value[1:]


@functools.lru_cache(maxsize=None)
def studly_case(value: str) -> str:
    """
    Convert ``snake_case`` / ``kebab-case`` to ``StudlyCase``.

    Only the first letter of each word is upper-cased; the remainder keeps
    its original casing.

    Examples:
        >>> studly_case("order_items")
        'OrderItems'
        >>> studly_case("user-profile")
        'UserProfile'
        >>> studly_case("orderItem")
        'OrderItem'
    """
    if not value:
        return ""
    words: List[str] = _WORD_SEPARATOR_RE.sub(" ", value).split(" ")
    return "".join(ucfirst(word) for word in words)


@functools.lru_cache(maxsize=None)
def camel_case(value: str) -> str:
    """
    Convert ``snake_case`` / ``kebab-case`` to ``camelCase``.

    Examples:
        >>> camel_case("created_at")
        'createdAt'
        >>> camel_case("id")
        'id'
    """
    return lcfirst(studly_case(value))


@functools.lru_cache(maxsize=None)
def singularize(name: str) -> str:
    """
    Strip a single trailing ``s``.

    No irregular plurals are handled: ``categories`` becomes ``categorie``
    and ``address`` becomes ``addres``.  Generated class and file names
    depend on this exact rule.
    """
    if name.endswith("s"):
        return name[:-1]
    return name


@functools.lru_cache(maxsize=None)
def pluralize(name: str) -> str:
    """Append a single ``s`` (inverse of ``singularize`` for regular names)."""
    return f"{name}s"


def model_name_for(table_name: str) -> str:
    """``customers`` → ``Customer``; ``order_items`` → ``OrderItem``."""
    return studly_case(singularize(table_name))


def relation_name_for(table_name: str) -> str:
    """``customers`` → ``customer``; ``order_items`` → ``orderItem``."""
    return camel_case(singularize(table_name))


def quote_identifier(name: str) -> str:
    """Wrap an SQL identifier in MySQL backticks."""
    return f"`{name}`"


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("parse schema") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ucfirst",
    "lcfirst",
    "studly_case",
    "camel_case",
    "singularize",
    "pluralize",
    "model_name_for",
    "relation_name_for",
    "quote_identifier",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("crudgen.utils loaded — %d public symbols.", len(__all__))
