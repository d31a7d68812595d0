# File: crudgen/exporters.py
"""
crudgen - Project Exporter (File-System Writer)
================================================

Responsible for:
    1. Creating parent directories for every generated file.
    2. Never overwriting: a target that already exists is reported as
       *skipped* and left byte-for-byte untouched.
    3. Writing new files atomically (write-to-temp then ``os.replace``).
    4. Producing a manifest with checksums of everything written.

A failed write is recorded and the remaining artifacts are still exported.

The existence check and the write are two separate steps.  Two concurrent
runs targeting the same paths can both pass the check and the later write
wins; the generator is a one-shot, single-writer tool and does not lock.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from crudgen.templates import GeneratedArtifact
from crudgen.utils import Timer, count_lines, sha256_hex

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.exporters")


# New files get the mode a plain open() would give them
_BASE_FILE_MODE: int = 0o666


def default_file_mode() -> int:
    """Return ``0o666`` masked by the process umask."""
    umask: int = os.umask(0)
    os.umask(umask)
    return _BASE_FILE_MODE & ~umask


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    label: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """Manifest of all files written (or that would be written, in dry-run)."""

    project_root: str = ""
    dry_run: bool = False
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert manifest to a JSON-serialisable dictionary."""
        return {
            "project_root": self.project_root,
            "dry_run": self.dry_run,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "label": f.label,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    """
    Final result returned by ``ProjectExporter.export()``.

    ``created`` and ``skipped`` hold relative paths in artifact order.
    """

    success: bool
    manifest: ExportManifest
    created: Tuple[str, ...]
    skipped: Tuple[str, ...]
    errors: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# ProjectExporter class
# ---------------------------------------------------------------------------


class ProjectExporter:
    """
    Writes rendered artifacts under a project root without overwriting.

    Usage::

        exporter = ProjectExporter(Path("."))
        result = exporter.export(artifacts)
        for path in result.skipped:
            print(f"{path} already exists, skipped")

    Thread-safety: NOT thread-safe.  Use one exporter per run.
    """

    def __init__(
        self,
        project_root: Path,
        *,
        dry_run: bool = False,
        atomic_writes: bool = True,
    ) -> None:
        self._project_root: Path = project_root.resolve()
        self._dry_run: bool = dry_run
        self._atomic_writes: bool = atomic_writes

        self._created: List[str] = []
        self._skipped: List[str] = []
        self._errors: List[str] = []
        self._file_records: List[FileRecord] = []

        logger.debug(
            "ProjectExporter initialised: root=%s, dry_run=%s, atomic=%s.",
            self._project_root,
            self._dry_run,
            self._atomic_writes,
        )

    @property
    def project_root(self) -> Path:
        return self._project_root

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(self, artifacts: Sequence[GeneratedArtifact]) -> ExportResult:
        """Export every artifact; each one succeeds, skips or fails on its own."""
        with Timer("export") as timer:
            for artifact in artifacts:
                self._export_one(artifact)

        manifest: ExportManifest = self._build_manifest()
        result: ExportResult = ExportResult(
            success=not self._errors,
            manifest=manifest,
            created=tuple(self._created),
            skipped=tuple(self._skipped),
            errors=tuple(self._errors),
            elapsed_seconds=timer.elapsed,
        )

        if result.success:
            logger.info(
                "Export finished: %d created, %d skipped in %.3fs.",
                len(result.created),
                len(result.skipped),
                timer.elapsed,
            )
        else:
            logger.error(
                "Export finished with %d error(s) in %.3fs.",
                len(result.errors),
                timer.elapsed,
            )
        return result

    # -----------------------------------------------------------------
    # Internal: per-artifact export
    # -----------------------------------------------------------------

    def _target_exists(self, full_path: Path) -> bool:
        return full_path.exists()

    def _export_one(self, artifact: GeneratedArtifact) -> None:
        full_path: Path = self._project_root / artifact.relative_path

        if self._target_exists(full_path):
            self._skipped.append(artifact.relative_path)
            logger.warning(
                "%s already exists at %s, skipped.", artifact.label, artifact.relative_path
            )
            return

        try:
            record: FileRecord = self._write_single_file(full_path, artifact)
        except OSError as exc:
            error_msg: str = (
                f"Failed to write {artifact.relative_path}: "
                f"{type(exc).__name__}: {exc}"
            )
            self._errors.append(error_msg)
            logger.error(error_msg)
            return

        self._file_records.append(record)
        self._created.append(artifact.relative_path)
        logger.info("%s created at %s.", artifact.label, artifact.relative_path)

    def _write_single_file(self, full_path: Path, artifact: GeneratedArtifact) -> FileRecord:
        """Write one file (unless dry-run) and return its ``FileRecord``."""
        encoded: bytes = artifact.content.encode("utf-8")

        if not self._dry_run:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            if self._atomic_writes:
                self._atomic_write(full_path, encoded)
            else:
                full_path.write_bytes(encoded)

        return FileRecord(
            relative_path=artifact.relative_path,
            absolute_path=str(full_path),
            label=artifact.label,
            size_bytes=len(encoded),
            line_count=count_lines(artifact.content),
            sha256=sha256_hex(artifact.content),
        )

    @staticmethod
    def _atomic_write(target_path: Path, data: bytes) -> None:
        """
        Write data to target_path atomically using a temporary file.

        The temp file lives in the target directory so ``os.replace`` stays
        on one filesystem.  ``mkstemp`` creates it owner-only, so its mode is
        reset to the umask default before the rename.  On failure the temp
        file is removed and the original error propagates.
        """
        fd, tmp_path = tempfile.mkstemp(
            dir=str(target_path.parent),
            prefix=f".{target_path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                os.chmod(tmp_path, default_file_mode())
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, str(target_path))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    # -----------------------------------------------------------------
    # Internal: manifest
    # -----------------------------------------------------------------

    def _build_manifest(self) -> ExportManifest:
        return ExportManifest(
            project_root=str(self._project_root),
            dry_run=self._dry_run,
            total_files=len(self._file_records),
            total_bytes=sum(r.size_bytes for r in self._file_records),
            total_lines=sum(r.line_count for r in self._file_records),
            files=list(self._file_records),
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FileRecord",
    "ExportManifest",
    "ExportResult",
    "ProjectExporter",
    "default_file_mode",
]

logger.debug("crudgen.exporters loaded.")
