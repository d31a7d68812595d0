# File: crudgen/generator.py
"""
crudgen - Generation Pipeline (Orchestrator)
=============================================

Connects every phase together:

    Schema file → TableDescriptor → GenerationPlan → artifacts → files

The ``CrudGenerator`` class provides both a programmatic API and the
backend for the CLI.

Workflow::

    1. Read and parse the schema file (parser.py).
    2. Build the plan, resolving parent tables from sibling ``.sql`` files
       (inference.py).
    3. Render every requested artifact from the stubs (templates.py).
    4. Hand off to ``ProjectExporter`` (exporters.py).
    5. Ensure the dotenv dependency when a controller was requested
       (composer.py).
    6. Return a ``GenerationReport`` with metrics and status.

Error handling strategy:
    - Schema errors (missing file, no table name, no columns, bad block,
      malformed parent schema) abort the run before anything is written.
    - A missing stub aborts the run before anything is written.
    - A missing parent schema is a warning; generation continues.
    - An existing target file is skipped; other artifacts are still written.
    - A failed write is recorded; other artifacts are still written.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from crudgen.composer import DependencyStatus, ensure_dotenv_dependency, CommandRunner
from crudgen.errors import ConfigError, ErrorReason, SchemaError, StubNotFoundError
from crudgen.exporters import ExportManifest, ExportResult, ProjectExporter
from crudgen.inference import build_plan
from crudgen.models import GenerationConfig, GenerationPlan, TableDescriptor
from crudgen.parser import SiblingSchemaResolver, load_table
from crudgen.templates import GeneratedArtifact, TemplateGenerator
from crudgen.utils import Timer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.generator")

# Looked up in the project root when no --config is given
CONFIG_FILE_NAMES: Tuple[str, ...] = ("crudgen.yaml", "crudgen.yml", "crudgen.json")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``CrudGenerator.generate_from_file()``.

    ``schema_errors`` and ``generation_errors`` are fatal and mean nothing
    was written.  ``export_errors`` are per-file.  ``warnings`` never affect
    ``success``.
    """

    success: bool = False
    schema_file: str = ""
    project_root: str = ""
    table_name: str = ""
    model_name: str = ""
    dry_run: bool = False

    # Outcome
    created_files: List[str] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    schema_errors: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)
    error_reason: Optional[ErrorReason] = None
    dependency_status: Optional[DependencyStatus] = None

    # Metrics
    total_elapsed_seconds: float = 0.0
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)

    # References
    plan: Optional[GenerationPlan] = None
    manifest: Optional[ExportManifest] = None

    @property
    def errors(self) -> List[str]:
        return self.schema_errors + self.generation_errors + self.export_errors

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  crudgen — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:        {status}")
        lines.append(f"  Schema:        {self.schema_file}")
        if self.table_name:
            lines.append(f"  Table:         {self.table_name} → {self.model_name}")
        if self.plan is not None:
            lines.append(
                f"  Soft delete:   {'enabled' if self.plan.has_soft_delete else 'disabled'}"
            )
            lines.append(
                f"  Relations:     {len(self.plan.join_clause_list)} joined / "
                f"{len(self.plan.relations)} declared"
            )
        lines.append(f"  Project root:  {self.project_root}")
        if self.dry_run:
            lines.append("  Mode:          dry run (nothing written)")
        lines.append(f"  Total time:    {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<22s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections: List[Tuple[str, str, List[str]]] = [
            ("Created", "✓", self.created_files),
            ("Skipped (already exist)", "⊘", self.skipped_files),
            ("Warnings", "⚠", self.warnings),
            ("Errors", "✗", self.errors),
        ]
        for title, icon, items in sections:
            if not items:
                continue
            lines.append(f"{'─'*60}")
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Configuration loading
# ---------------------------------------------------------------------------


def _read_config_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ConfigError on parse errors."""
    try:
        data: Any = json.loads(_read_config_text(path))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a JSON object at top level of {path}, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ConfigError on parse errors."""
    try:
        data: Any = yaml.safe_load(_read_config_text(path))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping at top level of {path}, got {type(data).__name__}."
        )
    return data


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load a configuration file (JSON or YAML), dispatching on extension.

    Raises:
        ConfigError: If the file doesn't exist or can't be parsed.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    if path.suffix.lower() == ".json":
        return _load_json_file(path)
    return _load_yaml_file(path)


def find_config_file(project_root: Path) -> Optional[Path]:
    for name in CONFIG_FILE_NAMES:
        candidate: Path = project_root / name
        if candidate.is_file():
            return candidate
    return None


def build_config(
    project_root: Path,
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> GenerationConfig:
    """
    Assemble a ``GenerationConfig``: defaults < config file < *overrides*.

    Raises:
        ConfigError: If the config file is unreadable or any value is invalid.
    """
    data: Dict[str, Any] = {}

    source: Optional[Path] = config_path or find_config_file(project_root)
    if source is not None:
        data.update(load_config_file(source))
        logger.info("Loaded configuration from %s (%d keys).", source, len(data))

    data["project_root"] = str(project_root)
    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return GenerationConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# ---------------------------------------------------------------------------
# CrudGenerator orchestrator
# ---------------------------------------------------------------------------


class CrudGenerator:
    """
    Pipeline orchestrator.

    Usage::

        generator = CrudGenerator(GenerationConfig(project_root="."))
        report = generator.generate_from_file(Path("schema/orders.sql"))
        print(report.summary())
    """

    def __init__(
        self,
        config: GenerationConfig,
        *,
        composer_runner: Optional[CommandRunner] = None,
    ) -> None:
        self._config: GenerationConfig = config
        self._composer_runner: Optional[CommandRunner] = composer_runner
        self._project_root: Path = Path(config.project_root).resolve()

        logger.debug(
            "CrudGenerator initialised: root=%s, controller=%s, setup=%s, dry_run=%s.",
            self._project_root,
            config.controller_enabled,
            config.setup_mode,
            config.dry_run,
        )

    @property
    def config(self) -> GenerationConfig:
        return self._config

    def resolve_schema_path(self, schema_path: Path) -> Path:
        """Relative schema paths are taken relative to the project root."""
        if schema_path.is_absolute():
            return schema_path
        return self._project_root / schema_path

    # -----------------------------------------------------------------
    # Public: generate from file
    # -----------------------------------------------------------------

    def generate_from_file(self, schema_path: Path) -> GenerationReport:
        """Full pipeline: parse → plan → render → export → dependencies."""
        pipeline_start: float = time.perf_counter()
        path: Path = self.resolve_schema_path(schema_path)

        report: GenerationReport = GenerationReport(
            schema_file=str(path),
            project_root=str(self._project_root),
            dry_run=self._config.dry_run,
        )

        table: Optional[TableDescriptor] = self._step_parse(path, report)
        if table is None:
            return self._finalise_report(report, pipeline_start)

        plan: Optional[GenerationPlan] = self._step_plan(table, path, report)
        if plan is None:
            return self._finalise_report(report, pipeline_start)

        artifacts: List[GeneratedArtifact] = self._step_render(plan, report)
        if not artifacts:
            return self._finalise_report(report, pipeline_start)

        self._step_export(artifacts, report)

        if self._should_install_dependencies():
            self._step_dependencies(report)

        return self._finalise_report(report, pipeline_start)

    # -----------------------------------------------------------------
    # Pipeline step: parse
    # -----------------------------------------------------------------

    def _step_parse(self, path: Path, report: GenerationReport) -> Optional[TableDescriptor]:
        error: Optional[SchemaError] = None
        with Timer("parse_schema") as t:
            try:
                table: TableDescriptor = load_table(path)
            except SchemaError as exc:
                error = exc

        if error is not None:
            self._record_schema_error(error, report, "Parse Schema", t.elapsed)
            return None

        report.table_name = table.name
        report.model_name = table.model_name
        report.step_metrics.append(GenerationStepMetric(
            step_name="Parse Schema",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{len(table.columns)} columns, {len(table.foreign_keys)} FKs",
        ))
        return table

    # -----------------------------------------------------------------
    # Pipeline step: plan
    # -----------------------------------------------------------------

    def _step_plan(
        self,
        table: TableDescriptor,
        path: Path,
        report: GenerationReport,
    ) -> Optional[GenerationPlan]:
        resolver: SiblingSchemaResolver = SiblingSchemaResolver(path.parent)

        error: Optional[SchemaError] = None
        with Timer("build_plan") as t:
            try:
                plan: GenerationPlan = build_plan(table, resolver)
            except SchemaError as exc:
                error = exc

        if error is not None:
            self._record_schema_error(error, report, "Build Plan", t.elapsed)
            return None

        report.plan = plan
        report.warnings.extend(str(w) for w in plan.warnings)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Build Plan",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=(
                f"{len(plan.fillable_columns)} fillable, "
                f"{len(plan.join_clause_list)}/{len(plan.relations)} relations joined"
            ),
        ))
        return plan

    # -----------------------------------------------------------------
    # Pipeline step: render
    # -----------------------------------------------------------------

    def _step_render(
        self,
        plan: GenerationPlan,
        report: GenerationReport,
    ) -> List[GeneratedArtifact]:
        error: Optional[Exception] = None
        artifacts: List[GeneratedArtifact] = []
        with Timer("render") as t:
            try:
                artifacts = TemplateGenerator(self._config).generate_all(plan)
            except (StubNotFoundError, OSError) as exc:
                error = exc

        if error is not None:
            error_msg: str = f"Template rendering failed: {error}"
            report.generation_errors.append(error_msg)
            logger.error(error_msg)
            report.step_metrics.append(GenerationStepMetric(
                step_name="Render Templates",
                success=False,
                elapsed_seconds=t.elapsed,
                detail=str(error),
            ))
            return []

        report.step_metrics.append(GenerationStepMetric(
            step_name="Render Templates",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{len(artifacts)} artifacts",
        ))
        return artifacts

    # -----------------------------------------------------------------
    # Pipeline step: export
    # -----------------------------------------------------------------

    def _step_export(
        self,
        artifacts: List[GeneratedArtifact],
        report: GenerationReport,
    ) -> None:
        exporter: ProjectExporter = ProjectExporter(
            self._project_root,
            dry_run=self._config.dry_run,
        )
        result: ExportResult = exporter.export(artifacts)

        report.created_files.extend(result.created)
        report.skipped_files.extend(result.skipped)
        report.export_errors.extend(result.errors)
        report.manifest = result.manifest

        report.step_metrics.append(GenerationStepMetric(
            step_name="Export Files",
            success=result.success,
            elapsed_seconds=result.elapsed_seconds,
            detail=f"{len(result.created)} created, {len(result.skipped)} skipped",
        ))

    # -----------------------------------------------------------------
    # Pipeline step: dependencies
    # -----------------------------------------------------------------

    def _should_install_dependencies(self) -> bool:
        return (
            self._config.controller_enabled
            and self._config.install_dependencies
            and not self._config.dry_run
        )

    def _step_dependencies(self, report: GenerationReport) -> None:
        with Timer("dependencies") as t:
            status: DependencyStatus = ensure_dotenv_dependency(
                self._project_root, runner=self._composer_runner
            )

        report.dependency_status = status
        if status in (DependencyStatus.MISSING_COMPOSER_JSON, DependencyStatus.FAILED):
            report.warnings.append(
                "vlucas/phpdotenv was not installed automatically "
                f"({status.value}); run `composer require vlucas/phpdotenv`."
            )

        report.step_metrics.append(GenerationStepMetric(
            step_name="Dependencies",
            success=status in (DependencyStatus.ALREADY_INSTALLED, DependencyStatus.INSTALLED),
            elapsed_seconds=t.elapsed,
            detail=status.value,
        ))

    # -----------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------

    @staticmethod
    def _record_schema_error(
        exc: SchemaError,
        report: GenerationReport,
        step_name: str,
        elapsed: float,
    ) -> None:
        report.schema_errors.append(str(exc))
        report.error_reason = exc.reason
        logger.error("%s", exc)
        report.step_metrics.append(GenerationStepMetric(
            step_name=step_name,
            success=False,
            elapsed_seconds=elapsed,
            detail=exc.reason.value,
        ))

    @staticmethod
    def _finalise_report(report: GenerationReport, pipeline_start: float) -> GenerationReport:
        report.total_elapsed_seconds = time.perf_counter() - pipeline_start
        report.success = not report.errors
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CONFIG_FILE_NAMES",
    "CrudGenerator",
    "GenerationReport",
    "GenerationStepMetric",
    "build_config",
    "find_config_file",
    "load_config_file",
]

logger.debug("crudgen.generator loaded.")
