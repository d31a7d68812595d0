# File: crudgen/__init__.py
"""
crudgen — PHP CRUD Generator
=============================

Reads a single SQL ``CREATE TABLE`` statement, infers soft-delete support
and foreign-key relations, and generates a PDO-based Model, Repository and
(optionally) Controller plus minimal deployment scaffolding.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ CrudGenerator │────▶│ TemplateGenerator│
    │   (cli.py)   │     │ (generator.py)│     │  (templates.py)  │
    └──────────────┘     └───────┬───────┘     └──────────────────┘
                                 │
                 ┌───────────────┼───────────────┬────────────┐
                 ▼               ▼               ▼            ▼
           ┌──────────┐   ┌───────────┐   ┌───────────┐ ┌──────────┐
           │  parser  │   │ inference │   │ exporters │ │ composer │
           │  (.py)   │   │   (.py)   │   │   (.py)   │ │  (.py)   │
           └──────────┘   └───────────┘   └───────────┘ └──────────┘

Usage::

    # As a library
    from crudgen import CrudGenerator, GenerationConfig
    report = CrudGenerator(GenerationConfig(with_controller=True)).generate_from_file(
        Path("database/orders.sql")
    )

    # From the command line
    crudgen database/orders.sql --setup nginx -v
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from crudgen.errors import (
    ConfigError,
    CrudGenError,
    ErrorReason,
    SchemaError,
    StubNotFoundError,
)
from crudgen.models import (
    ForeignKeyDescriptor,
    GenerationConfig,
    GenerationPlan,
    HydrationRule,
    RelationPlan,
    RelationWarning,
    SetupMode,
    TableDescriptor,
)
from crudgen.parser import SiblingSchemaResolver, load_table, parse_table
from crudgen.inference import build_plan
from crudgen.templates import GeneratedArtifact, TemplateGenerator, render_stub
from crudgen.exporters import ExportManifest, ExportResult, ProjectExporter
from crudgen.composer import DependencyStatus, ensure_dotenv_dependency
from crudgen.generator import CrudGenerator, GenerationReport, build_config

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Core orchestrator
    "CrudGenerator",
    "GenerationReport",
    "build_config",
    # Errors
    "CrudGenError",
    "ConfigError",
    "ErrorReason",
    "SchemaError",
    "StubNotFoundError",
    # Models
    "ForeignKeyDescriptor",
    "GenerationConfig",
    "GenerationPlan",
    "HydrationRule",
    "RelationPlan",
    "RelationWarning",
    "SetupMode",
    "TableDescriptor",
    # Parsing & inference
    "SiblingSchemaResolver",
    "load_table",
    "parse_table",
    "build_plan",
    # Templates
    "GeneratedArtifact",
    "TemplateGenerator",
    "render_stub",
    # Exporters
    "ProjectExporter",
    "ExportManifest",
    "ExportResult",
    # Composer
    "DependencyStatus",
    "ensure_dotenv_dependency",
]
