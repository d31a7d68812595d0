# File: crudgen/models.py
"""
crudgen - Core Data Models
===========================
Pydantic V2 models for everything that flows through the pipeline:

    Schema text → TableDescriptor → GenerationPlan → rendered artifacts

``TableDescriptor`` and ``ForeignKeyDescriptor`` are the parser's output.
``GenerationPlan`` (with its ``RelationPlan`` / ``HydrationRule`` parts) is
the inference output consumed by the template layer.  ``GenerationConfig``
holds the user-facing settings loaded from ``crudgen.yaml`` and the CLI.

All models are built fresh per invocation and never persisted.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from crudgen.utils import model_name_for, quote_identifier

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.models")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SOFT_DELETE_COLUMN: str = "deleted_at"
PRIMARY_KEY_COLUMN: str = "id"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SetupMode(str, Enum):
    """Web-server flavour for the deployment scaffolding."""

    APACHE = "apache"
    NGINX = "nginx"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
    protected_namespaces=(),
)


# ---------------------------------------------------------------------------
# Parser output
# ---------------------------------------------------------------------------


class ForeignKeyDescriptor(BaseModel):
    """One ``FOREIGN KEY (...) REFERENCES ...`` constraint."""

    model_config = _SHARED_CONFIG

    column: str = Field(..., min_length=1, description="Child column holding the reference.")
    parent_table: str = Field(..., min_length=1, description="Referenced table.")
    parent_column: str = Field(
        ...,
        min_length=1,
        description="Referenced column (bookkeeping only; joins target the parent id).",
    )

    def __repr__(self) -> str:
        return f"<FK {self.column} → {self.parent_table}.{self.parent_column}>"


class TableDescriptor(BaseModel):
    """
    Parsed result for a single ``CREATE TABLE`` statement.

    ``columns`` keeps declaration order: it drives the order of generated
    properties and of SQL placeholders.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Table name without quotes.")
    columns: List[str] = Field(..., min_length=1, description="Column names in declaration order.")
    foreign_keys: List[ForeignKeyDescriptor] = Field(default_factory=list)
    source_file: Optional[str] = Field(default=None, description="File the table was read from.")

    @computed_field  # type: ignore[misc]
    @property
    def has_soft_delete(self) -> bool:
        return SOFT_DELETE_COLUMN in self.columns

    @computed_field  # type: ignore[misc]
    @property
    def model_name(self) -> str:
        return model_name_for(self.name)

    def __repr__(self) -> str:
        return (
            f"<Table {self.name} {len(self.columns)} columns, "
            f"{len(self.foreign_keys)} FKs>"
        )


# ---------------------------------------------------------------------------
# Inference output
# ---------------------------------------------------------------------------


class HydrationMapping(BaseModel):
    """Maps one aliased result column back onto a relation property."""

    model_config = _SHARED_CONFIG

    alias: str = Field(..., min_length=1)
    column: str = Field(..., min_length=1, description="Parent column name.")
    attribute: str = Field(..., min_length=1, description="camelCase property on the parent model.")


class HydrationRule(BaseModel):
    """
    How a joined parent row is folded back into a nested object.

    The nested object is only attached when at least one aliased value in
    the row is non-null; a LEFT JOIN that found no parent yields ``None``.
    """

    model_config = _SHARED_CONFIG

    relation_name: str = Field(..., min_length=1)
    parent_model: str = Field(..., min_length=1)
    mappings: List[HydrationMapping] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def aliases(self) -> List[str]:
        return [m.alias for m in self.mappings]

    def apply(self, row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Move every non-null aliased value out of *row* into the nested object.

        Returns ``None`` when none of the aliased values is non-null; null
        aliases are left in *row*, as the generated PHP does.
        """
        nested: Dict[str, Any] = {}
        has_data: bool = False
        for mapping in self.mappings:
            if row.get(mapping.alias) is not None:
                nested[mapping.attribute] = row.pop(mapping.alias)
                has_data = True
        return nested if has_data else None


class RelationWarning(BaseModel):
    """Non-fatal signal: a declared relation could not be hydrated."""

    model_config = _SHARED_CONFIG

    parent_table: str
    column: str
    message: str

    def __str__(self) -> str:
        return self.message


class RelationPlan(BaseModel):
    """Everything derived for one declared foreign key."""

    model_config = _SHARED_CONFIG

    foreign_key: ForeignKeyDescriptor
    relation_name: str = Field(..., min_length=1, description="lowerCamel singular parent name.")
    parent_model: str = Field(..., min_length=1, description="StudlyCase singular parent name.")
    resolved: bool = Field(default=False, description="Parent schema was found and parsed.")
    join_clause: Optional[str] = Field(default=None)
    select_columns: List[str] = Field(default_factory=list)
    hydration: Optional[HydrationRule] = Field(default=None)

    @property
    def parent_table(self) -> str:
        return self.foreign_key.parent_table

    def __repr__(self) -> str:
        state: str = "resolved" if self.resolved else "unresolved"
        return f"<Relation {self.relation_name} → {self.parent_table} ({state})>"


class GenerationPlan(BaseModel):
    """
    Per-entity facts consumed by the template layer.

    The list-valued SQL fragments are kept unjoined; formatting them into
    a particular template is the renderer's job.
    """

    model_config = _SHARED_CONFIG

    table_name: str = Field(..., min_length=1)
    model_name: str = Field(..., min_length=1)
    columns: List[str] = Field(..., min_length=1)
    has_soft_delete: bool = False

    fillable_columns: List[str] = Field(default_factory=list)
    insert_column_list: List[str] = Field(default_factory=list)
    placeholder_list: List[str] = Field(default_factory=list)
    update_assignment_list: List[str] = Field(default_factory=list)

    delete_statement: str = Field(..., min_length=1)
    restore_statement: Optional[str] = Field(default=None)
    soft_delete_where_clause: str = ""
    soft_delete_and_where_clause: str = ""

    relations: List[RelationPlan] = Field(default_factory=list)
    warnings: List[RelationWarning] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def join_clause_list(self) -> List[str]:
        return [r.join_clause for r in self.resolved_relations if r.join_clause]

    @computed_field  # type: ignore[misc]
    @property
    def select_column_list(self) -> List[str]:
        selects: List[str] = [f"{quote_identifier(self.table_name)}.*"]
        for relation in self.resolved_relations:
            selects.extend(relation.select_columns)
        return selects

    @computed_field  # type: ignore[misc]
    @property
    def hydration_rules(self) -> List[HydrationRule]:
        return [r.hydration for r in self.relations if r.hydration is not None]

    @property
    def resolved_relations(self) -> List[RelationPlan]:
        return [r for r in self.relations if r.resolved]

    def __repr__(self) -> str:
        return (
            f"<GenerationPlan {self.model_name} ({self.table_name}) "
            f"{len(self.fillable_columns)} fillable, "
            f"{len(self.join_clause_list)}/{len(self.relations)} joined>"
        )


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """
    User-facing generator settings.

    Loaded from ``crudgen.yaml`` (or ``--config``) and overridden by CLI
    flags; the defaults reproduce a plain ``crudgen schema.sql`` run.
    """

    model_config = _SHARED_CONFIG

    # -- Locations ----------------------------------------------------------
    project_root: str = Field(
        default=".", description="Directory generated files are written under."
    )
    stubs_dir: Optional[str] = Field(
        default=None, description="Override directory for template stubs."
    )
    models_dir: str = Field(default="src/Models", min_length=1)
    repositories_dir: str = Field(default="src/Repositories", min_length=1)
    controllers_dir: str = Field(default="src/Http/Controllers", min_length=1)

    # -- Generated code -----------------------------------------------------
    namespace: str = Field(
        default="App", min_length=1, description="Root PHP namespace."
    )

    # -- Features -----------------------------------------------------------
    with_controller: bool = Field(
        default=False, description="Generate controller, bootstrap and .env.example."
    )
    setup_mode: Optional[SetupMode] = Field(
        default=None, description="Generate router and web-server config (implies controller)."
    )
    install_dependencies: bool = Field(
        default=True, description="Run composer to install vlucas/phpdotenv when needed."
    )
    dry_run: bool = Field(default=False, description="Render but don't write files.")

    @field_validator("namespace")
    @classmethod
    def _strip_namespace_separators(cls, v: str) -> str:
        stripped: str = v.strip("\\")
        if not stripped:
            raise ValueError("namespace must contain at least one segment.")
        return stripped

    @field_validator("models_dir", "repositories_dir", "controllers_dir")
    @classmethod
    def _relative_dirs(cls, v: str) -> str:
        return v.strip("/")

    @property
    def controller_enabled(self) -> bool:
        return self.with_controller or self.setup_mode is not None

    @property
    def models_namespace(self) -> str:
        return f"{self.namespace}\\Models"

    @property
    def repositories_namespace(self) -> str:
        return f"{self.namespace}\\Repositories"

    @property
    def controllers_namespace(self) -> str:
        return f"{self.namespace}\\Http\\Controllers"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SOFT_DELETE_COLUMN",
    "PRIMARY_KEY_COLUMN",
    "SetupMode",
    "ForeignKeyDescriptor",
    "TableDescriptor",
    "HydrationMapping",
    "HydrationRule",
    "RelationWarning",
    "RelationPlan",
    "GenerationPlan",
    "GenerationConfig",
]

logger.debug("crudgen.models loaded — %d public symbols.", len(__all__))
