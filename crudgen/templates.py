# File: crudgen/templates.py
"""
crudgen - Stub Templates & Rendering
=====================================

Turns a ``GenerationPlan`` into PHP source files.

Rendering is a flat string replacement: every ``{{ name }}`` placeholder in
a ``.stub`` file is replaced with the matching value.  There is no
conditional or loop syntax; everything variable (property lists, hydration
blocks, optional restore methods) is pre-rendered here and substituted as a
single string.

Stubs ship inside the package under ``crudgen/stubs``.  A user directory
can override them (``GenerationConfig.stubs_dir`` / ``--stubs``); any stub
missing from the override directory falls back to the packaged copy.

Artifacts produced (paths relative to the project root)::

    model               src/Models/<Model>.php
    repository          src/Repositories/<Model>Repository.php
    controller          src/Http/Controllers/<Model>Controller.php
    database_bootstrap  bootstrap/database.php
    env_example         .env.example
    router              public/index.php
    htaccess            public/.htaccess
    nginx               nginx.conf.example
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Set

from crudgen.errors import StubNotFoundError
from crudgen.models import GenerationConfig, GenerationPlan, HydrationRule, SetupMode
from crudgen.utils import camel_case, lcfirst

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PACKAGED_STUBS_DIR: Path = Path(__file__).resolve().parent / "stubs"

_INDENT: str = "    "
_DOUBLE_INDENT: str = "        "
_TRIPLE_INDENT: str = "            "

_SELECT_SEPARATOR: str = ",\n               "


# ---------------------------------------------------------------------------
# Pure substitution
# ---------------------------------------------------------------------------


def placeholder(name: str) -> str:
    """``modelName`` → ``{{ modelName }}``."""
    return "{{ " + name + " }}"


def render_stub(template: str, replacements: Mapping[str, str]) -> str:
    """
    Replace every ``{{ key }}`` in *template* with its value.

    Replacements are applied in mapping order.  Placeholders with no entry
    in *replacements* are left untouched.
    """
    rendered: str = template
    for name, value in replacements.items():
        rendered = rendered.replace(placeholder(name), value)
    return rendered


# ---------------------------------------------------------------------------
# Stub loading
# ---------------------------------------------------------------------------


class StubLoader:
    """Loads ``.stub`` files from an override directory or the package."""

    def __init__(self, stubs_dir: Optional[Path] = None) -> None:
        self._stubs_dir: Optional[Path] = stubs_dir
        self._cache: Dict[str, str] = {}

    def locate(self, stub_name: str) -> Path:
        """Return the path of *stub_name*, preferring the override directory."""
        if self._stubs_dir is not None:
            candidate: Path = self._stubs_dir / stub_name
            if candidate.is_file():
                return candidate
            logger.debug("Stub '%s' not overridden in %s.", stub_name, self._stubs_dir)

        packaged: Path = PACKAGED_STUBS_DIR / stub_name
        if packaged.is_file():
            return packaged

        raise StubNotFoundError(stub_name, self._stubs_dir or PACKAGED_STUBS_DIR)

    def load(self, stub_name: str) -> str:
        if stub_name not in self._cache:
            path: Path = self.locate(stub_name)
            self._cache[stub_name] = path.read_text(encoding="utf-8")
            logger.debug("Loaded stub '%s' from %s.", stub_name, path)
        return self._cache[stub_name]


# ---------------------------------------------------------------------------
# Rendered artifact
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GeneratedArtifact:
    """One rendered file, not yet written."""

    kind: str
    relative_path: str
    content: str
    label: str


# ---------------------------------------------------------------------------
# Fragment builders (PHP snippets substituted into the stubs)
# ---------------------------------------------------------------------------


def build_model_properties(plan: GenerationPlan, models_namespace: str) -> str:
    """One nullable property per column, then one per declared relation."""
    lines: List[str] = [
        f"{_INDENT}public ?string ${camel_case(column)} = null;" for column in plan.columns
    ]

    seen: Set[str] = set()
    for relation in plan.relations:
        if relation.relation_name in seen:
            continue
        seen.add(relation.relation_name)
        lines.append("")
        lines.append(
            f"{_INDENT}/** @var \\{models_namespace}\\{relation.parent_model}|null */"
        )
        lines.append(f"{_INDENT}public ?object ${relation.relation_name} = null;")

    return "\n".join(lines)


def build_use_statements(
    namespace: str,
    class_names: List[str],
    exclude: Optional[Set[str]] = None,
) -> List[str]:
    """De-duplicated ``use`` lines in first-seen order."""
    skip: Set[str] = set(exclude or ())
    statements: List[str] = []
    for class_name in class_names:
        if class_name in skip:
            continue
        skip.add(class_name)
        statements.append(f"use {namespace}\\{class_name};")
    return statements


def build_hydration_logic(rule: HydrationRule) -> str:
    """PHP block that folds aliased columns into a nested relation object."""
    var: str = rule.relation_name
    flag: str = f"$has{rule.parent_model}Data"

    lines: List[str] = [
        "",
        f"{_DOUBLE_INDENT}// Hydrate {rule.parent_model} relation",
        f"{_DOUBLE_INDENT}${var} = new {rule.parent_model}();",
        f"{_DOUBLE_INDENT}{flag} = false;",
    ]
    for mapping in rule.mappings:
        lines.extend([
            f"{_DOUBLE_INDENT}if (isset($row['{mapping.alias}'])) {{",
            f"{_TRIPLE_INDENT}${var}->{mapping.attribute} = $row['{mapping.alias}'];",
            f"{_TRIPLE_INDENT}{flag} = true;",
            f"{_TRIPLE_INDENT}unset($row['{mapping.alias}']);",
            f"{_DOUBLE_INDENT}}}",
        ])
    lines.extend([
        f"{_DOUBLE_INDENT}if ({flag}) {{",
        f"{_TRIPLE_INDENT}$model->{var} = ${var};",
        f"{_DOUBLE_INDENT}}}",
    ])
    return "\n".join(lines)


def build_execute_params(columns: List[str]) -> str:
    return "\n".join(f"{_TRIPLE_INDENT}$model->{camel_case(c)}," for c in columns)


def build_join_clause(join_clauses: List[str]) -> str:
    return "".join(f"\n{_DOUBLE_INDENT}{clause}" for clause in join_clauses)


# ---------------------------------------------------------------------------
# TemplateGenerator
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Renders every artifact for one ``GenerationPlan``.

    Stateless apart from the stub cache held by its ``StubLoader``.
    """

    def __init__(
        self,
        config: GenerationConfig,
        loader: Optional[StubLoader] = None,
    ) -> None:
        self._config: GenerationConfig = config
        stubs_dir: Optional[Path] = Path(config.stubs_dir) if config.stubs_dir else None
        self._loader: StubLoader = loader or StubLoader(stubs_dir)

    # -- Naming helpers -----------------------------------------------------

    @staticmethod
    def repository_name(plan: GenerationPlan) -> str:
        return f"{plan.model_name}Repository"

    @staticmethod
    def controller_name(plan: GenerationPlan) -> str:
        return f"{plan.model_name}Controller"

    def _render(self, stub_name: str, replacements: Mapping[str, str]) -> str:
        return render_stub(self._loader.load(stub_name), replacements)

    # ===================================================================
    # 1. Model
    # ===================================================================

    def generate_model(self, plan: GenerationPlan) -> GeneratedArtifact:
        namespace: str = self._config.models_namespace
        uses: List[str] = build_use_statements(
            namespace,
            [r.parent_model for r in plan.relations],
            exclude={plan.model_name},
        )
        use_block: str = "\n".join(uses) + "\n\n" if uses else ""

        content: str = self._render("model_with_relations.stub", {
            "namespace": namespace,
            "useStatements": use_block,
            "modelName": plan.model_name,
            "properties": build_model_properties(plan, namespace),
        })
        return GeneratedArtifact(
            kind="model",
            relative_path=f"{self._config.models_dir}/{plan.model_name}.php",
            content=content,
            label=f"Model `{plan.model_name}`",
        )

    # ===================================================================
    # 2. Repository
    # ===================================================================

    def generate_repository(self, plan: GenerationPlan) -> GeneratedArtifact:
        repository_name: str = self.repository_name(plan)
        uses: List[str] = build_use_statements(
            self._config.models_namespace,
            [plan.model_name] + [r.parent_model for r in plan.relations],
        )

        restore_method: str = ""
        if plan.has_soft_delete and plan.restore_statement:
            restore_method = self._render("repository_restore_method.stub", {
                "restoreStatement": plan.restore_statement,
                "tableName": plan.table_name,
            })

        hydration_logic: str = "".join(
            build_hydration_logic(rule) for rule in plan.hydration_rules
        )

        content: str = self._render("repository_with_join.stub", {
            "namespace": self._config.repositories_namespace,
            "repositoryName": repository_name,
            "useStatements": "\n".join(uses),
            "modelName": plan.model_name,
            "tableName": plan.table_name,
            "selectColumns": _SELECT_SEPARATOR.join(plan.select_column_list),
            "joinClause": build_join_clause(plan.join_clause_list),
            "hydrationLogic": hydration_logic,
            "softDeleteWhereClause": plan.soft_delete_where_clause,
            "softDeleteAndWhereClause": plan.soft_delete_and_where_clause,
            "insertColumns": ", ".join(plan.insert_column_list),
            "insertPlaceholders": ", ".join(plan.placeholder_list),
            "executeArrayParamsCreate": build_execute_params(plan.fillable_columns),
            "updateSetClause": ", ".join(plan.update_assignment_list),
            "executeArrayParamsUpdate": build_execute_params(plan.fillable_columns),
            "deleteStatement": plan.delete_statement,
            "restoreMethod": restore_method,
        })
        return GeneratedArtifact(
            kind="repository",
            relative_path=f"{self._config.repositories_dir}/{repository_name}.php",
            content=content,
            label=f"Repository `{repository_name}`",
        )

    # ===================================================================
    # 3. Controller
    # ===================================================================

    def generate_controller(self, plan: GenerationPlan) -> GeneratedArtifact:
        controller_name: str = self.controller_name(plan)
        repository_name: str = self.repository_name(plan)
        repository_variable: str = lcfirst(repository_name)

        restore_method: str = ""
        if plan.has_soft_delete:
            restore_method = self._render("controller_restore_method.stub", {
                "repositoryVariable": repository_variable,
            })

        content: str = self._render("controller.stub", {
            "namespace": self._config.controllers_namespace,
            "controllerName": controller_name,
            "modelName": plan.model_name,
            "modelNamespace": f"{self._config.models_namespace}\\{plan.model_name}",
            "repositoryName": repository_name,
            "repositoryNamespace": f"{self._config.repositories_namespace}\\{repository_name}",
            "repositoryVariable": repository_variable,
            "restoreMethod": restore_method,
        })
        return GeneratedArtifact(
            kind="controller",
            relative_path=f"{self._config.controllers_dir}/{controller_name}.php",
            content=content,
            label=f"Controller `{controller_name}`",
        )

    # ===================================================================
    # 4. Setup scaffolding
    # ===================================================================

    def generate_router(self, plan: GenerationPlan) -> GeneratedArtifact:
        controller_name: str = self.controller_name(plan)
        repository_name: str = self.repository_name(plan)

        restore_route: str = ""
        if plan.has_soft_delete:
            restore_route = (
                f"{_INDENT}case $method === 'POST' && $id !== null && $action === 'restore':\n"
                f"{_DOUBLE_INDENT}$controller->restore($id);\n"
                f"{_DOUBLE_INDENT}break;\n"
            )

        content: str = self._render("setup/router.php.stub", {
            "modelName": plan.model_name,
            "controllerName": controller_name,
            "controllerClass": f"{self._config.controllers_namespace}\\{controller_name}",
            "repositoryName": repository_name,
            "repositoryClass": f"{self._config.repositories_namespace}\\{repository_name}",
            "resourceName": plan.table_name,
            "restoreRoute": restore_route,
        })
        return GeneratedArtifact(
            kind="router",
            relative_path="public/index.php",
            content=content,
            label="Router (index.php)",
        )

    def generate_database_bootstrap(self) -> GeneratedArtifact:
        return GeneratedArtifact(
            kind="database_bootstrap",
            relative_path="bootstrap/database.php",
            content=self._render("setup/database.php.stub", {}),
            label="Database bootstrap",
        )

    def generate_env_example(self) -> GeneratedArtifact:
        return GeneratedArtifact(
            kind="env_example",
            relative_path=".env.example",
            content=self._render("setup/env.example.stub", {}),
            label="Environment example (.env.example)",
        )

    def generate_htaccess(self) -> GeneratedArtifact:
        return GeneratedArtifact(
            kind="htaccess",
            relative_path="public/.htaccess",
            content=self._render("setup/htaccess.stub", {}),
            label="Apache config (.htaccess)",
        )

    def generate_nginx_config(self) -> GeneratedArtifact:
        return GeneratedArtifact(
            kind="nginx",
            relative_path="nginx.conf.example",
            content=self._render("setup/nginx.conf.stub", {}),
            label="Nginx config example",
        )

    # ===================================================================
    # 5. Aggregate
    # ===================================================================

    def generate_all(self, plan: GenerationPlan) -> List[GeneratedArtifact]:
        """
        Render every artifact the configuration asks for.

        Model and repository are always produced.  The controller brings the
        database bootstrap and ``.env.example`` with it; a setup mode adds
        the router and the web-server config.
        """
        artifacts: List[GeneratedArtifact] = [
            self.generate_model(plan),
            self.generate_repository(plan),
        ]

        if self._config.controller_enabled:
            artifacts.extend([
                self.generate_controller(plan),
                self.generate_database_bootstrap(),
                self.generate_env_example(),
            ])

        if self._config.setup_mode is not None:
            artifacts.append(self.generate_router(plan))
            if self._config.setup_mode == SetupMode.NGINX:
                artifacts.append(self.generate_nginx_config())
            else:
                artifacts.append(self.generate_htaccess())

        logger.info(
            "Rendered %d artifacts for %s: %s.",
            len(artifacts),
            plan.model_name,
            ", ".join(a.kind for a in artifacts),
        )
        return artifacts


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "PACKAGED_STUBS_DIR",
    "placeholder",
    "render_stub",
    "StubLoader",
    "GeneratedArtifact",
    "build_model_properties",
    "build_use_statements",
    "build_hydration_logic",
    "build_execute_params",
    "build_join_clause",
    "TemplateGenerator",
]

logger.debug("crudgen.templates loaded.")
