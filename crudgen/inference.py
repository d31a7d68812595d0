# File: crudgen/inference.py
"""
crudgen - Feature Inference
============================
Derives a ``GenerationPlan`` from a parsed ``TableDescriptor``.

This module is a set of pure functions.  The only collaborator is the
injected ``resolve_parent_schema`` callable, which maps a parent table name
to its ``TableDescriptor`` (or ``None`` when the parent schema is not
available).  In production that is a ``SiblingSchemaResolver``; tests pass
a plain dict lookup.

Derivations:
    - soft delete      — ``deleted_at`` present among the columns
    - fillable columns — all columns except ``id`` and the timestamp columns
    - INSERT / UPDATE  — column list, ``?`` placeholders, ``col = ?`` pairs
    - DELETE / restore — soft-delete aware statements
    - relations        — one LEFT JOIN, aliased SELECT columns and a
                         hydration rule per *resolved* foreign key

An unresolved foreign key is kept on the plan (the model still declares the
relation property) but produces no join, no select columns and no
hydration; a ``RelationWarning`` is recorded instead.
"""

from __future__ import annotations

import logging
from typing import Callable, FrozenSet, List, Optional

from crudgen.models import (
    PRIMARY_KEY_COLUMN,
    SOFT_DELETE_COLUMN,
    ForeignKeyDescriptor,
    GenerationPlan,
    HydrationMapping,
    HydrationRule,
    RelationPlan,
    RelationWarning,
    TableDescriptor,
)
from crudgen.utils import (
    camel_case,
    model_name_for,
    quote_identifier,
    relation_name_for,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.inference")

# ---------------------------------------------------------------------------
# Types & constants
# ---------------------------------------------------------------------------

ParentResolver = Callable[[str], Optional[TableDescriptor]]

# Managed by the database / repository, never written from a model
NON_FILLABLE_COLUMNS: FrozenSet[str] = frozenset(
    {PRIMARY_KEY_COLUMN, "created_at", "updated_at", SOFT_DELETE_COLUMN}
)

PLACEHOLDER: str = "?"


# ---------------------------------------------------------------------------
# Column-level derivations
# ---------------------------------------------------------------------------


def has_soft_delete(columns: List[str]) -> bool:
    """Case-sensitive membership test for ``deleted_at``."""
    return SOFT_DELETE_COLUMN in columns


def fillable_columns(columns: List[str]) -> List[str]:
    """Columns minus ``id``/``created_at``/``updated_at``/``deleted_at``, order kept."""
    return [c for c in columns if c not in NON_FILLABLE_COLUMNS]


def insert_column_list(fillable: List[str]) -> List[str]:
    return [quote_identifier(c) for c in fillable]


def placeholder_list(fillable: List[str]) -> List[str]:
    return [PLACEHOLDER] * len(fillable)


def update_assignment_list(fillable: List[str]) -> List[str]:
    return [f"{quote_identifier(c)} = {PLACEHOLDER}" for c in fillable]


def delete_statement(table_name: str, soft_delete: bool) -> str:
    """Soft-delete tables get a timestamp update, the rest a real DELETE."""
    table: str = quote_identifier(table_name)
    pk: str = quote_identifier(PRIMARY_KEY_COLUMN)
    if soft_delete:
        return (
            f"UPDATE {table} SET {quote_identifier(SOFT_DELETE_COLUMN)} = NOW() "
            f"WHERE {pk} = {PLACEHOLDER}"
        )
    return f"DELETE FROM {table} WHERE {pk} = {PLACEHOLDER}"


def restore_statement(table_name: str) -> str:
    table: str = quote_identifier(table_name)
    return (
        f"UPDATE {table} SET {quote_identifier(SOFT_DELETE_COLUMN)} = NULL "
        f"WHERE {quote_identifier(PRIMARY_KEY_COLUMN)} = {PLACEHOLDER}"
    )


def soft_delete_condition(table_name: str) -> str:
    return f"{quote_identifier(table_name)}.{quote_identifier(SOFT_DELETE_COLUMN)} IS NULL"


# ---------------------------------------------------------------------------
# Relation derivations
# ---------------------------------------------------------------------------


def join_clause(table_name: str, fk: ForeignKeyDescriptor) -> str:
    """``LEFT JOIN `p` ON `t`.`fk` = `p`.`id```."""
    parent: str = quote_identifier(fk.parent_table)
    return (
        f"LEFT JOIN {parent} ON "
        f"{quote_identifier(table_name)}.{quote_identifier(fk.column)} = "
        f"{parent}.{quote_identifier(PRIMARY_KEY_COLUMN)}"
    )


def relation_alias(relation_name: str, parent_column: str) -> str:
    return f"{relation_name}_{parent_column}"


def plan_relation(
    table_name: str,
    fk: ForeignKeyDescriptor,
    parent: Optional[TableDescriptor],
) -> RelationPlan:
    """Build the join / select / hydration plan for one foreign key."""
    relation_name: str = relation_name_for(fk.parent_table)
    parent_model: str = model_name_for(fk.parent_table)

    if parent is None:
        return RelationPlan(
            foreign_key=fk,
            relation_name=relation_name,
            parent_model=parent_model,
            resolved=False,
        )

    parent_ref: str = quote_identifier(fk.parent_table)
    select_columns: List[str] = []
    mappings: List[HydrationMapping] = []
    for column in parent.columns:
        alias: str = relation_alias(relation_name, column)
        select_columns.append(
            f"{parent_ref}.{quote_identifier(column)} as {quote_identifier(alias)}"
        )
        mappings.append(
            HydrationMapping(alias=alias, column=column, attribute=camel_case(column))
        )

    return RelationPlan(
        foreign_key=fk,
        relation_name=relation_name,
        parent_model=parent_model,
        resolved=True,
        join_clause=join_clause(table_name, fk),
        select_columns=select_columns,
        hydration=HydrationRule(
            relation_name=relation_name,
            parent_model=parent_model,
            mappings=mappings,
        ),
    )


# ---------------------------------------------------------------------------
# Plan builder
# ---------------------------------------------------------------------------


def build_plan(
    table: TableDescriptor,
    resolve_parent_schema: ParentResolver,
) -> GenerationPlan:
    """
    Compute the full ``GenerationPlan`` for *table*.

    ``resolve_parent_schema`` is called once per foreign key.  A ``None``
    result records a warning and leaves that relation un-joined; any
    exception it raises (e.g. a malformed parent schema) propagates.
    """
    soft_delete: bool = has_soft_delete(table.columns)
    fillable: List[str] = fillable_columns(table.columns)

    relations: List[RelationPlan] = []
    warnings: List[RelationWarning] = []

    for fk in table.foreign_keys:
        parent: Optional[TableDescriptor] = resolve_parent_schema(fk.parent_table)
        relation: RelationPlan = plan_relation(table.name, fk, parent)
        relations.append(relation)

        if not relation.resolved:
            message: str = (
                f"Schema for relation '{fk.parent_table}' (via {table.name}.{fk.column}) "
                f"not found; the relation will not be joined or hydrated."
            )
            warnings.append(
                RelationWarning(
                    parent_table=fk.parent_table,
                    column=fk.column,
                    message=message,
                )
            )
            logger.warning(message)
        else:
            logger.debug("Relation %r planned.", relation)

    condition: str = soft_delete_condition(table.name)

    plan: GenerationPlan = GenerationPlan(
        table_name=table.name,
        model_name=model_name_for(table.name),
        columns=list(table.columns),
        has_soft_delete=soft_delete,
        fillable_columns=fillable,
        insert_column_list=insert_column_list(fillable),
        placeholder_list=placeholder_list(fillable),
        update_assignment_list=update_assignment_list(fillable),
        delete_statement=delete_statement(table.name, soft_delete),
        restore_statement=restore_statement(table.name) if soft_delete else None,
        soft_delete_where_clause=f"WHERE {condition}" if soft_delete else "",
        soft_delete_and_where_clause=f"AND {condition}" if soft_delete else "",
        relations=relations,
        warnings=warnings,
    )

    logger.info(
        "Planned %s: %d fillable columns, soft delete %s, %d/%d relations joined.",
        plan.model_name,
        len(plan.fillable_columns),
        "on" if plan.has_soft_delete else "off",
        len(plan.join_clause_list),
        len(plan.relations),
    )
    return plan


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ParentResolver",
    "NON_FILLABLE_COLUMNS",
    "PLACEHOLDER",
    "has_soft_delete",
    "fillable_columns",
    "insert_column_list",
    "placeholder_list",
    "update_assignment_list",
    "delete_statement",
    "restore_statement",
    "soft_delete_condition",
    "join_clause",
    "relation_alias",
    "plan_relation",
    "build_plan",
]

logger.debug("crudgen.inference loaded.")
