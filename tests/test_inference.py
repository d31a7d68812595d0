"""
tests/test_inference.py
Unit tests for crudgen.inference (GenerationPlan derivation).

Parent schemas are supplied through a plain dict lookup so nothing here
touches the filesystem.
"""

from __future__ import annotations

from typing import Dict, Optional

import pytest

from crudgen.errors import ErrorReason, SchemaError
from crudgen.inference import (
    build_plan,
    delete_statement,
    fillable_columns,
    has_soft_delete,
    insert_column_list,
    join_clause,
    placeholder_list,
    restore_statement,
    update_assignment_list,
)
from crudgen.models import ForeignKeyDescriptor, TableDescriptor
from crudgen.parser import parse_table


def _resolver(tables: Dict[str, TableDescriptor]):
    def _resolve(name: str) -> Optional[TableDescriptor]:
        return tables.get(name)

    return _resolve


def _no_parents(name: str) -> Optional[TableDescriptor]:
    return None


# ===========================================================================
# Column-level derivations
# ===========================================================================


class TestColumnDerivations:
    def test_fillable_excludes_managed_columns(self) -> None:
        columns = ["id", "customer_id", "total", "created_at", "updated_at", "deleted_at"]
        assert fillable_columns(columns) == ["customer_id", "total"]

    def test_fillable_can_be_empty(self) -> None:
        assert fillable_columns(["id", "created_at", "updated_at"]) == []

    def test_soft_delete_is_case_sensitive(self) -> None:
        assert has_soft_delete(["id", "deleted_at"]) is True
        assert has_soft_delete(["id", "Deleted_At"]) is False
        assert has_soft_delete(["id"]) is False

    def test_insert_and_update_fragments(self) -> None:
        fillable = ["name", "email"]
        assert insert_column_list(fillable) == ["`name`", "`email`"]
        assert placeholder_list(fillable) == ["?", "?"]
        assert update_assignment_list(fillable) == ["`name` = ?", "`email` = ?"]

    def test_delete_statements(self) -> None:
        assert delete_statement("orders", True) == (
            "UPDATE `orders` SET `deleted_at` = NOW() WHERE `id` = ?"
        )
        assert delete_statement("tags", False) == "DELETE FROM `tags` WHERE `id` = ?"

    def test_restore_statement(self) -> None:
        assert restore_statement("orders") == (
            "UPDATE `orders` SET `deleted_at` = NULL WHERE `id` = ?"
        )

    def test_join_clause_targets_parent_id(self) -> None:
        fk = ForeignKeyDescriptor(column="owner_code", parent_table="users", parent_column="code")
        assert join_clause("posts", fk) == (
            "LEFT JOIN `users` ON `posts`.`owner_code` = `users`.`id`"
        )


# ===========================================================================
# Full plan
# ===========================================================================


class TestBuildPlan:
    def test_soft_delete_plan(self, orders_sql: str) -> None:
        plan = build_plan(parse_table(orders_sql), _no_parents)

        assert plan.model_name == "Order"
        assert plan.has_soft_delete is True
        assert plan.fillable_columns == ["customer_id", "total", "status"]
        assert plan.delete_statement.startswith("UPDATE `orders` SET `deleted_at` = NOW()")
        assert plan.restore_statement == (
            "UPDATE `orders` SET `deleted_at` = NULL WHERE `id` = ?"
        )
        assert plan.soft_delete_where_clause == "WHERE `orders`.`deleted_at` IS NULL"
        assert plan.soft_delete_and_where_clause == "AND `orders`.`deleted_at` IS NULL"

    def test_hard_delete_plan(self, tags_sql: str) -> None:
        plan = build_plan(parse_table(tags_sql), _no_parents)

        assert plan.has_soft_delete is False
        assert plan.delete_statement == "DELETE FROM `tags` WHERE `id` = ?"
        assert plan.restore_statement is None
        assert plan.soft_delete_where_clause == ""
        assert plan.soft_delete_and_where_clause == ""

    def test_resolved_relation(self, orders_sql: str, customers_sql: str) -> None:
        customers = parse_table(customers_sql)
        plan = build_plan(parse_table(orders_sql), _resolver({"customers": customers}))

        assert plan.join_clause_list == [
            "LEFT JOIN `customers` ON `orders`.`customer_id` = `customers`.`id`"
        ]
        assert plan.select_column_list == [
            "`orders`.*",
            "`customers`.`id` as `customer_id`",
            "`customers`.`name` as `customer_name`",
            "`customers`.`email` as `customer_email`",
        ]
        assert plan.warnings == []

        assert plan.resolved_relations == plan.relations

        relation = plan.relations[0]
        assert relation.resolved is True
        assert relation.relation_name == "customer"
        assert relation.parent_model == "Customer"

        rule = plan.hydration_rules[0]
        assert rule.aliases == ["customer_id", "customer_name", "customer_email"]
        assert [m.attribute for m in rule.mappings] == ["id", "name", "email"]

    def test_unresolved_relation_warns(self, orders_sql: str) -> None:
        plan = build_plan(parse_table(orders_sql), _no_parents)

        assert plan.join_clause_list == []
        assert plan.select_column_list == ["`orders`.*"]
        assert plan.hydration_rules == []
        assert len(plan.relations) == 1
        assert plan.relations[0].resolved is False
        assert plan.resolved_relations == []

        assert len(plan.warnings) == 1
        warning = plan.warnings[0]
        assert warning.parent_table == "customers"
        assert warning.column == "customer_id"
        assert "customers" in str(warning)

    def test_resolver_errors_propagate(self, orders_sql: str) -> None:
        def _broken(name: str) -> Optional[TableDescriptor]:
            raise SchemaError(ErrorReason.NO_COLUMNS, f"{name}.sql")

        with pytest.raises(SchemaError):
            build_plan(parse_table(orders_sql), _broken)

    def test_naive_singularisation(self) -> None:
        table = parse_table(
            "CREATE TABLE posts (\n"
            "  id INT,\n"
            "  category_id INT,\n"
            "  FOREIGN KEY (category_id) REFERENCES categories (id)\n"
            ");"
        )
        categories = parse_table("CREATE TABLE categories (\n  id INT,\n  title VARCHAR(20)\n);")
        plan = build_plan(table, _resolver({"categories": categories}))

        relation = plan.relations[0]
        assert relation.relation_name == "categorie"
        assert relation.parent_model == "Categorie"
        assert "`categories`.`title` as `categorie_title`" in plan.select_column_list


# ===========================================================================
# Hydration
# ===========================================================================


class TestHydrationRule:
    @pytest.fixture()
    def rule(self, orders_sql: str, customers_sql: str):
        customers = parse_table(customers_sql)
        plan = build_plan(parse_table(orders_sql), _resolver({"customers": customers}))
        return plan.hydration_rules[0]

    def test_nested_object_for_matched_row(self, rule) -> None:
        row = {
            "id": 7,
            "total": "10.00",
            "customer_id": 3,
            "customer_name": "Ada",
            "customer_email": "ada@example.com",
        }
        nested = rule.apply(row)

        assert nested == {"id": 3, "name": "Ada", "email": "ada@example.com"}
        assert "customer_name" not in row
        assert row["total"] == "10.00"

    def test_no_object_when_all_aliases_null(self, rule) -> None:
        row = {"id": 7, "customer_id": None, "customer_name": None, "customer_email": None}
        assert rule.apply(row) is None
        assert "customer_name" in row
