"""
tests/conftest.py
Shared fixtures for the crudgen test suite.

Schemas are written as real ``.sql`` files inside pytest's ``tmp_path``;
the generator runs against a throwaway project root per test.
"""

from __future__ import annotations

import pathlib
import textwrap
from typing import Any, Callable, Dict, List

import pytest
import yaml

from crudgen.models import GenerationConfig


# ---------------------------------------------------------------------------
# Raw schema texts
# ---------------------------------------------------------------------------

ORDERS_SQL: str = textwrap.dedent(
    """\
    CREATE TABLE `orders` (
      `id` INT NOT NULL AUTO_INCREMENT,
      `customer_id` INT NOT NULL,
      `total` DECIMAL(10,2) NOT NULL DEFAULT 0,
      `status` VARCHAR(32) NOT NULL,
      `created_at` TIMESTAMP NULL,
      `updated_at` TIMESTAMP NULL,
      `deleted_at` TIMESTAMP NULL,
      PRIMARY KEY (`id`),
      KEY `orders_customer_id_index` (`customer_id`),
      CONSTRAINT `orders_customer_fk` FOREIGN KEY (`customer_id`) REFERENCES `customers` (`id`)
    ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
    """
)

CUSTOMERS_SQL: str = textwrap.dedent(
    """\
    CREATE TABLE `customers` (
      `id` INT NOT NULL AUTO_INCREMENT,
      `name` VARCHAR(255) NOT NULL,
      `email` VARCHAR(255) NOT NULL,
      PRIMARY KEY (`id`),
      UNIQUE KEY `customers_email_unique` (`email`)
    );
    """
)

TAGS_SQL: str = textwrap.dedent(
    """\
    CREATE TABLE tags (
      id INT NOT NULL AUTO_INCREMENT,
      label VARCHAR(64) NOT NULL,
      PRIMARY KEY (id)
    );
    """
)


# ---------------------------------------------------------------------------
# Schema text fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def orders_sql() -> str:
    """Soft-delete table with one foreign key to ``customers``."""
    return ORDERS_SQL


@pytest.fixture()
def customers_sql() -> str:
    return CUSTOMERS_SQL


@pytest.fixture()
def tags_sql() -> str:
    """Unquoted identifiers, no soft delete, no relations."""
    return TAGS_SQL


# ---------------------------------------------------------------------------
# On-disk fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def project_root(tmp_path: pathlib.Path) -> pathlib.Path:
    """Empty project root for generated files."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture()
def schema_dir(project_root: pathlib.Path) -> pathlib.Path:
    path = project_root / "database"
    path.mkdir()
    return path


@pytest.fixture()
def write_schema(schema_dir: pathlib.Path) -> Callable[[str, str], pathlib.Path]:
    """Return a helper that writes ``<schema_dir>/<name>.sql``."""

    def _write(name: str, text: str) -> pathlib.Path:
        path = schema_dir / f"{name}.sql"
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def orders_path(write_schema: Callable[[str, str], pathlib.Path]) -> pathlib.Path:
    """``orders.sql`` alone: the ``customers`` relation cannot be resolved."""
    return write_schema("orders", ORDERS_SQL)


@pytest.fixture()
def orders_with_parent_path(
    write_schema: Callable[[str, str], pathlib.Path],
) -> pathlib.Path:
    """``orders.sql`` with a sibling ``customers.sql``."""
    write_schema("customers", CUSTOMERS_SQL)
    return write_schema("orders", ORDERS_SQL)


@pytest.fixture()
def config_factory(project_root: pathlib.Path) -> Callable[..., GenerationConfig]:
    """Build a ``GenerationConfig`` rooted at the temp project, composer disabled."""

    def _factory(**overrides: Any) -> GenerationConfig:
        data: Dict[str, Any] = {
            "project_root": str(project_root),
            "install_dependencies": False,
        }
        data.update(overrides)
        return GenerationConfig(**data)

    return _factory


@pytest.fixture()
def write_config(project_root: pathlib.Path) -> Callable[..., pathlib.Path]:
    """Write a YAML config file into the project root."""

    def _write(data: Dict[str, Any], name: str = "crudgen.yaml") -> pathlib.Path:
        path = project_root / name
        with open(path, "w", encoding="utf-8") as fh:
            yaml.dump(data, fh, default_flow_style=False)
        return path

    return _write


@pytest.fixture()
def generated_files(project_root: pathlib.Path) -> Callable[[], List[str]]:
    """Return a helper listing files under the project root, schema inputs excluded."""

    def _list() -> List[str]:
        return sorted(
            p.relative_to(project_root).as_posix()
            for p in project_root.rglob("*")
            if p.is_file() and p.suffix != ".sql"
        )

    return _list
