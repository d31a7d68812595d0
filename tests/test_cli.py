"""
tests/test_cli.py
Tests for crudgen.cli: argument handling and exit codes.
"""

from __future__ import annotations

import logging
import pathlib
from typing import Iterator, List

import pytest

from crudgen.cli import (
    EXIT_EXPORT_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_PARSE_ERROR,
    EXIT_SUCCESS,
    cli_main,
    setup_instructions,
)


@pytest.fixture(autouse=True)
def _restore_logger() -> Iterator[None]:
    """cli_main reconfigures the ``crudgen`` logger; undo it after each test."""
    yield
    root_logger = logging.getLogger("crudgen")
    root_logger.handlers.clear()
    root_logger.setLevel(logging.NOTSET)
    root_logger.propagate = True


def _run(argv: List[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli_main(argv)
    return exc_info.value.code


class TestExitCodes:
    def test_success(
        self,
        project_root: pathlib.Path,
        orders_with_parent_path: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(["database/orders.sql", "--project-root", str(project_root)])

        assert code == EXIT_SUCCESS
        assert (project_root / "src/Models/Order.php").is_file()
        out = capsys.readouterr().out
        assert "SUCCESS" in out
        assert "NEXT STEPS" not in out

    def test_parse_error(
        self,
        project_root: pathlib.Path,
        write_schema,
    ) -> None:
        path = write_schema("broken", "CREATE TABLE broken (\n  PRIMARY KEY (id)\n);")
        assert _run([str(path), "--project-root", str(project_root)]) == EXIT_PARSE_ERROR

    def test_missing_schema_file(self, project_root: pathlib.Path) -> None:
        code = _run(["database/missing.sql", "--project-root", str(project_root)])
        assert code == EXIT_INPUT_ERROR

    def test_missing_project_root(self, tmp_path: pathlib.Path) -> None:
        code = _run(["orders.sql", "--project-root", str(tmp_path / "nowhere")])
        assert code == EXIT_INPUT_ERROR

    def test_invalid_config(
        self,
        project_root: pathlib.Path,
        orders_path: pathlib.Path,
        write_config,
    ) -> None:
        write_config({"unknown_option": True})
        code = _run([str(orders_path), "--project-root", str(project_root)])
        assert code == EXIT_INPUT_ERROR

    def test_undecodable_config(
        self,
        project_root: pathlib.Path,
        orders_path: pathlib.Path,
    ) -> None:
        (project_root / "crudgen.yaml").write_bytes(b"namespace: \xff\xfe\n")
        code = _run([str(orders_path), "--project-root", str(project_root), "-q"])
        assert code == EXIT_INPUT_ERROR

    def test_missing_stub(
        self,
        project_root: pathlib.Path,
        orders_path: pathlib.Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        empty_stubs = project_root.parent / "empty_stubs"
        empty_stubs.mkdir()
        monkeypatch.setattr("crudgen.templates.PACKAGED_STUBS_DIR", empty_stubs)

        code = _run([str(orders_path), "--project-root", str(project_root)])
        assert code == EXIT_GENERATION_ERROR

    def test_export_error(
        self,
        project_root: pathlib.Path,
        orders_path: pathlib.Path,
    ) -> None:
        # A regular file where the src/ directory should go
        (project_root / "src").write_text("", encoding="utf-8")
        code = _run([str(orders_path), "--project-root", str(project_root)])
        assert code == EXIT_EXPORT_ERROR

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--version"]) == 0
        assert "crudgen v" in capsys.readouterr().out


class TestOptions:
    def test_setup_defaults_to_apache(
        self,
        project_root: pathlib.Path,
        orders_with_parent_path: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run([
            str(orders_with_parent_path),
            "--project-root", str(project_root),
            "--setup",
            "--no-install",
        ])

        assert code == EXIT_SUCCESS
        assert (project_root / "public/.htaccess").is_file()
        assert (project_root / "public/index.php").is_file()
        assert (project_root / "src/Http/Controllers/OrderController.php").is_file()
        assert not (project_root / "nginx.conf.example").exists()
        assert "NEXT STEPS" in capsys.readouterr().out

    def test_setup_nginx(
        self,
        project_root: pathlib.Path,
        orders_with_parent_path: pathlib.Path,
    ) -> None:
        code = _run([
            str(orders_with_parent_path),
            "--project-root", str(project_root),
            "--setup", "nginx",
            "--no-install",
        ])
        assert code == EXIT_SUCCESS
        assert (project_root / "nginx.conf.example").is_file()
        assert not (project_root / "public/.htaccess").exists()

    def test_namespace_override(
        self,
        project_root: pathlib.Path,
        orders_path: pathlib.Path,
    ) -> None:
        _run([str(orders_path), "--project-root", str(project_root), "--namespace", "Shop"])
        model = (project_root / "src/Models/Order.php").read_text(encoding="utf-8")
        assert "namespace Shop\\Models;" in model

    def test_dry_run_writes_nothing(
        self,
        project_root: pathlib.Path,
        orders_path: pathlib.Path,
    ) -> None:
        code = _run([str(orders_path), "--project-root", str(project_root), "--dry-run"])
        assert code == EXIT_SUCCESS
        assert not (project_root / "src").exists()

    def test_quiet_prints_nothing(
        self,
        project_root: pathlib.Path,
        orders_path: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _run([str(orders_path), "--project-root", str(project_root), "-q"])
        assert capsys.readouterr().out == ""

    def test_invalid_setup_choice(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["orders.sql", "--setup", "iis"]) == 2
        assert "invalid choice" in capsys.readouterr().err


class TestSetupInstructions:
    def test_mentions_composer_when_not_installed(self) -> None:
        lines = setup_instructions(dotenv_installed=False)
        assert any("composer require vlucas/phpdotenv" in line for line in lines)

    def test_installed(self) -> None:
        lines = setup_instructions(dotenv_installed=True)
        assert any("has been installed" in line for line in lines)
        assert any("php -S localhost:8000 -t public" in line for line in lines)
