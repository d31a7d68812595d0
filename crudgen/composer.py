# File: crudgen/composer.py
"""
crudgen - Composer Dependency Helper
=====================================
The generated database bootstrap loads ``.env`` through
``vlucas/phpdotenv``.  When a controller or setup scaffolding is generated,
the generator makes sure the target project requires that package by
shelling out to ``composer``.

Nothing here is fatal: every outcome is reported as a ``DependencyStatus``
and the caller decides how loudly to say so.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.composer")

DOTENV_PACKAGE: str = "vlucas/phpdotenv"

CommandRunner = Callable[[List[str]], "subprocess.CompletedProcess[str]"]


class DependencyStatus(str, Enum):
    """Outcome of ``ensure_dotenv_dependency``."""

    MISSING_COMPOSER_JSON = "missing_composer_json"
    ALREADY_INSTALLED = "already_installed"
    INSTALLED = "installed"
    FAILED = "failed"


def _default_runner(command: List[str]) -> "subprocess.CompletedProcess[str]":
    return subprocess.run(command, capture_output=True, text=True, check=False)


def _read_requirements(composer_json: Path) -> Dict[str, Any]:
    try:
        data: Any = json.loads(composer_json.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not read %s: %s", composer_json, exc)
        return {}
    if not isinstance(data, dict):
        return {}
    require: Any = data.get("require", {})
    return require if isinstance(require, dict) else {}


def is_dotenv_required(project_root: Path) -> bool:
    return DOTENV_PACKAGE in _read_requirements(project_root / "composer.json")


def ensure_dotenv_dependency(
    project_root: Path,
    runner: Optional[CommandRunner] = None,
) -> DependencyStatus:
    """
    Make sure ``composer.json`` under *project_root* requires phpdotenv.

    Runs ``composer require vlucas/phpdotenv --working-dir <root>`` when the
    package is missing, then re-reads ``composer.json`` to confirm.
    """
    composer_json: Path = project_root / "composer.json"
    if not composer_json.is_file():
        logger.warning(
            "composer.json not found in %s; skipping automatic install of %s.",
            project_root,
            DOTENV_PACKAGE,
        )
        return DependencyStatus.MISSING_COMPOSER_JSON

    if is_dotenv_required(project_root):
        logger.info("%s is already required.", DOTENV_PACKAGE)
        return DependencyStatus.ALREADY_INSTALLED

    executable: Optional[str] = shutil.which("composer") if runner is None else "composer"
    if executable is None:
        logger.error("composer executable not found on PATH; cannot install %s.", DOTENV_PACKAGE)
        return DependencyStatus.FAILED

    command: List[str] = [
        executable,
        "require",
        DOTENV_PACKAGE,
        "--working-dir",
        str(project_root),
    ]
    logger.info("Installing %s: %s", DOTENV_PACKAGE, " ".join(command))

    run: CommandRunner = runner or _default_runner
    try:
        completed = run(command)
    except OSError as exc:
        logger.error("Failed to run composer: %s", exc)
        return DependencyStatus.FAILED

    if completed.returncode != 0:
        logger.debug("composer stderr: %s", completed.stderr)

    if is_dotenv_required(project_root):
        logger.info("%s installed.", DOTENV_PACKAGE)
        return DependencyStatus.INSTALLED

    logger.error("Automatic install of %s failed.", DOTENV_PACKAGE)
    return DependencyStatus.FAILED


__all__: List[str] = [
    "DOTENV_PACKAGE",
    "DependencyStatus",
    "is_dotenv_required",
    "ensure_dotenv_dependency",
]
