# File: crudgen/cli.py
"""
crudgen - Command-Line Interface
=================================

Built on the standard-library ``argparse`` module.

Usage examples::

    # Model + repository only
    crudgen database/orders.sql

    # Add the controller, database bootstrap and .env.example
    crudgen database/orders.sql --controller

    # Full scaffolding for nginx (implies --controller)
    crudgen database/orders.sql --setup nginx

    # Different project root, render only
    python -m crudgen schema/orders.sql --project-root ../shop --dry-run -v

Exit codes:
    0 — success
    1 — parse error
    2 — generation error (missing stub)
    3 — export error
    4 — input error (missing/unreadable schema file, bad configuration)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from crudgen.errors import ConfigError, ErrorReason

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_PARSE_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4

_INPUT_REASONS = frozenset(
    {ErrorReason.SCHEMA_FILE_NOT_FOUND, ErrorReason.SCHEMA_FILE_UNREADABLE}
)


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root crudgen logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("crudgen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from crudgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="crudgen",
        description=(
            "crudgen — PHP CRUD Generator.\n\n"
            "Reads a single CREATE TABLE statement and generates a PDO model, "
            "repository and (optionally) controller plus deployment scaffolding."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s database/orders.sql\n"
            "  %(prog)s database/orders.sql --controller\n"
            "  %(prog)s database/orders.sql --setup nginx\n"
            "  %(prog)s schema/orders.sql --project-root ../shop --dry-run\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"crudgen v{__version__}",
    )

    parser.add_argument(
        "sql_file",
        metavar="SQL_FILE",
        help="Path to the .sql file holding the CREATE TABLE statement.",
    )

    # --- Artifacts ---
    artifact_group = parser.add_argument_group("artifacts")
    artifact_group.add_argument(
        "--controller",
        action="store_true",
        default=False,
        help="Also generate the controller, database bootstrap and .env.example.",
    )
    artifact_group.add_argument(
        "--setup",
        nargs="?",
        const="apache",
        default=None,
        choices=["apache", "nginx"],
        help=(
            "Also generate public/index.php and web-server config "
            "(default: apache). Implies --controller."
        ),
    )

    # --- Locations ---
    location_group = parser.add_argument_group("locations")
    location_group.add_argument(
        "--project-root",
        type=str,
        default=None,
        metavar="DIR",
        help="Directory generated files are written under (default: cwd).",
    )
    location_group.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Configuration file (YAML or JSON). Defaults to crudgen.yaml in the project root.",
    )
    location_group.add_argument(
        "--stubs",
        type=str,
        default=None,
        metavar="DIR",
        help="Directory with stub overrides.",
    )

    # --- Config overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--namespace",
        type=str,
        default=None,
        metavar="NS",
        help="Root PHP namespace (default: App).",
    )
    config_group.add_argument(
        "--no-install",
        action="store_true",
        default=False,
        help="Don't run composer to install vlucas/phpdotenv.",
    )
    config_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the full pipeline but don't write files to disk.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Only flags the user actually passed override the config file."""
    overrides: Dict[str, Any] = {}

    if args.controller:
        overrides["with_controller"] = True
    if args.setup is not None:
        overrides["setup_mode"] = args.setup
    if args.stubs is not None:
        overrides["stubs_dir"] = str(Path(args.stubs).resolve())
    if args.namespace is not None:
        overrides["namespace"] = args.namespace
    if args.no_install:
        overrides["install_dependencies"] = False
    if args.dry_run:
        overrides["dry_run"] = True

    return overrides


# ---------------------------------------------------------------------------
# Setup instructions
# ---------------------------------------------------------------------------


def setup_instructions(dotenv_installed: bool) -> List[str]:
    """Next steps printed after a ``--setup`` run."""
    dependency_line: str = (
        "2. vlucas/phpdotenv has been installed for you."
        if dotenv_installed
        else "2. Install the dotenv loader: composer require vlucas/phpdotenv"
    )
    return [
        "NEXT STEPS (SETUP)",
        "1. Copy .env.example to .env and fill in your database credentials.",
        dependency_line,
        "3. Point your web server's document root at the public directory.",
        "4. For development, run from the project root: php -S localhost:8000 -t public",
    ]


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _exit_code_for(report: Any) -> int:
    if report.success:
        return EXIT_SUCCESS
    if report.schema_errors:
        if report.error_reason in _INPUT_REASONS:
            return EXIT_INPUT_ERROR
        return EXIT_PARSE_ERROR
    if report.generation_errors:
        return EXIT_GENERATION_ERROR
    if report.export_errors:
        return EXIT_EXPORT_ERROR
    return EXIT_GENERATION_ERROR


def _run_generation(project_root: Path, args: argparse.Namespace) -> int:
    """
    Run the full generation pipeline.

    Returns the appropriate exit code.
    """
    from crudgen.composer import DependencyStatus
    from crudgen.generator import CrudGenerator, GenerationReport, build_config

    config_path: Optional[Path] = Path(args.config).resolve() if args.config else None

    try:
        config = build_config(
            project_root,
            config_path=config_path,
            overrides=_build_config_overrides(args),
        )
    except ConfigError as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR

    if config.dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")

    generator: CrudGenerator = CrudGenerator(config)
    report: GenerationReport = generator.generate_from_file(Path(args.sql_file))

    if not args.quiet:
        print(report.summary())

    exit_code: int = _exit_code_for(report)
    if exit_code == EXIT_SUCCESS and config.setup_mode is not None and not args.quiet:
        installed: bool = report.dependency_status in (
            DependencyStatus.INSTALLED,
            DependencyStatus.ALREADY_INSTALLED,
        )
        print()
        for line in setup_instructions(installed):
            print(f"  {line}")

    return exit_code


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
    else:
        verbosity = args.verbose

    _setup_logging(verbosity)
    if args.quiet:
        logging.getLogger("crudgen").setLevel(logging.ERROR)

    project_root: Path = Path(args.project_root).resolve() if args.project_root else Path.cwd()
    if not project_root.is_dir():
        logger.error("Project root is not a directory: %s", project_root)
        sys.exit(EXIT_INPUT_ERROR)

    logger.info("Schema:        %s", args.sql_file)
    logger.info("Project root:  %s", project_root)

    exit_code: int = _run_generation(project_root, args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


def main() -> None:
    """Console-script entry point."""
    cli_main()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "main",
    "setup_instructions",
    "EXIT_SUCCESS",
    "EXIT_PARSE_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("crudgen.cli loaded.")
