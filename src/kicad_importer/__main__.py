"""CLI entry point: kci import SOURCE / python -m kicad_importer"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from kicad_importer import __version__
from kicad_importer.config import ImporterSettings, LogLevel, resolve_import
from kicad_importer.importer import import_source
from kicad_importer.library.lib_table import ensure_project_tables
from kicad_importer.library.symbol_lib import AddPolicy
from kicad_importer.logging_config import get_logger, setup_logging
from kicad_importer.models.errors import KiCadImporterError
from kicad_importer.utils.change_log import ChangeLog

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kci",
        description="KiCad component importer - merge vendor component packages into project libraries",
    )
    parser.add_argument(
        "--version", action="version", version=f"kci {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser(
        "import",
        help="Import a component package (directory or .zip)",
    )
    import_parser.add_argument("source", type=Path, help="Package directory or .zip archive")
    import_parser.add_argument(
        "--symbol-lib",
        type=Path,
        default=None,
        help="Target .kicad_sym file (default: from .kci_config or <project>_symbols.kicad_sym)",
    )
    import_parser.add_argument(
        "--footprint-lib",
        type=Path,
        default=None,
        help="Target .pretty directory (default: from .kci_config or <project>_footprints.pretty)",
    )
    import_parser.add_argument(
        "--step-dir",
        type=Path,
        default=None,
        help="Directory for 3D models (default: from .kci_config or <project>_step)",
    )
    import_parser.add_argument(
        "--policy",
        choices=[policy.value for policy in AddPolicy],
        default=None,
        help="What to do with symbols that already exist (default: replace)",
    )
    import_parser.add_argument(
        "--backup",
        action="store_true",
        help="Back up the symbol library and tables before rewriting them",
    )
    import_parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        default=None,
        help="Logging level (default: WARNING)",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the MCP server")
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="MCP transport (default: stdio)",
    )
    serve_parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        default=None,
        help="Logging level (default: WARNING)",
    )
    return parser


def run_import(args: argparse.Namespace, settings: ImporterSettings, cwd: Path) -> None:
    plan = resolve_import(
        args.source,
        cwd,
        symbol_lib=args.symbol_lib,
        footprint_lib=args.footprint_lib,
        step_dir=args.step_dir,
    )
    policy = AddPolicy(args.policy) if args.policy else settings.add_policy
    backup = args.backup or settings.backup_enabled
    change_log = ChangeLog(settings.get_change_log_path()) if settings.change_log_enabled else None
    params = {"source": plan.source, "policy": policy.value, **plan.config.model_dump()}

    try:
        report = import_source(plan.source, plan.config, policy, backup=backup)
        updates = ensure_project_tables(cwd, plan.config, backup=backup)
    except (KiCadImporterError, OSError) as exc:
        if change_log:
            change_log.record("import", params, status="error", error=str(exc))
        raise

    if change_log:
        change_log.record(
            "import",
            params,
            files_modified=[str(plan.config.symbol_lib)] + [str(u.table_file) for u in updates],
            result=report.model_dump(),
        )

    if plan.created_config:
        print(f"wrote config to {plan.config_path}")
    print(
        f"imported {report.symbols_added} symbols, "
        f"{report.footprints_added} footprints, "
        f"{report.step_files_added} step files"
    )


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {}
    if getattr(args, "log_level", None):
        overrides["log_level"] = LogLevel(args.log_level)
    try:
        settings = ImporterSettings(**overrides)
    except PydanticValidationError as exc:
        print(f"error: invalid settings: {exc}", file=sys.stderr)
        return 1
    setup_logging(level=settings.log_level.value, log_file=settings.log_file)

    if args.command == "serve":
        from kicad_importer.server import create_server
        create_server(settings).run(transport=args.transport)
        return 0

    try:
        run_import(args, settings, Path.cwd())
    except (KiCadImporterError, OSError) as exc:
        logger.debug("Import failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
