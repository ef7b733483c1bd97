"""Component import tools - import a vendor package and register project libraries."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from fastmcp import FastMCP

from kicad_importer.config import ImporterSettings, resolve_import
from kicad_importer.importer import import_source
from kicad_importer.library.lib_table import ensure_project_tables
from kicad_importer.library.symbol_lib import AddPolicy
from kicad_importer.logging_config import get_logger
from kicad_importer.models.errors import ValidationError
from kicad_importer.models.types import ImportConfig
from kicad_importer.utils.change_log import ChangeLog
from kicad_importer.utils.validation import KICAD_PROJECT_EXT

logger = get_logger("tools.library_import")


def _project_dir(project_dir: str) -> Path:
    path = Path(project_dir)
    if path.is_file() or path.suffix == KICAD_PROJECT_EXT:
        path = path.parent
    if not path.is_dir():
        raise ValidationError(f"Project directory not found: {path}", details={"project_dir": project_dir})
    return path.resolve()


def _optional_path(value: str) -> Optional[Path]:
    return Path(value) if value else None


def _anchor(config: ImportConfig, project_dir: Path) -> ImportConfig:
    """Interpret relative destinations against the project, not the server's cwd."""
    return ImportConfig(
        symbol_lib=project_dir / config.symbol_lib,
        footprint_lib=project_dir / config.footprint_lib,
        step_dir=project_dir / config.step_dir,
    )


def import_package(
    source: str,
    project_dir: str,
    symbol_lib: str = "",
    footprint_lib: str = "",
    step_dir: str = "",
    policy: str = "",
    settings: Optional[ImporterSettings] = None,
    change_log: Optional[ChangeLog] = None,
) -> dict[str, Any]:
    """Import ``source`` into the project and register its libraries."""
    settings = settings or ImporterSettings()
    proj = _project_dir(project_dir)
    try:
        add_policy = AddPolicy(policy) if policy else settings.add_policy
    except ValueError as exc:
        raise ValidationError(
            f"policy must be one of: {', '.join(p.value for p in AddPolicy)}",
            details={"policy": policy},
        ) from exc

    plan = resolve_import(
        Path(source),
        proj,
        symbol_lib=_optional_path(symbol_lib),
        footprint_lib=_optional_path(footprint_lib),
        step_dir=_optional_path(step_dir),
    )
    config = _anchor(plan.config, proj)
    logger.info("Importing %s into project %s (policy=%s)", plan.source, proj, add_policy.value)
    report = import_source(plan.source, config, add_policy, backup=settings.backup_enabled)
    updates = ensure_project_tables(proj, config, backup=settings.backup_enabled)

    result = {
        **report.model_dump(),
        "symbol_lib": str(config.symbol_lib),
        "footprint_lib": str(config.footprint_lib),
        "step_dir": str(config.step_dir),
        "tables": [str(update.table_file) for update in updates],
        "created_config": plan.created_config,
    }
    if change_log:
        change_log.record(
            "import_component_package",
            {"source": source, "project_dir": project_dir, "policy": add_policy.value},
            files_modified=[str(config.symbol_lib)] + result["tables"],
            result=report.model_dump(),
        )
    return result


def register_libraries(
    project_dir: str,
    symbol_lib: str,
    footprint_lib: str,
    settings: Optional[ImporterSettings] = None,
    change_log: Optional[ChangeLog] = None,
) -> dict[str, Any]:
    """Register a symbol library and a footprint library in the project tables."""
    settings = settings or ImporterSettings()
    proj = _project_dir(project_dir)
    config = ImportConfig(
        symbol_lib=Path(symbol_lib),
        footprint_lib=Path(footprint_lib),
        step_dir=Path(""),
    )
    updates = ensure_project_tables(proj, config, backup=settings.backup_enabled)
    if change_log:
        change_log.record(
            "register_project_libraries",
            {"project_dir": project_dir, "symbol_lib": symbol_lib, "footprint_lib": footprint_lib},
            files_modified=[str(update.table_file) for update in updates],
        )
    return {
        "libraries": [
            {"name": u.library_name, "uri": u.uri, "table_file": str(u.table_file)}
            for u in updates
        ],
    }


def register_tools(mcp: FastMCP, settings: ImporterSettings, change_log: Optional[ChangeLog]) -> None:
    """Register component import tools on the MCP server."""

    @mcp.tool()
    def import_component_package(
        source: str,
        project_dir: str,
        symbol_lib: str = "",
        footprint_lib: str = "",
        step_dir: str = "",
        policy: str = "",
    ) -> str:
        """Import a vendor component package (directory or .zip) into a KiCad project.

        Symbols are merged into the project symbol library with their Footprint
        property pointed at the project footprint library; footprints and 3D
        models are copied; both libraries are registered in sym-lib-table and
        fp-lib-table.

        Args:
            source: Path to the package directory or .zip archive.
            project_dir: KiCad project directory (or its .kicad_pro file).
            symbol_lib: Target .kicad_sym file. Defaults to .kci_config or <project>_symbols.kicad_sym.
            footprint_lib: Target .pretty directory. Defaults to .kci_config or <project>_footprints.pretty.
            step_dir: Directory for 3D models. Defaults to .kci_config or <project>_step.
            policy: 'replace', 'skip' or 'error' for symbols that already exist.

        Returns:
            JSON with the number of symbols, footprints and 3D models imported.
        """
        result = import_package(
            source, project_dir, symbol_lib, footprint_lib, step_dir, policy,
            settings=settings, change_log=change_log,
        )
        return json.dumps({"status": "success", **result}, indent=2)

    @mcp.tool()
    def register_project_libraries(project_dir: str, symbol_lib: str, footprint_lib: str) -> str:
        """Register a symbol and a footprint library in the project's library tables.

        Creates sym-lib-table / fp-lib-table when missing and uses ${KIPRJMOD}
        relative URIs for libraries inside the project.

        Args:
            project_dir: KiCad project directory (or its .kicad_pro file).
            symbol_lib: Path to the .kicad_sym file.
            footprint_lib: Path to the .pretty directory.

        Returns:
            JSON with the registered library names and URIs.
        """
        result = register_libraries(
            project_dir, symbol_lib, footprint_lib,
            settings=settings, change_log=change_log,
        )
        return json.dumps({"status": "success", **result}, indent=2)
