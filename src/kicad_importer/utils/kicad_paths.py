"""Project detection and default library locations."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from kicad_importer.logging_config import get_logger
from kicad_importer.models.types import ImportConfig
from kicad_importer.utils.validation import KICAD_PROJECT_EXT

logger = get_logger("paths")

DEFAULT_SYMBOL_LIB = "project_symbols.kicad_sym"
DEFAULT_FOOTPRINT_LIB = "project_footprints.pretty"
DEFAULT_STEP_DIR = "project_3d"


def project_name_from_kicad_pro(project_dir: Path) -> Optional[str]:
    """Name of the KiCad project in ``project_dir``.

    With several ``.kicad_pro`` files, the one named after the directory wins,
    otherwise the alphabetically first.
    """
    try:
        names = sorted(
            path.stem for path in project_dir.iterdir()
            if path.is_file() and path.suffix == KICAD_PROJECT_EXT
        )
    except OSError as e:
        logger.debug("Cannot list %s: %s", project_dir, e)
        return None

    if not names:
        return None
    if project_dir.name in names:
        return project_dir.name
    return names[0]


def default_import_config(project_dir: Path) -> ImportConfig:
    """Default destinations, named after the project when there is one."""
    project_name = project_name_from_kicad_pro(project_dir)
    if project_name:
        return ImportConfig(
            symbol_lib=Path(f"{project_name}_symbols.kicad_sym"),
            footprint_lib=Path(f"{project_name}_footprints.pretty"),
            step_dir=Path(f"{project_name}_step"),
        )
    return ImportConfig(
        symbol_lib=Path(DEFAULT_SYMBOL_LIB),
        footprint_lib=Path(DEFAULT_FOOTPRINT_LIB),
        step_dir=Path(DEFAULT_STEP_DIR),
    )
