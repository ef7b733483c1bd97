"""Input validation and derived-name helpers."""

from __future__ import annotations

from pathlib import Path

from kicad_importer.models.errors import InvalidSourceError, ValidationError
from kicad_importer.models.types import FootprintInfo

# KiCad file extensions
KICAD_PROJECT_EXT = ".kicad_pro"
KICAD_SYMBOL_LIB_EXT = ".kicad_sym"
KICAD_FOOTPRINT_EXT = ".kicad_mod"
KICAD_FOOTPRINT_LIB_EXT = ".pretty"
STEP_EXTS = (".step", ".stp")
ZIP_EXT = ".zip"


def has_extension(path: Path, *extensions: str) -> bool:
    """Case-insensitive extension check, e.g. ``.STEP`` matches ``.step``."""
    suffix = path.suffix.lower()
    return any(suffix == ext.lower() for ext in extensions)


def footprint_lib_name(path: Path) -> str:
    """Library nickname of a footprint library: ``Dest.pretty`` -> ``Dest``.

    Raises:
        InvalidSourceError: If the path has no file name, or is just ``.pretty``.
    """
    name = path.name
    if not name:
        raise InvalidSourceError(
            f"invalid footprint lib path: {path}",
            details={"path": str(path)},
        )
    if name.endswith(KICAD_FOOTPRINT_LIB_EXT):
        stripped = name[: -len(KICAD_FOOTPRINT_LIB_EXT)]
        if not stripped:
            raise InvalidSourceError(
                f"invalid footprint lib name: {name}",
                details={"path": str(path)},
            )
        return stripped
    return name


def symbol_lib_name(path: Path) -> str:
    """Library nickname of a symbol library: ``parts.kicad_sym`` -> ``parts``.

    Raises:
        ValidationError: If the path has no usable stem.
    """
    stem = path.stem
    if not stem:
        raise ValidationError(
            f"invalid symbol lib path: {path}",
            details={"path": str(path)},
        )
    return stem


def collect_footprints(paths: list[Path]) -> list[FootprintInfo]:
    """Describe each footprint file by its stem.

    Raises:
        InvalidSourceError: If a file name has no stem.
    """
    infos: list[FootprintInfo] = []
    for path in paths:
        if not path.stem:
            raise InvalidSourceError(
                f"invalid footprint filename: {path}",
                details={"path": str(path)},
            )
        infos.append(FootprintInfo(name=path.stem, path=path))
    return infos
