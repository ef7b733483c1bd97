"""Import a vendor component package into project libraries.

An import runs in fixed stages and stops at the first failure:

1. discover symbol, footprint and 3D model files in the source
2. parse every symbol library completely
3. associate each symbol with a footprint, against the full footprint set
4. merge the symbols into the target library tree, one at a time
5. write the target library file, once
6. copy footprint and 3D model files

The target library is only written after every merge succeeded. Files copied
in stage 6 are not removed if a later copy fails.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from kicad_importer.library.association import associate_footprints
from kicad_importer.library.symbol_lib import AddPolicy, Symbol, SymbolLibrary
from kicad_importer.logging_config import get_logger
from kicad_importer.models.errors import (
    InvalidSourceError,
    MissingFootprintsError,
    MissingSymbolsError,
    SexpParseError,
)
from kicad_importer.models.types import FootprintInfo, ImportConfig, ImportReport
from kicad_importer.utils.change_log import create_backup
from kicad_importer.utils.source import find_files, open_source
from kicad_importer.utils.validation import (
    KICAD_FOOTPRINT_EXT,
    KICAD_SYMBOL_LIB_EXT,
    STEP_EXTS,
    collect_footprints,
    footprint_lib_name,
)

logger = get_logger("importer")


def import_source(
    source: Path,
    config: ImportConfig,
    policy: AddPolicy = AddPolicy.REPLACE_EXISTING,
    backup: bool = False,
) -> ImportReport:
    """Import the package at ``source`` (directory or ``.zip``).

    Args:
        source: Vendor package directory or zip archive.
        config: Destination symbol library, footprint library and 3D model directory.
        policy: How to treat symbols whose name already exists in the target.
        backup: Copy an existing target library aside before rewriting it.

    Returns:
        Counts of merged symbols and copied footprint / 3D model files.

    Raises:
        MissingSymbolsError: The source has no ``.kicad_sym`` file.
        MissingFootprintsError: The source has no ``.kicad_mod`` file.
        SexpParseError: A symbol library (source or target) is malformed.
        AssociationError: A symbol could not be matched with a footprint.
        SymbolConflictError: A symbol exists and ``policy`` is ERROR_ON_CONFLICT.
    """
    with open_source(source) as root:
        symbol_files = find_files(root, KICAD_SYMBOL_LIB_EXT)
        if not symbol_files:
            raise MissingSymbolsError("no symbols found in source", details={"source": str(source)})
        footprint_files = find_files(root, KICAD_FOOTPRINT_EXT)
        if not footprint_files:
            raise MissingFootprintsError(
                "no footprints found in source", details={"source": str(source)},
            )
        step_files = find_files(root, *STEP_EXTS)
        logger.info(
            "Source %s: %d symbol libraries, %d footprints, %d 3D models",
            source, len(symbol_files), len(footprint_files), len(step_files),
        )

        symbols = load_symbols(symbol_files)
        footprints = collect_footprints(footprint_files)
        lib_name = footprint_lib_name(config.footprint_lib)
        symbols = associate_footprints(symbols, footprints, lib_name)

        target = load_or_create_symbol_lib(config.symbol_lib)
        for symbol in symbols:
            target.add_symbol(symbol, policy)
        write_symbol_lib(target, config.symbol_lib, backup=backup)

        footprints_added = copy_footprints(footprints, config.footprint_lib)
        step_files_added = copy_step_files(step_files, config.step_dir)

    report = ImportReport(
        symbols_added=len(symbols),
        footprints_added=footprints_added,
        step_files_added=step_files_added,
    )
    logger.info(
        "Imported %d symbols, %d footprints, %d step files",
        report.symbols_added, report.footprints_added, report.step_files_added,
    )
    return report


def load_symbols(paths: list[Path]) -> list[Symbol]:
    """Parse every symbol library and collect its symbols in file order."""
    symbols: list[Symbol] = []
    for path in paths:
        try:
            library = SymbolLibrary.parse(path.read_text(encoding="utf-8"))
        except SexpParseError as exc:
            raise SexpParseError(
                f"{path.name}: {exc.message}",
                line=exc.line,
                column=exc.column,
                details={"file": str(path)},
            ) from exc
        found = library.symbols()
        logger.debug("%s: %d symbols", path.name, len(found))
        symbols.extend(found)
    return symbols


def load_or_create_symbol_lib(path: Path) -> SymbolLibrary:
    if path.exists():
        return SymbolLibrary.parse(path.read_text(encoding="utf-8"))
    logger.info("Creating new symbol library %s", path)
    return SymbolLibrary.empty()


def write_symbol_lib(library: SymbolLibrary, path: Path, backup: bool = False) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if backup:
        create_backup(path)
    path.write_text(library.to_text(), encoding="utf-8")
    logger.debug("Wrote %s", path)


def copy_footprints(footprints: list[FootprintInfo], dest_lib: Path) -> int:
    dest_lib.mkdir(parents=True, exist_ok=True)
    for footprint in footprints:
        shutil.copy2(footprint.path, dest_lib / _file_name(footprint.path))
    return len(footprints)


def copy_step_files(step_files: list[Path], dest_dir: Path) -> int:
    if not step_files:
        return 0
    dest_dir.mkdir(parents=True, exist_ok=True)
    for step in step_files:
        shutil.copy2(step, dest_dir / _file_name(step))
    return len(step_files)


def _file_name(path: Path) -> str:
    if not path.name:
        raise InvalidSourceError(f"invalid file path: {path}", details={"path": str(path)})
    return path.name
