"""Register project libraries in ``sym-lib-table`` and ``fp-lib-table``.

A table file is one S-expression::

    (sym_lib_table
      (version 7)
      (lib (name "parts")(type "KiCad")(uri "${KIPRJMOD}/parts.kicad_sym")(options "")(descr ""))
    )

Entries are keyed by their ``name`` sub-entry. Existing entries for other
libraries, and unknown children, are left as they are.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path, PurePath
from typing import Optional

from kicad_importer.logging_config import get_logger
from kicad_importer.models.errors import SexpParseError, TableError
from kicad_importer.models.types import ImportConfig, TableUpdate
from kicad_importer.utils.change_log import create_backup
from kicad_importer.utils.sexp_parser import Atom, Node, atom_value, keyword, make_list, parse_one
from kicad_importer.utils.sexp_writer import to_text
from kicad_importer.utils.validation import footprint_lib_name, symbol_lib_name

logger = get_logger("library.lib_table")

TABLE_VERSION = "7"
TABLE_INDENT = "  "
LIB_TYPE = "KiCad"
PROJECT_DIR_VAR = "${KIPRJMOD}"

LIB_FIELDS = ("name", "type", "uri", "options", "descr")


class TableKind(str, Enum):
    SYMBOL = "symbol"
    FOOTPRINT = "footprint"

    @property
    def root_name(self) -> str:
        return "sym_lib_table" if self is TableKind.SYMBOL else "fp_lib_table"

    @property
    def file_name(self) -> str:
        return "sym-lib-table" if self is TableKind.SYMBOL else "fp-lib-table"

    def library_name(self, lib_path: Path) -> str:
        if self is TableKind.SYMBOL:
            return symbol_lib_name(lib_path)
        return footprint_lib_name(lib_path)


def _version_entry() -> list:
    return [Atom("version"), Atom(TABLE_VERSION)]


def default_table(kind: TableKind) -> list:
    return [Atom(kind.root_name), _version_entry()]


def parse_table(text: str, kind: TableKind) -> list:
    """Parse table text and check its root keyword.

    Raises:
        TableError: If the text is not one S-expression rooted at the table keyword.
    """
    try:
        table = parse_one(text)
    except SexpParseError as exc:
        raise TableError(f"table parse error: {exc}", details={"kind": kind.value}) from exc
    if keyword(table) != kind.root_name:
        raise TableError(
            f"expected root list {kind.root_name}",
            details={"kind": kind.value},
        )
    return table


def ensure_version(table: list) -> None:
    """Insert ``(version 7)`` as the second element unless a version exists."""
    for child in table[1:]:
        if keyword(child) == "version" and len(child) >= 2:
            return
    table.insert(1, _version_entry())


def lib_entry_name(node: Node) -> Optional[str]:
    """Return the ``name`` value of a ``(lib ...)`` entry."""
    if keyword(node) != "lib":
        return None
    for child in node[1:]:
        if keyword(child) == "name" and len(child) >= 2:
            return atom_value(child[1])
    return None


def build_lib_entry(name: str, uri: str) -> list:
    return [
        Atom("lib"),
        make_list("name", name),
        make_list("type", LIB_TYPE),
        make_list("uri", uri),
        make_list("options", ""),
        make_list("descr", ""),
    ]


def _set_field(entry: list, key: str, value: str) -> None:
    for child in entry[1:]:
        if keyword(child) == key and len(child) >= 2:
            child[1] = Atom.quoted_atom(value)
            return
    entry.append(make_list(key, value))


def ensure_lib_entry(table: list, name: str, uri: str) -> bool:
    """Update the entry called ``name`` in place, or append a new one.

    Returns True if a new entry was appended.
    """
    for child in table:
        if lib_entry_name(child) == name:
            for key, value in zip(LIB_FIELDS, (name, LIB_TYPE, uri, "", "")):
                _set_field(child, key, value)
            return False
    table.append(build_lib_entry(name, uri))
    return True


def make_uri(lib_path: Path, project_root: Path) -> str:
    """Express ``lib_path`` relative to the project via ``${KIPRJMOD}``.

    Relative paths and absolute paths inside ``project_root`` become
    ``${KIPRJMOD}/...``; absolute paths elsewhere are used verbatim.
    """
    if lib_path.is_absolute():
        try:
            relative: Optional[PurePath] = lib_path.relative_to(project_root)
        except ValueError:
            relative = None
    else:
        relative = lib_path

    if relative is None:
        return lib_path.as_posix()
    rel_text = relative.as_posix()
    while rel_text.startswith("./"):
        rel_text = rel_text[2:]
    return f"{PROJECT_DIR_VAR}/{rel_text}"


def ensure_table(
    table_path: Path,
    kind: TableKind,
    project_root: Path,
    lib_path: Path,
    backup: bool = False,
) -> TableUpdate:
    """Load or create one table file and register ``lib_path`` in it."""
    lib_name = kind.library_name(lib_path)
    uri = make_uri(lib_path, project_root)

    if table_path.exists():
        table = parse_table(table_path.read_text(encoding="utf-8"), kind)
        if backup:
            create_backup(table_path)
    else:
        table = default_table(kind)

    ensure_version(table)
    added = ensure_lib_entry(table, lib_name, uri)
    table_path.write_text(to_text(table, TABLE_INDENT), encoding="utf-8")

    logger.info(
        "%s library %s in %s (%s)",
        "Registered" if added else "Updated",
        lib_name,
        table_path,
        uri,
    )
    return TableUpdate(table_file=table_path, library_name=lib_name, uri=uri)


def ensure_project_tables(
    project_root: Path,
    config: ImportConfig,
    backup: bool = False,
) -> list[TableUpdate]:
    """Register the configured symbol and footprint libraries with the project."""
    return [
        ensure_table(
            project_root / TableKind.SYMBOL.file_name,
            TableKind.SYMBOL,
            project_root,
            config.symbol_lib,
            backup=backup,
        ),
        ensure_table(
            project_root / TableKind.FOOTPRINT.file_name,
            TableKind.FOOTPRINT,
            project_root,
            config.footprint_lib,
            backup=backup,
        ),
    ]
