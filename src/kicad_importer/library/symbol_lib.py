"""Symbol and symbol-library views over parsed ``.kicad_sym`` trees.

Both classes wrap a generic node tree and only check the loose shape they
need (``(symbol <name> ...)``, ``(kicad_symbol_lib ...)``). Everything else in
the tree - pin geometry, graphics, unit sub-symbols - is carried through
untouched and in its original order.
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import Optional

from kicad_importer.logging_config import get_logger
from kicad_importer.models.errors import SexpParseError, SymbolConflictError
from kicad_importer.utils.sexp_parser import Atom, Node, atom_value, keyword, parse_one, parse_sexps
from kicad_importer.utils.sexp_writer import to_text

logger = get_logger("library.symbols")

ROOT_KEYWORD = "kicad_symbol_lib"
SYMBOL_KEYWORD = "symbol"
PROPERTY_KEYWORD = "property"

EMPTY_LIBRARY = "(kicad_symbol_lib (version 20231120))"


class AddPolicy(str, Enum):
    """What to do when an added symbol's name is already in the library."""

    ERROR_ON_CONFLICT = "error"
    REPLACE_EXISTING = "replace"
    SKIP_EXISTING = "skip"


def symbol_name(node: Node) -> Optional[str]:
    """Return ``<name>`` if ``node`` looks like ``(symbol <name> ...)``."""
    if keyword(node) != SYMBOL_KEYWORD or len(node) < 2:
        return None
    return atom_value(node[1])


def _is_property(node: Node) -> bool:
    return keyword(node) == PROPERTY_KEYWORD


def _property_entry(node: Node, key: str) -> Optional[list]:
    if _is_property(node) and len(node) >= 3 and atom_value(node[1]) == key:
        return node
    return None


class Symbol:
    """One component definition, ``(symbol <name> <child>*)``."""

    def __init__(self, node: Node) -> None:
        name = symbol_name(node)
        if name is None:
            raise SexpParseError("symbol must be a list like (symbol <name> ...)")
        self._node = node
        self._name = name

    @classmethod
    def from_node(cls, node: Node) -> "Symbol":
        return cls(node)

    @classmethod
    def parse(cls, text: str) -> "Symbol":
        return cls(parse_one(text))

    @property
    def name(self) -> str:
        return self._name

    @property
    def node(self) -> list:
        return self._node

    def property_value(self, key: str) -> Optional[str]:
        """Value of the ``(property "<key>" "<value>" ...)`` child, if present."""
        for child in self._node:
            entry = _property_entry(child, key)
            if entry is not None:
                value = atom_value(entry[2])
                if value is not None:
                    return value
        return None

    def set_property_value(self, key: str, value: str) -> bool:
        """Overwrite an existing property's value. Returns False if absent."""
        for child in self._node:
            entry = _property_entry(child, key)
            if entry is not None:
                entry[2] = Atom.quoted_atom(value)
                return True
        return False

    def set_or_add_property(self, key: str, value: str) -> None:
        """Set ``key`` to ``value``, appending a new property when needed.

        A new property is cloned from the first existing property so it keeps
        the trailing ``(at ...)``/``(effects ...)`` fields KiCad expects.
        """
        if self.set_property_value(key, value):
            return

        template = next((child for child in self._node if _is_property(child)), None)
        if template is None:
            entry = [Atom(PROPERTY_KEYWORD), Atom.quoted_atom(key), Atom.quoted_atom(value)]
        else:
            entry = copy.deepcopy(template)
            while len(entry) < 3:
                entry.append(Atom.quoted_atom(""))
            entry[1] = Atom.quoted_atom(key)
            entry[2] = Atom.quoted_atom(value)
        self._node.append(entry)

    def to_text(self, indent: str = "\t") -> str:
        return to_text(self._node, indent)

    def __repr__(self) -> str:
        return f"Symbol({self._name!r})"


def _ensure_root(root: Node) -> list:
    if not isinstance(root, list):
        raise SexpParseError("library root must be a list expression")
    if not root:
        raise SexpParseError("library root list is empty")
    if atom_value(root[0]) != ROOT_KEYWORD:
        raise SexpParseError(f"expected root list to start with {ROOT_KEYWORD}")
    return root


class SymbolLibrary:
    """A whole ``(kicad_symbol_lib <version> <symbol>*)`` file.

    The library owns its tree. :meth:`symbols` hands out copies, and
    :meth:`add_symbol` takes ownership of the added symbol's tree.
    """

    def __init__(self, root: Node) -> None:
        self._root = _ensure_root(root)

    @classmethod
    def parse(cls, text: str) -> "SymbolLibrary":
        forms = parse_sexps(text)
        if len(forms) != 1:
            raise SexpParseError(
                "expected a single top-level S-expression for library",
                details={"count": len(forms)},
            )
        return cls(forms[0])

    @classmethod
    def empty(cls) -> "SymbolLibrary":
        return cls.parse(EMPTY_LIBRARY)

    @property
    def root(self) -> list:
        return self._root

    def symbols(self) -> list[Symbol]:
        """Independent copies of every top-level symbol, in file order."""
        return [
            Symbol(copy.deepcopy(child))
            for child in self._root[1:]
            if symbol_name(child) is not None
        ]

    def symbol_names(self) -> list[str]:
        names = (symbol_name(child) for child in self._root[1:])
        return [name for name in names if name is not None]

    def _index_of(self, name: str) -> Optional[int]:
        for idx in range(1, len(self._root)):
            if symbol_name(self._root[idx]) == name:
                return idx
        return None

    def add_symbol(self, symbol: Symbol, policy: AddPolicy = AddPolicy.ERROR_ON_CONFLICT) -> bool:
        """Merge ``symbol`` into the library.

        Returns True if the library changed.

        Raises:
            SymbolConflictError: The name exists and ``policy`` is ERROR_ON_CONFLICT.
        """
        idx = self._index_of(symbol.name)
        if idx is None:
            self._root.append(symbol.node)
            logger.debug("Added symbol %s", symbol.name)
            return True

        if policy == AddPolicy.SKIP_EXISTING:
            logger.debug("Skipped existing symbol %s", symbol.name)
            return False
        if policy == AddPolicy.REPLACE_EXISTING:
            self._root[idx] = symbol.node
            logger.debug("Replaced symbol %s at position %d", symbol.name, idx)
            return True
        raise SymbolConflictError(
            f"symbol already exists: {symbol.name}",
            details={"symbol": symbol.name},
        )

    def to_text(self, indent: str = "\t") -> str:
        return to_text(self._root, indent)
