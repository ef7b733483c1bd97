"""Canonical pretty printer for S-expression trees."""

from __future__ import annotations

from typing import Union

from kicad_importer.utils.sexp_parser import Atom, Node

DEFAULT_INDENT = "\t"

_QUOTE_TRIGGERS = frozenset('()";#')

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def needs_quotes(value: str) -> bool:
    """Whether ``value`` cannot be written as a bare atom."""
    return not value or any(ch.isspace() or ch in _QUOTE_TRIGGERS for ch in value)


def escape_atom(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def render_atom(atom: Atom) -> str:
    if atom.quoted or needs_quotes(atom.value):
        return f'"{escape_atom(atom.value)}"'
    return atom.value


def to_text(node: Node, indent: str = DEFAULT_INDENT) -> str:
    """Serialize a tree in canonical layout, with a trailing newline.

    Lists holding only atoms stay on one line. A list with any nested list
    keeps its first child on the opening line, puts every later child on its
    own line one indent level deeper, and closes on a line of its own at the
    list's indent level::

        (kicad_symbol_lib
        \t(version 20231120)
        \t(symbol
        \t\t"R"
        \t\t(property "Reference" "R")
        \t)
        )
    """
    out: list[str] = []
    _write(node, 0, indent, out)
    out.append("\n")
    return "".join(out)


def _write(node: Node, depth: int, indent: str, out: list[str]) -> None:
    """Append the layout of ``node`` to ``out``.

    Work items are either nodes (with their depth) or literal text; an
    explicit stack keeps deeply nested trees clear of the recursion limit.
    """
    stack: list[tuple[Union[Node, str], int]] = [(node, depth)]
    while stack:
        item, level = stack.pop()
        if isinstance(item, str):
            out.append(item)
            continue
        if isinstance(item, Atom):
            out.append(render_atom(item))
            continue

        if all(isinstance(child, Atom) for child in item):
            out.append("(" + " ".join(render_atom(child) for child in item) + ")")
            continue

        out.append("(")
        child_prefix = "\n" + indent * (level + 1)
        pending: list[tuple[Union[Node, str], int]] = [(item[0], level)]
        for child in item[1:]:
            pending.append((child_prefix, level))
            pending.append((child, level + 1))
        pending.append(("\n" + indent * level + ")", level))
        stack.extend(reversed(pending))
