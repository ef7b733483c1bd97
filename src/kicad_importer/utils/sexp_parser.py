"""S-expression node model and parser for KiCad files.

KiCad's text formats (``.kicad_sym``, ``.kicad_mod``, ``sym-lib-table``, ...)
are S-expressions without a published grammar. Parsed trees use two node
kinds:

- :class:`Atom` - a leaf token, remembering whether it was written quoted
- ``list`` - an ordered list of child nodes; the first atom acts as keyword

Nothing is interpreted here (numbers stay text), so any tree can be printed
back with :func:`kicad_importer.utils.sexp_writer.to_text` without losing
atom values or structure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

from kicad_importer.models.errors import SexpParseError

_WHITESPACE = re.compile(r"\s+")
_BARE_ATOM = re.compile(r'[^\s()";#]+')
_STRING_CHUNK = re.compile(r'[^"\\]+')

_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    '"': '"',
    "\\": "\\",
}


@dataclass(frozen=True)
class Atom:
    """A leaf token.

    ``quoted`` records that the source wrote the value in double quotes, so
    the printer can keep it quoted.
    """

    value: str
    quoted: bool = False

    @classmethod
    def quoted_atom(cls, value: str) -> "Atom":
        return cls(value, quoted=True)


Node = Union[Atom, list]


def atom_value(node: Node) -> Optional[str]:
    """Return the text of an atom node, or None for lists."""
    if isinstance(node, Atom):
        return node.value
    return None


def is_list(node: Node) -> bool:
    return isinstance(node, list)


def keyword(node: Node) -> Optional[str]:
    """Return the leading atom of a list node, e.g. ``symbol`` for ``(symbol ...)``."""
    if isinstance(node, list) and node:
        return atom_value(node[0])
    return None


def make_list(head: str, *values: Union[str, Atom, list]) -> list:
    """Build ``(head value ...)``; plain strings become quoted atoms."""
    items: list = [Atom(head)]
    for value in values:
        if isinstance(value, str):
            items.append(Atom.quoted_atom(value))
        else:
            items.append(value)
    return items


class Parser:
    """Stateful cursor over S-expression text.

    Tracks a 1-based line and column so errors can point at the offending
    character.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self.pos = 0
        self.line = 1
        self.column = 1

    def parse_all(self) -> list[Node]:
        """Parse every top-level form until end of input."""
        forms: list[Node] = []
        while True:
            self._skip_ws_and_comments()
            if self._peek() is None:
                return forms
            forms.append(self.parse_value())

    def parse_value(self) -> Node:
        """Parse exactly one value (atom or list) at the cursor.

        Nesting is tracked with an explicit stack so deeply nested input does
        not hit the interpreter recursion limit.
        """
        stack: list[tuple[list, int, int]] = []
        while True:
            self._skip_ws_and_comments()
            ch = self._peek()
            if ch is None:
                if stack:
                    _, line, column = stack[-1]
                    raise self._error(f"unterminated list (opened at {line}:{column})")
                raise self._error("unexpected end of input")

            if ch == "(":
                stack.append(([], self.line, self.column))
                self._advance(1)
                continue

            if ch == ")":
                if not stack:
                    raise self._error("unexpected ')'")
                self._advance(1)
                value: Node = stack.pop()[0]
            elif ch == '"':
                value = self._parse_quoted_atom()
            else:
                value = self._parse_bare_atom()

            if not stack:
                return value
            stack[-1][0].append(value)

    # --- tokens ---

    def _parse_bare_atom(self) -> Atom:
        match = _BARE_ATOM.match(self._text, self.pos)
        if match is None:
            raise self._error("expected atom")
        self._advance_to(match.end())
        return Atom(match.group())

    def _parse_quoted_atom(self) -> Atom:
        start_line, start_column = self.line, self.column
        self._advance(1)
        parts: list[str] = []
        while True:
            chunk = _STRING_CHUNK.match(self._text, self.pos)
            if chunk is not None:
                parts.append(chunk.group())
                self._advance_to(chunk.end())
            ch = self._peek()
            if ch is None:
                raise self._error(
                    f"unterminated string (opened at {start_line}:{start_column})"
                )
            self._advance(1)
            if ch == '"':
                return Atom("".join(parts), quoted=True)
            # backslash
            escaped = self._peek()
            if escaped is None:
                raise self._error("unterminated escape sequence")
            self._advance(1)
            parts.append(_ESCAPES.get(escaped, escaped))

    def _skip_ws_and_comments(self) -> None:
        while True:
            match = _WHITESPACE.match(self._text, self.pos)
            if match is not None:
                self._advance_to(match.end())
            if self._peek() not in (";", "#"):
                return
            newline = self._text.find("\n", self.pos)
            self._advance_to(len(self._text) if newline == -1 else newline + 1)

    # --- cursor ---

    def _peek(self) -> Optional[str]:
        if self.pos < len(self._text):
            return self._text[self.pos]
        return None

    def _advance(self, count: int) -> None:
        self._advance_to(self.pos + count)

    def _advance_to(self, new_pos: int) -> None:
        consumed = self._text[self.pos:new_pos]
        newlines = consumed.count("\n")
        if newlines:
            self.line += newlines
            self.column = len(consumed) - consumed.rfind("\n")
        else:
            self.column += len(consumed)
        self.pos = new_pos

    def _error(self, message: str) -> SexpParseError:
        return SexpParseError(message, line=self.line, column=self.column)


def parse_sexps(text: str) -> list[Node]:
    """Parse all top-level forms in ``text``. Empty input yields an empty list."""
    return Parser(text).parse_all()


def parse_one(text: str) -> Node:
    """Parse text that must contain exactly one top-level form."""
    forms = parse_sexps(text)
    if len(forms) != 1:
        raise SexpParseError(
            f"expected a single top-level S-expression, found {len(forms)}",
            details={"count": len(forms)},
        )
    return forms[0]
