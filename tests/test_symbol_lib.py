"""Tests for Symbol and SymbolLibrary."""

from __future__ import annotations

import pytest

from kicad_importer.library.symbol_lib import EMPTY_LIBRARY, AddPolicy, Symbol, SymbolLibrary
from kicad_importer.models.errors import SexpParseError, SymbolConflictError
from kicad_importer.utils.sexp_parser import Atom, keyword


class TestSymbol:
    def test_name(self):
        assert Symbol.parse('(symbol "LM 2907-8" (pin_names (offset 0)))').name == "LM 2907-8"

    def test_bare_name(self):
        assert Symbol.parse("(symbol R)").name == "R"

    def test_rejects_wrong_shape(self):
        for text in ('(footprint "R")', "(symbol)", "(symbol (nested))", "symbol"):
            with pytest.raises(SexpParseError):
                Symbol.parse(text)

    def test_parse_requires_one_form(self):
        with pytest.raises(SexpParseError):
            Symbol.parse('(symbol "A") (symbol "B")')

    def test_property_value(self):
        symbol = Symbol.parse('(symbol "A" (property "Value" "10k" (at 0 0 0)))')
        assert symbol.property_value("Value") == "10k"
        assert symbol.property_value("Footprint") is None

    def test_property_needs_three_elements(self):
        symbol = Symbol.parse('(symbol "A" (property "Value"))')
        assert symbol.property_value("Value") is None

    def test_set_property_value(self):
        symbol = Symbol.parse('(symbol "A" (property "Footprint" ""))')
        assert symbol.property_value("Footprint") == ""
        assert symbol.set_property_value("Footprint", "Lib:FP") is True
        assert symbol.property_value("Footprint") == "Lib:FP"

    def test_set_property_value_missing(self):
        symbol = Symbol.parse('(symbol "A" (property "Value" "x"))')
        before = symbol.to_text()
        assert symbol.set_property_value("Footprint", "Lib:FP") is False
        assert symbol.to_text() == before

    def test_set_property_keeps_trailing_fields(self):
        symbol = Symbol.parse('(symbol "A" (property "Footprint" "Old:FP" (at 1 2 0) (effects hide)))')
        symbol.set_property_value("Footprint", "New:FP")
        entry = symbol.node[2]
        assert entry[3] == [Atom("at"), Atom("1"), Atom("2"), Atom("0")]
        assert entry[4] == [Atom("effects"), Atom("hide")]

    def test_set_or_add_inserts_minimal_property(self):
        symbol = Symbol.parse('(symbol "A")')
        symbol.set_or_add_property("Footprint", "Lib:FP")
        assert symbol.property_value("Footprint") == "Lib:FP"
        assert symbol.node[-1] == [
            Atom("property"),
            Atom("Footprint", quoted=True),
            Atom("Lib:FP", quoted=True),
        ]

    def test_set_or_add_clones_template(self):
        symbol = Symbol.parse(
            '(symbol "A" (property "Reference" "U" (at 0 0 0) (effects (font (size 1.27 1.27)))) (pin_names))'
        )
        symbol.set_or_add_property("Footprint", "Lib:FP")
        new_entry = symbol.node[-1]
        assert keyword(new_entry) == "property"
        assert new_entry[1].value == "Footprint"
        assert new_entry[2].value == "Lib:FP"
        assert new_entry[3:] == symbol.node[2][3:]
        assert new_entry[3] is not symbol.node[2][3]
        assert symbol.property_value("Reference") == "U"

    def test_set_or_add_updates_existing(self):
        symbol = Symbol.parse('(symbol "A" (property "Footprint" "x") (pin_names))')
        symbol.set_or_add_property("Footprint", "Lib:FP")
        assert len(symbol.node) == 4
        assert symbol.property_value("Footprint") == "Lib:FP"


class TestSymbolLibrary:
    def test_symbols(self, sample_library: str):
        library = SymbolLibrary.parse(sample_library)
        names = [symbol.name for symbol in library.symbols()]
        assert names == ["SCD41", "LM 2907-8"]
        assert library.symbol_names() == names

    def test_symbols_are_copies(self, sample_library: str):
        library = SymbolLibrary.parse(sample_library)
        symbol = library.symbols()[0]
        symbol.set_or_add_property("Footprint", "Changed:X")
        assert library.symbols()[0].property_value("Footprint") == "Vendor:SCD41"

    def test_nested_unit_symbols_not_listed(self, sample_library: str):
        library = SymbolLibrary.parse(sample_library)
        assert "SCD41_0_1" not in library.symbol_names()

    def test_wrong_root(self):
        with pytest.raises(SexpParseError, match="kicad_symbol_lib"):
            SymbolLibrary.parse("(sym_lib_table (version 7))")

    def test_root_must_be_list(self):
        with pytest.raises(SexpParseError):
            SymbolLibrary.parse("kicad_symbol_lib")

    def test_empty_root(self):
        with pytest.raises(SexpParseError, match="empty"):
            SymbolLibrary.parse("()")

    def test_multiple_forms_rejected(self):
        with pytest.raises(SexpParseError, match="single top-level"):
            SymbolLibrary.parse("(kicad_symbol_lib) (kicad_symbol_lib)")

    def test_empty_library(self):
        library = SymbolLibrary.empty()
        assert library.symbols() == []
        assert library.to_text() == "(kicad_symbol_lib\n\t(version 20231120)\n)\n"
        assert SymbolLibrary.parse(EMPTY_LIBRARY).to_text() == library.to_text()

    def test_comments_and_quoted_names(self):
        text = '(kicad_symbol_lib\n; comment\n(symbol "LM 2907-8")\n# comment\n)'
        library = SymbolLibrary.parse(text)
        assert library.symbol_names() == ["LM 2907-8"]
        assert '"LM 2907-8"' in library.to_text()

    def test_round_trip_preserves_names_and_properties(self, sample_library: str):
        library = SymbolLibrary.parse(sample_library)
        again = SymbolLibrary.parse(library.to_text())
        assert again.symbol_names() == library.symbol_names()
        for before, after in zip(library.symbols(), again.symbols()):
            for key in ("Reference", "Value", "Footprint"):
                assert after.property_value(key) == before.property_value(key)


@pytest.fixture
def lib_with_a() -> SymbolLibrary:
    return SymbolLibrary.parse(
        '(kicad_symbol_lib (version 20231120) (symbol "A" (property "Value" "old")) (symbol "B"))'
    )


class TestAddSymbol:
    def test_append_new(self, lib_with_a: SymbolLibrary):
        for policy in AddPolicy:
            library = SymbolLibrary.parse(lib_with_a.to_text())
            assert library.add_symbol(Symbol.parse('(symbol "C")'), policy) is True
            assert library.symbol_names() == ["A", "B", "C"]

    def test_replace_keeps_position(self, lib_with_a: SymbolLibrary):
        new = Symbol.parse('(symbol "A" (property "Value" "new"))')
        assert lib_with_a.add_symbol(new, AddPolicy.REPLACE_EXISTING) is True
        assert lib_with_a.symbol_names() == ["A", "B"]
        assert lib_with_a.symbols()[0].property_value("Value") == "new"
        assert "old" not in lib_with_a.to_text()

    def test_skip_leaves_library_unchanged(self, lib_with_a: SymbolLibrary):
        before = lib_with_a.to_text()
        new = Symbol.parse('(symbol "A" (property "Value" "new"))')
        assert lib_with_a.add_symbol(new, AddPolicy.SKIP_EXISTING) is False
        assert lib_with_a.to_text() == before

    def test_error_on_conflict(self, lib_with_a: SymbolLibrary):
        before = lib_with_a.to_text()
        with pytest.raises(SymbolConflictError, match="symbol already exists: A"):
            lib_with_a.add_symbol(Symbol.parse('(symbol "A")'), AddPolicy.ERROR_ON_CONFLICT)
        assert lib_with_a.to_text() == before

    def test_root_keyword_not_matched(self):
        library = SymbolLibrary.parse("(kicad_symbol_lib)")
        library.add_symbol(Symbol.parse('(symbol "kicad_symbol_lib")'), AddPolicy.ERROR_ON_CONFLICT)
        assert library.symbol_names() == ["kicad_symbol_lib"]

    def test_unknown_children_untouched(self):
        library = SymbolLibrary.parse(
            '(kicad_symbol_lib (version 1) (generator "x") (symbol "A") (custom (stuff 1)))'
        )
        library.add_symbol(Symbol.parse('(symbol "A" (extra))'), AddPolicy.REPLACE_EXISTING)
        library.add_symbol(Symbol.parse('(symbol "Z")'), AddPolicy.REPLACE_EXISTING)
        keywords = [keyword(child) for child in library.root[1:]]
        assert keywords == ["version", "generator", "symbol", "custom", "symbol"]
