"""Custom exception hierarchy for the KiCad component importer."""

from __future__ import annotations


class KiCadImporterError(Exception):
    """Base exception for all importer errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SexpParseError(KiCadImporterError):
    """Malformed S-expression text, or a tree of the wrong shape.

    ``line`` and ``column`` are 1-based and only set when the error was raised
    by the parser itself.
    """

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is not None and self.column is not None:
            return f"{self.message} at {self.line}:{self.column}"
        return self.message


class SymbolLibraryError(KiCadImporterError):
    """Error while manipulating a symbol library tree."""


class SymbolConflictError(SymbolLibraryError):
    """A symbol with the same name already exists in the target library."""


class LibraryImportError(KiCadImporterError):
    """Error importing a component package."""


class InvalidSourceError(LibraryImportError):
    """Import source is not a directory or zip archive, or has unusable paths."""


class MissingSymbolsError(LibraryImportError):
    """The import source contains no symbol library files."""


class MissingFootprintsError(LibraryImportError):
    """The import source contains no footprint files."""


class AssociationError(LibraryImportError):
    """No footprint could be chosen for a symbol."""

    def __init__(self, symbol_name: str, message: str | None = None):
        super().__init__(
            message or f"unable to choose footprint for symbol {symbol_name}",
            details={"symbol": symbol_name},
        )
        self.symbol_name = symbol_name


class ValidationError(KiCadImporterError):
    """Input validation failed."""


class TableError(KiCadImporterError):
    """Library table file is unparseable or has the wrong root."""


class ConfigError(KiCadImporterError):
    """Project configuration file could not be read or written."""
