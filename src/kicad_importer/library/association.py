"""Choose the footprint each imported symbol should reference.

The decision is deliberately narrow: a symbol is only linked to a footprint
when one of these holds, checked in order:

1. its ``Footprint`` property names a discovered footprint (any library
   prefix before the last ``:`` is ignored)
2. the package contains exactly one footprint
3. a discovered footprint has exactly the symbol's name

Anything else is an :class:`AssociationError` rather than a guess.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from typing import Optional

from kicad_importer.library.symbol_lib import Symbol
from kicad_importer.logging_config import get_logger
from kicad_importer.models.errors import AssociationError
from kicad_importer.models.types import FootprintInfo

logger = get_logger("library.association")

FOOTPRINT_PROPERTY = "Footprint"


def footprint_name_from_value(value: str) -> Optional[str]:
    """Footprint part of a ``Library:Name`` reference, or the value itself."""
    value = value.strip()
    if not value:
        return None
    _, sep, name = value.rpartition(":")
    return name if sep else value


def select_footprint(
    symbol: Symbol,
    footprint_names: Collection[str],
    footprint_count: Optional[int] = None,
) -> str:
    """Pick the footprint name for ``symbol`` from every discovered footprint.

    ``footprint_count`` is the number of footprint files found, which can
    exceed ``len(footprint_names)`` when two files share a stem.

    Raises:
        AssociationError: If none of the rules apply.
    """
    declared = symbol.property_value(FOOTPRINT_PROPERTY)
    if declared is not None:
        name = footprint_name_from_value(declared)
        if name is not None and name in footprint_names:
            logger.debug("%s: using declared footprint %s", symbol.name, name)
            return name

    if footprint_count is None:
        footprint_count = len(footprint_names)
    if footprint_count == 1 and footprint_names:
        name = next(iter(footprint_names))
        logger.debug("%s: using the only footprint %s", symbol.name, name)
        return name

    if symbol.name in footprint_names:
        logger.debug("%s: using footprint with matching name", symbol.name)
        return symbol.name

    raise AssociationError(symbol.name)


def footprint_reference(footprint_lib_name: str, footprint_name: str) -> str:
    return f"{footprint_lib_name}:{footprint_name}"


def associate_footprints(
    symbols: Iterable[Symbol],
    footprints: Iterable[FootprintInfo],
    footprint_lib_name: str,
) -> list[Symbol]:
    """Point every symbol's ``Footprint`` property at the destination library.

    Must run after all footprints are discovered, since the single-footprint
    rule looks at the whole package.
    """
    footprints = list(footprints)
    names = {footprint.name for footprint in footprints}
    associated: list[Symbol] = []
    for symbol in symbols:
        name = select_footprint(symbol, names, len(footprints))
        symbol.set_or_add_property(FOOTPRINT_PROPERTY, footprint_reference(footprint_lib_name, name))
        associated.append(symbol)
    logger.info("Associated %d symbols with footprints in %s", len(associated), footprint_lib_name)
    return associated
