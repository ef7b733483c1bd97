"""FastMCP server exposing the component importer as tools."""

from __future__ import annotations

from fastmcp import FastMCP

from kicad_importer import __version__
from kicad_importer.config import ImporterSettings
from kicad_importer.logging_config import get_logger, setup_logging
from kicad_importer.tools import library_import
from kicad_importer.utils.change_log import ChangeLog

logger = get_logger("server")


def create_server(settings: ImporterSettings | None = None) -> FastMCP:
    """Create and configure the MCP server.

    Args:
        settings: Runtime settings. Uses defaults/env vars if not provided.

    Returns:
        Configured FastMCP server instance ready to run.
    """
    if settings is None:
        settings = ImporterSettings()

    setup_logging(level=settings.log_level.value, log_file=settings.log_file)
    logger.info("KiCad component importer v%s starting MCP server", __version__)

    change_log = ChangeLog(settings.get_change_log_path()) if settings.change_log_enabled else None

    mcp = FastMCP("KiCad Component Importer", version=__version__)
    library_import.register_tools(mcp, settings, change_log)
    return mcp
