"""Pydantic models shared by the import pipeline, CLI and MCP tools."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class FootprintInfo(BaseModel):
    """A discovered ``.kicad_mod`` file."""

    name: str = Field(description="Footprint name (file stem)")
    path: Path = Field(description="Location of the footprint file in the source")


class ImportConfig(BaseModel):
    """Destination locations for one import."""

    symbol_lib: Path = Field(description="Target .kicad_sym file")
    footprint_lib: Path = Field(description="Target .pretty directory")
    step_dir: Path = Field(description="Directory receiving 3D model files")


class ImportReport(BaseModel):
    symbols_added: int = Field(default=0, description="Symbols merged into the target library")
    footprints_added: int = Field(default=0, description="Footprint files copied")
    step_files_added: int = Field(default=0, description="3D model files copied")


class TableUpdate(BaseModel):
    """Result of registering one library in a project table."""

    table_file: Path
    library_name: str
    uri: str
