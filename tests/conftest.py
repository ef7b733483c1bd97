"""Shared test fixtures and sample KiCad content."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from kicad_importer.config import ImporterSettings
from kicad_importer.models.types import ImportConfig
from kicad_importer.utils.change_log import ChangeLog

SAMPLE_LIBRARY = """\
(kicad_symbol_lib
  (version 20231120)
  (generator "kicad_symbol_editor")
  ; vendor export
  (symbol "SCD41"
    (property "Reference" "U"
      (at 0 0 0)
      (effects (font (size 1.27 1.27)))
    )
    (property "Value" "SCD41"
      (at 0 2 0)
      (effects (font (size 1.27 1.27)))
    )
    (property "Footprint" "Vendor:SCD41"
      (at 0 4 0)
      (effects (font (size 1.27 1.27)) hide)
    )
    (symbol "SCD41_0_1"
      (rectangle (start -5.08 5.08) (end 5.08 -5.08)
        (stroke (width 0) (type default))
        (fill (type background))
      )
    )
  )
  (symbol "LM 2907-8"
    (property "Reference" "U"
      (at 0 0 0)
      (effects (font (size 1.27 1.27)))
    )
  )
)
"""


def _symbol_lib_text(symbol_name: str, footprint_value: str | None = "") -> str:
    """A one-symbol library; ``footprint_value=None`` omits the Footprint property."""
    if footprint_value is None:
        return f'(kicad_symbol_lib (version 20231120) (symbol "{symbol_name}"))'
    return (
        f'(kicad_symbol_lib (version 20231120) '
        f'(symbol "{symbol_name}" (property "Footprint" "{footprint_value}")))'
    )


def _write_footprint(path: Path, name: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f'(footprint "{name}")', encoding="utf-8")
    return path


@pytest.fixture
def sample_library() -> str:
    return SAMPLE_LIBRARY


@pytest.fixture
def symbol_lib_text():
    """Factory for one-symbol library text."""
    return _symbol_lib_text


@pytest.fixture
def write_footprint():
    return _write_footprint


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Vendor package with one unlabeled symbol PartA and one footprint MyFootprint."""
    source = tmp_path / "source"
    source.mkdir()
    (source / "lib.kicad_sym").write_text(_symbol_lib_text("PartA"), encoding="utf-8")
    _write_footprint(source / "Footprints.pretty" / "MyFootprint.kicad_mod", "MyFootprint")
    return source


@pytest.fixture
def source_zip(tmp_path: Path) -> Path:
    zip_path = tmp_path / "source.zip"
    with zipfile.ZipFile(zip_path, "w") as archive:
        archive.writestr(
            "Symbols/lib.kicad_sym",
            _symbol_lib_text("PartA", "Old:MyFootprint"),
        )
        archive.writestr("Footprints.pretty/MyFootprint.kicad_mod", '(footprint "MyFootprint")')
        archive.writestr("3D/MyFootprint.step", "ISO-10303-21;")
    return zip_path


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    proj = tmp_path / "my_project"
    proj.mkdir()
    (proj / "my_project.kicad_pro").write_text("{}", encoding="utf-8")
    return proj


@pytest.fixture
def import_config(tmp_path: Path) -> ImportConfig:
    return ImportConfig(
        symbol_lib=tmp_path / "dest.kicad_sym",
        footprint_lib=tmp_path / "Dest.pretty",
        step_dir=tmp_path / "steps",
    )


@pytest.fixture
def tmp_change_log(tmp_path: Path) -> ChangeLog:
    return ChangeLog(tmp_path / "logs" / "test_changes.jsonl")


@pytest.fixture
def settings(tmp_path: Path) -> ImporterSettings:
    return ImporterSettings(change_log_path=tmp_path / "logs" / "changes.jsonl")
