"""KiCad component importer - merge vendor component packages into project libraries."""

__version__ = "0.3.0"
