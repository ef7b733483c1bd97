"""Configuration: runtime settings from the environment, and the per-project config file."""

from __future__ import annotations

import os
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings
import tomli_w

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from kicad_importer.library.symbol_lib import AddPolicy
from kicad_importer.logging_config import get_logger
from kicad_importer.models.errors import ConfigError
from kicad_importer.models.types import ImportConfig
from kicad_importer.utils.kicad_paths import default_import_config

logger = get_logger("config")

PROJECT_CONFIG_FILE = ".kci_config"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ImporterSettings(BaseSettings):
    """Runtime settings, loaded from ``KCI_*`` environment variables or ``.env``."""

    model_config = {"env_prefix": "KCI_", "env_file": ".env", "extra": "ignore"}

    log_level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Logging level",
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Optional log file in addition to stderr",
    )
    add_policy: AddPolicy = Field(
        default=AddPolicy.REPLACE_EXISTING,
        description="Symbol conflict policy: replace, skip or error",
    )
    backup_enabled: bool = Field(
        default=False,
        description="Back up symbol libraries and tables before rewriting them",
    )
    change_log_enabled: bool = Field(
        default=True,
        description="Record imports in the change log",
    )
    change_log_path: Optional[Path] = Field(
        default=None,
        description="Path to change audit log. Defaults to ~/.config/.kicad-importer/logs/changes.jsonl",
    )

    def get_data_dir(self) -> Path:
        """Get the platform-appropriate data directory."""
        if os.name == "nt":
            base = Path(os.environ.get("USERPROFILE", Path.home()))
        else:
            base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
        data_dir = base / ".kicad-importer"
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_log_dir(self) -> Path:
        log_dir = self.get_data_dir() / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir

    def get_change_log_path(self) -> Path:
        if self.change_log_path:
            self.change_log_path.parent.mkdir(parents=True, exist_ok=True)
            return self.change_log_path
        return self.get_log_dir() / "changes.jsonl"


class ProjectConfig(BaseModel):
    """Destinations remembered in ``.kci_config`` (TOML) in the project directory.

    Unset fields are left out of the file, so a partial config falls back to
    the defaults for the missing entries.
    """

    symbol_lib: Optional[Path] = None
    footprint_lib: Optional[Path] = None
    step_dir: Optional[Path] = None

    @classmethod
    def load(cls, path: Path) -> "ProjectConfig":
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
            return cls.model_validate(data)
        except OSError as exc:
            raise ConfigError(f"io error: {exc}", details={"path": str(path)}) from exc
        except (tomllib.TOMLDecodeError, PydanticValidationError) as exc:
            raise ConfigError(f"config parse error: {exc}", details={"path": str(path)}) from exc

    def write(self, path: Path) -> None:
        try:
            data = {key: str(value) for key, value in self.model_dump(exclude_none=True).items()}
            path.write_text(tomli_w.dumps(data), encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"config write error: {exc}", details={"path": str(path)}) from exc

    @classmethod
    def from_import_config(cls, config: ImportConfig) -> "ProjectConfig":
        return cls(
            symbol_lib=config.symbol_lib,
            footprint_lib=config.footprint_lib,
            step_dir=config.step_dir,
        )


class ImportPlan(BaseModel):
    """Everything an import needs once CLI options and config files are merged."""

    source: Path
    config: ImportConfig
    config_path: Path
    created_config: bool = False


def resolve_import(
    source: Path,
    project_dir: Path,
    symbol_lib: Optional[Path] = None,
    footprint_lib: Optional[Path] = None,
    step_dir: Optional[Path] = None,
) -> ImportPlan:
    """Resolve destinations: explicit arguments, then ``.kci_config``, then defaults.

    Writes ``.kci_config`` with the resolved values when it does not exist yet.

    Raises:
        ConfigError: If the config file cannot be read, parsed or written.
    """
    config_path = project_dir / PROJECT_CONFIG_FILE
    stored = ProjectConfig.load(config_path) if config_path.exists() else None
    defaults = default_import_config(project_dir)

    def pick(explicit: Optional[Path], field: str) -> Path:
        if explicit is not None:
            return explicit
        if stored is not None and getattr(stored, field) is not None:
            return getattr(stored, field)
        return getattr(defaults, field)

    config = ImportConfig(
        symbol_lib=pick(symbol_lib, "symbol_lib"),
        footprint_lib=pick(footprint_lib, "footprint_lib"),
        step_dir=pick(step_dir, "step_dir"),
    )

    created = False
    if stored is None:
        ProjectConfig.from_import_config(config).write(config_path)
        logger.info("Wrote project config %s", config_path)
        created = True

    return ImportPlan(
        source=source,
        config=config,
        config_path=config_path,
        created_config=created,
    )
