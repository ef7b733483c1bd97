"""Audit trail of imports and backups of files about to be rewritten."""

from __future__ import annotations

import json
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from kicad_importer.logging_config import get_logger

logger = get_logger("changelog")

BACKUP_DIR_NAME = ".kci_backups"


class ChangeLog:
    """Appends one JSON object per operation to a JSONL file."""

    def __init__(self, log_path: Path) -> None:
        self._log_path = log_path
        self._log_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._log_path

    def record(
        self,
        operation: str,
        params: dict[str, Any],
        status: str = "success",
        files_modified: list[str] | None = None,
        result: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "operation": operation,
            "params": {key: str(value) for key, value in params.items()},
            "status": status,
        }
        if files_modified:
            entry["files_modified"] = files_modified
        if result:
            entry["result"] = result
        if error:
            entry["error"] = error

        try:
            with open(self._log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry) + "\n")
        except OSError as e:
            logger.error("Failed to write change log: %s", e)

    def get_recent(self, count: int = 20) -> list[dict[str, Any]]:
        """Most recent entries, oldest first."""
        if not self._log_path.exists():
            return []

        entries: list[dict[str, Any]] = []
        try:
            lines = self._log_path.read_text(encoding="utf-8").splitlines()
            for line in lines[-count:]:
                if line.strip():
                    entries.append(json.loads(line))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read change log: %s", e)
        return entries


def create_backup(file_path: Path, backup_dir: Path | None = None) -> Path | None:
    """Copy ``file_path`` to a timestamped file before it is overwritten.

    Backups go to ``.kci_backups/`` next to the file unless ``backup_dir`` is
    given. Returns None when there is nothing to back up.
    """
    if not file_path.is_file():
        return None

    if backup_dir is None:
        backup_dir = file_path.parent / BACKUP_DIR_NAME
    backup_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup_path = backup_dir / f"{file_path.stem}_{timestamp}{file_path.suffix}"

    shutil.copy2(file_path, backup_path)
    logger.debug("Backup created: %s", backup_path)
    return backup_path
