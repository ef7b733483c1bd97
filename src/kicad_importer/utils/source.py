"""Open an import source and discover the files inside it."""

from __future__ import annotations

import shutil
import tempfile
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path, PurePosixPath

from kicad_importer.logging_config import get_logger
from kicad_importer.models.errors import InvalidSourceError
from kicad_importer.utils.validation import ZIP_EXT, has_extension

logger = get_logger("utils.source")


@contextmanager
def open_source(path: Path) -> Iterator[Path]:
    """Yield a directory holding the contents of ``path``.

    Directories are used in place. Zip archives are extracted into a
    temporary directory that is removed on exit.

    Raises:
        InvalidSourceError: If ``path`` is neither a directory nor a ``.zip`` file.
    """
    if path.is_dir():
        yield path
        return

    if path.is_file() and has_extension(path, ZIP_EXT):
        with tempfile.TemporaryDirectory(prefix="kci_") as tmp:
            root = Path(tmp)
            try:
                extract_zip(path, root)
            except zipfile.BadZipFile as exc:
                raise InvalidSourceError(
                    f"zip error: {exc}",
                    details={"source": str(path)},
                ) from exc
            yield root
        return

    raise InvalidSourceError(
        f"expected directory or .zip: {path}",
        details={"source": str(path)},
    )


def extract_zip(zip_path: Path, dest: Path) -> int:
    """Extract every regular entry of ``zip_path`` below ``dest``.

    Entries with absolute names or ``..`` components are skipped.
    Returns the number of files written.
    """
    count = 0
    with zipfile.ZipFile(zip_path) as archive:
        for info in archive.infolist():
            member = PurePosixPath(info.filename.replace("\\", "/"))
            if member.is_absolute() or ".." in member.parts or not member.parts:
                logger.warning("Skipping unsafe archive entry: %s", info.filename)
                continue
            out_path = dest.joinpath(*member.parts)
            if info.is_dir():
                out_path.mkdir(parents=True, exist_ok=True)
                continue
            out_path.parent.mkdir(parents=True, exist_ok=True)
            with archive.open(info) as src, open(out_path, "wb") as dst:
                shutil.copyfileobj(src, dst)
            count += 1
    logger.debug("Extracted %d files from %s", count, zip_path)
    return count


def find_files(root: Path, *extensions: str) -> list[Path]:
    """All regular files below ``root`` with one of ``extensions``, sorted."""
    return sorted(
        path for path in root.rglob("*")
        if path.is_file() and has_extension(path, *extensions)
    )
