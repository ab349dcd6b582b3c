"""
Extraction of downloaded repository archives into disposable directories.
"""

import io
import shutil
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, NamedTuple

from clean_code_guard.errors import ForgeUnavailable

TEMP_DIR_PREFIX = "ccg-repo-"
SCRATCH_DIR_NAME = ".clean-code-guard"


class MaterializedSource(NamedTuple):
    """An extracted source tree owned by a single assessment run."""

    temp_dir: Path
    root: Path
    scratch_dir: Path


def _find_root(extract_dir: Path) -> Path:
    """Unwrap the single top-level folder forges add to archives."""
    entries = list(extract_dir.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return extract_dir


def _extract(archive: bytes, extract_dir: Path) -> None:
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as bundle:
            base = extract_dir.resolve()
            for info in bundle.infolist():
                target = (extract_dir / info.filename).resolve()
                if target != base and base not in target.parents:
                    raise ForgeUnavailable(
                        f"Repository snapshot contains an unsafe path: {info.filename}"
                    )
            bundle.extractall(extract_dir)
    except zipfile.BadZipFile as e:
        raise ForgeUnavailable(f"Repository snapshot is not a valid zip: {e}") from e


@contextmanager
def materialize_snapshot(archive: bytes) -> Iterator[MaterializedSource]:
    """
    Extract an archive into a fresh temporary directory.

    The yielded root is the archive's single top-level directory when there is
    exactly one, otherwise the extraction directory itself. The temporary
    directory is removed on every exit path.

    Raises:
        ForgeUnavailable: If the archive is corrupt or unsafe.
    """
    temp_dir = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))

    try:
        extract_dir = temp_dir / "source"
        extract_dir.mkdir()
        scratch_dir = temp_dir / SCRATCH_DIR_NAME
        scratch_dir.mkdir()

        _extract(archive, extract_dir)

        yield MaterializedSource(
            temp_dir=temp_dir,
            root=_find_root(extract_dir),
            scratch_dir=scratch_dir,
        )
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)
