"""VSIX archive discovery, scratch extraction and icon copying."""

import logging
import shutil
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Union

from vsixgallery.kernel.errors import GalleryError
from .manifest_files import archive_member

logger = logging.getLogger(__name__)

ARCHIVE_PATTERN = "*.vsix"
SCRATCH_PREFIX = "vsixgallery-"


class ArchiveError(GalleryError):
    """Raised when a .vsix file is not a readable zip archive."""


def discover_archives(
    root: Union[str, Path],
    recursive: bool = False,
    exclude: Optional[str] = None,
) -> List[Path]:
    """
    Find .vsix archives under root.

    Args:
        root: Directory to scan
        recursive: Include subdirectories
        exclude: Skip archives whose path relative to root contains this substring

    Returns:
        Archive paths sorted by their path relative to root
    """
    root_path = Path(root)
    candidates = root_path.rglob(ARCHIVE_PATTERN) if recursive else root_path.glob(ARCHIVE_PATTERN)
    archives = []
    for path in candidates:
        if not path.is_file():
            continue
        if exclude and exclude in str(path.relative_to(root_path)):
            logger.debug("Excluding %s", path)
            continue
        archives.append(path)
    return sorted(archives, key=lambda p: p.relative_to(root_path).parts)


@contextmanager
def extracted(archive: Union[str, Path]) -> Iterator[Path]:
    """Extract an archive into a scratch directory that is removed on exit, including on errors."""
    with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as scratch:
        try:
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(scratch)
        except zipfile.BadZipFile as exc:
            raise ArchiveError(f"{Path(archive).name} is not a valid VSIX archive") from exc
        yield Path(scratch)


def copy_icon(extract_dir: Path, icon: str, destination: Path) -> bool:
    """Copy an icon out of an extracted archive; False if the archive does not contain it."""
    source = archive_member(extract_dir, icon)
    if source is None or not source.is_file():
        logger.debug("Icon %r not found in archive", icon)
        return False

    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, destination)
    return True

