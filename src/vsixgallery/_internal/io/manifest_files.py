"""Read extension.vsixmanifest and the files it references from an extracted archive."""

import errno
import logging
from functools import partial
from pathlib import Path
from typing import Optional, Union

from vsixgallery.kernel.clock import Clock, utc_now
from vsixgallery.kernel.manifest import parse_manifest
from vsixgallery.kernel.package import PackageRecord
from .extension_list import load_extension_list

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = "extension.vsixmanifest"


def archive_member(extract_dir: Union[str, Path], relative: str) -> Optional[Path]:
    """
    Resolve a manifest-relative path inside the extracted archive.

    Manifests are authored on Windows, so backslash separators are accepted.

    Returns:
        The resolved path, or None if it points outside the archive root
    """
    root = Path(extract_dir).resolve()
    path = (root / relative.strip().replace("\\", "/")).resolve()
    if root not in path.parents:
        return None
    return path


def read_license(extract_dir: Union[str, Path], relative: str) -> Optional[str]:
    """Full text of the license file, or None if it is missing, outside the archive or unreadable."""
    path = archive_member(extract_dir, relative)
    if path is None or not path.is_file():
        logger.debug("License file %r not found in archive", relative)
        return None
    try:
        return path.read_bytes().decode("utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("License file %r could not be read: %s", relative, exc)
        return None


def create_from_manifest(
    extract_dir: Union[str, Path],
    file_name: str,
    source_location: str,
    *,
    client_version_hint: str = "",
    clock: Clock = utc_now,
) -> PackageRecord:
    """
    Parse extension.vsixmanifest from an extracted archive directory.

    The License file and the first .vsext extension pack found in the
    archive are attached to the record.

    Raises:
        FileNotFoundError: If the archive has no extension.vsixmanifest
        DeserializationError: If a .vsext file exists but is not a valid extension list
        ManifestError, MalformedVersionError: See parse_manifest
    """
    manifest_path = Path(extract_dir) / MANIFEST_FILE_NAME
    if not manifest_path.is_file():
        raise FileNotFoundError(
            errno.ENOENT, f"{MANIFEST_FILE_NAME} not found in {file_name}", str(manifest_path)
        )
    return parse_manifest(
        manifest_path.read_bytes(),
        file_name,
        source_location,
        client_version_hint=client_version_hint,
        license_loader=partial(read_license, extract_dir),
        bundled_extensions=load_extension_list(extract_dir),
        clock=clock,
    )
