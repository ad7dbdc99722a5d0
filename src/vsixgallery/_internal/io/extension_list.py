"""Load .vsext extension pack manifests from an extracted archive."""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from vsixgallery.kernel.errors import DeserializationError
from vsixgallery.kernel.package import ExtensionList

EXTENSION_LIST_SUFFIX = ".vsext"


def find_extension_list(root: Union[str, Path]) -> Optional[Path]:
    """Return the first *.vsext file under root (recursive, sorted walk), or None."""
    matches = sorted(
        (p for p in Path(root).rglob(f"*{EXTENSION_LIST_SUFFIX}") if p.is_file()),
        key=lambda p: p.relative_to(root).parts,
    )
    return matches[0] if matches else None


def parse_extension_list(data: Union[str, bytes]) -> ExtensionList:
    """
    Parse .vsext JSON content into an ExtensionList.

    Raises:
        DeserializationError: If the content is not JSON or does not match the
            {id, name, version, extensions[{vsixId, name}]} shape
    """
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8-sig")
        obj = json.loads(data.lstrip("\ufeff"))
    except UnicodeDecodeError as exc:
        raise DeserializationError(f"Extension list is not valid UTF-8 text: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise DeserializationError(f"Extension list is not valid JSON: {exc}") from exc
    try:
        return ExtensionList.model_validate(obj)
    except ValidationError as exc:
        raise DeserializationError(f"Invalid extension list structure: {exc}") from exc


def load_extension_list(root: Union[str, Path]) -> Optional[ExtensionList]:
    """Load the bundled extension list from an extracted archive, if it has one."""
    path = find_extension_list(root)
    if path is None:
        return None
    try:
        return parse_extension_list(path.read_bytes())
    except DeserializationError as exc:
        raise DeserializationError(f"{path.name}: {exc}") from exc
