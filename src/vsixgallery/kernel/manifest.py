"""Parser for extension.vsixmanifest descriptors (VS2010 and VS2012+ schemas).

The parser produces a normalized PackageRecord. Two schema generations exist:

- VS2010: <Vsix><Identifier Id="..."><Name/><Author/><Version/>...
- VS2012+: <PackageManifest><Metadata><Identity Id Version Publisher/><DisplayName/>...

Both are read through the same flat element index: the first element with a
given name anywhere in the document wins, regardless of where it sits in the
hierarchy. Namespace declarations are stripped before loading and the tree is
built without namespace processing, so element and attribute names are used
exactly as written.
"""

import codecs
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union
from xml.etree import ElementTree as ET
from xml.parsers import expat

from vsixgallery.codes import ManifestSchema
from .clock import Clock, utc_now
from .errors import ManifestError
from .package import ExtensionList, InstallationTarget, PackageRecord
from .version import DottedVersion, normalize_version

logger = logging.getLogger(__name__)

_NAMESPACE_DECLARATION = re.compile(r"""\s+xmlns(?::[\w.-]+)?=(?:"[^"]*"|'[^']*')""")

# Presence of this element anywhere selects the VS2012+ schema
_VS2012_MARKER = "DisplayName"

_TARGET_ELEMENT = "InstallationTarget"
_LEGACY_TARGET_ELEMENT = "VisualStudio"
_RANGE_BRACKETS = "[]()"

# Maps the <License> value (a path inside the archive) to the license text
LicenseLoader = Callable[[str], Optional[str]]


class ElementIndex:
    """Document-order index of elements keyed by element name."""

    def __init__(self, root: ET.Element):
        self._by_name: Dict[str, List[ET.Element]] = {}
        for element in root.iter():
            self._by_name.setdefault(element.tag, []).append(element)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def first(self, name: str) -> Optional[ET.Element]:
        elements = self._by_name.get(name)
        return elements[0] if elements else None

    def all(self, name: str) -> List[ET.Element]:
        return list(self._by_name.get(name, []))


@dataclass(frozen=True)
class RawManifest:
    """Schema-specific fields, before normalization into a PackageRecord."""
    schema: ManifestSchema
    id: str
    name: str
    description: str
    version: str
    author: str
    tags: Optional[str] = None


def strip_namespaces(text: str) -> str:
    """Remove every xmlns / xmlns:prefix declaration from the document text."""
    return _NAMESPACE_DECLARATION.sub("", text)


def _decode(descriptor: Union[str, bytes]) -> str:
    if isinstance(descriptor, str):
        return descriptor.lstrip("\ufeff")
    encoding = "utf-8-sig"
    if descriptor.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        encoding = "utf-16"
    try:
        return descriptor.decode(encoding)
    except UnicodeDecodeError as exc:
        raise ManifestError(f"The .vsixmanifest file is not valid {encoding} text: {exc}") from exc


def load_tree(text: str) -> ET.Element:
    """Build an element tree without namespace processing.

    Prefixed names such as d:Source stay as literal names, so a document whose
    prefix declarations were stripped still loads.

    Raises:
        ManifestError: If the text is not well-formed XML
    """
    builder = ET.TreeBuilder()
    # The text is already decoded, so the declared encoding is overridden.
    parser = expat.ParserCreate("utf-8")
    parser.buffer_text = True
    parser.StartElementHandler = builder.start
    parser.EndElementHandler = builder.end
    parser.CharacterDataHandler = builder.data
    try:
        parser.Parse(text.encode("utf-8"), True)
    except expat.ExpatError as exc:
        raise ManifestError(f"The .vsixmanifest file is not well-formed XML: {exc}") from exc
    return builder.close()


def _missing_message(name: str, attribute: Optional[str]) -> str:
    if attribute:
        return (
            f"Attribute '{attribute}' could not be found on the '{name}' element "
            f"in the .vsixmanifest file."
        )
    return f"Text content could not be found on the '{name}' element in the .vsixmanifest file."


def lookup(index: ElementIndex, name: str, required: bool, attribute: Optional[str] = None) -> Optional[str]:
    """
    Read text content (or one attribute) of the first element named `name`.

    Args:
        index: Element index of the manifest
        name: Element name, matched anywhere in the document
        required: Raise instead of returning None when the value is absent or empty
        attribute: Attribute to read; text content when omitted

    Returns:
        The value, or None for an absent or empty optional value

    Raises:
        ManifestError: If required and the element, the attribute, or a
            non-empty value is missing
    """
    element = index.first(name)
    value: Optional[str] = None
    if element is not None:
        value = "".join(element.itertext()) if attribute is None else element.get(attribute)

    if value is None or not value.strip():
        if required:
            raise ManifestError(_missing_message(name, attribute), element=name, attribute=attribute)
        return None
    return value


def detect_schema(index: ElementIndex) -> ManifestSchema:
    return ManifestSchema.VS2012 if _VS2012_MARKER in index else ManifestSchema.VS2010


def _read_vs2012(index: ElementIndex) -> RawManifest:
    return RawManifest(
        schema=ManifestSchema.VS2012,
        id=lookup(index, "Identity", True, "Id"),
        name=lookup(index, "DisplayName", True),
        description=lookup(index, "Description", True),
        version=lookup(index, "Identity", True, "Version"),
        author=lookup(index, "Identity", True, "Publisher"),
        tags=lookup(index, "Tags", False),
    )


def _read_vs2010(index: ElementIndex) -> RawManifest:
    return RawManifest(
        schema=ManifestSchema.VS2010,
        id=lookup(index, "Identifier", True, "Id"),
        name=lookup(index, "Name", True),
        description=lookup(index, "Description", True),
        version=lookup(index, "Version", True),
        author=lookup(index, "Author", True),
    )


_SCHEMA_READERS: Dict[ManifestSchema, Callable[[ElementIndex], RawManifest]] = {
    ManifestSchema.VS2012: _read_vs2012,
    ManifestSchema.VS2010: _read_vs2010,
}


def _target_elements(index: ElementIndex) -> List[ET.Element]:
    return index.all(_TARGET_ELEMENT) or index.all(_LEGACY_TARGET_ELEMENT)


def read_installation_targets(index: ElementIndex) -> Tuple[InstallationTarget, ...]:
    """Installation targets in document order; entries without Id or Version are dropped."""
    targets: List[InstallationTarget] = []
    for element in _target_elements(index):
        identifier = element.get("Id")
        version_range = element.get("Version")
        if not identifier or not version_range:
            continue
        architecture_element = next(element.iter("ProductArchitecture"), None)
        architecture = None
        if architecture_element is not None:
            architecture = "".join(architecture_element.itertext()) or None
        targets.append(
            InstallationTarget(
                identifier=identifier,
                version_range=version_range,
                product_architecture=architecture,
            )
        )
    return tuple(targets)


def read_supported_versions(index: ElementIndex) -> Tuple[str, ...]:
    """Normalized range endpoints, e.g. "[16.0,17.0)" and "[17.0,18.0)" -> ("16.0", "17.0", "18.0").

    Endpoints need at least major.minor; a bare "17" is not a supported
    version and is dropped, unlike manifest versions which accept it.
    """
    versions: List[str] = []
    for element in _target_elements(index):
        raw = (element.get("Version") or "").strip(_RANGE_BRACKETS)
        for entry in raw.split(","):
            if "." not in entry:
                continue
            parsed = DottedVersion.try_parse(entry)
            if parsed is not None and str(parsed) not in versions:
                versions.append(str(parsed))
    return tuple(versions)


def read_license(index: ElementIndex, license_loader: Optional[LicenseLoader]) -> Optional[str]:
    """Text of the file referenced by <License>, as returned by license_loader."""
    relative = lookup(index, "License", False)
    if not relative or license_loader is None:
        return None
    return license_loader(relative.strip())


def parse_manifest(
    descriptor: Union[str, bytes],
    file_name: str,
    source_location: str,
    *,
    client_version_hint: str = "",
    license_loader: Optional[LicenseLoader] = None,
    bundled_extensions: Optional[ExtensionList] = None,
    clock: Clock = utc_now,
) -> PackageRecord:
    """
    Parse manifest content into a PackageRecord.

    Args:
        descriptor: extension.vsixmanifest content (bytes or text)
        file_name: Archive file name, used as the feed entry link
        source_location: Absolute path or URL used as the download reference
        client_version_hint: Target Visual Studio version, e.g. "17.0"
        license_loader: Maps the <License> value to the license text (None if unreadable)
        bundled_extensions: Extension pack contents shipped alongside the manifest
        clock: Source of the publish timestamp

    Returns:
        PackageRecord

    Raises:
        ManifestError: If the document is not well-formed or a required field is missing
        MalformedVersionError: If the version is not dotted-numeric
    """
    text = strip_namespaces(_decode(descriptor))
    index = ElementIndex(load_tree(text))

    schema = detect_schema(index)
    raw = _SCHEMA_READERS[schema](index)

    record = PackageRecord(
        id=raw.id,
        name=raw.name,
        description=raw.description,
        author=raw.author,
        version=normalize_version(raw.version),
        icon=lookup(index, "Icon", False),
        preview_image=lookup(index, "PreviewImage", False),
        tags=raw.tags,
        date_published=clock(),
        installation_targets=read_installation_targets(index),
        supported_versions=read_supported_versions(index),
        license=read_license(index, license_loader),
        release_notes_url=lookup(index, "ReleaseNotes", False),
        getting_started_url=lookup(index, "GettingStartedGuide", False),
        more_info_url=lookup(index, "MoreInfo", False),
        bundled_extensions=bundled_extensions,
        file_name=file_name,
        source_location=source_location,
        client_version_hint=client_version_hint,
        schema_generation=schema,
    )
    logger.debug("Parsed %s manifest for %s %s", schema.value, record.id, record.version)
    return record
