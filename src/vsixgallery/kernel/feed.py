"""Atom feed serialization for the Visual Studio extension manager.

The document layout and the literal values below (feed id, subtitle, vendor
namespace) are what Visual Studio expects from a private gallery, so they are
fixed across runs.

Namespaces are written as literal xmlns attributes instead of qualified
element names. This keeps Atom as the default namespace on <feed> and the
syndication schema as the default namespace on each <Vsix> block, the shape
Visual Studio clients were built against.
"""

import ntpath
import re
from typing import Iterable, Optional
from xml.etree import ElementTree as ET

from vsixgallery.codes import ClientGeneration
from .clock import Clock, format_timestamp, utc_now
from .package import PackageRecord

ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"
VSIX_NAMESPACE = "http://schemas.microsoft.com/developer/vsx-syndication-schema/2010"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
XSD_NAMESPACE = "http://www.w3.org/2001/XMLSchema"

FEED_ID = "5a7c2525-ddd8-4c44-b2e3-f57ba01a0d81"
FEED_SUBTITLE = (
    "Add this feed to Visual Studio's extension manager from "
    "Tools -> Options -> Environment -> Extensions and Updates"
)
ICON_DIRECTORY = "icons"
PACKED_IDS_SEPARATOR = ";"

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'
_DECLARATION_PATTERN = re.compile(r"^<\?xml[^>]*\?>")


def _text(parent: ET.Element, tag: str, value: str, attrib: Optional[dict] = None) -> ET.Element:
    element = ET.SubElement(parent, tag, attrib or {})
    element.text = value
    return element


def icon_file_name(package: PackageRecord) -> str:
    """<id><extension of the manifest icon>, the name the icon is copied to."""
    extension = ntpath.splitext(ntpath.basename(package.icon or ""))[1]
    return f"{package.id}{extension}"


def icon_href(package: PackageRecord) -> str:
    """Feed-relative icon path, e.g. icons\\MyExtension.1234.png."""
    return f"{ICON_DIRECTORY}\\{icon_file_name(package)}"


def _add_packed_extension_ids(vsix: ET.Element, package: PackageRecord) -> None:
    bundled = package.bundled_extensions
    if bundled is None or bundled.extensions is None:
        return

    if package.client_generation is ClientGeneration.MODERN:
        for vsix_id in bundled.vsix_ids:
            _text(vsix, "PackedExtensionIDs", vsix_id)
    else:
        _text(vsix, "PackedExtensionIDs", PACKED_IDS_SEPARATOR.join(bundled.vsix_ids))


def _add_vsix_block(entry: ET.Element, package: PackageRecord) -> None:
    vsix = ET.SubElement(entry, "Vsix", {
        "xmlns:xsi": XSI_NAMESPACE,
        "xmlns:xsd": XSD_NAMESPACE,
        "xmlns": VSIX_NAMESPACE,
    })
    _text(vsix, "Id", package.id)
    _text(vsix, "Version", package.version)
    ET.SubElement(vsix, "References")

    # Ratings and download counts are not tracked
    for tag in ("Rating", "RatingCount", "DownloadCount"):
        ET.SubElement(vsix, tag, {"xsi:nil": "true"})

    _add_packed_extension_ids(vsix, package)

    for tag, value in (
        ("MoreInfo", package.more_info_url),
        ("ReleaseNotes", package.release_notes_url),
        ("GettingStartedGuide", package.getting_started_url),
    ):
        if value:
            _text(vsix, tag, value)


def _add_entry(feed: ET.Element, package: PackageRecord) -> None:
    entry = ET.SubElement(feed, "entry")
    published = format_timestamp(package.date_published)

    _text(entry, "id", package.id)
    _text(entry, "title", package.name, {"type": "text"})
    # The navigation link stays the bare file name even when source_location is a remote URL
    ET.SubElement(entry, "link", {"rel": "alternate", "href": package.file_name})
    _text(entry, "summary", package.description, {"type": "text"})
    _text(entry, "published", published)
    _text(entry, "updated", published)

    author = ET.SubElement(entry, "author")
    _text(author, "name", package.author)

    ET.SubElement(entry, "content", {
        "type": "application/octet-stream",
        "src": package.source_location,
    })

    if package.icon:
        ET.SubElement(entry, "link", {"rel": "icon", "href": icon_href(package)})

    _add_vsix_block(entry, package)


def declare_utf8(xml: str) -> str:
    """Replace the XML declaration so the document declares utf-8.

    In-memory serialization to str declares the platform's preferred
    encoding; the feed file is always written as UTF-8.
    """
    if _DECLARATION_PATTERN.match(xml):
        return _DECLARATION_PATTERN.sub(XML_DECLARATION, xml, count=1)
    return f"{XML_DECLARATION}\n{xml}"


def render_feed(
    title: str,
    file_name: str,
    packages: Iterable[PackageRecord],
    *,
    clock: Clock = utc_now,
) -> str:
    """
    Render the gallery feed.

    Args:
        title: Gallery title shown by Visual Studio
        file_name: Path or name of the feed file; its base name becomes the self link
        packages: Parsed packages, emitted in the given order
        clock: Source of the feed-level "updated" timestamp

    Returns:
        Feed document text declaring utf-8
    """
    feed = ET.Element("feed", {"xmlns": ATOM_NAMESPACE})
    _text(feed, "title", title)
    _text(feed, "id", FEED_ID)
    _text(feed, "updated", format_timestamp(clock()))
    _text(feed, "subtitle", FEED_SUBTITLE)
    ET.SubElement(feed, "link", {"rel": "alternate", "href": ntpath.basename(file_name)})

    for package in packages:
        _add_entry(feed, package)

    ET.indent(feed, space="  ")
    xml = ET.tostring(feed, encoding="unicode", xml_declaration=True)
    return declare_utf8(xml)
