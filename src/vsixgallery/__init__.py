"""vsixgallery: private Visual Studio extension gallery feed generator."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("vsixgallery")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from vsixgallery.api import GalleryConfig, build_feed, load_packages, parse_vsix, write_feed
from vsixgallery.codes import ClientGeneration, ManifestSchema
from vsixgallery.kernel.errors import (
    DeserializationError,
    GalleryError,
    MalformedVersionError,
    ManifestError,
)
from vsixgallery.kernel.package import ExtensionList, InstallationTarget, PackageRecord

__all__ = [
    "__version__",
    "GalleryConfig",
    "build_feed",
    "load_packages",
    "parse_vsix",
    "write_feed",
    "ClientGeneration",
    "ManifestSchema",
    "GalleryError",
    "ManifestError",
    "MalformedVersionError",
    "DeserializationError",
    "ExtensionList",
    "InstallationTarget",
    "PackageRecord",
]
