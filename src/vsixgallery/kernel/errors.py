"""Error taxonomy for manifest parsing.

Every error aborts processing of the archive it was raised for. Whether the
batch continues is decided by the caller (see GalleryConfig.skip_invalid).
"""

from typing import Optional


class GalleryError(ValueError):
    """Base class for deterministic failures while reading an archive."""


class ManifestError(GalleryError):
    """Raised when the manifest is not well-formed or lacks a required field."""

    def __init__(self, message: str, element: Optional[str] = None, attribute: Optional[str] = None):
        super().__init__(message)
        self.element = element
        self.attribute = attribute


class MalformedVersionError(GalleryError):
    """Raised when a version string is not 1-4 dotted non-negative integers."""


class DeserializationError(GalleryError):
    """Raised when a bundled extension list (.vsext) is not valid JSON of the expected shape."""
