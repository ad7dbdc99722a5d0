"""Dotted-numeric version parsing with stable rendering.

Manifest versions are parsed and re-rendered rather than passed through, so
"01.2" and "1.2" compare and print identically.

Rules:
- 1 to 4 components, each a non-negative integer
- Surrounding whitespace is ignored
- Rendering always has at least two components ("2" -> "2.0")
- Comparison treats missing trailing components as 0
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import MalformedVersionError

_VERSION_PATTERN = re.compile(r"^[0-9]+(\.[0-9]+){0,3}$")

MIN_RENDERED_COMPONENTS = 2
MAX_COMPONENTS = 4


@dataclass(frozen=True, eq=False)
class DottedVersion:
    """A parsed major.minor[.build[.revision]] version."""

    components: Tuple[int, ...]

    @classmethod
    def parse(cls, text: str) -> "DottedVersion":
        """
        Parse a dotted-numeric version string.

        Args:
            text: Raw version text, e.g. "2.5.3.0" or "2"

        Returns:
            DottedVersion

        Raises:
            MalformedVersionError: If text is not 1-4 dotted non-negative integers
        """
        raw = (text or "").strip()
        if not _VERSION_PATTERN.match(raw):
            raise MalformedVersionError(
                f"'{text}' is not a valid version; expected 1-{MAX_COMPONENTS} dotted numeric components"
            )
        components = tuple(int(part) for part in raw.split("."))
        if len(components) < MIN_RENDERED_COMPONENTS:
            components = components + (0,) * (MIN_RENDERED_COMPONENTS - len(components))
        return cls(components)

    @classmethod
    def try_parse(cls, text: str) -> Optional["DottedVersion"]:
        try:
            return cls.parse(text)
        except MalformedVersionError:
            return None

    def _key(self) -> Tuple[int, ...]:
        return self.components + (0,) * (MAX_COMPONENTS - len(self.components))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DottedVersion):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __lt__(self, other: "DottedVersion") -> bool:
        if not isinstance(other, DottedVersion):
            return NotImplemented
        return self._key() < other._key()

    def __le__(self, other: "DottedVersion") -> bool:
        if not isinstance(other, DottedVersion):
            return NotImplemented
        return self._key() <= other._key()

    def __gt__(self, other: "DottedVersion") -> bool:
        if not isinstance(other, DottedVersion):
            return NotImplemented
        return self._key() > other._key()

    def __ge__(self, other: "DottedVersion") -> bool:
        if not isinstance(other, DottedVersion):
            return NotImplemented
        return self._key() >= other._key()

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.components)


def normalize_version(text: str) -> str:
    """Parse and re-render a version string."""
    return str(DottedVersion.parse(text))
