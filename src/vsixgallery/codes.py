"""Enumerated values for manifest schemas and consuming client generations.

These constants keep schema dispatch and feed encoding decisions out of
string comparisons scattered through the parser and serializer.
"""

import re
from enum import Enum

_LEADING_NUMBER = re.compile(r"\s*(\d+)")

# First Visual Studio major version that expects one PackedExtensionIDs element per bundled id
MULTI_ELEMENT_MIN_MAJOR = 17


class ManifestSchema(str, Enum):
    """Generation of the extension.vsixmanifest schema."""

    VS2010 = "VS2010"  # <Vsix><Identifier Id="..."><Name/><Version/><Author/>
    VS2012 = "VS2012"  # <PackageManifest><Metadata><Identity .../><DisplayName/>


class ClientGeneration(str, Enum):
    """Generation of the Visual Studio client consuming the feed."""

    LEGACY = "LEGACY"  # PackedExtensionIDs as one ';'-joined element
    MODERN = "MODERN"  # one PackedExtensionIDs element per bundled extension

    @classmethod
    def from_hint(cls, hint: str) -> "ClientGeneration":
        """Derive the client generation from a version hint such as "17.0".

        Only the leading numeric component is considered: 17 and every later
        major version are MODERN. This intentionally differs from matching the
        literal "17" in the hint, which would treat "18.0" as LEGACY. A hint
        without a leading number falls back to LEGACY.
        """
        match = _LEADING_NUMBER.match(hint or "")
        if match and int(match.group(1)) >= MULTI_ELEMENT_MIN_MAJOR:
            return cls.MODERN
        return cls.LEGACY
