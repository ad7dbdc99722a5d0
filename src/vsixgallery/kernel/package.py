"""Normalized package records produced by the manifest parser."""

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from vsixgallery.codes import ClientGeneration, ManifestSchema


class InstallationTarget(BaseModel):
    """One compatibility entry, e.g. VS Community with range "[17.0,18.0)"."""
    identifier: str
    version_range: str  # Raw range expression, not parsed further
    product_architecture: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class Extension(BaseModel):
    """A single extension bundled in an extension pack."""
    vsix_id: str = Field(alias="vsixId")
    name: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    def __str__(self) -> str:
        return self.name or ""


class ExtensionList(BaseModel):
    """Contents of a .vsext extension pack manifest.

    Only the structure is enforced; any member may be missing.
    """
    id: Optional[str] = None
    name: Optional[str] = None
    version: Optional[str] = None
    extensions: Optional[List[Extension]] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    def __str__(self) -> str:
        return self.name or ""

    @property
    def vsix_ids(self) -> List[str]:
        return [ext.vsix_id for ext in self.extensions or []]


class PackageRecord(BaseModel):
    """Normalized metadata for one VSIX archive.

    Built once by the manifest parser and read-only afterwards. file_name is
    the bare archive name used as the entry's navigation link, while
    source_location (absolute path or URL) is the download reference.
    """
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1, description="Normalized dotted-numeric version")
    icon: Optional[str] = None
    preview_image: Optional[str] = None
    tags: Optional[str] = None
    date_published: datetime
    installation_targets: Tuple[InstallationTarget, ...] = Field(default_factory=tuple)
    supported_versions: Tuple[str, ...] = Field(
        default_factory=tuple,
        description="Normalized version endpoints found in installation target ranges"
    )
    license: Optional[str] = None
    getting_started_url: Optional[str] = None
    release_notes_url: Optional[str] = None
    more_info_url: Optional[str] = None
    bundled_extensions: Optional[ExtensionList] = None
    file_name: str
    source_location: str
    client_version_hint: str = ""
    schema_generation: ManifestSchema = ManifestSchema.VS2012

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.name

    @property
    def client_generation(self) -> ClientGeneration:
        return ClientGeneration.from_hint(self.client_version_hint)
