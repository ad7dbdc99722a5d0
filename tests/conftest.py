"""Pytest configuration and shared builders for manifests and .vsix archives.

No sys.path hacks - tests import from the installed vsixgallery package.
"""

import json
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def vs2012_manifest(
    id: str = "Test.Extension",
    version: str = "1.0.0",
    publisher: str = "Test Publisher",
    display_name: str = "Test Extension",
    description: str = "Test Description",
    icon: Optional[str] = None,
    preview_image: Optional[str] = None,
    tags: Optional[str] = None,
    license: Optional[str] = None,
    more_info_url: Optional[str] = None,
    release_notes_url: Optional[str] = None,
    getting_started_url: Optional[str] = None,
    installation_target: str = "[17.0,18.0)",
    root_attributes: str = "",
) -> str:
    optional = {
        "Icon": icon,
        "PreviewImage": preview_image,
        "Tags": tags,
        "License": license,
        "MoreInfo": more_info_url,
        "ReleaseNotes": release_notes_url,
        "GettingStartedGuide": getting_started_url,
    }
    optional_elements = "\n".join(
        f"        <{tag}>{value}</{tag}>" for tag, value in optional.items() if value is not None
    )
    return f"""<?xml version="1.0" encoding="utf-8"?>
<PackageManifest Version="2.0.0"{root_attributes}>
    <Metadata>
        <Identity Id="{id}" Version="{version}" Language="en-US" Publisher="{publisher}" />
        <DisplayName>{display_name}</DisplayName>
        <Description xml:space="preserve">{description}</Description>
{optional_elements}
    </Metadata>
    <Installation>
        <InstallationTarget Id="Microsoft.VisualStudio.Community" Version="{installation_target}">
            <ProductArchitecture>amd64</ProductArchitecture>
        </InstallationTarget>
    </Installation>
</PackageManifest>
"""


def vs2010_manifest(
    id: str = "Legacy.Extension",
    version: str = "1.0.0.0",
    author: str = "Legacy Author",
    name: str = "Legacy Extension",
    description: str = "Legacy Description",
) -> str:
    return f"""<?xml version="1.0" encoding="utf-8"?>
<Vsix Version="1.0.0" xmlns="http://schemas.microsoft.com/developer/vsx-schema/2010">
    <Identifier Id="{id}">
        <Name>{name}</Name>
        <Author>{author}</Author>
        <Version>{version}</Version>
        <Description>{description}</Description>
        <SupportedProducts>
            <VisualStudio Version="10.0">
                <Edition>Pro</Edition>
            </VisualStudio>
        </SupportedProducts>
        <SupportedFrameworkRuntimeEdition MinVersion="4.0" MaxVersion="4.5" />
    </Identifier>
    <References />
    <Content>
        <VsPackage>MyPackage.pkgdef</VsPackage>
    </Content>
</Vsix>
"""


def extension_pack(ids: List[str], pack_id: str = "ext-pack-id") -> str:
    return json.dumps({
        "id": pack_id,
        "name": "Extension Pack",
        "version": "1.0.0",
        "extensions": [{"vsixId": vsix_id, "name": f"Extension {vsix_id}"} for vsix_id in ids],
    }, indent=2)


def write_vsix(path: Path, manifest: Optional[str], extra_files: Optional[Dict[str, bytes]] = None) -> Path:
    """Write a .vsix (zip) archive with the given manifest and extra members."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        if manifest is not None:
            zf.writestr("extension.vsixmanifest", manifest)
        for name, data in (extra_files or {}).items():
            zf.writestr(name, data)
    return path


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def manifests():
    """Manifest builders: manifests.vs2012(...), manifests.vs2010(...), manifests.pack([...])."""
    class _Builders:
        vs2012 = staticmethod(vs2012_manifest)
        vs2010 = staticmethod(vs2010_manifest)
        pack = staticmethod(extension_pack)
    return _Builders


@pytest.fixture
def make_vsix(tmp_path):
    """Factory writing .vsix archives under tmp_path/gallery (or a given directory)."""
    gallery = tmp_path / "gallery"
    gallery.mkdir()

    def _make(
        name: str,
        manifest: Optional[str] = None,
        extra_files=None,
        directory: Optional[Path] = None,
        with_manifest: bool = True,
    ) -> Path:
        if with_manifest and manifest is None:
            manifest = vs2012_manifest()
        return write_vsix((directory or gallery) / name, manifest if with_manifest else None, extra_files)

    _make.gallery = gallery
    return _make
