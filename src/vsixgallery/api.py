"""Public API for building a private gallery feed from a folder of .vsix files.

One archive is extracted, parsed and cleaned up before the next one starts.
The result is a pure function of the archives on disk: nothing is cached
between runs.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict
from watchdog.observers import Observer

from vsixgallery.kernel.clock import Clock, utc_now
from vsixgallery.kernel.errors import GalleryError
from vsixgallery.kernel.feed import ICON_DIRECTORY, icon_file_name, render_feed
from vsixgallery.kernel.package import PackageRecord
from vsixgallery.kernel.version import DottedVersion
from vsixgallery._internal.io.archive import copy_icon, discover_archives, extracted
from vsixgallery._internal.io.manifest_files import create_from_manifest
from vsixgallery._internal.io.watcher import ArchiveChangeHandler

logger = logging.getLogger(__name__)

FEED_FILE_NAME = "feed.xml"
DEFAULT_TITLE = "VSIX Gallery"
DEFAULT_CLIENT_VERSION = "17.0"


class GalleryConfig(BaseModel):
    """Settings for one feed generation run."""
    input_dir: Path
    output_path: Optional[Path] = None  # Defaults to <input_dir>/feed.xml
    title: str = DEFAULT_TITLE
    exclude: Optional[str] = None  # Substring; matching archive paths are skipped
    recursive: bool = False
    source: Optional[str] = None  # Directory or base URL that replaces the local archive location
    latest_only: bool = False
    client_version: str = DEFAULT_CLIENT_VERSION
    skip_invalid: bool = False
    copy_icons: bool = True

    model_config = ConfigDict(extra="forbid")

    @property
    def feed_path(self) -> Path:
        return self.output_path if self.output_path is not None else self.input_dir / FEED_FILE_NAME

    @property
    def icons_dir(self) -> Path:
        return self.feed_path.parent / ICON_DIRECTORY


def resolve_source_location(archive: Path, source: Optional[str] = None) -> str:
    """Download reference for an archive.

    Without a source override this is the absolute local path. A URL source
    gets the quoted file name appended; a directory source is joined with it.
    """
    if not source:
        return str(archive.resolve())
    if "://" in source:
        return f"{source.rstrip('/')}/{quote(archive.name)}"
    return str(Path(source) / archive.name)


def parse_vsix(
    archive: Union[str, Path],
    *,
    source: Optional[str] = None,
    client_version_hint: str = DEFAULT_CLIENT_VERSION,
    icons_dir: Optional[Path] = None,
    clock: Clock = utc_now,
) -> PackageRecord:
    """
    Parse a single .vsix archive.

    Args:
        archive: Path to the .vsix file
        source: Optional download location override (directory or base URL)
        client_version_hint: Target Visual Studio version, e.g. "17.0"
        icons_dir: If set, the package icon is copied here as <id><ext>
        clock: Source of the publish timestamp

    Returns:
        PackageRecord

    Raises:
        FileNotFoundError: If the archive has no extension.vsixmanifest
        GalleryError: If the archive or its manifest cannot be read
    """
    archive_path = Path(archive)
    with extracted(archive_path) as scratch:
        record = create_from_manifest(
            scratch,
            archive_path.name,
            resolve_source_location(archive_path, source),
            client_version_hint=client_version_hint,
            clock=clock,
        )
        if icons_dir is not None and record.icon:
            copy_icon(scratch, record.icon, icons_dir / icon_file_name(record))

    logger.info("Parsed %s", archive_path.name)
    return record


def select_latest(records: Iterable[PackageRecord]) -> List[PackageRecord]:
    """Keep the highest version per package id; on equal versions the first one seen wins."""
    best: Dict[str, Tuple[DottedVersion, PackageRecord]] = {}
    for record in records:
        version = DottedVersion.parse(record.version)
        current = best.get(record.id)
        if current is None or version > current[0]:
            best[record.id] = (version, record)
    return [record for _, record in best.values()]


def load_packages(config: GalleryConfig, *, clock: Clock = utc_now) -> List[PackageRecord]:
    """
    Discover and parse every archive selected by the config.

    Raises:
        FileNotFoundError, GalleryError: For the first unreadable archive,
            unless config.skip_invalid is set
    """
    archives = discover_archives(config.input_dir, recursive=config.recursive, exclude=config.exclude)
    icons_dir = config.icons_dir if config.copy_icons else None

    records: List[PackageRecord] = []
    for archive in archives:
        try:
            records.append(
                parse_vsix(
                    archive,
                    source=config.source,
                    client_version_hint=config.client_version,
                    icons_dir=icons_dir,
                    clock=clock,
                )
            )
        except (GalleryError, FileNotFoundError) as exc:
            if not config.skip_invalid:
                raise
            logger.warning("Skipping %s: %s", archive.name, exc)

    if config.latest_only:
        records = select_latest(records)
    return records


def build_feed(config: GalleryConfig, *, clock: Clock = utc_now) -> str:
    """Parse the configured archives and render the feed document."""
    packages = load_packages(config, clock=clock)
    return render_feed(config.title, config.feed_path.name, packages, clock=clock)


def write_feed(config: GalleryConfig, *, clock: Clock = utc_now) -> Path:
    """Render the feed and write it as UTF-8 to config.feed_path."""
    xml = build_feed(config, clock=clock)
    feed_path = config.feed_path
    feed_path.parent.mkdir(parents=True, exist_ok=True)
    feed_path.write_text(xml, encoding="utf-8")
    logger.info("%s generated successfully", feed_path.name)
    return feed_path


def watch(
    config: GalleryConfig,
    *,
    interval: float = 1.0,
    max_cycles: Optional[int] = None,
    clock: Clock = utc_now,
    observer_factory: Callable[[], Observer] = Observer,
) -> int:
    """
    Watch the input directory and regenerate the feed whenever .vsix archives change.

    A watchdog observer reports created, changed, deleted and renamed
    archives. Regeneration failures are logged and watching continues; a
    later change (e.g. a copy finishing) triggers another attempt.

    Args:
        config: Gallery settings
        interval: Seconds to wait for a change before checking max_cycles again
        max_cycles: Stop after this many waits (None watches until interrupted)
        clock: Passed through to write_feed
        observer_factory: Creates the watchdog observer

    Returns:
        Number of successful regenerations
    """
    handler = ArchiveChangeHandler(config.input_dir, exclude=config.exclude)
    observer = observer_factory()
    observer.schedule(handler, str(config.input_dir), recursive=config.recursive)
    observer.start()

    regenerations = 0
    cycles = 0
    try:
        while max_cycles is None or cycles < max_cycles:
            cycles += 1
            if not handler.changed.wait(interval):
                continue
            handler.changed.clear()
            try:
                write_feed(config, clock=clock)
                regenerations += 1
            except (GalleryError, OSError) as exc:
                logger.error("Feed regeneration failed: %s", exc)
    finally:
        observer.stop()
        observer.join()
    return regenerations
