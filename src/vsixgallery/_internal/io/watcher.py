"""File system watching for the gallery input directory.

The watchdog observer thread only flags that a .vsix archive changed. Feed
regeneration runs on the caller's thread, which waits on the flag, so a burst
of events (a large copy raising many modified events) collapses into a single
regeneration.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Optional, Union

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEventHandler,
)

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".vsix"

# Opened/closed events are raised by our own reads during regeneration
ARCHIVE_EVENT_TYPES = frozenset({
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MOVED,
})


class ArchiveChangeHandler(FileSystemEventHandler):
    """Sets `changed` when a .vsix file is created, modified, deleted or renamed."""

    def __init__(self, root: Union[str, Path], exclude: Optional[str] = None):
        """Initialize the handler.

        Args:
            root: Watched directory; exclude is matched against paths relative to it
            exclude: Skip archives whose relative path contains this substring
        """
        self.root = Path(root)
        self.exclude = exclude
        self.changed = threading.Event()

    def _is_archive(self, raw_path) -> bool:
        if not raw_path:
            return False
        path = Path(os.fsdecode(raw_path))
        if path.suffix.lower() != ARCHIVE_SUFFIX:
            return False
        if self.exclude:
            try:
                relative = str(path.relative_to(self.root))
            except ValueError:
                relative = str(path)
            if self.exclude in relative:
                return False
        return True

    def on_any_event(self, event):
        if event.is_directory or event.event_type not in ARCHIVE_EVENT_TYPES:
            return

        paths = (event.src_path, getattr(event, "dest_path", ""))
        if any(self._is_archive(path) for path in paths):
            logger.debug("Archive %s: %s", event.event_type, event.src_path)
            self.changed.set()
