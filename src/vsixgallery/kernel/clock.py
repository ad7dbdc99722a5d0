"""Clock used for publish and feed timestamps.

Parsing and rendering accept a ``clock`` callable so tests can pin time.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]

ATOM_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a timestamp the way the feed consumer expects (UTC, second precision)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(ATOM_TIMESTAMP_FORMAT)
