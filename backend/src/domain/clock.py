"""Clock used for every persisted timestamp.

Timestamps are stored as naive UTC so the same values round-trip through
PostgreSQL and SQLite. Services accept a ``Clock`` so tests can freeze time.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
