"""Retention date arithmetic"""

from datetime import datetime, timedelta
from typing import Optional


def compute_expiration(start: datetime, retention_days: int) -> Optional[datetime]:
    """Expiration of a retention clock started at ``start``.

    A retention period of 0 days means permanent retention (no expiration).

    Example:
        >>> compute_expiration(datetime(2024, 1, 1), 30)
        datetime.datetime(2024, 1, 31, 0, 0)
    """
    if not retention_days:
        return None
    return start + timedelta(days=retention_days)


def elapsed_whole_days(since: datetime, now: datetime) -> int:
    """Whole days between two instants, never negative."""
    return max((now - since).days, 0)


def append_note(existing: Optional[str], line: str) -> str:
    return f"{existing}\n{line}" if existing else line
