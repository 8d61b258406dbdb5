"""Duplicate detection shared by the import and export passes."""

from datetime import datetime, timedelta
from typing import Optional


def is_same_event(
    title: str,
    start: Optional[datetime],
    other_title: str,
    other_start: Optional[datetime],
    tolerance: timedelta,
) -> bool:
    """
    True when two unlinked records describe the same event.

    Titles must match exactly and the naive local start times may differ by
    at most ``tolerance``.
    """
    if start is None or other_start is None:
        return False
    if title != other_title:
        return False
    return abs(start - other_start) <= tolerance
