"""
Clock helpers.

Catenary treats every timestamp as a timezone-aware UTC datetime. Components that
age data out (location history, message store) accept a `clock` callable so tests
can drive time explicitly.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def elapsed_whole_seconds(since: datetime, now: datetime) -> int:
    """Whole seconds between two instants, truncated toward zero."""
    return int((now - since).total_seconds())


def elapsed_whole_minutes(since: datetime, now: datetime) -> int:
    """Whole minutes between two instants, truncated toward zero."""
    return int((now - since).total_seconds() / 60)
