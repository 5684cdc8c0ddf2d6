"""
Timestamp helpers shared by the pipeline and the database layer.

The engine compares timezone-aware UTC datetimes; the database stores naive UTC.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Read a datetime as UTC, treating naive values as already UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    """Convert a datetime to the naive UTC form stored in the database."""
    return as_utc(value).replace(tzinfo=None)
