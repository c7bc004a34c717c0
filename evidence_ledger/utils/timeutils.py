"""UTC time helpers shared by the scorers and stores."""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def hours_between(start: datetime, end: Optional[datetime] = None) -> float:
    """Signed hours from ``start`` to ``end`` (defaults to now)."""
    end = end or utc_now()
    return (as_utc(end) - as_utc(start)).total_seconds() / 3600.0


def days_between(start: datetime, end: Optional[datetime] = None) -> float:
    return hours_between(start, end) / 24.0
