"""Datetime helpers shared across the application."""

from __future__ import annotations

from datetime import UTC, datetime

__all__ = [
    "serialize_datetime",
    "parse_datetime",
    "ensure_aware",
    "ensure_utc",
]


def ensure_aware(value: datetime) -> datetime:
    """Attach the local timezone to naive values, leaving aware ones as is."""
    if value.tzinfo is None:
        return value.astimezone()
    return value


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` converted to UTC, treating naive values as local time."""
    return ensure_aware(value).astimezone(UTC)


def serialize_datetime(value: datetime | None) -> str | None:
    """Serialise ``value`` to ISO 8601, normalising timezone-aware values."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.isoformat()
    return value.astimezone().isoformat()


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO 8601 string into a ``datetime`` instance."""
    if value is None:
        return None
    return datetime.fromisoformat(value)
