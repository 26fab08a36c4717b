# src/fedwork/db/time.py
"""Time utilities for database models."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def isoformat_utc(value: datetime) -> str:
    """Render ``value`` as ISO-8601 in UTC.

    SQLite hands back naive datetimes; those are treated as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")
