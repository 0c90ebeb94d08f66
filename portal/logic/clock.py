"""UTC timestamp helpers shared by repositories."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_rfc3339(value: datetime) -> str:
    """Render as RFC3339 UTC with seconds precision and a trailing 'Z'."""
    return as_utc(value).replace(microsecond=0).isoformat().replace("+00:00", "Z")


__all__ = ["utc_now", "as_utc", "to_rfc3339"]
