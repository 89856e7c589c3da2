"""UTC time helpers.

SQLite hands back naive datetimes even for ``DateTime(timezone=True)``
columns; everything stored by this service is UTC, so naive values are
re-tagged before they are compared against aware ones.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
