"""Portable Column Types — timezone-aware UTC timestamps on every engine.

Invariants:
    - Values written are converted to UTC; values read are always tz-aware UTC
    - Naive datetimes are rejected on write (no silent local-time assumption)

Design Decisions:
    - TypeDecorator over DateTime(timezone=True): SQLite drops tzinfo on
      round-trip, which breaks comparisons against aware datetimes
    - Stored naive-UTC on SQLite keeps the fixed-width string form, so
      ORDER BY created_on sorts chronologically
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("UTCDateTime requires a timezone-aware datetime")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
