"""Timestamp helpers — UTC normalization and whole-day arithmetic (pure, no IO).

Invariants:
    - Every datetime leaving as_utc() is timezone-aware UTC
    - whole_days_between() floors toward negative infinity (deadline passed → negative)

Design Decisions:
    - Naive datetimes are assumed UTC: SQLite drops tzinfo on round-trip,
      PostgreSQL timestamptz never does
"""

import math
from datetime import datetime, timedelta, timezone

ONE_DAY = timedelta(days=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Return value as aware UTC (naive treated as UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def whole_days_between(start: datetime, end: datetime) -> int:
    """floor((end - start) / 1 day)."""
    return math.floor((as_utc(end) - as_utc(start)) / ONE_DAY)


def latest(*values: datetime | None) -> datetime | None:
    """Most recent non-null timestamp, or None."""
    present = [as_utc(v) for v in values if v is not None]
    return max(present) if present else None
