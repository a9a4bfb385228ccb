"""Sync Schedule — pure due-ness decision for per-tenant polling.

Invariants:
    - A tenant that never synced is always due
    - Due exactly when elapsed >= interval (boundary inclusive)
    - Interval bounded to [MIN_POLLING_MINUTES, MAX_POLLING_MINUTES]
"""

from datetime import datetime, timedelta

from docketwatch.core.timestamps import as_utc

MIN_POLLING_MINUTES = 5
MAX_POLLING_MINUTES = 1440
DEFAULT_POLLING_MINUTES = 30


def clamp_polling_interval(minutes: int | None) -> int:
    if minutes is None:
        return DEFAULT_POLLING_MINUTES
    return max(MIN_POLLING_MINUTES, min(MAX_POLLING_MINUTES, minutes))


def is_sync_due(
    last_sync_at: datetime | None, polling_interval_minutes: int | None, now: datetime,
) -> bool:
    if last_sync_at is None:
        return True
    interval = timedelta(minutes=clamp_polling_interval(polling_interval_minutes))
    return as_utc(now) - as_utc(last_sync_at) >= interval
