"""Sync Schedule — verifies due-ness boundaries and interval clamping."""

from datetime import datetime, timedelta, timezone

from docketwatch.core.sync_schedule import clamp_polling_interval, is_sync_due

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def test_never_synced_is_due():
    assert is_sync_due(None, 30, NOW)


def test_due_exactly_at_interval():
    assert is_sync_due(NOW - timedelta(minutes=30), 30, NOW)
    assert not is_sync_due(NOW - timedelta(minutes=29), 30, NOW)


def test_interval_clamped():
    assert clamp_polling_interval(1) == 5
    assert clamp_polling_interval(10_000) == 1440
    assert clamp_polling_interval(None) == 30


def test_naive_last_sync_treated_as_utc():
    assert not is_sync_due((NOW - timedelta(minutes=3)).replace(tzinfo=None), 5, NOW)
