# tests/test_cooldown.py

from datetime import datetime, timedelta, timezone

from history_indexer.tasks import is_within_cooldown

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_recent_error_blocks():
    assert is_within_cooldown(NOW - timedelta(hours=5, minutes=59), NOW, 6)


def test_expired_error_allows_retry():
    assert not is_within_cooldown(NOW - timedelta(hours=6), NOW, 6)
    assert not is_within_cooldown(NOW - timedelta(days=2), NOW, 6)


def test_naive_timestamps_are_utc():
    naive = datetime(2024, 5, 1, 11, 0)
    assert is_within_cooldown(naive, NOW, 6)
    assert not is_within_cooldown(naive, NOW, 0.5)
