# history_indexer/tasks/cooldown.py

from datetime import datetime, timedelta, timezone


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes, they are stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_within_cooldown(last_error_at: datetime, now: datetime, window_hours: float) -> bool:
    """True while an error recorded at `last_error_at` still blocks a retry"""
    return _as_utc(now) - _as_utc(last_error_at) < timedelta(hours=window_hours)
