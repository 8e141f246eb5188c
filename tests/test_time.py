from datetime import datetime, timedelta, timezone

from catenary.core.time import elapsed_whole_minutes, elapsed_whole_seconds, utcnow

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_utcnow_is_aware_utc():
    now = utcnow()
    assert now.tzinfo is not None
    assert now.utcoffset() == timedelta(0)


def test_elapsed_seconds_truncates():
    assert elapsed_whole_seconds(T0, T0 + timedelta(seconds=59.9)) == 59
    assert elapsed_whole_seconds(T0, T0) == 0


def test_elapsed_minutes_truncates():
    assert elapsed_whole_minutes(T0, T0 + timedelta(seconds=599)) == 9
    assert elapsed_whole_minutes(T0, T0 + timedelta(minutes=10)) == 10
