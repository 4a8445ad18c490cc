from datetime import datetime, timedelta, timezone

from sensor_quality.utils.time import coerce_datetime, ensure_utc, utc_now, whole_minutes_between


def test_coerce_datetime_parses_z_suffix():
    dt = coerce_datetime("2026-01-01T00:00:00Z")
    assert dt is not None
    assert dt.tzinfo is not None
    assert dt.utcoffset() == timedelta(0)
    assert dt.isoformat().endswith("+00:00")


def test_coerce_datetime_parses_offset():
    dt = coerce_datetime("2026-01-01T02:00:00+02:00")
    assert dt is not None
    assert dt.utcoffset() == timedelta(0)
    assert dt.hour == 0


def test_coerce_datetime_parses_naive_as_utc():
    dt = coerce_datetime("2026-01-01T00:00:00")
    assert dt is not None
    assert dt.utcoffset() == timedelta(0)

    time_diff = utc_now() - dt
    assert isinstance(time_diff, timedelta)


def test_coerce_datetime_rejects_garbage():
    assert coerce_datetime("yesterday") is None
    assert coerce_datetime(12345) is None
    assert coerce_datetime(None) is None


def test_ensure_utc_converts_offsets():
    tz = timezone(timedelta(hours=-5))
    dt = ensure_utc(datetime(2026, 1, 1, 7, 0, tzinfo=tz))
    assert dt.hour == 12
    assert dt.utcoffset() == timedelta(0)


def test_whole_minutes_between_truncates():
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert whole_minutes_between(start, start + timedelta(seconds=59)) == 0
    assert whole_minutes_between(start, start + timedelta(seconds=90)) == 1
    assert whole_minutes_between(start, start + timedelta(minutes=3)) == 3
    assert whole_minutes_between(start, start - timedelta(seconds=30)) == 0
    assert whole_minutes_between(start, start - timedelta(minutes=2)) == -2
