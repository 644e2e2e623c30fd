from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds between two instants, floored; clock skew never goes negative."""
    delta = ensure_aware_utc(end) - ensure_aware_utc(start)
    return max(delta // timedelta(seconds=1), 0)


def local_date(moment: datetime, utc_offset_minutes: int):
    return (ensure_aware_utc(moment) + timedelta(minutes=utc_offset_minutes or 0)).date()
