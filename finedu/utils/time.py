"""Time utilities (UTC storage)."""

from datetime import date, datetime, timezone, tzinfo


def now_utc_naive() -> datetime:
    """
    Current time in UTC, returned as naive datetime for DB storage.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today_utc() -> date:
    return now_utc_naive().date()


def to_utc(dt: datetime, naive_assumed_tz: tzinfo = timezone.utc) -> datetime:
    """Convert datetime to a UTC timezone-aware value."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=naive_assumed_tz)
    return dt.astimezone(timezone.utc)


def to_iso_db(dt: datetime) -> str:
    """
    Convert a stored (naive UTC) timestamp to an ISO string with offset.
    """
    return to_utc(dt).isoformat()
