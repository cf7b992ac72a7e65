"""Time utilities (UTC calendar days)."""

from datetime import date, datetime, timedelta, timezone
from typing import List


def now_utc_naive() -> datetime:
    """
    Current time in UTC, returned as naive datetime for DB storage.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today_utc() -> date:
    """
    Current calendar day in UTC.

    Exchange candles are keyed by UTC open time, so every daily series in
    the app uses UTC days.
    """
    return datetime.now(timezone.utc).date()


def utc_date_from_millis(ms: int) -> date:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).date()


def trailing_days(days: int, end: date) -> List[date]:
    """``days`` consecutive calendar days ending at ``end``, ascending."""
    return [end - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def to_utc_iso(dt: datetime) -> str:
    """Naive DB timestamps are stored as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()
