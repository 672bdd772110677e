from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_to_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def local_day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Return the naive UTC ``[start, end)`` range of a server-local day."""
    start = datetime.combine(day, time.min)
    return local_to_utc(start), local_to_utc(start + timedelta(days=1))
