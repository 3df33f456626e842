"""Clock helpers: aware UTC timestamps and local calendar-day boundaries."""

from collections.abc import Callable
from datetime import datetime, time, timezone, tzinfo

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def start_of_local_day(moment: datetime, tz: tzinfo | None = None) -> datetime:
    """
    Midnight of the calendar day containing `moment`, in `tz`
    (the system local zone when omitted).
    """
    local = moment.astimezone(tz)
    return datetime.combine(local.date(), time.min, tzinfo=local.tzinfo)


def local_day(moment: datetime, tz: tzinfo | None = None):
    return moment.astimezone(tz).date()


def is_same_local_day(a: datetime, b: datetime, tz: tzinfo | None = None) -> bool:
    return local_day(a, tz) == local_day(b, tz)
