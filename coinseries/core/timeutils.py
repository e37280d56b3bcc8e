"""Calendar helpers working on epoch-millisecond timestamps.

Every helper takes an optional ``tz``. ``None`` means the system's local time
zone, which is what naive :class:`datetime` objects resolve to.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from coinseries.core.exceptions import ConfigurationError

ONE_HOUR_MS = 60 * 60 * 1000
ONE_DAY_MS = 24 * ONE_HOUR_MS


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Turn an IANA zone name into a tzinfo, ``None`` keeps system local time."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown time zone '{name}'", {"timezone": name}) from exc


def local_datetime(timestamp_ms: int | float, tz: tzinfo | None = None) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz)


def to_epoch_ms(value: datetime) -> int:
    return int(round(value.timestamp() * 1000))


def midnight_ms(day: date, tz: tzinfo | None = None) -> int:
    """Epoch milliseconds of 00:00 on ``day`` in ``tz``."""
    return to_epoch_ms(datetime(day.year, day.month, day.day, tzinfo=tz))


def start_of_hour_ms(timestamp_ms: int | float, tz: tzinfo | None = None) -> int:
    moment = local_datetime(timestamp_ms, tz)
    return to_epoch_ms(moment.replace(minute=0, second=0, microsecond=0))


def start_of_day_ms(timestamp_ms: int | float, tz: tzinfo | None = None) -> int:
    return midnight_ms(local_datetime(timestamp_ms, tz).date(), tz)


def start_of_week_ms(timestamp_ms: int | float, tz: tzinfo | None = None) -> int:
    """Midnight of the most recent Monday (ISO week start)."""
    day = local_datetime(timestamp_ms, tz).date()
    return midnight_ms(day - timedelta(days=day.weekday()), tz)


def start_of_month_ms(timestamp_ms: int | float, tz: tzinfo | None = None) -> int:
    day = local_datetime(timestamp_ms, tz).date()
    return midnight_ms(day.replace(day=1), tz)


class DayBucketer:
    """Maps timestamps to their calendar-day start.

    Remembers the last computed day so chronologically ordered input only
    pays for a calendar conversion once per day.
    """

    __slots__ = ("_tz", "_start", "_end")

    def __init__(self, tz: tzinfo | None = None) -> None:
        self._tz = tz
        self._start = 0
        self._end = 0

    def key_for(self, timestamp_ms: int | float) -> int:
        if self._start <= timestamp_ms < self._end:
            return self._start
        day = local_datetime(timestamp_ms, self._tz).date()
        self._start = midnight_ms(day, self._tz)
        self._end = midnight_ms(day + timedelta(days=1), self._tz)
        return self._start


__all__ = [
    "DayBucketer",
    "ONE_DAY_MS",
    "ONE_HOUR_MS",
    "local_datetime",
    "midnight_ms",
    "resolve_timezone",
    "start_of_day_ms",
    "start_of_hour_ms",
    "start_of_month_ms",
    "start_of_week_ms",
    "to_epoch_ms",
]
