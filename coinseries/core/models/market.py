"""Market-related enums and types."""

from dataclasses import dataclass
from enum import Enum


class Granularity(str, Enum):
    """Bucket width used when re-aggregating a series."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class DataSource(str, Enum):
    """Where the data behind a reconciled series came from."""

    CSV_ONLY = "CSV_ONLY"
    CSV_AND_CACHE = "CSV_AND_CACHE"
    LIVE_API = "LIVE_API"
    FETCHING = "FETCHING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class WindowSpec:
    """Viewing window: how far back to look and how coarse to bucket."""

    label: str
    days: int
    granularity: Granularity


class TimeRange(str, Enum):
    """Viewing windows offered to the end user."""

    ONE_DAY = "1D"
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    SIX_MONTHS = "6M"
    ONE_YEAR = "1Y"
    FIVE_YEARS = "5Y"
    ALL = "ALL"

    @property
    def spec(self) -> WindowSpec:
        return _TIME_RANGE_SPECS[self]

    @property
    def days(self) -> int:
        return self.spec.days

    @property
    def granularity(self) -> Granularity:
        return self.spec.granularity


_TIME_RANGE_SPECS: dict[TimeRange, WindowSpec] = {
    TimeRange.ONE_DAY: WindowSpec("1D", 1, Granularity.HOUR),
    TimeRange.ONE_WEEK: WindowSpec("1W", 7, Granularity.DAY),
    TimeRange.ONE_MONTH: WindowSpec("1M", 30, Granularity.DAY),
    TimeRange.SIX_MONTHS: WindowSpec("6M", 180, Granularity.DAY),
    TimeRange.ONE_YEAR: WindowSpec("1Y", 365, Granularity.WEEK),
    TimeRange.FIVE_YEARS: WindowSpec("5Y", 1825, Granularity.MONTH),
    TimeRange.ALL: WindowSpec("ALL", 5000, Granularity.MONTH),
}


class LogDuration(str, Enum):
    """Look-back durations for the data log."""

    ONE_DAY = "1D"
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"

    @property
    def days(self) -> int:
        return {"1D": 1, "1W": 7, "1M": 30}[self.value]

    @property
    def label(self) -> str:
        return {
            "1D": "Last 24 Hours",
            "1W": "Last 7 Days",
            "1M": "Last 30 Days",
        }[self.value]


__all__ = ["DataSource", "Granularity", "LogDuration", "TimeRange", "WindowSpec"]
