"""View-ready slices of the canonical series."""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import tzinfo

from coinseries.core.models.market import Granularity, LogDuration, TimeRange
from coinseries.core.models.record import CanonicalSeries, DailyRecord
from coinseries.core.services.aggregation import aggregate
from coinseries.core.timeutils import ONE_DAY_MS


def percent_change(current: float, previous: float) -> float:
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


@dataclass(frozen=True)
class SeriesView:
    """A time-range window of the series, bucketed to the window's granularity."""

    time_range: TimeRange
    granularity: Granularity
    records: CanonicalSeries

    @property
    def period_change_pct(self) -> float:
        if not self.records:
            return 0.0
        return percent_change(self.records[-1].close, self.records[0].close)


@dataclass(frozen=True)
class PriceSummary:
    """Latest price against the price one day earlier."""

    timestamp: int
    price: float
    previous_price: float
    change_pct: float
    high: float
    low: float


@dataclass(frozen=True)
class LogEntry:
    record: DailyRecord
    change_pct: float


def window(series: Sequence[DailyRecord], days: int) -> CanonicalSeries:
    """Records no older than ``days`` before the newest record."""
    if not series:
        return ()
    cutoff = series[-1].timestamp - days * ONE_DAY_MS
    start = bisect_left([record.timestamp for record in series], cutoff)
    return tuple(series[start:])


def build_view(series: Sequence[DailyRecord], time_range: TimeRange | str, tz: tzinfo | None = None) -> SeriesView:
    selected = TimeRange(time_range)
    records = aggregate(window(series, selected.days), selected.granularity, tz)
    return SeriesView(time_range=selected, granularity=selected.granularity, records=records)


def summarize(series: Sequence[DailyRecord]) -> PriceSummary | None:
    """Summarize the newest record; ``None`` for an empty series."""
    if not series:
        return None
    current = series[-1]
    one_day_ago = current.timestamp - ONE_DAY_MS
    index = bisect_left([record.timestamp for record in series], one_day_ago)
    previous = series[index] if index < len(series) else series[0]
    return PriceSummary(
        timestamp=current.timestamp,
        price=current.close,
        previous_price=previous.close,
        change_pct=percent_change(current.close, previous.close),
        high=current.high,
        low=current.low,
    )


def data_log(series: Sequence[DailyRecord], duration: LogDuration | str) -> list[LogEntry]:
    """Newest-first records within ``duration``, each compared with the entry before it."""
    entries = list(reversed(window(series, LogDuration(duration).days)))
    log: list[LogEntry] = []
    for index, record in enumerate(entries):
        older = entries[index + 1] if index + 1 < len(entries) else None
        change = percent_change(record.close, older.close) if older else 0.0
        log.append(LogEntry(record=record, change_pct=change))
    return log


__all__ = [
    "LogEntry",
    "PriceSummary",
    "SeriesView",
    "build_view",
    "data_log",
    "percent_change",
    "summarize",
    "window",
]
