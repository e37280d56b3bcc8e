"""OHLC roll-up shared by the archive loader, the fetcher and the aggregator."""

from __future__ import annotations

from collections.abc import Iterable

from coinseries.core.models.record import CanonicalSeries, DailyRecord

# (bucket, open, high, low, close, volume)
OHLCRow = tuple[int, float, float, float, float, float]


class OHLCAccumulator:
    """Running OHLC state for one bucket."""

    __slots__ = ("timestamp", "open", "high", "low", "close", "volume")

    def __init__(
        self,
        timestamp: int,
        open: float,
        high: float,
        low: float,
        close: float,
        volume: float = 0.0,
    ) -> None:
        self.timestamp = timestamp
        self.open = open
        self.high = high
        self.low = low
        self.close = close
        self.volume = volume

    def add(self, high: float, low: float, close: float, volume: float = 0.0) -> None:
        if high > self.high:
            self.high = high
        if low < self.low:
            self.low = low
        self.close = close
        self.volume += volume

    def to_record(self) -> DailyRecord:
        return DailyRecord(
            timestamp=self.timestamp,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            volume=self.volume,
        )


def roll_up(rows: Iterable[OHLCRow]) -> CanonicalSeries:
    """Fold rows into one record per bucket.

    The first row seen for a bucket supplies its open, later rows extend
    high/low, replace close and add volume. Output is ordered by bucket.
    """
    buckets: dict[int, OHLCAccumulator] = {}
    for bucket, open_, high, low, close, volume in rows:
        current = buckets.get(bucket)
        if current is None:
            buckets[bucket] = OHLCAccumulator(bucket, open_, high, low, close, volume)
        else:
            current.add(high, low, close, volume)
    return tuple(buckets[key].to_record() for key in sorted(buckets))


__all__ = ["OHLCAccumulator", "OHLCRow", "roll_up"]
