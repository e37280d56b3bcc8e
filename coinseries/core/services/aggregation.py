"""Re-bucketing of canonical series into coarser OHLC intervals."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import tzinfo

from coinseries.core.data.rollup import roll_up
from coinseries.core.models.market import Granularity
from coinseries.core.models.record import CanonicalSeries, DailyRecord
from coinseries.core.timeutils import (
    start_of_day_ms,
    start_of_hour_ms,
    start_of_month_ms,
    start_of_week_ms,
)

BucketFn = Callable[[int, "tzinfo | None"], int]

_BUCKETERS: dict[Granularity, BucketFn] = {
    Granularity.HOUR: start_of_hour_ms,
    Granularity.DAY: start_of_day_ms,
    Granularity.WEEK: start_of_week_ms,
    Granularity.MONTH: start_of_month_ms,
}


def bucket_start(timestamp_ms: int, granularity: Granularity | str, tz: tzinfo | None = None) -> int:
    """Start of the ``granularity`` bucket containing ``timestamp_ms``."""
    return _BUCKETERS[Granularity(granularity)](timestamp_ms, tz)


def aggregate(
    series: Iterable[DailyRecord],
    granularity: Granularity | str,
    tz: tzinfo | None = None,
) -> CanonicalSeries:
    """Roll ``series`` up into one record per non-empty bucket.

    Records are visited in timestamp order so the earliest record of a
    bucket supplies its open and the latest its close; highs and lows are
    extremes and volumes are summed. Each output record is stamped with its
    bucket start. The input is never modified.
    """
    bucketer = _BUCKETERS[Granularity(granularity)]
    ordered = sorted(series, key=lambda record: record.timestamp)
    return roll_up(
        (
            bucketer(record.timestamp, tz),
            record.open,
            record.high,
            record.low,
            record.close,
            record.volume,
        )
        for record in ordered
    )


__all__ = ["aggregate", "bucket_start"]
