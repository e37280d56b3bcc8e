"""Remote price-history fetchers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from datetime import tzinfo

from loguru import logger

from coinseries.core.data.rollup import roll_up
from coinseries.core.data.storage.base import RecordStore
from coinseries.core.models.record import DailyRecord
from coinseries.core.timeutils import DayBucketer

PricePoint = tuple[float, float]


def daily_records_from_points(points: Iterable[PricePoint], tz: tzinfo | None = None) -> list[DailyRecord]:
    """Aggregate ``(epoch_ms, price)`` samples into one record per calendar day.

    Each sample counts as open, high, low and close at its instant. The
    source carries no volume, so every day gets ``volume=0``.
    """
    bucketer = DayBucketer(tz)
    rows = ((bucketer.key_for(ts), price, price, price, price, 0.0) for ts, price in points)
    return list(roll_up(rows))


class PriceHistoryFetcher(ABC):
    """Fetches a closed time range from a remote API and persists it."""

    name: str = "remote"

    def __init__(self, store: RecordStore, *, tz: tzinfo | None = None) -> None:
        self.store = store
        self.tz = tz

    @abstractmethod
    async def fetch_points(self, from_seconds: int, to_seconds: int) -> Sequence[PricePoint]:
        """Return raw ``(epoch_ms, price)`` samples for the range.

        Raises:
            ApiError: the remote call failed or answered with a non-success status.
        """

    async def fetch_range(self, from_timestamp_ms: int, to_timestamp_ms: int) -> list[DailyRecord]:
        """Fetch, aggregate and persist the daily records between both bounds.

        Nothing is written unless the whole batch was fetched successfully.
        An empty answer is not an error.
        """
        log = logger.bind(component="fetcher", provider=self.name)
        if from_timestamp_ms > to_timestamp_ms:
            log.debug("Empty range {} > {}, nothing to fetch", from_timestamp_ms, to_timestamp_ms)
            return []

        points = await self.fetch_points(from_timestamp_ms // 1000, to_timestamp_ms // 1000)
        records = daily_records_from_points(points, self.tz)
        if records:
            await self.store.put_all(records)
        log.info("Fetched {} price points into {} daily records", len(points), len(records))
        return records


__all__ = ["PriceHistoryFetcher", "PricePoint", "daily_records_from_points"]
