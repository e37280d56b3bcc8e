"""Record store interface."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from coinseries.core.models.record import DailyRecord


class RecordStore(ABC):
    """Durable key-value store of daily records keyed by ``timestamp``."""

    name: str = "daily_prices"

    @abstractmethod
    async def put(self, record: DailyRecord) -> None:
        """Insert or replace a single record."""
        pass

    @abstractmethod
    async def put_all(self, records: Iterable[DailyRecord]) -> int:
        """Insert or replace a batch atomically, returning the number of keys written."""
        pass

    @abstractmethod
    async def get_all(self) -> list[DailyRecord]:
        """Return every stored record, in no particular order."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every record."""
        pass

    def close(self) -> None:
        """Release underlying resources."""


def dedupe_batch(records: Iterable[DailyRecord]) -> list[DailyRecord]:
    """Collapse a batch to one record per timestamp, the last one winning."""
    latest: dict[int, DailyRecord] = {}
    for record in records:
        latest[record.timestamp] = record
    return list(latest.values())


__all__ = ["RecordStore", "dedupe_batch"]
