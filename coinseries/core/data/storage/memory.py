"""Thread-safe in-memory record store."""

from collections.abc import Iterable
from threading import Lock

from coinseries.core.data.storage.base import RecordStore, dedupe_batch
from coinseries.core.exceptions import StorageError
from coinseries.core.models.record import DailyRecord


class InMemoryRecordStore(RecordStore):
    """Dictionary-backed store, used in tests and when persistence is disabled."""

    def __init__(self, records: Iterable[DailyRecord] = ()) -> None:
        self._records: dict[int, DailyRecord] = {record.timestamp: record for record in records}
        self._lock = Lock()
        self._closed = False
        self.write_count = 0

    def _ensure_open(self, operation: str) -> None:
        if self._closed:
            raise StorageError("Record store is closed", operation)

    async def put(self, record: DailyRecord) -> None:
        with self._lock:
            self._ensure_open("put")
            self._records[record.timestamp] = record
            self.write_count += 1

    async def put_all(self, records: Iterable[DailyRecord]) -> int:
        batch = dedupe_batch(records)
        with self._lock:
            self._ensure_open("put_all")
            # swap in a fully built copy so readers never see half a batch
            updated = dict(self._records)
            updated.update((record.timestamp, record) for record in batch)
            self._records = updated
            self.write_count += 1
        return len(batch)

    async def get_all(self) -> list[DailyRecord]:
        with self._lock:
            self._ensure_open("get_all")
            return list(self._records.values())

    async def clear(self) -> None:
        with self._lock:
            self._ensure_open("clear")
            self._records = {}

    def close(self) -> None:
        self._closed = True

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


__all__ = ["InMemoryRecordStore"]
