"""Administrative inspection of the local record store."""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel

from coinseries.core.data.storage.base import RecordStore


class StoreStats(BaseModel):
    """Summary of the store's contents."""

    count: int
    first_timestamp: int | None = None
    last_timestamp: int | None = None


class StoreDiagnostics:
    """Read-only statistics and a destructive clear over a :class:`RecordStore`.

    Hosts register an instance explicitly (CLI command group, web app state)
    rather than exposing the store globally.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def stats(self) -> StoreStats:
        records = await self._store.get_all()
        if not records:
            return StoreStats(count=0)
        timestamps = [record.timestamp for record in records]
        return StoreStats(
            count=len(records),
            first_timestamp=min(timestamps),
            last_timestamp=max(timestamps),
        )

    async def clear(self) -> StoreStats:
        """Remove every cached record and return what was removed."""
        before = await self.stats()
        await self._store.clear()
        logger.bind(component="diagnostics").warning("Cleared {} cached records", before.count)
        return before


__all__ = ["StoreDiagnostics", "StoreStats"]
