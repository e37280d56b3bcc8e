"""DuckDB-backed record store."""

from __future__ import annotations

import contextlib
from collections.abc import Iterable
from pathlib import Path
from threading import Lock
from typing import TYPE_CHECKING

import duckdb
from loguru import logger

from coinseries.core.data.storage.base import RecordStore, dedupe_batch
from coinseries.core.data.storage.duckdb_factory import DuckDBFactory, DuckDBFactoryConfig
from coinseries.core.exceptions import StorageError
from coinseries.core.models.record import DailyRecord

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

_COLUMNS = '"timestamp", open, high, low, close, volume'


class DuckDBRecordStore(RecordStore):
    """Persists daily records in a DuckDB table keyed by timestamp."""

    def __init__(
        self,
        database: str | Path = ":memory:",
        *,
        factory: DuckDBFactory | None = None,
        table: str = RecordStore.name,
    ) -> None:
        self.name = table
        self._factory = factory or DuckDBFactory(DuckDBFactoryConfig(database=database))
        self._lock = Lock()
        self._conn: DuckDBPyConnection | None = None
        self._log = logger.bind(component="store", store=table)
        self._init_database()

    @property
    def database(self) -> str:
        return self._factory.database

    def _init_database(self) -> None:
        try:
            self._conn = self._factory.create_connection()
            self._conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.name} (
                    "timestamp" BIGINT PRIMARY KEY,
                    open DOUBLE NOT NULL,
                    high DOUBLE NOT NULL,
                    low DOUBLE NOT NULL,
                    close DOUBLE NOT NULL,
                    volume DOUBLE NOT NULL DEFAULT 0
                )
                """
            )
        except (duckdb.Error, OSError) as exc:
            raise StorageError(f"Unable to open record store '{self.database}': {exc}", "open") from exc

    def _connection(self, operation: str) -> DuckDBPyConnection:
        if self._conn is None:
            raise StorageError("Record store is closed", operation)
        return self._conn

    @staticmethod
    def _row(record: DailyRecord) -> list[object]:
        return [record.timestamp, record.open, record.high, record.low, record.close, record.volume]

    async def put(self, record: DailyRecord) -> None:
        with self._lock:
            conn = self._connection("put")
            try:
                conn.execute(
                    f"INSERT OR REPLACE INTO {self.name} ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                    self._row(record),
                )
            except duckdb.Error as exc:
                raise StorageError(f"Write rejected: {exc}", "put") from exc

    async def put_all(self, records: Iterable[DailyRecord]) -> int:
        batch = dedupe_batch(records)
        if not batch:
            return 0
        with self._lock:
            conn = self._connection("put_all")
            try:
                conn.execute("BEGIN TRANSACTION")
                conn.executemany(
                    f"INSERT OR REPLACE INTO {self.name} ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                    [self._row(record) for record in batch],
                )
                conn.execute("COMMIT")
            except duckdb.Error as exc:
                with contextlib.suppress(duckdb.Error):
                    conn.execute("ROLLBACK")
                raise StorageError(f"Batch write rejected: {exc}", "put_all", {"batch_size": len(batch)}) from exc
        self._log.debug("Stored {} records", len(batch))
        return len(batch)

    async def get_all(self) -> list[DailyRecord]:
        with self._lock:
            conn = self._connection("get_all")
            try:
                rows = conn.execute(f"SELECT {_COLUMNS} FROM {self.name}").fetchall()
            except duckdb.Error as exc:
                raise StorageError(f"Read failed: {exc}", "get_all") from exc
        return [
            DailyRecord(timestamp=ts, open=open_, high=high, low=low, close=close, volume=volume)
            for ts, open_, high, low, close, volume in rows
        ]

    async def clear(self) -> None:
        with self._lock:
            conn = self._connection("clear")
            try:
                conn.execute(f"DELETE FROM {self.name}")
            except duckdb.Error as exc:
                raise StorageError(f"Clear failed: {exc}", "clear") from exc
        self._log.info("Cleared record store")

    def is_connected(self) -> bool:
        return self._conn is not None

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


__all__ = ["DuckDBRecordStore"]
