from __future__ import annotations

import duckdb
import pytest
from factories import DAY_D, make_record

from coinseries.core.data.storage import (
    DuckDBFactory,
    DuckDBFactoryConfig,
    DuckDBRecordStore,
    InMemoryRecordStore,
    dedupe_batch,
)
from coinseries.core.exceptions import StorageError
from coinseries.core.timeutils import ONE_DAY_MS


@pytest.fixture(params=["memory", "duckdb"])
def store(request, tmp_path):
    if request.param == "memory":
        instance = InMemoryRecordStore()
    else:
        instance = DuckDBRecordStore(tmp_path / "prices.duckdb")
    yield instance
    instance.close()


@pytest.mark.asyncio
async def test_put_all_then_get_all_returns_records(store) -> None:
    records = [make_record(DAY_D, 100), make_record(DAY_D + ONE_DAY_MS, 105, open=101, volume=2)]

    written = await store.put_all(records)

    assert written == 2
    stored = sorted(await store.get_all(), key=lambda record: record.timestamp)
    assert stored == records


@pytest.mark.asyncio
async def test_put_replaces_existing_timestamp(store) -> None:
    await store.put(make_record(DAY_D, 100))
    await store.put(make_record(DAY_D, 110))

    (stored,) = await store.get_all()
    assert stored.close == 110


@pytest.mark.asyncio
async def test_put_all_last_duplicate_in_batch_wins(store) -> None:
    written = await store.put_all([make_record(DAY_D, 1), make_record(DAY_D, 2)])

    assert written == 1
    (stored,) = await store.get_all()
    assert stored.close == 2


@pytest.mark.asyncio
async def test_put_all_empty_batch_is_a_no_op(store) -> None:
    assert await store.put_all([]) == 0
    assert await store.get_all() == []


@pytest.mark.asyncio
async def test_clear_removes_everything(store) -> None:
    await store.put_all([make_record(DAY_D, 100), make_record(DAY_D + ONE_DAY_MS, 101)])

    await store.clear()

    assert await store.get_all() == []


@pytest.mark.asyncio
async def test_closed_store_raises_storage_error(store) -> None:
    store.close()

    with pytest.raises(StorageError) as excinfo:
        await store.get_all()

    assert excinfo.value.details["operation"] == "get_all"


@pytest.mark.asyncio
async def test_duckdb_store_persists_across_instances(tmp_path) -> None:
    path = tmp_path / "nested" / "prices.duckdb"
    first = DuckDBRecordStore(path)
    await first.put_all([make_record(DAY_D, 100)])
    first.close()

    second = DuckDBRecordStore(path)
    try:
        (stored,) = await second.get_all()
    finally:
        second.close()

    assert stored.close == 100
    assert path.exists()


@pytest.mark.asyncio
async def test_duckdb_failed_batch_leaves_table_untouched() -> None:
    store = DuckDBRecordStore()
    await store.put_all([make_record(DAY_D, 100)])
    store._conn.execute("DROP TABLE daily_prices")
    store._conn.execute(
        'CREATE TABLE daily_prices ("timestamp" BIGINT PRIMARY KEY, open DOUBLE NOT NULL, high DOUBLE NOT NULL, '
        "low DOUBLE NOT NULL, close DOUBLE NOT NULL CHECK (close > 0), volume DOUBLE NOT NULL DEFAULT 0)"
    )
    await store.put(make_record(DAY_D, 100))

    with pytest.raises(StorageError):
        await store.put_all([make_record(DAY_D + ONE_DAY_MS, 101), make_record(DAY_D + 2 * ONE_DAY_MS, -1)])

    assert [record.close for record in await store.get_all()] == [100]
    store.close()


def test_duckdb_store_reports_connection_state() -> None:
    store = DuckDBRecordStore()
    assert store.is_connected()
    store.close()
    assert not store.is_connected()


def test_in_memory_store_counts_batches() -> None:
    store = InMemoryRecordStore([make_record(DAY_D, 1)])
    assert len(store) == 1
    assert store.write_count == 0


def test_dedupe_batch_keeps_last_record_per_timestamp() -> None:
    batch = dedupe_batch([make_record(DAY_D, 1), make_record(DAY_D + ONE_DAY_MS, 2), make_record(DAY_D, 3)])

    assert sorted(record.close for record in batch) == [2, 3]


def test_connection_factory_context_yields_and_closes_connection() -> None:
    factory = DuckDBFactory()

    with factory.connection() as conn:
        assert conn.execute("SELECT 1").fetchone()[0] == 1

    with pytest.raises(duckdb.Error):
        conn.execute("SELECT 1")


def test_connection_factory_applies_pragmas() -> None:
    factory = DuckDBFactory(DuckDBFactoryConfig(pragmas={"threads": 3}))

    with factory.connection() as conn:
        threads = conn.execute("SELECT current_setting('threads')").fetchone()[0]

    assert threads == 3
