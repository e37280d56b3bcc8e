from __future__ import annotations

import pytest
from factories import DAY_D, make_record

from coinseries.core.data.storage import InMemoryRecordStore
from coinseries.core.services.diagnostics import StoreDiagnostics, StoreStats
from coinseries.core.timeutils import ONE_DAY_MS


@pytest.mark.asyncio
async def test_stats_of_empty_store() -> None:
    stats = await StoreDiagnostics(InMemoryRecordStore()).stats()

    assert stats == StoreStats(count=0)
    assert stats.first_timestamp is None


@pytest.mark.asyncio
async def test_stats_report_count_and_span() -> None:
    store = InMemoryRecordStore(
        [make_record(DAY_D + 2 * ONE_DAY_MS, 3), make_record(DAY_D, 1), make_record(DAY_D + ONE_DAY_MS, 2)]
    )

    stats = await StoreDiagnostics(store).stats()

    assert stats.count == 3
    assert stats.first_timestamp == DAY_D
    assert stats.last_timestamp == DAY_D + 2 * ONE_DAY_MS


@pytest.mark.asyncio
async def test_clear_empties_store_and_returns_previous_stats() -> None:
    store = InMemoryRecordStore([make_record(DAY_D, 1), make_record(DAY_D + ONE_DAY_MS, 2)])
    diagnostics = StoreDiagnostics(store)

    removed = await diagnostics.clear()

    assert removed.count == 2
    assert len(store) == 0
    assert (await diagnostics.stats()).count == 0
