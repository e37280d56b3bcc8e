from __future__ import annotations

import asyncio
from datetime import UTC, timedelta, timezone

import httpx
import pytest
from factories import DAY_D, FailingArchiveSource, archive_csv

from coinseries.core.data.archive import (
    ArchiveCache,
    ArchiveLoader,
    FileArchiveSource,
    HttpArchiveSource,
    StaticArchiveSource,
    parse_archive,
)
from coinseries.core.exceptions import LoadError
from coinseries.core.timeutils import ONE_DAY_MS, ONE_HOUR_MS

DAY_S = DAY_D // 1000


def test_parse_archive_rolls_minutes_into_days() -> None:
    content = archive_csv(
        [
            (DAY_S + 60, 100, 101, 99, 100.5, 2),
            (DAY_S + 120, 100.5, 105, 100, 104, 3),
            (DAY_S + 180, 104, 104, 95, 96, 0.5),
            (DAY_S + 86400 + 60, 96, 97, 96, 97, 1),
        ]
    )

    result = parse_archive(content.splitlines(), UTC)

    assert result.rows_read == 4
    assert result.rows_skipped == 0
    first, second = result.series
    assert first.timestamp == DAY_D
    assert (first.open, first.high, first.low, first.close) == (100, 105, 95, 96)
    assert first.volume == pytest.approx(5.5)
    assert second.timestamp == DAY_D + ONE_DAY_MS
    assert second.close == 97


def test_parse_archive_skips_malformed_rows_and_zeroes_bad_volume() -> None:
    lines = [
        "Timestamp,Open,High,Low,Close,Volume",
        f"{DAY_S + 60},100,101,99,100,NaN",
        f"{DAY_S + 120},abc,101,99,100,1",
        "",
        f"{DAY_S + 180},100,102,98,101,-4",
        f"{DAY_S + 240},100,102",
        "not-a-time,1,1,1,1,1",
        f"{DAY_S + 300},101,103,100,102",
    ]

    result = parse_archive(lines, UTC)

    assert result.rows_read == 6
    assert result.rows_skipped == 3
    (record,) = result.series
    assert record.open == 100
    assert record.high == 103
    assert record.low == 98
    assert record.close == 102
    assert record.volume == 0


def test_parse_archive_buckets_by_calendar_day_of_time_zone() -> None:
    # 23:30 UTC on DAY_D is already the next day at UTC+2
    content = archive_csv([(DAY_S + 23 * 3600 + 1800, 10, 10, 10, 10, 0)])
    plus_two = timezone(timedelta(hours=2))

    (utc_record,) = parse_archive(content.splitlines(), UTC).series
    (local_record,) = parse_archive(content.splitlines(), plus_two).series

    assert utc_record.timestamp == DAY_D
    assert local_record.timestamp == DAY_D + ONE_DAY_MS - 2 * ONE_HOUR_MS


def test_parse_archive_header_only_yields_empty_series() -> None:
    result = parse_archive(["Timestamp,Open,High,Low,Close,Volume"], UTC)

    assert result.series == ()
    assert result.rows_read == 0


@pytest.mark.asyncio
async def test_loader_parses_once_and_serves_cached_series() -> None:
    loader = ArchiveLoader(StaticArchiveSource(archive_csv([(DAY_S + 60, 1, 2, 0.5, 1.5, 1)])), tz=UTC)

    first = await loader.load()
    second = await loader.load()

    assert first is second
    assert loader.parse_count == 1
    assert loader.cache.is_loaded


@pytest.mark.asyncio
async def test_concurrent_loads_share_one_parse() -> None:
    loader = ArchiveLoader(StaticArchiveSource(archive_csv([(DAY_S + 60, 1, 2, 0.5, 1.5, 1)])), tz=UTC)

    results = await asyncio.gather(*(loader.load() for _ in range(5)))

    assert loader.parse_count == 1
    assert all(result is results[0] for result in results)


@pytest.mark.asyncio
async def test_failed_load_is_not_memoized() -> None:
    source = FailingArchiveSource(LoadError("boom", "<failing>"))
    loader = ArchiveLoader(source, tz=UTC)

    with pytest.raises(LoadError):
        await loader.load()
    with pytest.raises(LoadError):
        await loader.load()

    assert source.reads == 2
    assert not loader.cache.is_loaded


@pytest.mark.asyncio
async def test_archive_cache_reset_forces_reload() -> None:
    cache = ArchiveCache()
    calls = 0

    async def factory():
        nonlocal calls
        calls += 1
        return ()

    await cache.get_or_load(factory)
    cache.reset()
    await cache.get_or_load(factory)

    assert calls == 2


@pytest.mark.asyncio
async def test_file_source_missing_file_raises_load_error(tmp_path) -> None:
    source = FileArchiveSource(tmp_path / "missing.csv")

    with pytest.raises(LoadError) as excinfo:
        await source.read()

    assert excinfo.value.details["location"].endswith("missing.csv")


@pytest.mark.asyncio
async def test_file_source_reads_bytes(tmp_path) -> None:
    path = tmp_path / "archive.csv"
    path.write_text("Timestamp,Open,High,Low,Close,Volume\n", encoding="utf-8")

    assert await FileArchiveSource(path).read() == path.read_bytes()


@pytest.mark.asyncio
async def test_http_source_downloads_archive() -> None:
    body = archive_csv([(DAY_S + 60, 1, 2, 0.5, 1.5, 1)]).encode()

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/btcusd_1-min_data.csv"
        return httpx.Response(200, content=body)

    source = HttpArchiveSource("https://assets.example/btcusd_1-min_data.csv", transport=httpx.MockTransport(handler))

    assert await source.read() == body


@pytest.mark.asyncio
async def test_http_source_non_success_raises_load_error() -> None:
    source = HttpArchiveSource(
        "https://assets.example/btcusd_1-min_data.csv",
        transport=httpx.MockTransport(lambda request: httpx.Response(404)),
    )

    with pytest.raises(LoadError) as excinfo:
        await source.read()

    assert excinfo.value.details["status_code"] == 404
