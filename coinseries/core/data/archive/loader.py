"""Historical archive loading with process-lifetime memoization."""

from __future__ import annotations

import asyncio
import csv
import math
from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import tzinfo

from loguru import logger

from coinseries.core.data.archive.source import ArchiveSource
from coinseries.core.data.rollup import OHLCRow, roll_up
from coinseries.core.models.record import CanonicalSeries
from coinseries.core.timeutils import DayBucketer


@dataclass(frozen=True)
class ArchiveParseResult:
    """Daily series parsed from the archive plus bookkeeping."""

    series: CanonicalSeries
    rows_read: int
    rows_skipped: int


def _to_float(value: str) -> float | None:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_archive(lines: Iterable[str], tz: tzinfo | None = None) -> ArchiveParseResult:
    """Aggregate ``timestamp,open,high,low,close,volume`` rows into daily records.

    The first line is a header. Timestamps are epoch seconds. Rows with a
    non-numeric timestamp or price are skipped, a missing volume counts as 0.
    Days are calendar days in ``tz`` (system local time when ``None``).
    """
    bucketer = DayBucketer(tz)
    counts = {"read": 0, "skipped": 0}

    def rows() -> Iterator[OHLCRow]:
        reader = csv.reader(lines)
        next(reader, None)
        for fields in reader:
            if not fields or not "".join(fields).strip():
                continue
            counts["read"] += 1
            if len(fields) < 5:
                counts["skipped"] += 1
                continue
            timestamp = _to_float(fields[0])
            prices = [_to_float(value) for value in fields[1:5]]
            if timestamp is None or any(price is None for price in prices):
                counts["skipped"] += 1
                continue
            volume = _to_float(fields[5]) if len(fields) > 5 else None
            open_, high, low, close = prices
            yield (
                bucketer.key_for(timestamp * 1000),
                open_,
                high,
                low,
                close,
                volume if volume is not None and volume > 0 else 0.0,
            )

    series = roll_up(rows())
    return ArchiveParseResult(series=series, rows_read=counts["read"], rows_skipped=counts["skipped"])


class ArchiveCache:
    """Init-once holder for the parsed archive.

    Callers arriving while the first load is still running await the same
    task. A failed load is forgotten so the next caller retries.
    """

    def __init__(self) -> None:
        self._series: CanonicalSeries | None = None
        self._pending: asyncio.Future[CanonicalSeries] | None = None

    @property
    def is_loaded(self) -> bool:
        return self._series is not None

    async def get_or_load(self, factory: Callable[[], Awaitable[CanonicalSeries]]) -> CanonicalSeries:
        if self._series is not None:
            return self._series

        if self._pending is None:
            self._pending = asyncio.ensure_future(factory())
        pending = self._pending

        try:
            series = await asyncio.shield(pending)
        except Exception:
            if self._pending is pending and pending.done():
                self._pending = None
            raise

        if self._series is None:
            self._series = series
            self._pending = None
        return self._series

    def reset(self) -> None:
        self._series = None
        self._pending = None


class ArchiveLoader:
    """Loads the bundled archive once and serves the cached daily series."""

    def __init__(
        self,
        source: ArchiveSource,
        *,
        tz: tzinfo | None = None,
        cache: ArchiveCache | None = None,
    ) -> None:
        self.source = source
        self.tz = tz
        self.cache = cache or ArchiveCache()
        self.parse_count = 0

    async def load(self) -> CanonicalSeries:
        """Return the daily archive series, parsing it on first use.

        Raises:
            LoadError: the archive bytes could not be retrieved.
        """
        return await self.cache.get_or_load(self._load_uncached)

    async def _load_uncached(self) -> CanonicalSeries:
        raw = await self.source.read()
        self.parse_count += 1
        text = raw.decode("utf-8", errors="replace")
        result = await asyncio.to_thread(parse_archive, text.splitlines(), self.tz)
        logger.bind(component="archive").info(
            "Loaded {} days of historical data from {} ({} rows, {} skipped)",
            len(result.series),
            self.source.location,
            result.rows_read,
            result.rows_skipped,
        )
        return result.series


__all__ = ["ArchiveCache", "ArchiveLoader", "ArchiveParseResult", "parse_archive"]
