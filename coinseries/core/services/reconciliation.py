"""Reconciliation of the historical archive with locally cached live data."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime

from loguru import logger

from coinseries.core.data.archive.loader import ArchiveLoader
from coinseries.core.data.providers.base import PriceHistoryFetcher
from coinseries.core.data.storage.base import RecordStore
from coinseries.core.exceptions import CoinSeriesError
from coinseries.core.logging import log_context
from coinseries.core.models.market import DataSource
from coinseries.core.models.record import CanonicalSeries, DailyRecord
from coinseries.core.models.status import FetchStatus, ReconcileResult
from coinseries.core.timeutils import ONE_DAY_MS, to_epoch_ms

StatusListener = Callable[[FetchStatus], None]

NO_DATA_MESSAGE = "no price data available"


def merge_series(base: Sequence[DailyRecord], extra: Iterable[DailyRecord]) -> tuple[CanonicalSeries, int]:
    """Add the records of ``extra`` whose timestamp ``base`` lacks.

    ``base`` wins for every timestamp it covers. Returns the merged series in
    ascending order and how many records ``extra`` contributed.
    """
    merged = {record.timestamp: record for record in base}
    added = 0
    for record in extra:
        if record.timestamp not in merged:
            merged[record.timestamp] = record
            added += 1
    return tuple(merged[key] for key in sorted(merged)), added


def last_known_timestamp(archive: Sequence[DailyRecord], cached: Iterable[DailyRecord]) -> int | None:
    candidates = [record.timestamp for record in cached]
    if archive:
        candidates.append(archive[-1].timestamp)
    return max(candidates) if candidates else None


def compute_missing_days(last_known_ms: int, now_ms: int) -> int:
    """Whole days elapsed between the newest record and ``now``."""
    return max(0, (now_ms - last_known_ms) // ONE_DAY_MS)


def _describe(exc: Exception) -> str:
    return exc.message if isinstance(exc, CoinSeriesError) else str(exc) or type(exc).__name__


class ReconciliationEngine:
    """Produces the canonical series and its freshness status.

    Callers must not run two ``reconcile`` calls at once: store writes of
    overlapping fetches are each atomic but not mutually exclusive.
    """

    def __init__(
        self,
        archive: ArchiveLoader,
        store: RecordStore,
        fetcher: PriceHistoryFetcher,
        *,
        clock: Callable[[], datetime] | None = None,
        status_listener: StatusListener | None = None,
    ) -> None:
        self._archive = archive
        self._store = store
        self._fetcher = fetcher
        self._clock = clock or (lambda: datetime.now(UTC))
        self._status_listener = status_listener
        self._log = logger.bind(component="reconciliation")

    async def reconcile(self, force_fetch: bool = False) -> ReconcileResult:
        """Merge archive and store, fill the freshness gap, report the outcome.

        Never raises for component failures: the best series that could be
        assembled is returned with the failure recorded in ``status.error``.
        """
        with log_context(operation="reconcile", force_fetch=force_fetch):
            result = await self._reconcile(force_fetch)
            self._log.info(
                "Reconciled {} records, source={}, missing_days={}",
                len(result.series),
                result.status.source.value,
                result.status.missing_days,
            )
            return result

    async def _reconcile(self, force_fetch: bool) -> ReconcileResult:
        now = self._clock()
        now_ms = to_epoch_ms(now)

        try:
            archive, cached = await asyncio.gather(self._archive.load(), self._store.get_all())
        except Exception as exc:
            self._log.opt(exception=not isinstance(exc, CoinSeriesError)).error(
                "Error loading combined data: {}", _describe(exc)
            )
            return await self._fallback(exc, now)

        last_known = last_known_timestamp(archive, cached)
        if last_known is None:
            return self._result((), DataSource.ERROR, 0, NO_DATA_MESSAGE, now)

        series, contributed = merge_series(archive, cached)
        missing_days = compute_missing_days(last_known, now_ms)

        settled = DataSource.CSV_AND_CACHE if contributed else DataSource.CSV_ONLY
        if missing_days == 0 and not force_fetch:
            return self._result(series, settled, 0, None, now)

        self._publish(FetchStatus(source=DataSource.FETCHING, missing_days=missing_days, last_update=now))
        try:
            fetched = await self._fetcher.fetch_range(last_known + ONE_DAY_MS, now_ms)
        except Exception as exc:
            self._log.opt(exception=not isinstance(exc, CoinSeriesError)).warning(
                "Fetching {} missing days failed: {}", missing_days, _describe(exc)
            )
            return self._result(series, DataSource.FETCHING, missing_days, _describe(exc), now)

        series, added = merge_series(series, fetched)
        if added:
            return self._result(series, DataSource.LIVE_API, 0, None, now)
        return self._result(series, DataSource.FETCHING, missing_days, None, now)

    async def _fallback(self, error: Exception, now: datetime) -> ReconcileResult:
        try:
            archive = await self._archive.load()
        except Exception as archive_error:
            return self._result((), DataSource.ERROR, 0, _describe(archive_error), now)
        if not archive:
            return self._result((), DataSource.ERROR, 0, _describe(error), now)
        return self._result(archive, DataSource.CSV_ONLY, 0, _describe(error), now)

    def _publish(self, status: FetchStatus) -> None:
        if self._status_listener is not None:
            self._status_listener(status)

    @staticmethod
    def _result(
        series: CanonicalSeries,
        source: DataSource,
        missing_days: int,
        error: str | None,
        now: datetime,
    ) -> ReconcileResult:
        status = FetchStatus(source=source, missing_days=missing_days, error=error, last_update=now)
        return ReconcileResult(series=tuple(series), status=status)


__all__ = [
    "NO_DATA_MESSAGE",
    "ReconciliationEngine",
    "StatusListener",
    "compute_missing_days",
    "last_known_timestamp",
    "merge_series",
]
