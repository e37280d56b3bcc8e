"""High-level client wiring the archive, store, fetcher and engine together."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any

import httpx

from coinseries.core.config import CoinSeriesConfig
from coinseries.core.data.archive import (
    ArchiveLoader,
    ArchiveSource,
    FileArchiveSource,
    HttpArchiveSource,
)
from coinseries.core.data.providers import CoinGeckoFetcher, HttpConfig, PriceHistoryFetcher, RetryConfig
from coinseries.core.data.storage import DuckDBRecordStore, InMemoryRecordStore, RecordStore
from coinseries.core.data.storage.duckdb_factory import DuckDBFactory, DuckDBFactoryConfig
from coinseries.core.exceptions import ConfigurationError
from coinseries.core.models.market import DataSource, LogDuration, TimeRange
from coinseries.core.models.status import FetchStatus, ReconcileResult
from coinseries.core.services.diagnostics import StoreDiagnostics
from coinseries.core.services.reconciliation import ReconciliationEngine
from coinseries.core.services.views import LogEntry, PriceSummary, SeriesView, build_view, data_log, summarize
from coinseries.core.timeutils import resolve_timezone


class CoinSeriesClient:
    """Entry point used by the CLI and the web service.

    Reconciliations are serialized through a lock, so a refresh requested
    while another one is running waits for it instead of racing on the store.
    """

    def __init__(
        self,
        archive: ArchiveLoader,
        store: RecordStore,
        fetcher: PriceHistoryFetcher,
        *,
        tz: tzinfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.archive = archive
        self.store = store
        self.fetcher = fetcher
        self.tz = tz
        self.engine = ReconciliationEngine(
            archive,
            store,
            fetcher,
            clock=clock,
            status_listener=self._on_status,
        )
        self.diagnostics = StoreDiagnostics(store)
        self._lock = asyncio.Lock()
        self._last: ReconcileResult | None = None
        self._status = FetchStatus(source=DataSource.CSV_ONLY)

    @classmethod
    def from_config(
        cls,
        config: CoinSeriesConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> CoinSeriesClient:
        """Build a client from configuration."""
        config = config or CoinSeriesConfig()
        tz = resolve_timezone(config.archive.timezone)
        store = _build_store(config)
        fetcher = CoinGeckoFetcher(
            store,
            coin_id=config.api.coin_id,
            vs_currency=config.api.vs_currency,
            http_config=HttpConfig(
                base_url=config.api.base_url,
                timeout=config.api.timeout,
                user_agent=config.api.user_agent,
            ),
            retry_config=RetryConfig(
                max_retries=config.api.max_retries,
                backoff_factor=config.api.backoff_factor,
            ),
            tz=tz,
            transport=transport,
        )
        archive = ArchiveLoader(_build_archive_source(config, transport), tz=tz)
        return cls(archive, store, fetcher, tz=tz, clock=clock)

    @property
    def status(self) -> FetchStatus:
        """Most recent status, including the transient ``FETCHING`` state."""
        return self._status

    @property
    def is_refreshing(self) -> bool:
        return self._lock.locked()

    @property
    def last_result(self) -> ReconcileResult | None:
        return self._last

    def _on_status(self, status: FetchStatus) -> None:
        self._status = status

    async def refresh(self, force_fetch: bool = False) -> ReconcileResult:
        """Run one reconciliation and remember its outcome."""
        async with self._lock:
            return await self._reconcile(force_fetch)

    async def current(self) -> ReconcileResult:
        """Last reconciliation result, reconciling on first use.

        Concurrent first callers share a single reconciliation.
        """
        if self._last is not None:
            return self._last
        async with self._lock:
            if self._last is not None:
                return self._last
            return await self._reconcile(False)

    async def _reconcile(self, force_fetch: bool) -> ReconcileResult:
        result = await self.engine.reconcile(force_fetch)
        self._last = result
        self._status = result.status
        return result

    async def view(self, time_range: TimeRange | str = TimeRange.ONE_YEAR) -> SeriesView:
        result = await self.current()
        return build_view(result.series, time_range, self.tz)

    async def summary(self) -> PriceSummary | None:
        result = await self.current()
        return summarize(result.series)

    async def log(self, duration: LogDuration | str = LogDuration.ONE_DAY) -> list[LogEntry]:
        result = await self.current()
        return data_log(result.series, duration)

    def close(self) -> None:
        self.store.close()

    async def __aenter__(self) -> CoinSeriesClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


def _build_store(config: CoinSeriesConfig) -> RecordStore:
    backend = config.store.backend.lower()
    if backend == "memory":
        return InMemoryRecordStore()
    if backend == "duckdb":
        factory = DuckDBFactory(
            DuckDBFactoryConfig(
                database=Path(config.store.path).expanduser(),
                pragmas={"threads": config.store.threads},
            )
        )
        return DuckDBRecordStore(factory=factory)
    raise ConfigurationError(f"Unsupported store backend '{config.store.backend}'", {"backend": backend})


def _build_archive_source(
    config: CoinSeriesConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ArchiveSource:
    if config.archive.url:
        return HttpArchiveSource(config.archive.url, transport=transport)
    if config.archive.path:
        return FileArchiveSource(Path(config.archive.path).expanduser())
    raise ConfigurationError("Either archive.path or archive.url must be configured")


__all__ = ["CoinSeriesClient"]
