"""CoinGecko ``market_chart/range`` fetcher."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Any

import httpx
from loguru import logger

from coinseries.core.data.providers.base import PriceHistoryFetcher, PricePoint
from coinseries.core.data.storage.base import RecordStore
from coinseries.core.exceptions import ApiError


@dataclass
class HttpConfig:
    """Configuration for HTTP client behavior."""

    base_url: str = "https://api.coingecko.com/api/v3"
    timeout: float = 30.0
    user_agent: str = "coinseries/0.1.0"
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url cannot be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 2
    backoff_factor: float = 0.5
    retry_on_status: tuple[int, ...] = (429, 502, 503, 504)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.backoff_factor < 0:
            raise ValueError("backoff_factor must be non-negative")

    def delay(self, attempt: int) -> float:
        return self.backoff_factor * (2**attempt)


class CoinGeckoFetcher(PriceHistoryFetcher):
    """Reads USD price history for one coin from CoinGecko."""

    name = "coingecko"

    def __init__(
        self,
        store: RecordStore,
        *,
        coin_id: str = "bitcoin",
        vs_currency: str = "usd",
        http_config: HttpConfig | None = None,
        retry_config: RetryConfig | None = None,
        tz: tzinfo | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(store, tz=tz)
        self.coin_id = coin_id
        self.vs_currency = vs_currency
        self.http_config = http_config or HttpConfig()
        self.retry_config = retry_config or RetryConfig()
        self._transport = transport
        self._log = logger.bind(component="fetcher", provider=self.name)

    @property
    def path(self) -> str:
        return f"/coins/{self.coin_id}/market_chart/range"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.http_config.base_url,
            timeout=httpx.Timeout(self.http_config.timeout),
            headers={"User-Agent": self.http_config.user_agent, **self.http_config.headers},
            follow_redirects=True,
            transport=self._transport,
        )

    async def fetch_points(self, from_seconds: int, to_seconds: int) -> Sequence[PricePoint]:
        params = {"vs_currency": self.vs_currency, "from": from_seconds, "to": to_seconds}
        async with self._client() as client:
            response = await self._request_with_retry(client, params)

        if not response.is_success:
            raise ApiError(f"API Error: {response.status_code}", response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError("API returned a non-JSON body", response.status_code) from exc
        return self._parse_prices(payload, response.status_code)

    async def _request_with_retry(self, client: httpx.AsyncClient, params: dict[str, Any]) -> httpx.Response:
        retries = self.retry_config.max_retries
        attempt = 0
        while True:
            try:
                response = await client.get(self.path, params=params)
            except httpx.HTTPError as exc:
                if attempt >= retries:
                    raise ApiError(f"API request failed: {exc}") from exc
                reason = f"{type(exc).__name__}: {exc}"
            else:
                if response.status_code not in self.retry_config.retry_on_status or attempt >= retries:
                    return response
                reason = f"status {response.status_code}"

            delay = self.retry_config.delay(attempt)
            self._log.warning("Request failed with {}, retrying in {}s (attempt {})", reason, delay, attempt + 1)
            await asyncio.sleep(delay)
            attempt += 1

    @staticmethod
    def _parse_prices(payload: Any, status: int) -> list[PricePoint]:
        prices = payload.get("prices") if isinstance(payload, dict) else None
        if not isinstance(prices, list):
            raise ApiError("API response is missing the 'prices' field", status)

        points: list[PricePoint] = []
        for entry in prices:
            try:
                timestamp, price = entry[0], entry[1]
                points.append((float(timestamp), float(price)))
            except (TypeError, ValueError, IndexError) as exc:
                raise ApiError(f"Malformed price point: {entry!r}", status) from exc
        return points


__all__ = ["CoinGeckoFetcher", "HttpConfig", "RetryConfig"]
