"""Remote price providers."""

from coinseries.core.data.providers.base import (
    PriceHistoryFetcher,
    PricePoint,
    daily_records_from_points,
)
from coinseries.core.data.providers.coingecko import CoinGeckoFetcher, HttpConfig, RetryConfig

__all__ = [
    "CoinGeckoFetcher",
    "HttpConfig",
    "PriceHistoryFetcher",
    "PricePoint",
    "RetryConfig",
    "daily_records_from_points",
]
