"""coinseries - Bitcoin price history blended from a bundled archive and live data.

The bundled minute-level archive is merged with daily records fetched from
CoinGecko and cached in a local DuckDB store, producing one gapless daily
series that can be re-aggregated per viewing window.
"""

from coinseries.core.client import CoinSeriesClient
from coinseries.core.config import CoinSeriesConfig, ConfigManager
from coinseries.core.exceptions import ApiError, CoinSeriesError, LoadError, StorageError
from coinseries.core.models import (
    DailyRecord,
    DataSource,
    FetchStatus,
    Granularity,
    LogDuration,
    ReconcileResult,
    TimeRange,
)
from coinseries.core.services import ReconciliationEngine, aggregate

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "CoinSeriesClient",
    "CoinSeriesConfig",
    "CoinSeriesError",
    "ConfigManager",
    "DailyRecord",
    "DataSource",
    "FetchStatus",
    "Granularity",
    "LoadError",
    "LogDuration",
    "ReconcileResult",
    "ReconciliationEngine",
    "StorageError",
    "TimeRange",
    "aggregate",
    "__version__",
]
