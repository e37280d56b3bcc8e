"""Domain services."""

from coinseries.core.services.aggregation import aggregate, bucket_start
from coinseries.core.services.diagnostics import StoreDiagnostics, StoreStats
from coinseries.core.services.reconciliation import (
    ReconciliationEngine,
    compute_missing_days,
    merge_series,
)
from coinseries.core.services.views import (
    LogEntry,
    PriceSummary,
    SeriesView,
    build_view,
    data_log,
    summarize,
)

__all__ = [
    "LogEntry",
    "PriceSummary",
    "ReconciliationEngine",
    "SeriesView",
    "StoreDiagnostics",
    "StoreStats",
    "aggregate",
    "bucket_start",
    "build_view",
    "compute_missing_days",
    "data_log",
    "merge_series",
    "summarize",
]
