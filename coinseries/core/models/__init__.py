"""coinseries data models."""

from .market import DataSource, Granularity, LogDuration, TimeRange, WindowSpec
from .record import CanonicalSeries, DailyRecord
from .status import FetchStatus, ReconcileResult

__all__ = [
    "CanonicalSeries",
    "DailyRecord",
    "DataSource",
    "FetchStatus",
    "Granularity",
    "LogDuration",
    "ReconcileResult",
    "TimeRange",
    "WindowSpec",
]
