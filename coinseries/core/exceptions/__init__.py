"""Exception handling module."""

from coinseries.core.exceptions.base import (
    ApiError,
    CoinSeriesError,
    ConfigurationError,
    LoadError,
    StorageError,
)
from coinseries.core.exceptions.codes import ErrorCode

__all__ = [
    "CoinSeriesError",
    "LoadError",
    "StorageError",
    "ApiError",
    "ConfigurationError",
    "ErrorCode",
]
