"""Standardized error codes."""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes carried by :class:`CoinSeriesError` instances."""

    GENERAL_ERROR = "GENERAL_ERROR"
    ARCHIVE_LOAD_ERROR = "ARCHIVE_LOAD_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    API_ERROR = "API_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


__all__ = ["ErrorCode"]
