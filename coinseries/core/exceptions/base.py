"""coinseries core exception classes."""

from typing import Any

from coinseries.core.exceptions.codes import ErrorCode


class CoinSeriesError(Exception):
    """Base exception for coinseries."""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.GENERAL_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        """Initialise the exception.

        Args:
            message: human readable error message
            error_code: machine readable error code
            details: additional details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        """Return a serializable payload representing the error."""

        return {
            "code": self.error_code,
            "message": self.message,
            "details": dict(self.details),
        }


class LoadError(CoinSeriesError):
    """The historical archive could not be retrieved or parsed."""

    def __init__(
        self,
        message: str,
        location: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if location:
            super_details["location"] = location
        super().__init__(message, ErrorCode.ARCHIVE_LOAD_ERROR.value, super_details)
        self.location = location


class StorageError(CoinSeriesError):
    """The local record store is unavailable or rejected a write."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if operation:
            super_details["operation"] = operation
        super().__init__(message, ErrorCode.STORAGE_ERROR.value, super_details)
        self.operation = operation


class ApiError(CoinSeriesError):
    """The remote price API call failed."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if status is not None:
            super_details["status_code"] = status
        super().__init__(message, ErrorCode.API_ERROR.value, super_details)
        self.status = status


class ConfigurationError(CoinSeriesError):
    """Configuration values are invalid."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR.value, details)
