"""Request and response models for the web API."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from coinseries.core.models import DailyRecord, FetchStatus
from coinseries.core.services.views import LogEntry, PriceSummary, SeriesView


class APIResponse(BaseModel):
    """Standard response envelope."""

    success: bool = Field(..., description="Whether the request succeeded")
    data: Any | None = Field(None, description="Response payload")
    message: str | None = Field(None, description="Human-readable message")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Response time")
    request_id: str | None = Field(None, description="Echo of the X-Request-ID header")


class ErrorResponse(BaseModel):
    """Error envelope."""

    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict[str, Any] | None = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Error time")
    request_id: str | None = Field(None, description="Echo of the X-Request-ID header")


class SeriesPayload(BaseModel):
    """A bucketed window of the series together with the fetch status."""

    range: str
    granularity: str
    period_change_pct: float
    status: FetchStatus
    records: list[DailyRecord]

    @classmethod
    def from_view(cls, view: SeriesView, status: FetchStatus) -> "SeriesPayload":
        return cls(
            range=view.time_range.value,
            granularity=view.granularity.value,
            period_change_pct=view.period_change_pct,
            status=status,
            records=list(view.records),
        )


class SummaryPayload(BaseModel):
    timestamp: int
    price: float
    previous_price: float
    change_pct: float
    high: float
    low: float

    @classmethod
    def from_summary(cls, summary: PriceSummary) -> "SummaryPayload":
        return cls(
            timestamp=summary.timestamp,
            price=summary.price,
            previous_price=summary.previous_price,
            change_pct=summary.change_pct,
            high=summary.high,
            low=summary.low,
        )


class LogEntryPayload(BaseModel):
    timestamp: int
    close: float
    change_pct: float

    @classmethod
    def from_entry(cls, entry: LogEntry) -> "LogEntryPayload":
        return cls(timestamp=entry.record.timestamp, close=entry.record.close, change_pct=entry.change_pct)


__all__ = [
    "APIResponse",
    "ErrorResponse",
    "LogEntryPayload",
    "SeriesPayload",
    "SummaryPayload",
]
