"""Daily OHLC record model."""

from pydantic import BaseModel, ConfigDict, Field

CanonicalSeries = tuple["DailyRecord", ...]


class DailyRecord(BaseModel):
    """One OHLC bucket keyed by its start timestamp in epoch milliseconds."""

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = Field(default=0.0, ge=0)

    model_config = ConfigDict(frozen=True)


__all__ = ["CanonicalSeries", "DailyRecord"]
