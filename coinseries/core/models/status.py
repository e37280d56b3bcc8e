"""Reconciliation result models."""

from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from .market import DataSource
from .record import CanonicalSeries, DailyRecord


class FetchStatus(BaseModel):
    """Read model describing how fresh a reconciled series is."""

    source: DataSource
    missing_days: int = Field(default=0, ge=0)
    error: str | None = None
    last_update: datetime = Field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class ReconcileResult:
    """Canonical series together with its status descriptor."""

    series: CanonicalSeries
    status: FetchStatus

    @property
    def latest(self) -> DailyRecord | None:
        return self.series[-1] if self.series else None


__all__ = ["FetchStatus", "ReconcileResult"]
