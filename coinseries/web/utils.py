"""Helpers shared by web routes."""

from fastapi import Request

from coinseries.core.client import CoinSeriesClient
from coinseries.core.services.diagnostics import StoreDiagnostics


def get_request_id(request: Request) -> str | None:
    """Return the caller supplied ``X-Request-ID`` header, if any."""
    return request.headers.get("X-Request-ID")


def get_client(request: Request) -> CoinSeriesClient:
    return request.app.state.client


def get_diagnostics(request: Request) -> StoreDiagnostics:
    return request.app.state.diagnostics
