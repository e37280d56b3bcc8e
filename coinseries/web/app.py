"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from coinseries import __version__
from coinseries.core.client import CoinSeriesClient
from coinseries.core.config import ConfigManager
from coinseries.core.exceptions import ApiError, CoinSeriesError, ConfigurationError
from coinseries.core.logging import configure_logging
from coinseries.web.models import ErrorResponse
from coinseries.web.routes import admin_router, health_router, series_router
from coinseries.web.utils import get_request_id


def create_app(client: CoinSeriesClient | None = None) -> FastAPI:
    """Create the application.

    When ``client`` is omitted one is built from :class:`ConfigManager` at
    startup and closed at shutdown. A supplied client is left open.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        owned = client is None
        if owned:
            config = ConfigManager().get_config()
            configure_logging(
                config.logging.level,
                serialize=config.logging.serialize,
                file_output=config.logging.file is not None,
                file_path=config.logging.file,
            )
            active = CoinSeriesClient.from_config(config)
        else:
            active = client
        app.state.client = active
        app.state.diagnostics = active.diagnostics
        logger.bind(component="web").info("coinseries web service started")
        try:
            yield
        finally:
            if owned:
                active.close()

    app = FastAPI(
        title="coinseries",
        description="Daily BTC/USD price series blended from a bundled archive and live data",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    _setup_routes(app)
    _setup_exception_handlers(app)
    return app


def _setup_routes(app: FastAPI) -> None:
    app.include_router(series_router, prefix="/api/v1/series", tags=["series"])
    app.include_router(admin_router, prefix="/api/v1/admin", tags=["admin"])
    app.include_router(health_router, prefix="/api/v1", tags=["health"])


def _status_for(exc: CoinSeriesError) -> int:
    if isinstance(exc, ApiError):
        return 502
    if isinstance(exc, ConfigurationError):
        return 500
    return 503


def _setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CoinSeriesError)
    async def coinseries_exception_handler(request: Request, exc: CoinSeriesError) -> JSONResponse:
        logger.bind(component="web").error("{} on {}: {}", exc.error_code, request.url.path, exc.message)
        return JSONResponse(
            status_code=_status_for(exc),
            content=ErrorResponse(
                error=exc.__class__.__name__,
                message=exc.message,
                details={"error_code": exc.error_code, **exc.details},
                request_id=get_request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error="HTTPException",
                message=str(exc.detail),
                details={"status_code": exc.status_code},
                request_id=get_request_id(request),
            ).model_dump(mode="json"),
        )


__all__ = ["create_app"]
