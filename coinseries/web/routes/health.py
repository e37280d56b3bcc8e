"""Health check route."""

from fastapi import APIRouter, Depends, Request

from coinseries import __version__
from coinseries.core.client import CoinSeriesClient
from coinseries.web.models import APIResponse
from coinseries.web.utils import get_client, get_request_id

router = APIRouter()


@router.get("/health", response_model=APIResponse)
async def health_check(request: Request, client: CoinSeriesClient = Depends(get_client)) -> APIResponse:
    """Report liveness along with the last known fetch status."""
    status = client.status
    return APIResponse(
        success=True,
        data={
            "status": "healthy",
            "version": __version__,
            "source": status.source.value,
            "missing_days": status.missing_days,
            "refreshing": client.is_refreshing,
        },
        message="Service is healthy",
        request_id=get_request_id(request),
    )
