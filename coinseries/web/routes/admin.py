"""Administrative routes over the local record store."""

from fastapi import APIRouter, Depends, Request

from coinseries.core.services.diagnostics import StoreDiagnostics
from coinseries.web.models import APIResponse
from coinseries.web.utils import get_diagnostics, get_request_id

router = APIRouter()


@router.get("/store", response_model=APIResponse)
async def store_stats(request: Request, diagnostics: StoreDiagnostics = Depends(get_diagnostics)) -> APIResponse:
    stats = await diagnostics.stats()
    return APIResponse(success=True, data=stats, request_id=get_request_id(request))


@router.delete("/store", response_model=APIResponse)
async def clear_store(request: Request, diagnostics: StoreDiagnostics = Depends(get_diagnostics)) -> APIResponse:
    """Delete every cached record. The archive is left untouched."""
    removed = await diagnostics.clear()
    return APIResponse(
        success=True,
        data={"removed": removed.count},
        message=f"Removed {removed.count} cached records",
        request_id=get_request_id(request),
    )
