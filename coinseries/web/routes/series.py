"""Price series routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger

from coinseries.core.client import CoinSeriesClient
from coinseries.core.models import LogDuration, TimeRange
from coinseries.web.models import APIResponse, LogEntryPayload, SeriesPayload, SummaryPayload
from coinseries.web.utils import get_client, get_request_id

router = APIRouter()


@router.get("", response_model=APIResponse)
async def get_series(
    request: Request,
    range: str = Query("1Y", description="Viewing window (1D, 1W, 1M, 6M, 1Y, 5Y, ALL)"),
    client: CoinSeriesClient = Depends(get_client),
) -> APIResponse:
    """Return the series for a window, aggregated to the window's granularity.

    The first call reconciles the archive with cached and live data; later
    calls reuse the last result until ``POST /refresh`` is called.
    """
    selected = _parse(TimeRange, range, "range")
    view = await client.view(selected)
    return APIResponse(
        success=True,
        data=SeriesPayload.from_view(view, client.status),
        message=f"{len(view.records)} {view.granularity.value} records",
        request_id=get_request_id(request),
    )


@router.post("/refresh", response_model=APIResponse)
async def refresh_series(
    request: Request,
    force: bool = Query(False, description="Query the live API even when no day is missing"),
    client: CoinSeriesClient = Depends(get_client),
) -> APIResponse:
    result = await client.refresh(force_fetch=force)
    status = result.status
    logger.bind(component="web").info("Refresh finished: source={} missing_days={}", status.source.value, status.missing_days)
    return APIResponse(
        success=status.error is None,
        data={"status": status, "records": len(result.series)},
        message=status.error or f"Series reconciled from {status.source.value}",
        request_id=get_request_id(request),
    )


@router.get("/summary", response_model=APIResponse)
async def get_summary(request: Request, client: CoinSeriesClient = Depends(get_client)) -> APIResponse:
    summary = await client.summary()
    if summary is None:
        raise HTTPException(status_code=404, detail="No price data available")
    return APIResponse(
        success=True,
        data=SummaryPayload.from_summary(summary),
        request_id=get_request_id(request),
    )


@router.get("/log", response_model=APIResponse)
async def get_log(
    request: Request,
    duration: str = Query("1D", description="Look-back (1D, 1W, 1M)"),
    client: CoinSeriesClient = Depends(get_client),
) -> APIResponse:
    selected = _parse(LogDuration, duration, "duration")
    entries = await client.log(selected)
    return APIResponse(
        success=True,
        data=[LogEntryPayload.from_entry(entry) for entry in entries],
        message=selected.label,
        request_id=get_request_id(request),
    )


def _parse(enum_type, value: str, name: str):
    try:
        return enum_type(value.upper())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in enum_type)
        raise HTTPException(status_code=422, detail=f"Unsupported {name} '{value}'. Allowed values: {allowed}") from exc
