"""Price series commands."""

from __future__ import annotations

from datetime import tzinfo
from typing import Mapping

import typer

from coinseries.core.client import CoinSeriesClient
from coinseries.core.models.market import DataSource, Granularity, LogDuration, TimeRange
from coinseries.core.models.status import ReconcileResult
from coinseries.core.services.views import LogEntry, PriceSummary, SeriesView

from .constants import SYSTEM_EXIT_CODE
from .utils import format_timestamp, prepare_output, run_with_client

series_app = typer.Typer(help="Price series operations.")

STATUS_COLUMNS = ["source", "missing_days", "records", "first_date", "last_date", "last_close", "error", "last_update"]
RECORD_COLUMNS = ["date", "open", "high", "low", "close", "volume"]
SUMMARY_COLUMNS = ["date", "price", "change_pct", "high", "low", "previous_price"]
LOG_COLUMNS = ["date", "close", "change_pct"]


def register(app: typer.Typer) -> None:
    """Register the series command group on the provided application."""

    app.add_typer(series_app, name="series", help="Reconcile and inspect the price series")


@series_app.command("status")
def status_command(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Query the live API even when no day is missing."),
) -> None:
    """Reconcile the archive with cached and live data and report freshness."""

    async def _operation(client: CoinSeriesClient) -> tuple[ReconcileResult, tzinfo | None]:
        return await client.refresh(force_fetch=force), client.tz

    result, tz = run_with_client(ctx, _operation)
    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render([_status_row(result, tz)], stream=stream, columns=STATUS_COLUMNS)
    finally:
        stack.close()
    if result.status.source is DataSource.ERROR:
        raise typer.Exit(code=SYSTEM_EXIT_CODE)


@series_app.command("show")
def show_command(
    ctx: typer.Context,
    time_range: str = typer.Option("1Y", "--range", "-r", help="Viewing window (1D, 1W, 1M, 6M, 1Y, 5Y, ALL)."),
    force: bool = typer.Option(False, "--force", help="Query the live API even when no day is missing."),
) -> None:
    """Print the series for a viewing window, bucketed to its granularity."""

    selected = _parse_time_range(time_range)

    async def _operation(client: CoinSeriesClient) -> tuple[SeriesView, tzinfo | None]:
        await client.refresh(force_fetch=force)
        return await client.view(selected), client.tz

    view, tz = run_with_client(ctx, _operation)
    formatter, stream, stack, _ = prepare_output(ctx)
    with_time = view.granularity is Granularity.HOUR
    rows = [
        {
            "date": format_timestamp(record.timestamp, tz, with_time=with_time),
            "open": record.open,
            "high": record.high,
            "low": record.low,
            "close": record.close,
            "volume": record.volume,
        }
        for record in view.records
    ]
    title = f"{selected.value} by {view.granularity.value}, {view.period_change_pct:+.2f}%"
    try:
        formatter.render(rows, stream=stream, columns=RECORD_COLUMNS, title=title)
    finally:
        stack.close()


@series_app.command("summary")
def summary_command(ctx: typer.Context) -> None:
    """Print the latest price and its change over 24 hours."""

    async def _operation(client: CoinSeriesClient) -> tuple[PriceSummary | None, tzinfo | None]:
        return await client.summary(), client.tz

    summary, tz = run_with_client(ctx, _operation)
    formatter, stream, stack, _ = prepare_output(ctx)
    rows = [_summary_row(summary, tz)] if summary else []
    try:
        formatter.render(rows, stream=stream, columns=SUMMARY_COLUMNS)
    finally:
        stack.close()


@series_app.command("log")
def log_command(
    ctx: typer.Context,
    duration: str = typer.Option("1D", "--duration", "-d", help="Look-back (1D, 1W, 1M)."),
) -> None:
    """Print the newest records first with their change against the previous one."""

    selected = _parse_duration(duration)

    async def _operation(client: CoinSeriesClient) -> tuple[list[LogEntry], tzinfo | None]:
        return await client.log(selected), client.tz

    entries, tz = run_with_client(ctx, _operation)
    formatter, stream, stack, _ = prepare_output(ctx)
    rows = [
        {
            "date": format_timestamp(entry.record.timestamp, tz),
            "close": entry.record.close,
            "change_pct": round(entry.change_pct, 2),
        }
        for entry in entries
    ]
    try:
        formatter.render(rows, stream=stream, columns=LOG_COLUMNS, title=selected.label)
    finally:
        stack.close()


def _status_row(result: ReconcileResult, tz: tzinfo | None) -> Mapping[str, object]:
    series = result.series
    latest = result.latest
    return {
        "source": result.status.source.value,
        "missing_days": result.status.missing_days,
        "records": len(series),
        "first_date": format_timestamp(series[0].timestamp, tz) if series else None,
        "last_date": format_timestamp(latest.timestamp, tz) if latest else None,
        "last_close": latest.close if latest else None,
        "error": result.status.error,
        "last_update": result.status.last_update.isoformat(),
    }


def _summary_row(summary: PriceSummary, tz: tzinfo | None) -> Mapping[str, object]:
    return {
        "date": format_timestamp(summary.timestamp, tz),
        "price": summary.price,
        "change_pct": round(summary.change_pct, 2),
        "high": summary.high,
        "low": summary.low,
        "previous_price": summary.previous_price,
    }


def _parse_time_range(value: str) -> TimeRange:
    try:
        return TimeRange(value.upper())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in TimeRange)
        raise typer.BadParameter(f"Unsupported range '{value}'. Allowed values: {allowed}", param_hint="--range") from exc


def _parse_duration(value: str) -> LogDuration:
    try:
        return LogDuration(value.upper())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in LogDuration)
        raise typer.BadParameter(
            f"Unsupported duration '{value}'. Allowed values: {allowed}",
            param_hint="--duration",
        ) from exc


__all__ = ["register", "series_app", "status_command", "show_command", "summary_command", "log_command"]
