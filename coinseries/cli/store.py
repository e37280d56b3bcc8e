"""Administrative commands over the local record store."""

from __future__ import annotations

from datetime import tzinfo

import typer

from coinseries.core.client import CoinSeriesClient
from coinseries.core.services.diagnostics import StoreStats

from .utils import format_timestamp, prepare_output, run_with_client

store_app = typer.Typer(help="Local store diagnostics.")

STATS_COLUMNS = ["count", "first_date", "last_date"]


def register(app: typer.Typer) -> None:
    """Register the store command group on the provided application."""

    app.add_typer(store_app, name="store", help="Inspect or clear cached live data")


@store_app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Show how many records are cached and which days they span."""

    async def _operation(client: CoinSeriesClient) -> tuple[StoreStats, tzinfo | None]:
        return await client.diagnostics.stats(), client.tz

    stats, tz = run_with_client(ctx, _operation)
    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render([_stats_row(stats, tz)], stream=stream, columns=STATS_COLUMNS)
    finally:
        stack.close()


@store_app.command("clear")
def clear_command(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete every cached record. The bundled archive is not affected."""

    if not yes:
        typer.confirm("Delete all cached price records?", abort=True)

    async def _operation(client: CoinSeriesClient) -> StoreStats:
        return await client.diagnostics.clear()

    removed = run_with_client(ctx, _operation)
    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render([{"removed": removed.count}], stream=stream, columns=["removed"])
    finally:
        stack.close()


def _stats_row(stats: StoreStats, tz: tzinfo | None) -> dict[str, object]:
    return {
        "count": stats.count,
        "first_date": format_timestamp(stats.first_timestamp, tz),
        "last_date": format_timestamp(stats.last_timestamp, tz),
    }


__all__ = ["register", "store_app", "stats_command", "clear_command"]
