"""Utility helpers shared across CLI commands."""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from typing import Mapping, Sequence, TextIO, TypeVar

import typer

from coinseries.core.client import CoinSeriesClient
from coinseries.core.config import CoinSeriesConfig
from coinseries.core.exceptions import ApiError, CoinSeriesError, ConfigurationError
from coinseries.core.timeutils import local_datetime

from .constants import PROVIDER_EXIT_CODE, SYSTEM_EXIT_CODE, VALIDATION_EXIT_CODE
from .formatters import OutputFormatter, create_formatter

T = TypeVar("T")


@dataclass(slots=True)
class CLIOptions:
    """Resolved options derived from the Typer context."""

    format: str = "table"
    output_path: Path | None = None
    no_color: bool = False
    config: CoinSeriesConfig = field(default_factory=CoinSeriesConfig)


def get_cli_options(ctx: typer.Context) -> CLIOptions:
    """Extract :class:`CLIOptions` from the Typer context object."""

    ctx.ensure_object(dict)
    data = ctx.obj or {}
    return CLIOptions(
        format=str(data.get("format", "table")),
        output_path=data.get("output_path"),
        no_color=bool(data.get("no_color", False)),
        config=data.get("config") or CoinSeriesConfig(),
    )


def prepare_output(ctx: typer.Context) -> tuple[OutputFormatter, TextIO, ExitStack, CLIOptions]:
    """Resolve formatter and writable stream for the current command."""

    options = get_cli_options(ctx)
    try:
        formatter = create_formatter(options.format, no_color=options.no_color)
    except ValueError as exc:  # pragma: no cover - validated in the callback
        emit_error(str(exc), "INVALID_FORMAT")
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc

    stack = ExitStack()
    stream: TextIO
    if options.output_path is not None:
        try:
            stream = stack.enter_context(open(options.output_path, "w", encoding="utf-8"))
        except OSError as exc:
            stack.close()
            emit_error(f"Unable to open '{options.output_path}': {exc}", "OUTPUT_WRITE_ERROR")
            raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc
    else:
        stream = sys.stdout

    return formatter, stream, stack, options


def emit_error(message: str, code: str, *, details: Mapping[str, object] | None = None) -> None:
    """Print a structured error payload to stderr."""

    payload: dict[str, object] = {"code": code, "message": message}
    if details:
        payload["details"] = _sanitize_details(details)
    typer.echo(json.dumps(payload, ensure_ascii=False, default=str), err=True)


def get_client(config: CoinSeriesConfig) -> CoinSeriesClient:
    """Factory hook for obtaining a :class:`CoinSeriesClient` instance."""

    return CoinSeriesClient.from_config(config)


def run_with_client(ctx: typer.Context, operation: Callable[[CoinSeriesClient], Awaitable[T]]) -> T:
    """Build a client from the context configuration and run ``operation`` on it."""

    options = get_cli_options(ctx)

    async def _runner() -> T:
        async with get_client(options.config) as client:
            return await operation(client)

    try:
        return asyncio.run(_runner())
    except CoinSeriesError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=_exit_code_for(error)) from error


def _exit_code_for(error: CoinSeriesError) -> int:
    if isinstance(error, ConfigurationError):
        return VALIDATION_EXIT_CODE
    if isinstance(error, ApiError):
        return PROVIDER_EXIT_CODE
    return SYSTEM_EXIT_CODE


def format_timestamp(timestamp_ms: int | None, tz: tzinfo | None = None, *, with_time: bool = False) -> str | None:
    """Render an epoch-millisecond timestamp in the configured time zone."""

    if timestamp_ms is None:
        return None
    moment = local_datetime(timestamp_ms, tz)
    return moment.strftime("%Y-%m-%d %H:%M") if with_time else moment.date().isoformat()


def _sanitize_details(details: Mapping[str, object]) -> Mapping[str, object]:
    sanitized: dict[str, object] = {}
    for key, value in details.items():
        if isinstance(value, (str, int, float, bool)) or value is None:
            sanitized[key] = value
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            sanitized[key] = [str(item) for item in value]
        else:
            sanitized[key] = str(value)
    return sanitized


__all__ = [
    "CLIOptions",
    "emit_error",
    "format_timestamp",
    "get_cli_options",
    "get_client",
    "prepare_output",
    "run_with_client",
]
