"""Main entry point for the coinseries command line interface."""

from __future__ import annotations

import sys
from pathlib import Path

import typer

from coinseries.core.config import ConfigManager
from coinseries.core.logging import configure_logging

from .formatters import create_formatter
from .series import register as register_series_commands
from .store import register as register_store_commands


def create_app() -> typer.Typer:
    """Create a Typer application instance for coinseries."""

    app = typer.Typer(add_completion=False, help="BTC/USD daily price series")

    @app.callback()
    def main(
        ctx: typer.Context,
        format: str = typer.Option(
            "table",
            "--format",
            "-f",
            help="Output format (table or jsonl).",
            show_default=True,
        ),
        output: Path | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write output to a file instead of stdout.",
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            help="Logging level, defaults to the configured one.",
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Disable colorized output for table format.",
        ),
        config_path: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="Configuration file, defaults to ~/.coinseries/config.toml.",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        normalized_format = format.strip().lower()
        try:
            create_formatter(normalized_format, no_color=no_color)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--format") from exc

        config = ConfigManager(config_path).get_config()
        level = (log_level or config.logging.level).upper()
        configure_logging(
            level,
            console_stream=sys.stderr,
            serialize=config.logging.serialize,
            file_output=config.logging.file is not None,
            file_path=config.logging.file,
        )

        ctx.obj.update(
            {
                "format": normalized_format,
                "output_path": output,
                "log_level": level,
                "no_color": no_color,
                "config": config,
            }
        )

    register_series_commands(app)
    register_store_commands(app)
    return app


app = create_app()
