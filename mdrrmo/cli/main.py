"""Main entry point for the mdrrmo command line interface."""

from __future__ import annotations

from pathlib import Path

import typer

from mdrrmo.core.logging import configure_logging

from .cache import register as register_cache_commands
from .diagnose import register as register_diagnose_commands
from .formatters import create_formatter


def create_app() -> typer.Typer:
    """Create a Typer application instance for mdrrmo."""

    app = typer.Typer(add_completion=False, help="mdrrmo cache and diagnostics tools")

    @app.callback()
    def main(
        ctx: typer.Context,
        format: str = typer.Option(
            "table",
            "--format",
            "-f",
            help="Output format (table, jsonl or json).",
            show_default=True,
        ),
        output: Path | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write output to a file instead of stdout.",
        ),
        config: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="Configuration file. Defaults to ~/.mdrrmo/config.toml.",
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            help="Logging level. Overrides the configured level.",
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Disable colorized output for table format.",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        normalized_format = format.strip().lower()
        try:
            create_formatter(normalized_format, no_color=no_color)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--format") from exc

        ctx.obj.update(
            {
                "format": normalized_format,
                "output_path": output,
                "config_path": config,
                "log_level": log_level.upper() if log_level else None,
                "no_color": no_color,
            }
        )
        configure_logging(ctx.obj["log_level"] or "WARNING")

    register_diagnose_commands(app)
    register_cache_commands(app)
    return app


app = create_app()
