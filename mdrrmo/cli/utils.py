"""Utility helpers shared across CLI commands."""

from __future__ import annotations

import json
import sys
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, TextIO

import typer

from mdrrmo.core.config import ConfigManager, MdrrmoConfig
from mdrrmo.core.exceptions import ConfigError
from mdrrmo.core.logging import configure_logging

from .constants import VALIDATION_EXIT_CODE
from .formatters import OutputFormatter, create_formatter


@dataclass(slots=True)
class CLIOptions:
    """Resolved options derived from the Typer context."""

    format: str = "table"
    output_path: Path | None = None
    config_path: Path | None = None
    no_color: bool = False


def get_cli_options(ctx: typer.Context) -> CLIOptions:
    """Extract :class:`CLIOptions` from the Typer context object."""

    ctx.ensure_object(dict)
    data = ctx.obj or {}
    return CLIOptions(
        format=str(data.get("format", "table")),
        output_path=data.get("output_path"),
        config_path=data.get("config_path"),
        no_color=bool(data.get("no_color", False)),
    )


def load_config(ctx: typer.Context) -> MdrrmoConfig:
    """Load configuration from the file selected by ``--config`` and the environment."""

    options = get_cli_options(ctx)
    try:
        config = ConfigManager(options.config_path).get_config()
    except ConfigError as exc:
        emit_error(exc.message, exc.error_code, details=exc.details)
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc

    level = (ctx.obj or {}).get("log_level") or config.logging.level
    configure_logging(level, file_output=bool(config.logging.file), file_path=config.logging.file)
    return config


def prepare_output(ctx: typer.Context) -> tuple[OutputFormatter, TextIO, ExitStack]:
    """Resolve formatter and writable stream for the current command."""

    options = get_cli_options(ctx)
    formatter = create_formatter(options.format, no_color=options.no_color)

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

    return formatter, stream, stack


def emit_error(message: str, code: str, *, details: Mapping[str, object] | None = None) -> None:
    """Print a structured error payload to stderr."""

    payload: dict[str, object] = {"code": code, "message": message}
    if details:
        payload["details"] = {key: str(value) for key, value in details.items()}
    typer.echo(json.dumps(payload, ensure_ascii=False, default=str), err=True)


__all__ = ["CLIOptions", "get_cli_options", "load_config", "prepare_output", "emit_error"]
