"""Persistent cache maintenance commands."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from mdrrmo.core.cache import DuckDBCache

from .utils import load_config, prepare_output

cache_app = typer.Typer(help="Persistent cache maintenance.")

PathOption = typer.Option(None, "--path", help="DuckDB cache file. Defaults to the configured path.")


def register(app: typer.Typer) -> None:
    """Register the cache command group on the provided application."""

    app.add_typer(cache_app, name="cache", help="Inspect and maintain the persistent cache")


def open_cache(ctx: typer.Context, path: Path | None) -> DuckDBCache:
    """Factory hook for the persistent cache the commands operate on."""

    config = load_config(ctx).cache
    db_path = str(path) if path is not None else config.persistent_path
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return DuckDBCache(db_path=db_path, default_ttl=config.persistent_ttl)


def _render(ctx: typer.Context, rows: list[dict[str, object]]) -> None:
    formatter, stream, stack = prepare_output(ctx)
    try:
        formatter.render(rows, stream=stream)
    finally:
        stack.close()


@cache_app.command("stats")
def stats_command(ctx: typer.Context, path: Path | None = PathOption) -> None:
    """Show entry counts and the size estimate."""

    cache = open_cache(ctx, path)
    try:
        stats = asyncio.run(cache.get_stats())
    finally:
        cache.close()
    _render(ctx, [stats.model_dump()])


@cache_app.command("cleanup")
def cleanup_command(ctx: typer.Context, path: Path | None = PathOption) -> None:
    """Delete expired entries."""

    cache = open_cache(ctx, path)
    try:
        removed = asyncio.run(cache.cleanup())
    finally:
        cache.close()
    _render(ctx, [{"removed": removed}])


@cache_app.command("clear")
def clear_command(
    ctx: typer.Context,
    path: Path | None = PathOption,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete every entry."""

    if not yes:
        typer.confirm("Remove every entry from the persistent cache?", abort=True)
    cache = open_cache(ctx, path)
    try:
        asyncio.run(cache.clear())
    finally:
        cache.close()
    _render(ctx, [{"cleared": True}])
