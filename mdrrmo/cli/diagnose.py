"""Backend diagnostics command."""

from __future__ import annotations

import asyncio

import typer

from mdrrmo.core.config import BackendConfig
from mdrrmo.core.health import Diagnostics, DiagnosticsReport, SupabaseClient

from .constants import UNHEALTHY_EXIT_CODE
from .utils import load_config, prepare_output

COLUMNS = ["check", "status", "detail"]


def register(app: typer.Typer) -> None:
    """Register the diagnose command on the provided application."""

    app.command("diagnose")(diagnose_command)


async def run_diagnostics(config: BackendConfig) -> DiagnosticsReport:
    """Factory hook running the diagnostics against the configured backend."""

    async with SupabaseClient(config) as client:
        return await Diagnostics(client, config).run_diagnostics()


def diagnose_command(ctx: typer.Context) -> None:
    """Check backend reachability, configuration and authentication."""

    config = load_config(ctx)
    formatter, stream, stack = prepare_output(ctx)
    report = asyncio.run(run_diagnostics(config.backend))

    try:
        formatter.render(report_to_rows(report), stream=stream, columns=COLUMNS)
    finally:
        stack.close()

    if report.overall == "error":
        raise typer.Exit(code=UNHEALTHY_EXIT_CODE)


def report_to_rows(report: DiagnosticsReport) -> list[dict[str, object]]:
    connection = report.connection
    rows: list[dict[str, object]] = [
        {"check": "overall", "status": report.overall, "detail": report.checked_at.isoformat()},
        {
            "check": "connection",
            "status": "ok" if connection.is_connected else "failed",
            "detail": connection.error or "",
        },
    ]
    for table, reachable in connection.tables.items():
        rows.append({"check": f"table:{table}", "status": "ok" if reachable else "missing", "detail": ""})

    environment = report.environment
    rows.append(
        {
            "check": "environment",
            "status": "ok" if environment.valid else "invalid",
            "detail": "; ".join(environment.issues),
        }
    )
    rows.append(
        {
            "check": "auth",
            "status": "ok" if report.auth.working else "failed",
            "detail": report.auth.error or "",
        }
    )
    for recommendation in report.recommendations:
        rows.append({"check": "recommendation", "status": "", "detail": recommendation})
    return rows
