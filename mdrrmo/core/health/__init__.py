"""Backend health monitoring and diagnostics."""

from mdrrmo.core.health.backend import BackendClient, SupabaseClient
from mdrrmo.core.health.diagnostics import (
    REQUIRED_TABLES,
    AuthReport,
    ConnectionStatus,
    Diagnostics,
    DiagnosticsReport,
    EnvironmentReport,
)

__all__ = [
    "BackendClient",
    "SupabaseClient",
    "Diagnostics",
    "DiagnosticsReport",
    "ConnectionStatus",
    "EnvironmentReport",
    "AuthReport",
    "REQUIRED_TABLES",
]
