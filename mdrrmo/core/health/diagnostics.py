"""Backend reachability and configuration diagnostics.

Every probe converts its own failures into a structured result, so
``Diagnostics.run_diagnostics`` always returns a report.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field

from mdrrmo.core.config import BackendConfig
from mdrrmo.core.health.backend import BackendClient
from mdrrmo.core.logging import log_context
from mdrrmo.core.patterns import ExponentialBackoffRetry, RetryConfig

URL_VARIABLE = "SUPABASE_URL"
KEY_VARIABLE = "SUPABASE_ANON_KEY"

REQUIRED_TABLES = (
    "news",
    "services",
    "incident_reports",
    "gallery",
    "videos",
    "pages",
    "page_sections",
    "resources",
    "emergency_alerts",
    "social_posts",
    "users",
    "system_settings",
)

OverallStatus = Literal["healthy", "warning", "error"]


class ConnectionStatus(BaseModel):
    is_connected: bool = False
    error: str | None = None
    tables: dict[str, bool] = Field(default_factory=dict)

    @property
    def missing_tables(self) -> list[str]:
        return [table for table, reachable in self.tables.items() if not reachable]


class EnvironmentReport(BaseModel):
    valid: bool
    issues: list[str] = Field(default_factory=list)


class AuthReport(BaseModel):
    working: bool
    error: str | None = None


class DiagnosticsReport(BaseModel):
    overall: OverallStatus
    connection: ConnectionStatus
    environment: EnvironmentReport
    auth: AuthReport
    recommendations: list[str] = Field(default_factory=list)
    trace_id: str | None = None
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class Diagnostics:
    """Runs the backend health probes."""

    def __init__(
        self,
        client: BackendClient,
        config: BackendConfig,
        required_tables: Sequence[str] = REQUIRED_TABLES,
        retry_config: RetryConfig | None = None,
    ):
        self.client = client
        self.config = config
        self.required_tables = tuple(required_tables)
        self.retry_config = retry_config or RetryConfig(
            max_attempts=config.max_retries,
            base_delay=config.retry_base_delay,
        )

    async def check_connection(self) -> ConnectionStatus:
        """Probe the backend, then each required table independently."""
        status = ConnectionStatus()

        try:
            retry = ExponentialBackoffRetry(self.retry_config)
            await retry.execute(self.client.probe_table, "news")
        except Exception as e:
            status.error = f"Connection failed: {e}"
            logger.warning(status.error)
            return status

        status.is_connected = True

        for table in self.required_tables:
            try:
                await self.client.probe_table(table)
                status.tables[table] = True
            except Exception as e:
                logger.debug("Table {} not reachable: {}", table, e)
                status.tables[table] = False

        return status

    async def verify_environment_variables(self) -> EnvironmentReport:
        """Check the backend URL and key for absence and placeholder values."""
        issues: list[str] = []
        url = self.config.url
        key = self.config.anon_key

        if not url:
            issues.append(f"{URL_VARIABLE} is not set")
        elif "your-project-ref" in url or "placeholder" in url:
            issues.append(f"{URL_VARIABLE} contains placeholder values")
        elif "supabase.co" not in url:
            issues.append(f"{URL_VARIABLE} does not appear to be a valid Supabase URL")

        if not key:
            issues.append(f"{KEY_VARIABLE} is not set")
        elif "your-anon-key" in key or "placeholder" in key:
            issues.append(f"{KEY_VARIABLE} contains placeholder values")
        elif not key.startswith("eyJ"):
            issues.append(f"{KEY_VARIABLE} does not appear to be a valid JWT token")

        return EnvironmentReport(valid=not issues, issues=issues)

    async def test_authentication(self) -> AuthReport:
        """Check the auth service responds, then sign up a throwaway user."""
        try:
            await self.client.get_session()
        except Exception as e:
            return AuthReport(working=False, error=str(e) or "Auth test failed")

        test_email = f"test-{int(time.time() * 1000)}@example.com"
        try:
            await self.client.sign_up(test_email, "test123456")
        except Exception as e:
            return AuthReport(working=False, error=str(e) or "Auth test failed")

        logger.info("Auth test successful - test user {} created", test_email)
        return AuthReport(working=True)

    async def run_diagnostics(self) -> DiagnosticsReport:
        with log_context(check="diagnostics") as trace_id:
            connection = await self._guarded_connection()
            environment = await self._guarded_environment()
            auth = await self._guarded_auth()
            report = self._build_report(connection, environment, auth, trace_id)
            logger.info("Diagnostics finished with status {}", report.overall)
        return report

    def _build_report(
        self,
        connection: ConnectionStatus,
        environment: EnvironmentReport,
        auth: AuthReport,
        trace_id: str,
    ) -> DiagnosticsReport:
        recommendations: list[str] = []

        if not environment.valid:
            recommendations.append("Update your .env file with actual Supabase credentials")
            recommendations.append("Restart the application after updating environment variables")

        if not connection.is_connected:
            recommendations.append("Check your Supabase project status and credentials")
            recommendations.append("Ensure your Supabase project is not paused")

        missing_tables = connection.missing_tables
        if missing_tables:
            recommendations.append(f"Run database migrations for missing tables: {', '.join(missing_tables)}")

        if not auth.working:
            recommendations.append("Check Supabase Auth configuration and RLS policies")

        overall: OverallStatus = "healthy"
        if not environment.valid or not connection.is_connected:
            overall = "error"
        elif missing_tables or not auth.working:
            overall = "warning"

        return DiagnosticsReport(
            overall=overall,
            connection=connection,
            environment=environment,
            auth=auth,
            recommendations=recommendations,
            trace_id=trace_id,
        )

    # run_diagnostics must return a report even if a probe itself raises.

    async def _guarded_connection(self) -> ConnectionStatus:
        try:
            return await self.check_connection()
        except Exception as e:
            return ConnectionStatus(error=str(e) or type(e).__name__)

    async def _guarded_environment(self) -> EnvironmentReport:
        try:
            return await self.verify_environment_variables()
        except Exception as e:
            return EnvironmentReport(valid=False, issues=[f"Configuration check failed: {e}"])

    async def _guarded_auth(self) -> AuthReport:
        try:
            return await self.test_authentication()
        except Exception as e:
            return AuthReport(working=False, error=str(e) or type(e).__name__)
