"""Minimal client for the hosted backend used by the diagnostics."""

from __future__ import annotations

from typing import Any, Protocol

import httpx

from mdrrmo.core.config import BackendConfig
from mdrrmo.core.exceptions import BackendError


class BackendClient(Protocol):
    """Operations the diagnostics need from the backend. All raise ``BackendError``."""

    async def probe_table(self, table: str) -> None: ...

    async def get_session(self) -> dict[str, Any]: ...

    async def sign_up(self, email: str, password: str) -> dict[str, Any]: ...


class SupabaseClient:
    """Talks to the Supabase REST and auth endpoints over httpx."""

    def __init__(self, config: BackendConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if not self.config.url:
            raise BackendError("Backend URL is not configured")
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.url.rstrip("/"),
                timeout=self.config.timeout,
                transport=self._transport,
                headers={
                    "apikey": self.config.anon_key,
                    "Authorization": f"Bearer {self.config.anon_key}",
                    "x-application-name": self.config.application_name,
                },
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = self._ensure_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise BackendError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise BackendError(_error_message(response), status_code=response.status_code)
        return response

    async def probe_table(self, table: str) -> None:
        """Read at most one row of ``table``."""
        await self._request("GET", f"/rest/v1/{table}", params={"select": "count", "limit": 1})

    async def get_session(self) -> dict[str, Any]:
        response = await self._request("GET", "/auth/v1/health")
        return _json_or_empty(response)

    async def sign_up(self, email: str, password: str) -> dict[str, Any]:
        response = await self._request("POST", "/auth/v1/signup", json={"email": email, "password": password})
        return _json_or_empty(response)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SupabaseClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {"data": body}


def _error_message(response: httpx.Response) -> str:
    body = _json_or_empty(response)
    for field in ("message", "msg", "error_description", "error"):
        if body.get(field):
            return str(body[field])
    return f"HTTP {response.status_code}"
