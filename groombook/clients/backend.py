from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from groombook.services.exceptions import BackendRPCError, DownstreamServiceError

logger = logging.getLogger(__name__)


def eq(value: Any) -> str:
    if isinstance(value, bool):
        value = str(value).lower()
    return f"eq.{value}"


def in_(values: Iterable[Any]) -> str:
    return "in.(" + ",".join(str(value) for value in values) + ")"


class BackendClient:
    """Async HTTP client for the hosted backend (PostgREST tables and RPCs)."""

    def __init__(
        self,
        base_url: str | None,
        *,
        api_key: str | None = None,
        timeout: float = 12.0,
        retries: int = 1,
        retry_backoff: float = 2.0,
        use_mock_data: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = str(base_url).rstrip("/") if base_url else None
        self._timeout = timeout
        self._retries = max(retries, 0)
        self._retry_backoff = retry_backoff
        self._transport = transport
        self.use_mock_data = use_mock_data or not self._base_url
        self._headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if api_key:
            self._headers.update({
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
            })
        self._client: Optional[httpx.AsyncClient] = None
        if not self.use_mock_data and self._base_url:
            self._client = self._build_client()

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self._base_url}/rest/v1",
            timeout=self._timeout,
            headers=self._headers,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self.use_mock_data or not self._base_url:
            raise RuntimeError("HTTP client requested while running in mock mode")
        if self._client is None:
            self._client = self._build_client()
        return self._client

    @staticmethod
    def _error_from_response(exc: httpx.HTTPStatusError) -> DownstreamServiceError:
        status_code = exc.response.status_code
        try:
            body = exc.response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            error = BackendRPCError.from_payload(body, status_code=status_code)
            error.cause = exc
            return error
        return DownstreamServiceError(
            "Backend returned an error response",
            status_code=status_code,
            cause=exc,
        )

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] | None = None,
        payload: Any = None,
        headers: Dict[str, str] | None = None,
        retries: int = 0,
    ) -> Any:
        if self.use_mock_data:
            raise RuntimeError("Real HTTP call requested while mock mode is enabled")
        client = await self._ensure_client()
        attempt = 0
        while True:
            try:
                logger.debug("%s %s params=%s", method, path, params)
                response = await client.request(
                    method, path, params=params, json=payload, headers=headers
                )
                response.raise_for_status()
                if not response.content:
                    return None
                return response.json()
            except httpx.HTTPStatusError as exc:
                logger.exception("Backend returned error %s for %s", exc.response.status_code, path)
                raise self._error_from_response(exc) from exc
            except httpx.RequestError as exc:
                if attempt < retries:
                    attempt += 1
                    delay = self._retry_backoff * attempt
                    logger.warning(
                        "Backend unreachable for %s (%s), retry %s/%s in %.1fs",
                        path, exc, attempt, retries, delay,
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.exception("Unable to reach backend: %s", exc)
                raise DownstreamServiceError(
                    "Unable to reach backend", status_code=None, cause=exc
                ) from exc

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Dict[str, str] | None = None,
        order: str | None = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"select": columns}
        params.update(filters or {})
        if order:
            params["order"] = order
        data = await self._send("GET", f"/{table}", params=params, retries=self._retries)
        return list(data or [])

    async def update(
        self,
        table: str,
        values: Dict[str, Any],
        *,
        filters: Dict[str, str],
    ) -> List[Dict[str, Any]]:
        data = await self._send(
            "PATCH",
            f"/{table}",
            params=filters,
            payload=values,
            headers={"Prefer": "return=representation"},
        )
        return list(data or [])

    async def rpc(self, name: str, payload: Dict[str, Any], *, retry: bool = False) -> Any:
        # Writes are only retried when the caller says the procedure is safe to repeat.
        return await self._send(
            "POST",
            f"/rpc/{name}",
            payload=payload,
            retries=self._retries if retry else 0,
        )

    async def simulate_latency(self) -> None:
        """Allow services to await for latency even when mocking responses."""

        await asyncio.sleep(0)
