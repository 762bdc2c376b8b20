"""
UpstreamClient - Async HTTP transport adapter for the mock employee service.

Responsibilities:
- Issue HTTP calls against the upstream base URL
- Unwrap the {data, status} envelope of successful responses
- Normalize transport and status failures into typed UpstreamFailure errors

No retry or caching logic lives here; see retry.py and cache.py.
"""

from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from employee_api.models import parse_envelope
from employee_api.services.errors import (
    ClientFailure,
    ConnectFailure,
    NotFoundFailure,
    ServerFailure,
)
from employee_api.settings import global_settings

SERVICE_ID = "mock-employee-api"


@dataclass
class UpstreamResponse:
    """Successful response from the upstream service."""

    status_code: int
    data: Any = None
    status: str | None = None


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


class UpstreamClient:
    """
    Thin async client for the upstream employee service.

    Usage:
        async with UpstreamClient() as client:
            response = await client.fetch("GET", "/employee")
            employees = response.data
    """

    def __init__(
        self,
        base_url: str | None = None,
        connect_timeout: float | None = None,
        read_timeout: float | None = None,
        pool_timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = (base_url or global_settings.upstream_base_url).rstrip("/")
        self._timeout = httpx.Timeout(
            read_timeout or global_settings.upstream_read_timeout,
            connect=connect_timeout or global_settings.upstream_connect_timeout,
            pool=pool_timeout or global_settings.upstream_pool_timeout,
        )
        self._transport = transport

        # HTTP client (lazy initialization)
        self._http_client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._http_client

    async def fetch(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
    ) -> UpstreamResponse:
        """
        Make a single HTTP request to the upstream service.

        Args:
            method: HTTP method (GET, POST, DELETE)
            path: Path relative to the base URL, e.g. "/employee/{id}"
            body: JSON body for POST requests

        Returns:
            UpstreamResponse with the unwrapped envelope

        Raises:
            ConnectFailure: Network error or timeout
            ServerFailure: Upstream 5xx
            NotFoundFailure: Upstream 404
            ClientFailure: Any other upstream 4xx
        """
        client = await self._get_http_client()
        logger.debug(f"Upstream request: {method} {path}")

        try:
            response = await client.request(method=method, url=path, json=body)
        except httpx.TimeoutException as e:
            logger.error(f"Upstream {method} {path} timed out: {e}")
            raise ConnectFailure(f"Request to {SERVICE_ID} timed out") from e
        except httpx.TransportError as e:
            logger.error(f"Upstream {method} {path} unreachable: {e}")
            raise ConnectFailure(f"Could not reach {SERVICE_ID}: {e}") from e

        status_code = response.status_code

        if status_code == 404:
            raise NotFoundFailure(f"{method} {path} not found", body=response.text)

        if 400 <= status_code < 500:
            raise ClientFailure(
                status_code,
                body=response.text[:200],
                retry_after=parse_retry_after(response.headers.get("Retry-After")),
            )

        if status_code >= 500:
            logger.error(f"Upstream {method} {path} failed with HTTP {status_code}")
            raise ServerFailure(
                f"HTTP {status_code}: {response.text[:200]}",
                status_code=status_code,
                body=response.text[:200],
            )

        payload = response.json() if response.content else None
        envelope = parse_envelope(payload)

        return UpstreamResponse(
            status_code=status_code,
            data=envelope.data,
            status=envelope.status,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("UpstreamClient closed")

    async def __aenter__(self) -> "UpstreamClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
