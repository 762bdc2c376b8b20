"""
Unit tests for UpstreamClient failure normalization.
"""

import httpx
import pytest

from employee_api.services.client import UpstreamClient, parse_retry_after
from employee_api.services.errors import (
    ClientFailure,
    ConnectFailure,
    NotFoundFailure,
    ServerFailure,
)
from tests.conftest import UPSTREAM_BASE_URL, envelope


def client_for(handler) -> UpstreamClient:
    return UpstreamClient(
        base_url=UPSTREAM_BASE_URL, transport=httpx.MockTransport(handler)
    )


class TestUpstreamClient:
    """Test cases for UpstreamClient.fetch."""

    @pytest.mark.asyncio
    async def test_unwraps_envelope(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            return httpx.Response(200, json=envelope([{"id": "1"}], "ok"))

        async with client_for(handler) as client:
            response = await client.fetch("GET", "/employee")

        assert seen["url"] == f"{UPSTREAM_BASE_URL}/employee"
        assert response.status_code == 200
        assert response.data == [{"id": "1"}]
        assert response.status == "ok"

    @pytest.mark.asyncio
    async def test_sends_json_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = request.content
            seen["method"] = request.method
            return httpx.Response(200, json=envelope({"id": "1"}))

        async with client_for(handler) as client:
            await client.fetch("POST", "/employee", {"name": "A"})

        assert seen["method"] == "POST"
        assert b'"name"' in seen["body"]

    @pytest.mark.asyncio
    async def test_empty_body_has_no_data(self):
        async with client_for(lambda request: httpx.Response(200)) as client:
            response = await client.fetch("GET", "/employee")

        assert response.data is None

    @pytest.mark.asyncio
    async def test_404_raises_not_found(self):
        async with client_for(lambda request: httpx.Response(404)) as client:
            with pytest.raises(NotFoundFailure):
                await client.fetch("GET", "/employee/x")

    @pytest.mark.asyncio
    async def test_429_raises_client_failure_with_retry_after(self):
        def handler(request):
            return httpx.Response(429, headers={"Retry-After": "30"}, text="slow down")

        async with client_for(handler) as client:
            with pytest.raises(ClientFailure) as exc_info:
                await client.fetch("GET", "/employee")

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == 30.0
        assert exc_info.value.body == "slow down"

    @pytest.mark.asyncio
    async def test_other_4xx_raises_client_failure(self):
        async with client_for(lambda request: httpx.Response(400)) as client:
            with pytest.raises(ClientFailure) as exc_info:
                await client.fetch("GET", "/employee")

        assert exc_info.value.status_code == 400
        assert exc_info.value.retry_after is None

    @pytest.mark.asyncio
    async def test_5xx_raises_server_failure(self):
        async with client_for(lambda request: httpx.Response(503)) as client:
            with pytest.raises(ServerFailure) as exc_info:
                await client.fetch("GET", "/employee")

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_connect_error_raises_connect_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with client_for(handler) as client:
            with pytest.raises(ConnectFailure):
                await client.fetch("GET", "/employee")

    @pytest.mark.asyncio
    async def test_timeout_raises_connect_failure(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        async with client_for(handler) as client:
            with pytest.raises(ConnectFailure, match="timed out"):
                await client.fetch("GET", "/employee")

    @pytest.mark.asyncio
    async def test_close_resets_http_client(self):
        client = client_for(lambda request: httpx.Response(200))
        await client.fetch("GET", "/employee")

        await client.close()

        assert client._http_client is None


@pytest.mark.parametrize(
    "value,expected",
    [(None, None), ("", None), ("12", 12.0), ("1.5", 1.5), ("soon", None), ("-1", None)],
)
def test_parse_retry_after(value, expected):
    assert parse_retry_after(value) == expected
