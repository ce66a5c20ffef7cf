from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from upkeep.utils.http import HTTPClient
from upkeep.exceptions import NetworkError, RegistryError


def _response(status_code: int, **attrs) -> MagicMock:
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.headers = attrs.pop("headers", {})
    for key, value in attrs.items():
        setattr(response, key, value)
    return response


@pytest.fixture
def no_sleep():
    """Skip backoff and Retry-After delays."""
    with patch("upkeep.utils.http.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.mark.unit
class TestHTTPClientInit:
    """Tests for HTTPClient initialization and configuration."""

    def test_default_values(self) -> None:
        client = HTTPClient()

        assert client.timeout == 30
        assert client.max_retries == 3
        assert client.verify_ssl is True
        assert client.max_concurrency == 10
        assert client.user_agent.startswith("upkeep/")
        assert client.max_rate_limit_retries == 5
        assert client.headers == {}
        assert client._client is None

    def test_custom_values(self) -> None:
        client = HTTPClient(
            timeout=10,
            max_retries=5,
            user_agent="CustomAgent/1.0",
            max_concurrency=4,
            max_rate_limit_retries=0,
            headers={"Authorization": "Bearer token"},
        )

        assert client.timeout == 10
        assert client.max_retries == 5
        assert client.user_agent == "CustomAgent/1.0"
        assert client._semaphore._value == 4
        assert client.max_rate_limit_retries == 0
        assert client.headers == {"Authorization": "Bearer token"}


@pytest.mark.unit
class TestHTTPClientLifecycle:
    """Tests for the async context manager protocol."""

    @pytest.mark.asyncio
    async def test_context_manager_creates_and_closes_client(self) -> None:
        client = HTTPClient()

        async with client:
            assert isinstance(client._client, httpx.AsyncClient)
            assert client._client.headers["User-Agent"] == client.user_agent

        assert client._client is None

    @pytest.mark.asyncio
    async def test_extra_headers_are_sent(self) -> None:
        client = HTTPClient(headers={"Authorization": "Bearer token"})

        async with client:
            assert client._client.headers["Authorization"] == "Bearer token"

    @pytest.mark.asyncio
    async def test_close_without_client(self) -> None:
        client = HTTPClient()

        await client.close()
        await client.close()

        assert client._client is None


@pytest.mark.unit
class TestHTTPClientRequestWithRetry:
    """Tests for HTTPClient._request_with_retry core retry logic."""

    @pytest.mark.asyncio
    async def test_successful_request(self) -> None:
        client = HTTPClient(max_retries=1)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(200)

            async with client:
                response = await client._request_with_retry("GET", "https://example.com")

        assert response.status_code == 200
        assert mock_request.call_count == 1

    @pytest.mark.asyncio
    async def test_strips_quotes_and_whitespace_from_url(self) -> None:
        client = HTTPClient(max_retries=0)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(200)

            async with client:
                await client._request_with_retry("GET", '  "https://example.com"  ')

        assert mock_request.call_args[0][1] == "https://example.com"

    @pytest.mark.asyncio
    async def test_404_raises_registry_error_without_retry(self) -> None:
        client = HTTPClient(max_retries=3)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(404)

            async with client:
                with pytest.raises(RegistryError) as exc_info:
                    await client._request_with_retry(
                        "GET", "https://registry.npmjs.org/nope"
                    )

        assert exc_info.value.status_code == 404
        assert mock_request.call_count == 1

    @pytest.mark.asyncio
    async def test_429_honours_retry_after(self, no_sleep: AsyncMock) -> None:
        client = HTTPClient(max_retries=1)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = [
                _response(429, headers={"Retry-After": "2"}),
                _response(200),
            ]

            async with client:
                response = await client._request_with_retry("GET", "https://example.com")

        assert response.status_code == 200
        no_sleep.assert_awaited_once_with(2)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "headers", [{}, {"Retry-After": "Wed, 21 Oct 2026 07:28:00 GMT"}]
    )
    async def test_429_falls_back_to_default_delay(
        self, no_sleep: AsyncMock, headers
    ) -> None:
        client = HTTPClient(max_retries=0)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = [_response(429, headers=headers), _response(200)]

            async with client:
                response = await client._request_with_retry("GET", "https://example.com")

        assert response.status_code == 200
        no_sleep.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_429_limit_exceeded(self, no_sleep: AsyncMock) -> None:
        client = HTTPClient(max_retries=1, max_rate_limit_retries=1)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(429)

            async with client:
                with pytest.raises(NetworkError) as exc_info:
                    await client._request_with_retry("GET", "https://example.com")

        assert "Rate limit exceeded" in str(exc_info.value)
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_single_attempt_without_retries(self, no_sleep: AsyncMock) -> None:
        client = HTTPClient(max_retries=0, max_rate_limit_retries=0)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = [_response(429), httpx.ConnectError("refused")]

            async with client:
                with pytest.raises(NetworkError, match="Rate limit exceeded"):
                    await client._request_with_retry("GET", "https://example.com")
                with pytest.raises(NetworkError, match="after 1 attempts"):
                    await client._request_with_retry("GET", "https://example.com")

        assert mock_request.await_count == 2
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "failure",
        [httpx.TimeoutException("timeout"), httpx.ConnectError("refused")],
    )
    async def test_transient_errors_retry(self, no_sleep: AsyncMock, failure) -> None:
        client = HTTPClient(max_retries=1)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = [failure, _response(200)]

            async with client:
                response = await client._request_with_retry("GET", "https://example.com")

        assert response.status_code == 200
        assert mock_request.call_count == 2
        assert no_sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_4xx_error_raises_network_error(self) -> None:
        client = HTTPClient(max_retries=3)
        response = _response(403, text="forbidden")
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Forbidden", request=MagicMock(), response=response
        )

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = response

            async with client:
                with pytest.raises(NetworkError) as exc_info:
                    await client._request_with_retry("GET", "https://example.com")

        assert exc_info.value.status_code == 403
        assert exc_info.value.response_body == "forbidden"
        assert mock_request.call_count == 1

    @pytest.mark.asyncio
    async def test_5xx_retries_then_fails(self, no_sleep: AsyncMock) -> None:
        client = HTTPClient(max_retries=2)
        response = _response(503, text="unavailable")
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Unavailable", request=MagicMock(), response=response
        )

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = response

            async with client:
                with pytest.raises(NetworkError) as exc_info:
                    await client._request_with_retry("GET", "https://example.com")

        assert "after 3 attempts" in str(exc_info.value)
        assert mock_request.call_count == 3
        assert no_sleep.await_count == 2


@pytest.mark.unit
class TestHTTPClientGetJson:
    """Tests for HTTPClient.get_json."""

    @pytest.mark.asyncio
    async def test_get_json_success(self) -> None:
        client = HTTPClient(max_retries=0)
        response = _response(200)
        response.json.return_value = {"name": "react", "dist-tags": {"latest": "19.1.0"}}

        with patch.object(HTTPClient, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = response
            data = await client.get_json(
                "https://registry.npmjs.org/react", headers={"Accept": "application/json"}
            )

        assert data["dist-tags"]["latest"] == "19.1.0"
        mock_get.assert_awaited_once_with(
            "https://registry.npmjs.org/react", headers={"Accept": "application/json"}
        )

    @pytest.mark.asyncio
    async def test_get_json_invalid_json(self) -> None:
        client = HTTPClient(max_retries=0)
        response = _response(200, text="<html>")
        response.json.side_effect = json.JSONDecodeError("Error", "doc", 0)

        with patch.object(HTTPClient, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = response

            with pytest.raises(NetworkError) as exc_info:
                await client.get_json("https://registry.npmjs.org/react")

        assert "Invalid JSON" in str(exc_info.value)
        assert exc_info.value.response_body == "<html>"

    @pytest.mark.asyncio
    async def test_get_json_non_object_response(self) -> None:
        client = HTTPClient(max_retries=0)
        response = _response(200, text="[]")
        response.json.return_value = []

        with patch.object(HTTPClient, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = response

            with pytest.raises(NetworkError, match="Expected JSON object"):
                await client.get_json("https://registry.npmjs.org/react")
