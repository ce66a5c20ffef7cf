"""
HTTP client utilities for upkeep.

:class:`HTTPClient` wraps an ``httpx.AsyncClient`` for registry traffic:
bounded concurrency, retries with exponential backoff for transient
failures, ``Retry-After`` handling for 429 responses, and error mapping to
the upkeep exception hierarchy (404 → :class:`RegistryError`, other
failures → :class:`NetworkError`).

Typical usage::

    async with HTTPClient(max_concurrency=8) as client:
        packument = await client.get_json(
            "https://registry.npmjs.org/react",
            headers={"Accept": "application/vnd.npm.install-v1+json"},
        )
"""

from __future__ import annotations

import httpx
import random
import asyncio
from typing import Any, Dict, Mapping, Optional, cast

from upkeep.utils.logger import get_logger
from upkeep.__version__ import __version__
from upkeep.exceptions import NetworkError, RegistryError
from upkeep.constants import (
    DEFAULT_CONCURRENT_LIMIT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_AFTER,
    DEFAULT_TIMEOUT,
    MAX_RATE_LIMIT_RETRIES,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")


def _retry_after(response: httpx.Response) -> int:
    """Seconds to wait before retrying a 429 response.

    Only the delta-seconds form of ``Retry-After`` is honoured; HTTP dates
    and garbage fall back to :data:`DEFAULT_RETRY_AFTER`.
    """
    value = response.headers.get("Retry-After")
    if value is None:
        return DEFAULT_RETRY_AFTER
    try:
        return max(0, int(value))
    except ValueError:
        return DEFAULT_RETRY_AFTER


def _backoff(attempt: int) -> float:
    """Exponential backoff with a little jitter: ~1s, ~2s, ~4s..."""
    return (2**attempt) + random.uniform(0.0, 0.3)


class HTTPClient:
    """Asynchronous HTTP client with retries and concurrency control.

    Args:
        timeout: Request timeout in seconds.
        max_retries: Retries after the first attempt for transient
            failures (timeouts, connection errors, 5xx).
        verify_ssl: Whether to verify SSL certificates.
        user_agent: Custom User-Agent header value.
        max_concurrency: Maximum number of requests in flight.
        max_rate_limit_retries: How many 429 responses are waited out
            before giving up.
        headers: Extra headers sent with every request (e.g. a registry
            ``Authorization`` header).
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        max_concurrency: int = DEFAULT_CONCURRENT_LIMIT,
        max_rate_limit_retries: int = MAX_RATE_LIMIT_RETRIES,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)
        self.max_concurrency = max_concurrency
        self.max_rate_limit_retries = max_rate_limit_retries
        self.headers: Dict[str, str] = dict(headers or {})

        self._client: Optional[httpx.AsyncClient] = None
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def __aenter__(self) -> "HTTPClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                http2=True,
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent, **self.headers},
            )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, retrying transient failures.

        Raises:
            RegistryError: The server answered 404.
            NetworkError: A non-retryable 4xx, too many 429s, or every
                attempt failed.
        """
        await self._ensure_client()
        assert self._client is not None

        clean_url = url.strip().strip("\"'")
        last_exc: Optional[Exception] = None
        rate_limited = 0
        attempt = 0

        while attempt <= self.max_retries:
            try:
                async with self._semaphore:
                    response = await self._client.request(method, clean_url, **kwargs)

                if response.status_code == 429:
                    rate_limited += 1
                    if rate_limited > self.max_rate_limit_retries:
                        raise NetworkError(
                            f"Rate limit exceeded after {self.max_rate_limit_retries} retries",
                            url=clean_url,
                            status_code=429,
                        )
                    delay = _retry_after(response)
                    logger.warning(
                        "Rate limited by %s, retrying in %ds (%d/%d)",
                        clean_url,
                        delay,
                        rate_limited,
                        self.max_rate_limit_retries,
                    )
                    await asyncio.sleep(delay)
                    # 429s do not consume an attempt
                    continue

                if response.status_code == 404:
                    raise RegistryError(
                        f"Resource not found: {clean_url}",
                        url=clean_url,
                        status_code=404,
                    )

                if response.status_code >= 400:
                    response.raise_for_status()

                return response

            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                last_exc = exc
                logger.warning(
                    "%s for %s (attempt %d/%d)",
                    type(exc).__name__,
                    clean_url,
                    attempt + 1,
                    self.max_retries + 1,
                )

            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status < 500:
                    raise NetworkError(
                        f"HTTP {status} error for {clean_url}",
                        url=clean_url,
                        status_code=status,
                        response_body=exc.response.text,
                    ) from exc
                last_exc = exc
                logger.warning(
                    "HTTP %d from %s (attempt %d/%d)",
                    status,
                    clean_url,
                    attempt + 1,
                    self.max_retries + 1,
                )

            if attempt < self.max_retries:
                delay = _backoff(attempt)
                logger.debug("Retrying %s in %.2fs", clean_url, delay)
                await asyncio.sleep(delay)
            attempt += 1

        raise NetworkError(
            f"Request failed after {self.max_retries + 1} attempts: {clean_url}",
            url=clean_url,
        ) from last_exc

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a GET request with retry logic."""
        return await self._request_with_retry("GET", url, **kwargs)

    async def get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """Fetch a URL and parse the response as a JSON object.

        Raises:
            NetworkError: The body is not JSON, or not a JSON object.
        """
        response = await self.get(url, **kwargs)

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError(
                f"Invalid JSON response from {url}",
                url=url,
                response_body=response.text,
            ) from exc

        if not isinstance(data, dict):
            raise NetworkError(
                f"Expected JSON object from {url}",
                url=url,
                response_body=response.text,
            )

        return cast(Dict[str, Any], data)
