"""
HTTP transport for the wg-easy API.

One logical call = up to ``retry_attempts`` HTTP attempts with linear
backoff. Session cookies from every response are kept in a jar owned by the
transport instance and replayed on later requests.
"""

import asyncio
import logging
from http.cookiejar import CookieJar
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from wg_easy.exceptions import (
    NetworkError,
    RateLimitedError,
    RequestTimeoutError,
    ServerError,
    UnauthorizedError,
    WgEasyError,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 60.0


class ApiResponse(BaseModel):
    """Outcome of a request that reached the service."""

    success: bool
    data: Any = None
    status_code: int


def parse_body(response: httpx.Response) -> Any:
    """Decode JSON bodies, pass plain text through, ignore anything else."""
    content_type = response.headers.get("content-type", "")

    if "application/json" in content_type:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning(f"Malformed JSON body (HTTP {response.status_code})")
            return None
    if "text/plain" in content_type:
        return response.text
    return None


def parse_retry_after(value: Optional[str]) -> float:
    if not value:
        return DEFAULT_RETRY_AFTER
    try:
        return float(value)
    except ValueError:
        return DEFAULT_RETRY_AFTER


class HttpTransport:
    """
    Async HTTP client with timeout, retries and cookie-based sessions.

    Handles:
    - 401, 429 and timeouts raised immediately, never retried
    - 5xx and connection failures retried with linear backoff
    - NetworkError once the attempts are exhausted
    """

    DEFAULT_TIMEOUT = 30000
    DEFAULT_RETRY_ATTEMPTS = 3
    DEFAULT_RETRY_DELAY = 1000

    def __init__(
        self,
        base_url: str,
        timeout: int = DEFAULT_TIMEOUT,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_delay: int = DEFAULT_RETRY_DELAY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Service root, e.g. http://localhost:51821
            timeout: Per-attempt timeout in milliseconds
            retry_attempts: Total attempts per call (0 behaves like 1)
            retry_delay: Base backoff delay in milliseconds
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self._transport = transport
        self._cookie_jar = CookieJar()
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout / 1000,
                cookies=self._cookie_jar,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client. Cookies survive for the next client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # Cookies
    # =========================================================================

    @property
    def cookies(self) -> dict[str, str]:
        """Snapshot of the session cookies currently held."""
        return {cookie.name: cookie.value or "" for cookie in self._cookie_jar}

    def clear_cookies(self) -> None:
        self._cookie_jar.clear()

    # =========================================================================
    # Core Request Method
    # =========================================================================

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> ApiResponse:
        """
        Perform one logical call against the service.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: API path (e.g., /api/wireguard/client)
            body: JSON body, if any
            headers: Extra request headers

        Returns:
            ApiResponse with the parsed body and a success flag

        Raises:
            UnauthorizedError: on 401, after one attempt
            RateLimitedError: on 429, after one attempt
            RequestTimeoutError: when an attempt times out
            NetworkError: when every attempt failed
        """
        client = await self._get_client()
        attempts = max(1, self.retry_attempts)
        last_error: Optional[WgEasyError] = None

        for attempt in range(1, attempts + 1):
            logger.debug(f"Request attempt {attempt}/{attempts}: {method} {path}")

            try:
                response = await client.request(
                    method,
                    path,
                    json=body,
                    headers=headers,
                )
            except httpx.TimeoutException as e:
                logger.warning(f"Request attempt {attempt} timed out after {self.timeout}ms")
                raise RequestTimeoutError(self.timeout) from e
            except httpx.TransportError as e:
                last_error = NetworkError(f"Connection failed: {e}", cause=e)
            else:
                if response.status_code == 401:
                    raise UnauthorizedError()
                if response.status_code == 429:
                    raise RateLimitedError(parse_retry_after(response.headers.get("retry-after")))
                if response.status_code >= 500:
                    last_error = ServerError(
                        f"Server error: {response.reason_phrase or response.status_code}",
                        response.status_code,
                    )
                else:
                    return ApiResponse(
                        success=response.is_success,
                        data=parse_body(response),
                        status_code=response.status_code,
                    )

            logger.warning(f"Request attempt {attempt} failed: {last_error}")

            # Wait before retry
            if attempt < attempts:
                await asyncio.sleep(self.retry_delay * attempt / 1000)

        raise NetworkError(
            f"Request failed after {attempts} attempts", cause=last_error
        ) from last_error

    async def get(self, path: str, headers: Optional[dict[str, str]] = None) -> ApiResponse:
        return await self.request("GET", path, headers=headers)

    async def post(
        self, path: str, body: Any = None, headers: Optional[dict[str, str]] = None
    ) -> ApiResponse:
        return await self.request("POST", path, body=body, headers=headers)

    async def put(
        self, path: str, body: Any = None, headers: Optional[dict[str, str]] = None
    ) -> ApiResponse:
        return await self.request("PUT", path, body=body, headers=headers)

    async def delete(self, path: str, headers: Optional[dict[str, str]] = None) -> ApiResponse:
        return await self.request("DELETE", path, headers=headers)
