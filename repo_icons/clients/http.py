"""Async HTTP client shared by all collaborators.

Wraps ``httpx.AsyncClient`` with a fixed user agent and timeout, and
translates transport and status errors into the FetchError hierarchy with
structured logging of every failure.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from repo_icons.logging import get_logger

from .exceptions import FetchError, FetchHTTPError, FetchResponseError, FetchTimeoutError

logger = get_logger(__name__, component="http")

DEFAULT_USER_AGENT = "RepoIcons/0.3 (+https://github.com/repo-icons/repo-icons)"


class HttpClient:
    """Thin async HTTP client with error translation.

    Attributes:
        timeout: Per-request timeout in seconds
        user_agent: User-Agent header sent with every request
    """

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header value
            transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got: {timeout}")
        if not user_agent or not user_agent.strip():
            raise ValueError("user_agent cannot be empty")

        self.timeout = timeout
        self.user_agent = user_agent.strip()
        self._client = httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def _request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """Send a request and return the response.

        Raises:
            FetchHTTPError: On 4xx/5xx status, transport failure or an invalid URL
            FetchTimeoutError: On timeout
        """
        logger.debug(
            f"HTTP {method} request to {url}",
            extra={"event": "http.request.started", "method": method, "url": url},
        )

        try:
            response = await self._client.request(method, url, headers=headers, params=params)
        except httpx.TimeoutException as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={"event": "http.request.timeout", "url": url, "timeout": self.timeout},
            )
            raise FetchTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds", url=url
            ) from e
        except httpx.HTTPError as e:
            logger.warning(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "http.request.failed",
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise FetchHTTPError(f"Request to {url} failed: {e}", status_code=0, url=url) from e
        except httpx.InvalidURL as e:
            logger.warning(
                f"Invalid URL {url}: {e}",
                extra={"event": "http.request.invalid_url", "url": url},
            )
            raise FetchHTTPError(f"Invalid URL {url}: {e}", status_code=0, url=url) from e

        self._raise_for_status(response, url)
        return response

    def _raise_for_status(self, response: httpx.Response, url: str) -> None:
        if response.status_code < 400:
            return

        is_retryable = response.status_code >= 500
        logger.log(
            logging.WARNING if is_retryable else logging.INFO,
            f"HTTP {response.status_code} from {url}",
            extra={
                "event": "http.request.retryable_error" if is_retryable else "http.request.error",
                "status_code": response.status_code,
                "url": url,
            },
        )
        raise FetchHTTPError(
            f"HTTP {response.status_code}: {response.reason_phrase}",
            status_code=response.status_code,
            url=url,
        )

    async def get_json(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """GET a URL and decode its JSON body.

        Raises:
            FetchResponseError: If the body is not valid JSON
        """
        response = await self._request(url, headers=headers, params=params)
        try:
            return response.json()
        except ValueError as e:
            logger.warning(
                f"Failed to parse JSON response from {url}",
                extra={"event": "http.response.invalid_json", "url": url},
            )
            raise FetchResponseError(f"Failed to parse JSON response from {url}: {e}", url=url) from e

    async def get_text(
        self, url: str, headers: Optional[Dict[str, str]] = None
    ) -> Tuple[str, str]:
        """GET a URL and return ``(final_url, text)`` after redirects."""
        response = await self._request(url, headers=headers)
        return str(response.url), response.text

    async def get_bytes(self, url: str, max_bytes: int) -> Tuple[Optional[str], bytes]:
        """Fetch at most ``max_bytes`` from the start of a resource.

        Sends a ``Range`` header and additionally stops reading once enough
        bytes arrived, since servers are free to ignore ranges.

        Returns:
            Tuple of (Content-Type header or None, payload prefix)
        """
        if max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got: {max_bytes}")

        headers = {"Range": f"bytes=0-{max_bytes - 1}"}
        logger.debug(
            f"HTTP ranged GET to {url}",
            extra={"event": "http.request.started", "method": "GET", "url": url, "max_bytes": max_bytes},
        )

        try:
            async with self._client.stream("GET", url, headers=headers) as response:
                self._raise_for_status(response, url)
                content_type = response.headers.get("Content-Type")
                buffer = bytearray()
                async for chunk in response.aiter_bytes():
                    buffer.extend(chunk)
                    if len(buffer) >= max_bytes:
                        break
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds", url=url
            ) from e
        except httpx.HTTPError as e:
            raise FetchHTTPError(f"Request to {url} failed: {e}", status_code=0, url=url) from e
        except httpx.InvalidURL as e:
            raise FetchHTTPError(f"Invalid URL {url}: {e}", status_code=0, url=url) from e

        return content_type, bytes(buffer[:max_bytes])

    async def exists(self, url: str) -> bool:
        """Return True if ``url`` answers with a 2xx/3xx status.

        Uses HEAD and falls back to GET for servers that reject HEAD.
        A 404/410 answer is a clean False; other failures raise.
        """
        try:
            await self._request(url, method="HEAD")
            return True
        except FetchHTTPError as e:
            if e.is_not_found:
                return False
            if e.status_code not in (405, 501):
                raise

        try:
            await self._request(url)
            return True
        except FetchHTTPError as e:
            if e.is_not_found:
                return False
            raise


__all__ = ["HttpClient", "DEFAULT_USER_AGENT", "FetchError"]
