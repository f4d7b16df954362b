"""
Async Retrying HTTP Client

Wraps outbound upstream calls with a per-attempt deadline and an
exponential-backoff retry policy. Built on httpx for concurrent API calls.

Usage:
    from jira_pulse.async_http_client import AsyncRetryingHTTPClient

    async with AsyncRetryingHTTPClient() as client:
        response = await client.fetch("GET", url, headers=headers)

Retry policy:
    - Every attempt has a fixed 15-second deadline
    - Deadline expiry, transport errors and non-2xx responses fail the attempt
    - Failed attempts are retried after 1s, 2s, 4s (delay doubles each time)
    - After the retry ceiling, UpstreamError carries the last status/message

Security Features:
    - SSL verification always enabled (verify=True)
    - Connection pooling for efficient concurrent requests
    - Responses are never cached (Cache-Control: no-store)
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from jira_pulse.core.fetch_metrics import FetchMetricsTracker
from jira_pulse.core.logging_config import get_logger


class TransportError(Exception):
    """Network or deadline failure of a single attempt."""

    pass


class UpstreamError(Exception):
    """
    Raised when an upstream call fails after exhausting its retries.

    Attributes:
        status_code: Last HTTP status, or None if the last attempt never got a response
        message: Last error message
        url: Upstream URL
    """

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.url = url

    @property
    def is_not_found(self) -> bool:
        """True when the upstream reported the resource as missing."""
        return self.status_code == 404 or "404" in self.message


class NotFoundError(UpstreamError):
    """Upstream reported 404 for the requested resource."""

    pass


class MalformedResponseError(UpstreamError):
    """Upstream answered 2xx with a body that does not have the expected shape."""

    @property
    def is_not_found(self) -> bool:
        return False


class AsyncRetryingHTTPClient:
    """
    Async HTTP client with per-attempt deadline and bounded exponential backoff.

    Features:
    - Context manager for automatic connection cleanup
    - Connection pooling (configurable max connections)
    - Optional HTTP/2 support
    - Enforced SSL verification
    - Injected logger and fetch metrics sink
    - Injected sleep coroutine (tests record delays instead of sleeping)
    """

    ATTEMPT_DEADLINE = 15.0  # seconds
    DEFAULT_MAX_RETRIES = 3
    DEFAULT_INITIAL_DELAY = 1.0  # seconds
    DEFAULT_MAX_CONNECTIONS = 100
    DEFAULT_MAX_KEEPALIVE = 20

    def __init__(
        self,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        max_keepalive_connections: int = DEFAULT_MAX_KEEPALIVE,
        deadline: float = ATTEMPT_DEADLINE,
        http2: bool = True,
        logger: logging.Logger | None = None,
        metrics: FetchMetricsTracker | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize async retrying HTTP client.

        Args:
            max_connections: Maximum number of concurrent connections (default: 100)
            max_keepalive_connections: Max persistent connections (default: 20)
            deadline: Per-attempt deadline in seconds (default: 15)
            http2: Enable HTTP/2 support (default: True)
            logger: Logger for attempt/retry diagnostics (default: module logger)
            metrics: Fetch metrics sink (default: a fresh tracker)
            sleep: Coroutine used to wait between attempts
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        self.limits = httpx.Limits(max_connections=max_connections, max_keepalive_connections=max_keepalive_connections)
        self.deadline = deadline
        self.timeout = httpx.Timeout(deadline)
        self.http2 = http2
        self.logger = logger or get_logger(__name__)
        self.metrics = metrics if metrics is not None else FetchMetricsTracker()
        self._sleep = sleep
        self._transport = transport
        self.client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "AsyncRetryingHTTPClient":
        """Context manager entry - create async client"""
        self.client = httpx.AsyncClient(
            limits=self.limits,
            timeout=self.timeout,
            verify=True,  # CRITICAL: Force SSL verification
            http2=self.http2,
            follow_redirects=True,
            transport=self._transport,
            headers={"Cache-Control": "no-store"},
        )
        return self

    async def __aexit__(self, *args):
        """Context manager exit - close connections"""
        if self.client:
            await self.client.aclose()
            self.client = None

    async def fetch(
        self,
        method: str,
        url: str,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Execute one upstream call with deadline and retry policy.

        States: attempting -> success, or attempting -> retrying -> attempting,
        until attempts run out -> failed.

        Args:
            method: HTTP method (GET, POST)
            url: Full upstream URL
            max_retries: Retries after the first attempt (default: 3)
            initial_delay: Delay before the first retry in seconds, doubled each retry
            **kwargs: Additional arguments passed to httpx (headers, params, json)

        Returns:
            httpx.Response: The first 2xx response

        Raises:
            NotFoundError: Last attempt returned 404
            UpstreamError: All attempts failed
        """
        if not self.client:
            raise RuntimeError("Client not initialized. Use 'async with AsyncRetryingHTTPClient()' context manager")

        attempts_remaining = max_retries
        delay = initial_delay
        attempt = 0

        while True:
            attempt += 1
            self._emit("record_attempt", url)
            self._log(logging.DEBUG, f"{method} {url} (attempt {attempt}/{max_retries + 1})", url=url, attempt=attempt)

            try:
                response = await self._attempt(method, url, **kwargs)
            except TransportError as e:
                status_code: int | None = None
                message = str(e)
            else:
                if response.is_success:
                    self._emit("record_success", url, response.status_code)
                    return response
                status_code = response.status_code
                message = f"Jira API Error: {response.status_code} {response.reason_phrase}"

            if attempts_remaining <= 0:
                self._emit("record_failure", url, status_code, message)
                self._log(
                    logging.ERROR,
                    f"Final fetch attempt failed for {url}: {message}",
                    url=url,
                    status_code=status_code,
                    attempts=attempt,
                )
                error_cls = NotFoundError if status_code == 404 else UpstreamError
                raise error_cls(message, status_code=status_code, url=url)

            self._emit("record_retry", url, delay)
            self._log(
                logging.WARNING,
                f"Fetch failed for {url}: {message}. Retrying in {delay:.1f}s ({attempts_remaining - 1} attempts left)",
                url=url,
                status_code=status_code,
                delay=delay,
            )
            await self._sleep(delay)
            delay *= 2
            attempts_remaining -= 1

    async def _attempt(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Single attempt bounded by the deadline; network failures become TransportError."""
        assert self.client is not None
        try:
            return await asyncio.wait_for(self.client.request(method, url, **kwargs), timeout=self.deadline)
        except (TimeoutError, httpx.TimeoutException) as e:
            self._emit("record_timeout", url)
            raise TransportError(f"Request timed out after {self.deadline:.0f}s") from e
        except httpx.RequestError as e:
            raise TransportError(f"{e.__class__.__name__}: {e}") from e

    def _emit(self, event: str, *args: Any) -> None:
        """Forward an event to the metrics sink; sink errors never reach the caller."""
        try:
            getattr(self.metrics, event)(*args)
        except Exception:
            self.logger.debug("Fetch metrics sink raised on %s", event, exc_info=True)

    def _log(self, level: int, message: str, **context: Any) -> None:
        """Diagnostic log line; logging failures never reach the caller."""
        with contextlib.suppress(Exception):
            self.logger.log(level, message, extra={"fetch": context})
