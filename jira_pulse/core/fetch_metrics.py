"""
Fetch Metrics Tracking Module

Counts outbound upstream calls for one request cycle:
    - FetchMetricsTracker: attempts, retries, timeouts, successes, failures

A tracker is created per request and passed explicitly to the HTTP client,
so concurrent requests never share counters.
"""

import time
from datetime import UTC, datetime
from typing import Any

from jira_pulse.core.logging_config import get_logger

logger = get_logger(__name__)


class FetchMetricsTracker:
    """
    Tracks upstream call metrics for a single request cycle.

    Attributes:
        name: Label for the cycle (e.g., "dashboard", "project-tasks")
        start_time: Timestamp when tracking began
        attempt_count: Number of HTTP attempts made (including retries)
        retry_count: Number of retries scheduled after a failed attempt
        timeout_count: Number of attempts that hit the per-attempt deadline
        success_count: Number of fetches that returned a 2xx response
        failure_count: Number of fetches that exhausted their retries
        last_error: Message of the most recent exhausted fetch, if any

    Example:
        >>> tracker = FetchMetricsTracker("dashboard")
        >>> tracker.record_attempt("https://example.atlassian.net/rest/api/3/project/search")
        >>> tracker.record_success("https://example.atlassian.net/rest/api/3/project/search", 200)
        >>> tracker.success_count
        1
    """

    def __init__(self, name: str = "request"):
        self.name = name
        self.start_time = time.time()
        self.attempt_count: int = 0
        self.retry_count: int = 0
        self.timeout_count: int = 0
        self.success_count: int = 0
        self.failure_count: int = 0
        self.last_error: str | None = None

    def record_attempt(self, url: str) -> None:
        """Record one outbound HTTP attempt."""
        self.attempt_count += 1

    def record_timeout(self, url: str) -> None:
        """Record an attempt that exceeded its deadline."""
        self.timeout_count += 1

    def record_retry(self, url: str, delay: float) -> None:
        """Record a retry scheduled after ``delay`` seconds."""
        self.retry_count += 1

    def record_success(self, url: str, status_code: int) -> None:
        """Record a fetch that completed with a 2xx response."""
        self.success_count += 1

    def record_failure(self, url: str, status_code: int | None, message: str) -> None:
        """
        Record a fetch that exhausted all retries.

        Args:
            url: Upstream URL
            status_code: Last HTTP status, or None for transport failures
            message: Last error message
        """
        self.failure_count += 1
        self.last_error = message
        logger.debug(
            "Upstream fetch exhausted retries",
            extra={"tracker": self.name, "url": url, "status_code": status_code},
        )

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since the tracker was created."""
        return (time.time() - self.start_time) * 1000

    def to_dict(self) -> dict[str, Any]:
        """
        Convert metrics to dictionary for structured logging.

        Returns:
            Dictionary with all counters
        """
        return {
            "timestamp": datetime.now(UTC).isoformat(),
            "name": self.name,
            "elapsed_ms": round(self.elapsed_ms, 2),
            "attempt_count": self.attempt_count,
            "retry_count": self.retry_count,
            "timeout_count": self.timeout_count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "last_error": self.last_error,
        }
