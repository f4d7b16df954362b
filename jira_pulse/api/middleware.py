"""
API Middleware - Request Tracking, Cache Control

Middleware for the FastAPI application to handle:
- Request ID tracking (for debugging)
- Cache-Control headers (every view is a fresh upstream snapshot)
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from jira_pulse.core import get_logger

logger = get_logger(__name__)


# ============================================================
# Request ID Middleware
# ============================================================


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Add unique request ID to each request for tracing and debugging.

    Adds X-Request-ID header to both request and response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Add request ID to request and response."""

        # Generate or use existing request ID
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        # Add to request state for access in endpoints
        request.state.request_id = request_id

        logger.info(
            "API request",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

        start_time = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000

        response.headers["X-Request-ID"] = request_id

        logger.info(
            "API response",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

        return response


# ============================================================
# Cache Control Middleware
# ============================================================


class CacheControlMiddleware(BaseHTTPMiddleware):
    """
    Mark every response as non-cacheable.

    Responses are assembled from live upstream data on each request, so
    neither browsers nor intermediaries may store them.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store"

        return response
