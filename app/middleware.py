"""
Middleware for request tracing and performance logging.
"""

import time
import uuid
import logging
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("quote_leads")

SLOW_REQUEST_THRESHOLD_MS = 1000
QUOTES_PATH = "/v1/quotes"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware to assign a request ID.

    Uses the caller's X-Request-ID when present, otherwise a new UUID.
    The ID is stored on request.state and persisted with each submission.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """
    Middleware to track request duration.

    Logs start and completion of every request, adds X-Response-Time-Ms,
    and warns on slow quote submissions (the CRM round trip dominates).
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = getattr(request.state, "request_id", "unknown")
        start_time = time.time()

        logger.info(
            f"Request started | "
            f"request_id={request_id} | "
            f"method={request.method} | "
            f"path={request.url.path}"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed | "
                f"request_id={request_id} | "
                f"method={request.method} | "
                f"path={request.url.path} | "
                f"duration_ms={duration_ms:.2f} | "
                f"error={str(e)}"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Request completed | "
            f"request_id={request_id} | "
            f"method={request.method} | "
            f"path={request.url.path} | "
            f"status={response.status_code} | "
            f"duration_ms={duration_ms:.2f}"
        )
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

        if duration_ms > SLOW_REQUEST_THRESHOLD_MS and request.url.path == QUOTES_PATH:
            logger.warning(
                f"Slow quote request | "
                f"request_id={request_id} | "
                f"duration_ms={duration_ms:.2f} | "
                f"threshold_ms={SLOW_REQUEST_THRESHOLD_MS}"
            )

        return response
