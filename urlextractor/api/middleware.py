"""Request logging middleware.

Every request gets an id (taken from ``X-Request-ID`` when the caller sends
one) that is bound into the structlog context for the lifetime of the
request and echoed back in the response headers.
"""

from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response

from urlextractor.observability import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)


async def request_logger(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
    bind_request_context(request_id)
    start = time.perf_counter()
    logger.info("request_received", method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.0f}ms"
        return response
    finally:
        clear_request_context()
