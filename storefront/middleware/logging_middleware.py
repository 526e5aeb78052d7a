"""
Request logging middleware.

Each request gets a short ID bound into the structlog context, so every log
line emitted while handling it (from any module) carries ``request_id``.
The ID is echoed back in the X-Request-ID header.
"""
import logging
import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Binds a request ID and logs each request's outcome with its duration"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = uuid.uuid4().hex[:8]
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        logger.info(
            f"{request.method} {request.url.path} started",
            extra={"phase": "start", "method": request.method, "path": request.url.path, "query": str(request.query_params)},
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} raised {type(e).__name__}",
                extra={"phase": "error", "duration_ms": round((time.perf_counter() - started) * 1000, 1)},
                exc_info=True,
            )
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.log(
            logging.INFO if response.status_code < 400 else logging.WARNING,
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "phase": "end",
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
