"""
Custom middleware for the exporter.
"""

import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from maxscale_exporter.core.context import set_request_context, clear_request_context

logger = structlog.get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add request context.

    Sets:
    - Request ID (for log correlation, honours an incoming X-Request-ID)
    - Request timing
    - Context variables for structured logging
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        set_request_context(request_id=request_id, path=request.url.path)

        start_time = time.perf_counter()

        logger.debug(
            "request_started",
            method=request.method,
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = str(duration_ms)

            logger.info(
                "request_completed",
                method=request.method,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

            return response

        except Exception as e:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

            logger.error(
                "request_failed",
                method=request.method,
                duration_ms=duration_ms,
                error=str(e),
                exc_info=True,
            )
            raise

        finally:
            clear_request_context()
