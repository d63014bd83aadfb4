"""
Middleware configuration for the application.
Includes Correlation ID setup and request timing logs.
"""

import time
import structlog
from typing import Callable
from fastapi import FastAPI, Request, Response
from asgi_correlation_id import CorrelationIdMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its status and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Request crashed",
                method=request.method,
                path=request.url.path,
                process_time_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            client_ip=request.client.host if request.client else "unknown",
            process_time_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response


def setup_middleware(app: FastAPI) -> None:
    """Register logging and correlation-id middleware.

    Starlette runs middleware last-added first, so the correlation id is
    added after request logging to wrap it.
    """
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        update_request_header=True,
    )
