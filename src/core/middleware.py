"""Custom middleware for the FastAPI application.

This module provides middleware for correlation ID tracking and
request logging.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

from .monitoring import track_request

logger = structlog.get_logger(__name__)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Middleware to add correlation ID to requests.

    This middleware generates a unique correlation ID for each request
    and makes it available throughout the request lifecycle.
    """

    def __init__(self, app, header_name: str = "X-Correlation-ID") -> None:
        """Initialize the middleware.

        Args:
            app: ASGI application.
            header_name: Header name for correlation ID.
        """
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with correlation ID."""
        correlation_id = request.headers.get(
            self.header_name, str(uuid.uuid4())
        )

        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
        request.state.correlation_id = correlation_id

        try:
            response = await call_next(request)
            response.headers[self.header_name] = correlation_id
            return response
        finally:
            structlog.contextvars.clear_contextvars()


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests and responses.

    Logs timing and status for every request and feeds the request
    metrics. The query string is not logged since it carries target URLs.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with logging."""
        start_time = time.time()

        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            user_agent=request.headers.get("user-agent"),
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            process_time = time.time() - start_time
            logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                process_time=f"{process_time:.4f}s",
                error=str(exc),
                exc_info=True,
            )
            raise

        process_time = time.time() - start_time
        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time=f"{process_time:.4f}s",
        )
        route = request.scope.get("route")
        track_request(request.method, getattr(route, "path", "unmatched"), response.status_code, process_time)

        response.headers["X-Process-Time"] = str(process_time)
        return response
