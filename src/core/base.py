"""Base classes and utilities.

This module provides base classes and common utilities used throughout
the application.
"""

from typing import Optional, Union

import httpx
import structlog


class BaseClient:
    """Base HTTP client class.

    Provides common functionality for outbound HTTP clients: timeout
    handling, request/response logging and an injectable transport.
    """

    def __init__(
        self,
        name: str,
        timeout: Optional[float] = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            name: Client name for logging.
            timeout: Request timeout in seconds, None for no timeout.
            transport: Transport override, used by tests.
        """
        self.name = name
        self.timeout = timeout
        self.transport = transport
        self.logger = structlog.get_logger(f"{name}Client")

    def _http_client(self, **kwargs) -> httpx.AsyncClient:
        """Open a client for a single exchange."""
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self.transport,
            **kwargs,
        )

    def _log_request(self, method: str, url: Union[str, httpx.URL], **kwargs) -> None:
        """Log outgoing request.

        Args:
            method: HTTP method.
            url: Request URL.
            **kwargs: Additional fields to log.
        """
        self.logger.info(
            "Outgoing request",
            method=method,
            url=str(url),
            timeout=self.timeout,
            **kwargs,
        )

    def _log_response(self, method: str, url: Union[str, httpx.URL], status_code: int, duration: float) -> None:
        """Log response.

        Args:
            method: HTTP method.
            url: Request URL.
            status_code: Response status code.
            duration: Request duration in seconds.
        """
        self.logger.info(
            "Response received",
            method=method,
            url=str(url),
            status_code=status_code,
            duration=f"{duration:.4f}s",
        )
