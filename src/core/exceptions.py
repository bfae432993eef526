"""Custom exception classes.

This module defines custom exceptions used throughout the application.
Each class carries the HTTP status and error type it maps to, so every
hosting adapter renders failures the same way.
"""

from typing import Any, Dict, Optional


class BaseAppException(Exception):
    """Base exception class for the application.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            details: Additional error details.
            cause: Underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the exception."""
        return self.message

    def __repr__(self) -> str:
        """Detailed representation of the exception."""
        return f"{self.__class__.__name__}('{self.message}', details={self.details})"


class AuthenticationError(BaseAppException):
    """Raised when authentication fails."""

    status_code = 401
    error_type = "authentication_error"


class AuthorizationError(BaseAppException):
    """Raised when authorization fails."""

    status_code = 403
    error_type = "authorization_error"


class ValidationError(BaseAppException):
    """Raised when data validation fails."""

    status_code = 400
    error_type = "validation_error"


class MissingParameterError(ValidationError):
    """Raised when the target URL parameter is absent."""

    error_type = "missing_parameter"

    def __init__(self, parameter: str) -> None:
        super().__init__(f"Missing {parameter} parameter", details={"parameter": parameter})
        self.parameter = parameter


class InvalidURLError(ValidationError):
    """Raised when the target cannot be parsed as an absolute http(s) URL."""

    error_type = "invalid_url"

    def __init__(self, target: str, cause: Optional[Exception] = None) -> None:
        super().__init__("Invalid target URL", details={"target": target[:200]}, cause=cause)
        self.target = target


class HostNotAllowedError(AuthorizationError):
    """Raised when the target host is not on the allowlist.

    Attributes:
        host: The rejected hostname.
    """

    error_type = "host_not_allowed"

    def __init__(self, host: str) -> None:
        super().__init__(f"Host not allowed: {host}", details={"host": host})
        self.host = host


class ExternalServiceError(BaseAppException):
    """Raised when external service call fails.

    Attributes:
        service: Name of the external service.
    """

    status_code = 502
    error_type = "external_service_error"

    def __init__(
        self,
        message: str,
        service: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            service: Name of the external service.
            details: Additional error details.
            cause: Underlying exception that caused this error.
        """
        super().__init__(message, details, cause)
        self.service = service


class UpstreamFetchError(ExternalServiceError):
    """Raised when the upstream host cannot be reached.

    Attributes:
        target_url: The target URL that failed.
        method: HTTP method used.
    """

    error_type = "upstream_fetch_error"

    def __init__(
        self,
        message: str,
        target_url: str,
        method: str = "GET",
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, "upstream", cause=cause)
        self.target_url = target_url
        self.method = method


class OAuthError(AuthenticationError):
    """Raised when OAuth flow fails.

    Attributes:
        error_code: OAuth error code.
        error_description: OAuth error description.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        error_description: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            error_code: OAuth error code.
            error_description: OAuth error description.
            details: Additional error details.
            cause: Underlying exception that caused this error.
        """
        super().__init__(message, details, cause)
        self.error_code = error_code
        self.error_description = error_description


class TokenAcquisitionError(OAuthError):
    """Raised by the token client when no token could be obtained.

    The credential manager recovers from it locally; it never reaches a
    caller.
    """
