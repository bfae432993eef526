"""Monitoring and metrics collection.

This module provides Prometheus metrics collection and monitoring
functionality for the application.
"""

from typing import Optional

from prometheus_client import Counter, Histogram, Info
import structlog

logger = structlog.get_logger(__name__)

# Prometheus metrics
request_count = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"]
)

request_duration = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"]
)

proxy_requests = Counter(
    "proxy_requests_total",
    "Total number of proxy requests",
    ["target", "status"]
)

proxy_duration = Histogram(
    "proxy_request_duration_seconds",
    "Proxy request duration in seconds",
    ["target"]
)

token_acquisitions = Counter(
    "oauth_token_acquisitions_total",
    "Total number of upstream OAuth token acquisitions",
    ["provider", "grant_type", "status"]
)

external_service_requests = Counter(
    "external_service_requests_total",
    "Total requests to external services",
    ["service", "status_code"]
)

external_service_duration = Histogram(
    "external_service_request_duration_seconds",
    "External service request duration in seconds",
    ["service"]
)

error_count = Counter(
    "errors_total",
    "Total number of errors",
    ["type", "component"]
)

# Application info
app_info = Info(
    "app_info",
    "Application information"
)


def setup_monitoring(name: str, version: str) -> None:
    """Setup monitoring and metrics collection."""
    logger.info("Setting up monitoring")
    app_info.info({"version": version, "name": name})


def track_request(method: str, endpoint: str, status_code: int, duration: float) -> None:
    """Track HTTP request metrics.

    Args:
        method: HTTP method.
        endpoint: Route template, "unmatched" when no route handled it.
        status_code: Response status code.
        duration: Request duration in seconds.
    """
    request_count.labels(
        method=method,
        endpoint=endpoint,
        status_code=status_code
    ).inc()

    request_duration.labels(
        method=method,
        endpoint=endpoint
    ).observe(duration)


def track_proxy_request(target: str, status: str, duration: Optional[float] = None) -> None:
    """Track proxy request metrics.

    Args:
        target: Allowlist entry the target host matched.
        status: Outcome (forwarded, rejected, failed).
        duration: Request duration in seconds.
    """
    proxy_requests.labels(target=target, status=status).inc()

    if duration is not None:
        proxy_duration.labels(target=target).observe(duration)


def track_token_acquisition(provider: str, grant_type: str, status: str) -> None:
    """Track an OAuth token acquisition attempt.

    Args:
        provider: OAuth provider (reddit).
        grant_type: Grant used for the attempt.
        status: success or failure.
    """
    token_acquisitions.labels(provider=provider, grant_type=grant_type, status=status).inc()


def track_external_service(service: str, status_code: int, duration: float) -> None:
    """Track external service request metrics.

    Args:
        service: Service name.
        status_code: HTTP status code, 0 for network failures.
        duration: Request duration in seconds.
    """
    external_service_requests.labels(
        service=service,
        status_code=status_code
    ).inc()

    external_service_duration.labels(service=service).observe(duration)


def track_error(error_type: str, component: str) -> None:
    """Track error occurrence.

    Args:
        error_type: Type of error.
        component: Component where error occurred.
    """
    error_count.labels(type=error_type, component=component).inc()
