"""Proxy dependencies for FastAPI."""

from fastapi import Request

from .service import ProxyService


def get_proxy_service(request: Request) -> ProxyService:
    """Get the process-wide proxy service.

    The service, and with it the token cache, is built once in
    ``create_app`` and kept on the application state.

    Returns:
        ProxyService: Proxy service instance.
    """
    return request.app.state.proxy_service
