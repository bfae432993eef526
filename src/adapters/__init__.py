"""Hosting adapters.

Each adapter maps a hosting environment's native request and response
shapes onto the proxy service. The FastAPI server lives in ``main`` and
``proxy.router``.
"""

from .serverless import handle_event, handler

__all__ = [
    "handle_event",
    "handler",
]
