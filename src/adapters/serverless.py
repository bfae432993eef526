"""Serverless function adapter.

Handles API Gateway / Netlify style events::

    {"httpMethod": "GET", "queryStringParameters": {...}, "headers": {...}}

and returns ``{"statusCode", "headers", "body", "isBase64Encoded"}``. These
transports carry text only, so binary bodies are base64 encoded.

The proxy service lives at module level so a warm function instance keeps
its token cache between invocations. A cold start begins with an empty
cache.
"""

import asyncio
import json
from typing import Any, Dict, Optional

import structlog

from core.config import get_settings
from core.exceptions import BaseAppException, ExternalServiceError
from core.logging import setup_logging
from core.monitoring import track_error
from models.proxy import ProxyResponse
from proxy.service import ProxyService

logger = structlog.get_logger(__name__)

ALLOWED_METHODS = ("GET",)

_service: Optional[ProxyService] = None


def get_service() -> ProxyService:
    """Get the proxy service for this function instance."""
    global _service
    if _service is None:
        settings = get_settings()
        setup_logging(settings)
        _service = ProxyService.from_settings(settings)
    return _service


def _error(status_code: int, detail: str, error_type: str) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {
            "content-type": "application/json",
            "access-control-allow-origin": "*",
        },
        "body": json.dumps({"detail": detail, "type": error_type}),
        "isBase64Encoded": False,
    }


def to_event_response(response: ProxyResponse) -> Dict[str, Any]:
    """Convert a proxy response into the function runtime's shape."""
    return {
        "statusCode": response.status_code,
        "headers": response.headers,
        "body": response.body if isinstance(response.body, str) else response.body.decode("utf-8", errors="replace"),
        "isBase64Encoded": response.binary_encoded,
    }


async def handle_event(event: Dict[str, Any], service: ProxyService) -> Dict[str, Any]:
    """Run one function event through the proxy.

    Args:
        event: Function event.
        service: Proxy service.

    Returns:
        Dict[str, Any]: Function response.
    """
    method = (event.get("httpMethod") or "GET").upper()
    if method not in ALLOWED_METHODS:
        return _error(405, "Method not allowed", "method_not_allowed")

    params = event.get("queryStringParameters") or {}
    headers = event.get("headers") or {}

    try:
        response = await service.handle(params, headers, binary_safe=False)
    except ExternalServiceError as exc:
        logger.error("External service error", error=str(exc), service=exc.service)
        track_error(exc.error_type, exc.service)
        return _error(exc.status_code, "Upstream fetch failed", exc.error_type)
    except BaseAppException as exc:
        logger.warning("Request rejected", error=str(exc), type=exc.error_type)
        return _error(exc.status_code, str(exc), exc.error_type)
    except Exception as exc:
        logger.exception("Unhandled exception", error_class=exc.__class__.__name__)
        track_error(exc.__class__.__name__, "serverless")
        return _error(500, "Internal server error", "internal_error")

    return to_event_response(response)


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Function entry point."""
    return asyncio.run(handle_event(event, get_service()))
