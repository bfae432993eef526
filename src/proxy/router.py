"""Proxy router.

This module exposes the proxy over FastAPI, the long-running server
adapter. Starlette responses carry raw bytes, so bodies pass through
without base64 encoding.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from .dependencies import get_proxy_service
from .service import ProxyService

router = APIRouter()


@router.get("/proxy", summary="Forward a GET request to an allowlisted host")
async def proxy(
    request: Request,
    url: Optional[str] = Query(None, description="Target URL, plain or URL-encoded"),
    debug: Optional[str] = Query(None, description="'1' or 'true' returns a snippet on upstream failure"),
    proxy_service: ProxyService = Depends(get_proxy_service),
) -> Response:
    """Fetch ``url`` from an allowlisted host and relay the response.

    Validation failures are raised as application exceptions and rendered
    by the global exception handlers.
    """
    params = dict(request.query_params)
    result = await proxy_service.handle(params, dict(request.headers), binary_safe=True)
    return Response(
        content=result.body_bytes,
        status_code=result.status_code,
        headers=result.headers,
    )
