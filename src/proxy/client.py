"""Upstream HTTP client.

This module performs the outbound call of a proxy request.
"""

import time
from typing import Dict, Optional

import httpx
import structlog

from core.base import BaseClient
from core.exceptions import UpstreamFetchError
from core.monitoring import track_external_service
from models.proxy import UpstreamResponse

from .allowlist import Allowlist

logger = structlog.get_logger(__name__)

UNLISTED = "unlisted"


class UpstreamFetcher(BaseClient):
    """Fetches a target URL once, following redirects inside the allowlist.

    There is no retry. Every HTTP status the upstream returns, errors
    included, is a successful fetch; only failures to get a response at all
    raise. A redirect to a host outside the allowlist is not followed; the
    redirect itself is returned to the caller.
    """

    def __init__(
        self,
        allowlist: Allowlist,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_redirects: int = 5,
    ) -> None:
        super().__init__(name="Upstream", timeout=timeout, transport=transport)
        self.allowlist = allowlist
        self.max_redirects = max_redirects

    async def fetch(self, url: str, headers: Dict[str, str]) -> UpstreamResponse:
        """GET url with the given headers.

        Args:
            url: Absolute target URL.
            headers: Outbound request headers.

        Returns:
            UpstreamResponse: Status, headers and body as received.

        Raises:
            UpstreamFetchError: Connection, DNS or timeout failure, or too
                many redirects.
        """
        start_time = time.time()
        self._log_request("GET", url, authenticated="Authorization" in headers)

        try:
            async with self._http_client(follow_redirects=False) as client:
                response = await self._send(client, client.build_request("GET", url, headers=headers))
        except httpx.TimeoutException as e:
            track_external_service(self._label(url), 0, time.time() - start_time)
            raise UpstreamFetchError("Upstream request timed out", target_url=url, cause=e)
        except httpx.RequestError as e:
            track_external_service(self._label(url), 0, time.time() - start_time)
            raise UpstreamFetchError(
                f"Upstream request failed: {e.__class__.__name__}",
                target_url=url,
                cause=e,
            )

        duration = time.time() - start_time
        final_url = str(response.request.url)
        self._log_response("GET", final_url, response.status_code, duration)
        track_external_service(self._label(final_url), response.status_code, duration)

        return UpstreamResponse(
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            headers=dict(response.headers.items()),
            body=response.content,
            elapsed_time=duration,
        )

    async def _send(self, client: httpx.AsyncClient, request: httpx.Request) -> httpx.Response:
        # httpx drops Authorization on cross-origin hops when building next_request.
        for _ in range(self.max_redirects + 1):
            response = await client.send(request)
            next_request = response.next_request
            if next_request is None:
                return response
            if not self.allowlist.is_allowed(next_request.url.host):
                logger.warning(
                    "Redirect outside allowlist not followed",
                    source_host=request.url.host,
                    location_host=next_request.url.host,
                )
                return response
            request = next_request

        raise UpstreamFetchError(
            f"Exceeded {self.max_redirects} redirects",
            target_url=str(request.url),
        )

    def _label(self, url: str) -> str:
        return self.allowlist.match(httpx.URL(url).host) or UNLISTED
