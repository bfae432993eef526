"""Upstream response translation.

Maps an :class:`UpstreamResponse` into the :class:`ProxyResponse` handed
back to the caller. The semantic response is the same for every hosting
transport; only the body encoding differs between transports that carry
raw bytes and transports that carry text only.
"""

import base64
from http import HTTPStatus
from typing import Dict

import structlog

from core.logging import redact_headers
from models.proxy import ProxyResponse, UpstreamResponse

from .headers import strip_hop_by_hop

logger = structlog.get_logger(__name__)

MEDIA_TYPE_PREFIXES = ("image/", "video/", "audio/")
LOG_SNIPPET_CHARS = 2000


def is_media(content_type: str) -> bool:
    """Check for image, video or audio content types."""
    return content_type.lower().startswith(MEDIA_TYPE_PREFIXES)


def is_binary(headers: Dict[str, str]) -> bool:
    """Check if a response body must be treated as binary."""
    disposition = headers.get("content-disposition", "").lower()
    return is_media(headers.get("content-type", "")) or "attachment" in disposition


def status_line(status_code: int, reason: str = "") -> str:
    """Status code followed by its reason phrase when one is known."""
    if reason:
        return f"{status_code} {reason}"
    try:
        return f"{status_code} {HTTPStatus(status_code).phrase}"
    except ValueError:
        return str(status_code)


class ResponseTranslator:
    """Translates upstream responses for the caller.

    Attributes:
        cache_max_age: max-age hint for successful media responses.
        snippet_chars: Upstream body characters returned in debug mode.
    """

    def __init__(self, cache_max_age: int = 3600, snippet_chars: int = 5000) -> None:
        self.cache_max_age = cache_max_age
        self.snippet_chars = snippet_chars

    def translate(
        self,
        upstream: UpstreamResponse,
        debug: bool = False,
        binary_safe: bool = True,
    ) -> ProxyResponse:
        """Build the caller-facing response.

        Args:
            upstream: Response received from the upstream host.
            debug: Return a short diagnostic body for non-2xx responses.
            binary_safe: Whether the hosting transport carries raw bytes.
                Text-only transports get binary bodies base64 encoded.

        Returns:
            ProxyResponse: Response for the caller.
        """
        if not upstream.is_success:
            self._log_failure(upstream)
            if debug:
                return self._debug_response(upstream)

        headers = strip_hop_by_hop(upstream.headers)
        headers["access-control-allow-origin"] = "*"
        if upstream.is_success and is_media(upstream.content_type):
            headers.setdefault("cache-control", f"public, max-age={self.cache_max_age}")

        if binary_safe:
            return ProxyResponse(
                status_code=upstream.status_code,
                headers=headers,
                body=upstream.body,
            )

        if is_binary(headers):
            return ProxyResponse(
                status_code=upstream.status_code,
                headers=headers,
                body=base64.b64encode(upstream.body).decode("ascii"),
                binary_encoded=True,
            )

        return ProxyResponse(
            status_code=upstream.status_code,
            headers=headers,
            body=upstream.body.decode("utf-8", errors="replace"),
        )

    def _debug_response(self, upstream: UpstreamResponse) -> ProxyResponse:
        text = upstream.body.decode("utf-8", errors="replace")
        body = f"{status_line(upstream.status_code, upstream.reason_phrase)}\n\n{text[:self.snippet_chars]}"
        return ProxyResponse(
            status_code=upstream.status_code,
            headers={
                "content-type": "text/plain; charset=utf-8",
                "access-control-allow-origin": "*",
            },
            body=body,
        )

    def _log_failure(self, upstream: UpstreamResponse) -> None:
        snippet = ""
        if not is_binary(upstream.headers):
            snippet = upstream.body[:LOG_SNIPPET_CHARS].decode("utf-8", errors="replace")
        logger.warning(
            "Upstream returned non-OK status",
            status_code=upstream.status_code,
            response_headers=redact_headers(upstream.headers),
            snippet=snippet,
        )
