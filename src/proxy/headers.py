"""Outbound and forwarded header handling."""

from typing import Dict, Mapping
from urllib.parse import urlsplit

from models.proxy import ProxyRequest

DEFAULT_ACCEPT = "*/*"
DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.9"

HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
})

# The fetch client decompresses bodies, so these no longer describe what we send.
DECODED_REPRESENTATION_HEADERS = frozenset({
    "content-encoding",
    "content-length",
})


def target_origin(url: str) -> str:
    """Scheme, host and port of a URL, without credentials or path."""
    parts = urlsplit(url)
    origin = f"{parts.scheme}://{parts.hostname}"
    if parts.port:
        origin += f":{parts.port}"
    return origin


def build_outbound_headers(request: ProxyRequest, fallback_user_agent: str) -> Dict[str, str]:
    """Build the headers sent upstream.

    Only Authorization, User-Agent and Accept are taken from the client.
    Accept-Language and Referer are filled with defaults when the client
    did not send them. Everything else, cookies included, is dropped.

    Args:
        request: The validated request.
        fallback_user_agent: User-Agent when the client sent none.

    Returns:
        Dict[str, str]: Outbound headers.
    """
    inbound = request.client_headers
    headers: Dict[str, str] = {}

    if request.client_authorization:
        headers["Authorization"] = request.client_authorization

    headers["User-Agent"] = inbound.get("user-agent") or fallback_user_agent
    headers["Accept"] = inbound.get("accept") or DEFAULT_ACCEPT

    if not inbound.get("accept-language"):
        headers["Accept-Language"] = DEFAULT_ACCEPT_LANGUAGE
    if not inbound.get("referer"):
        headers["Referer"] = target_origin(request.target_url)

    return headers


def strip_hop_by_hop(headers: Mapping[str, str]) -> Dict[str, str]:
    """Drop hop-by-hop and decoded representation headers, lowercasing names."""
    excluded = HOP_BY_HOP_HEADERS | DECODED_REPRESENTATION_HEADERS
    return {
        key.lower(): value
        for key, value in headers.items()
        if key.lower() not in excluded
    }
