"""Inbound request validation.

Everything in this module runs before any network activity: a request
that fails here never reaches the credential manager or the upstream.
"""

from typing import Mapping, Optional
from urllib.parse import SplitResult, unquote, urlsplit

import structlog

from core.exceptions import HostNotAllowedError, InvalidURLError, MissingParameterError
from models.proxy import ProxyRequest

from .allowlist import Allowlist

logger = structlog.get_logger(__name__)

URL_PARAMS = ("url", "u")
DEBUG_VALUES = ("1", "true")


def is_debug(value: Optional[str]) -> bool:
    """Check the ``debug`` query value."""
    return value in DEBUG_VALUES


def decode_target(raw: str) -> str:
    """Percent-decode a target that is still encoded.

    Values that already contain a scheme separator are plain URLs and are
    returned untouched. Undecodable input falls back to the raw string.
    """
    if "://" in raw:
        return raw
    try:
        return unquote(raw, errors="strict")
    except UnicodeDecodeError:
        return raw


def parse_target(target: str) -> SplitResult:
    """Parse an absolute http(s) URL.

    Raises:
        InvalidURLError: If the URL is relative, has another scheme or no host.
    """
    try:
        parts = urlsplit(target.strip())
        # port parsing is lazy and raises on garbage
        parts.port
    except ValueError as e:
        raise InvalidURLError(target, cause=e)
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        raise InvalidURLError(target)
    return parts


def validate_request(
    params: Mapping[str, str],
    headers: Mapping[str, str],
    allowlist: Allowlist,
) -> ProxyRequest:
    """Turn raw query parameters and headers into a validated request.

    Args:
        params: Query parameters.
        headers: Inbound request headers, any casing.
        allowlist: Hosts the proxy may contact.

    Returns:
        ProxyRequest: The validated request.

    Raises:
        MissingParameterError: No ``url`` parameter.
        InvalidURLError: The target is not an absolute http(s) URL.
        HostNotAllowedError: The target host is not allowlisted.
    """
    raw = next((params[name] for name in URL_PARAMS if params.get(name)), None)
    if not raw:
        raise MissingParameterError("url")

    target = decode_target(raw).strip()
    parts = parse_target(target)
    host = parts.hostname.lower()

    if not allowlist.is_allowed(host):
        logger.warning("Host not allowed", host=host)
        raise HostNotAllowedError(host)

    client_headers = {key.lower(): value for key, value in headers.items()}
    return ProxyRequest(
        target_url=target,
        host=host,
        debug=is_debug(params.get("debug")),
        client_authorization=client_headers.get("authorization") or None,
        client_headers=client_headers,
    )
