"""Proxy service.

Runs one proxy request through the pipeline::

    validate -> build headers -> [server token -> rewrite] -> fetch -> translate

Hosting adapters own the translation between their native request and
response shapes and :class:`ProxyRequest` / :class:`ProxyResponse`.
"""

import time
from typing import Mapping, Optional
from urllib.parse import urlsplit

import httpx
import structlog

from auth.service import CredentialManager
from core.config import Settings
from core.monitoring import track_proxy_request
from models.proxy import ProxyRequest, ProxyResponse

from .allowlist import Allowlist
from .client import UNLISTED, UpstreamFetcher
from .headers import build_outbound_headers
from .rewriter import rewrite_for_oauth
from .translator import ResponseTranslator
from .validator import validate_request

logger = structlog.get_logger(__name__)


class ProxyService:
    """Request-forwarding proxy with server-side credential handling."""

    def __init__(
        self,
        allowlist: Allowlist,
        credentials: CredentialManager,
        fetcher: UpstreamFetcher,
        translator: ResponseTranslator,
        fallback_user_agent: str,
        web_hosts=(),
        oauth_host: str = "oauth.reddit.com",
    ) -> None:
        self.allowlist = allowlist
        self.credentials = credentials
        self.fetcher = fetcher
        self.translator = translator
        self.fallback_user_agent = fallback_user_agent
        self.web_hosts = tuple(web_hosts)
        self.oauth_host = oauth_host

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        credentials: Optional[CredentialManager] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ProxyService":
        """Build the service and its collaborators from settings.

        Args:
            settings: Application settings.
            credentials: Process-wide credential manager; built from
                settings when omitted.
            transport: Transport override for upstream and token calls.
        """
        allowlist = Allowlist(settings.allowed_hosts_list)
        return cls(
            allowlist=allowlist,
            credentials=credentials or CredentialManager.from_settings(settings, transport=transport),
            fetcher=UpstreamFetcher(allowlist, timeout=settings.upstream_timeout, transport=transport),
            translator=ResponseTranslator(
                cache_max_age=settings.media_cache_max_age,
                snippet_chars=settings.debug_snippet_chars,
            ),
            fallback_user_agent=settings.proxy_user_agent,
            web_hosts=settings.reddit_web_hosts_list,
            oauth_host=settings.reddit_oauth_host,
        )

    def validate(self, params: Mapping[str, str], headers: Mapping[str, str]) -> ProxyRequest:
        """Validate raw query parameters and headers."""
        try:
            return validate_request(params, headers, self.allowlist)
        except Exception:
            track_proxy_request("invalid", "rejected")
            raise

    async def handle(
        self,
        params: Mapping[str, str],
        headers: Mapping[str, str],
        binary_safe: bool = True,
    ) -> ProxyResponse:
        """Validate and forward one request.

        Args:
            params: Query parameters.
            headers: Inbound request headers.
            binary_safe: Whether the hosting transport carries raw bytes.
        """
        return await self.forward(self.validate(params, headers), binary_safe=binary_safe)

    async def forward(self, request: ProxyRequest, binary_safe: bool = True) -> ProxyResponse:
        """Forward a validated request and translate the response.

        Args:
            request: Validated request.
            binary_safe: Whether the hosting transport carries raw bytes.

        Returns:
            ProxyResponse: Response for the caller.

        Raises:
            UpstreamFetchError: If the upstream could not be reached.
        """
        start_time = time.time()
        target = self.allowlist.match(request.host) or UNLISTED
        headers = build_outbound_headers(request, self.fallback_user_agent)
        fetch_url = request.target_url

        if "Authorization" not in headers and self.credentials.applies_to(request.host):
            oauth_url = rewrite_for_oauth(fetch_url, self.web_hosts, self.oauth_host)
            if urlsplit(oauth_url).scheme != "https":
                logger.info("Server token withheld from plaintext target", host=request.host)
            else:
                token = await self.credentials.get_token()
                if token:
                    headers["Authorization"] = f"Bearer {token}"
                    if not request.client_headers.get("user-agent"):
                        headers["User-Agent"] = self.credentials.user_agent
                    fetch_url = oauth_url
                else:
                    logger.info("No upstream token available, proceeding unauthenticated", host=request.host)

        logger.info(
            "Forwarding request",
            host=request.host,
            rewritten=fetch_url != request.target_url,
            has_auth="Authorization" in headers,
            client_auth=bool(request.client_authorization),
        )

        try:
            upstream = await self.fetcher.fetch(fetch_url, headers)
        except Exception:
            track_proxy_request(target, "failed", time.time() - start_time)
            raise

        track_proxy_request(target, str(upstream.status_code), time.time() - start_time)
        return self.translator.translate(upstream, debug=request.debug, binary_safe=binary_safe)
