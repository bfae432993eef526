"""Upstream credential management.

The credential manager owns the process-wide token cache for one upstream
identity. It is constructed once per process and handed to the proxy
service, so tests can give it a fake clock and a mock token endpoint.

Token lifecycle::

    NoToken --acquire--> Valid --(expiry - refresh margin)--> NoToken

Acquisition failures are logged and swallowed: the request that triggered
them proceeds unauthenticated and the next request tries again. Concurrent
requests arriving with an empty cache may each acquire a token; both are
valid and the later one wins.
"""

import time
from typing import Callable, Iterable, Optional

import structlog

from core.config import Settings
from core.exceptions import TokenAcquisitionError
from core.monitoring import track_token_acquisition
from models.auth import GrantRequest, GrantType, OAuthCredentials, TokenCache

from .client import RedditOAuthClient

logger = structlog.get_logger(__name__)

Clock = Callable[[], int]

DEFAULT_REFRESH_MARGIN_MS = 60_000


def epoch_ms() -> int:
    """Current wall clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def select_grant(credentials: OAuthCredentials) -> Optional[GrantRequest]:
    """Pick the grant to use for the configured credentials.

    Priority: password grant when a username and password are present,
    then client credentials when a secret is present, then the
    installed-client grant when only a device id is present.

    Returns:
        Optional[GrantRequest]: The grant, or None when none is possible.
    """
    if not credentials.client_id:
        return None
    if credentials.username and credentials.password:
        return GrantRequest(
            grant_type=GrantType.PASSWORD,
            form={
                "username": credentials.username,
                "password": credentials.password,
                "scope": "read",
            },
        )
    if credentials.client_secret:
        return GrantRequest(grant_type=GrantType.CLIENT_CREDENTIALS)
    if credentials.device_id:
        return GrantRequest(
            grant_type=GrantType.INSTALLED_CLIENT,
            form={"device_id": credentials.device_id},
        )
    return None


def oauth_user_agent(app_name: str, app_version: str, username: Optional[str], fallback: str) -> str:
    """User-Agent in the format the Reddit API rules ask for."""
    if username:
        return f"script:{app_name}:{app_version} (by /u/{username})"
    return fallback


class CredentialManager:
    """Acquires, caches and supplies server-side bearer tokens.

    Attributes:
        credentials: Server-held OAuth credentials.
        cache: Token cache, shared by every request in the process.
        user_agent: User-Agent presented to the OAuth API.
    """

    provider = "reddit"

    def __init__(
        self,
        credentials: OAuthCredentials,
        oauth_client: Optional[RedditOAuthClient],
        hosts: Iterable[str] = (),
        user_agent: str = "media-feed-proxy/1.0",
        clock: Optional[Clock] = None,
        refresh_margin_ms: int = DEFAULT_REFRESH_MARGIN_MS,
        cache: Optional[TokenCache] = None,
    ) -> None:
        self.credentials = credentials
        self.oauth_client = oauth_client
        self.hosts = frozenset(host.lower() for host in hosts)
        self.user_agent = user_agent
        self.clock = clock or epoch_ms
        self.refresh_margin_ms = refresh_margin_ms
        self.cache = cache or TokenCache()

    @classmethod
    def from_settings(cls, settings: Settings, clock: Optional[Clock] = None, transport=None) -> "CredentialManager":
        """Build the manager and its token client from settings."""
        credentials = OAuthCredentials(
            client_id=settings.reddit_client_id,
            client_secret=settings.reddit_client_secret,
            username=settings.reddit_username,
            password=settings.reddit_password,
            device_id=settings.reddit_device_id,
        )
        user_agent = oauth_user_agent(
            settings.reddit_app_name,
            settings.app_version,
            settings.reddit_username,
            settings.reddit_user_agent,
        )
        oauth_client = None
        if credentials.client_id:
            oauth_client = RedditOAuthClient(
                token_url=settings.reddit_token_url,
                client_id=credentials.client_id,
                client_secret=credentials.client_secret,
                user_agent=user_agent,
                timeout=settings.token_timeout,
                transport=transport,
            )
        return cls(
            credentials=credentials,
            oauth_client=oauth_client,
            hosts=settings.reddit_credentialed_hosts,
            user_agent=user_agent,
            clock=clock,
            refresh_margin_ms=settings.token_refresh_margin_ms,
        )

    @property
    def is_configured(self) -> bool:
        """Check if server-side credentials are available."""
        return self.oauth_client is not None and self.credentials.is_configured

    def applies_to(self, host: str) -> bool:
        """Check if requests to host should carry a server token."""
        return self.is_configured and host.lower() in self.hosts

    async def get_token(self) -> Optional[str]:
        """Return a valid bearer token, acquiring one if needed.

        Returns:
            Optional[str]: The token, or None when none could be obtained.
        """
        now = self.clock()
        if self.cache.is_valid(now, self.refresh_margin_ms):
            return self.cache.token

        grant = select_grant(self.credentials)
        if grant is None or self.oauth_client is None:
            logger.info("No upstream credentials configured, proceeding unauthenticated")
            return None

        try:
            tokens = await self.oauth_client.request_token(grant)
        except TokenAcquisitionError as e:
            track_token_acquisition(self.provider, grant.label, "failure")
            logger.warning(
                "Failed to acquire upstream token",
                grant_type=grant.label,
                error=str(e),
                error_code=e.error_code,
            )
            return None

        self.cache.store(tokens.access_token, tokens.expires_in, self.clock())
        track_token_acquisition(self.provider, grant.label, "success")
        logger.info(
            "Acquired upstream token",
            grant_type=grant.label,
            expires_in=tokens.expires_in,
            scope=tokens.scope,
        )
        return self.cache.token
