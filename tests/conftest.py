"""Shared fixtures: settings factory, fake upstream and fake clock."""

from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from auth.service import CredentialManager
from core.config import Settings
from proxy.service import ProxyService

TOKEN_PATH = "/api/v1/access_token"

NO_CREDENTIALS = dict(
    reddit_client_id=None,
    reddit_client_secret=None,
    reddit_username=None,
    reddit_password=None,
    reddit_device_id=None,
)


class FakeClock:
    """Epoch-millisecond clock moved by hand."""

    def __init__(self, now_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class FakeUpstream:
    """Mock transport standing in for the token endpoint and content hosts."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.headers = {"content-type": "application/json; charset=utf-8"}
        self.content = b'{"kind": "Listing", "data": {"children": []}}'
        self.token_status = 200
        self.token_body: Optional[dict] = None
        self.error: Optional[Callable[[httpx.Request], Exception]] = None
        self.routes: Dict[str, Tuple[int, Dict[str, str], bytes]] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == TOKEN_PATH:
            return self._token_response()
        if self.error is not None:
            raise self.error(request)
        if str(request.url) in self.routes:
            status_code, headers, content = self.routes[str(request.url)]
            return httpx.Response(status_code, headers=headers, content=content)
        return httpx.Response(self.status_code, headers=self.headers, content=self.content)

    def _token_response(self) -> httpx.Response:
        if self.token_status != 200:
            return httpx.Response(self.token_status, json={"error": "invalid_grant"})
        body = self.token_body or {
            "access_token": f"server-token-{len(self.token_requests)}",
            "token_type": "bearer",
            "expires_in": 3600,
            "scope": "read",
        }
        return httpx.Response(200, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def token_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == TOKEN_PATH]

    @property
    def fetch_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path != TOKEN_PATH]


@pytest.fixture
def make_settings():
    """Settings factory isolated from the process environment."""

    def factory(**overrides) -> Settings:
        values = dict(NO_CREDENTIALS, log_format="text", metrics_enabled=False)
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return factory


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def credentialed_settings(make_settings) -> Settings:
    return make_settings(
        reddit_client_id="app-id",
        reddit_client_secret="app-secret",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def make_service(upstream, clock):
    """Build a proxy service wired to the fake upstream and clock."""

    def factory(settings: Settings) -> ProxyService:
        credentials = CredentialManager.from_settings(
            settings, clock=clock, transport=upstream.transport
        )
        return ProxyService.from_settings(
            settings, credentials=credentials, transport=upstream.transport
        )

    return factory
