"""Reddit OAuth client.

This module provides the HTTP client for Reddit's OAuth 2.0 token
endpoint.
"""

import time
from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from core.base import BaseClient
from core.exceptions import TokenAcquisitionError
from core.monitoring import track_external_service
from models.auth import AuthTokens, GrantRequest


class RedditOAuthClient(BaseClient):
    """HTTP client for Reddit OAuth 2.0 token acquisition."""

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: Optional[str] = None,
        user_agent: str = "media-feed-proxy/1.0",
        timeout: Optional[float] = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the Reddit OAuth client.

        Args:
            token_url: Token endpoint URL.
            client_id: OAuth client ID.
            client_secret: OAuth client secret, empty for installed apps.
            user_agent: User-Agent required by the API rules.
            timeout: Request timeout in seconds.
            transport: Transport override, used by tests.
        """
        super().__init__(name="RedditOAuth", timeout=timeout, transport=transport)
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.user_agent = user_agent

    async def request_token(self, grant: GrantRequest) -> AuthTokens:
        """Exchange the configured credentials for an access token.

        Args:
            grant: Selected grant and its form fields.

        Returns:
            AuthTokens: Parsed token response.

        Raises:
            TokenAcquisitionError: On network failure, non-2xx status or a
                body without ``access_token`` and ``expires_in``.
        """
        start_time = time.time()
        data = {"grant_type": grant.grant_type, **grant.form}

        self._log_request("POST", self.token_url, grant_type=grant.label)

        try:
            async with self._http_client() as client:
                response = await client.post(
                    self.token_url,
                    data=data,
                    auth=httpx.BasicAuth(self.client_id, self.client_secret or ""),
                    headers={
                        "Content-Type": "application/x-www-form-urlencoded",
                        "User-Agent": self.user_agent,
                    },
                )
        except httpx.TimeoutException as e:
            track_external_service("reddit_oauth", 0, time.time() - start_time)
            raise TokenAcquisitionError("Token request timed out", cause=e)
        except httpx.RequestError as e:
            track_external_service("reddit_oauth", 0, time.time() - start_time)
            raise TokenAcquisitionError(f"Token request failed: {e.__class__.__name__}", cause=e)

        duration = time.time() - start_time
        self._log_response("POST", self.token_url, response.status_code, duration)
        track_external_service("reddit_oauth", response.status_code, duration)

        if not response.is_success:
            error_data = self._error_body(response)
            raise TokenAcquisitionError(
                f"Token request failed: {response.status_code}",
                error_code=error_data.get("error"),
                error_description=error_data.get("error_description"),
                details={"snippet": response.text[:200]},
            )

        try:
            return AuthTokens(**response.json())
        except (ValueError, TypeError, PydanticValidationError) as e:
            raise TokenAcquisitionError("Malformed token response", cause=e)

    @staticmethod
    def _error_body(response: httpx.Response) -> dict:
        if not response.headers.get("content-type", "").startswith("application/json"):
            return {}
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
