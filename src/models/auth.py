"""Authentication-related data models.

This module contains Pydantic models for upstream OAuth credentials,
token grants and the process-wide token cache.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import Field, validator

from .common import BaseModel

INSTALLED_CLIENT_GRANT = "https://oauth.reddit.com/grants/installed_client"


class GrantType(str, Enum):
    """OAuth grant type enumeration."""

    PASSWORD = "password"
    CLIENT_CREDENTIALS = "client_credentials"
    INSTALLED_CLIENT = INSTALLED_CLIENT_GRANT


class OAuthCredentials(BaseModel):
    """Server-held credentials for one upstream identity."""

    client_id: Optional[str] = Field(None, description="OAuth client ID")
    client_secret: Optional[str] = Field(None, description="OAuth client secret")
    username: Optional[str] = Field(None, description="Account username for password grant")
    password: Optional[str] = Field(None, description="Account password for password grant")
    device_id: Optional[str] = Field(None, description="Device ID for installed-client grant")

    def __repr__(self) -> str:
        return (
            f"OAuthCredentials(client_id={self.client_id!r}, "
            f"username={self.username!r}, has_secret={bool(self.client_secret)})"
        )

    __str__ = __repr__

    @property
    def is_configured(self) -> bool:
        """Check if any grant can be attempted."""
        return bool(self.client_id) and (
            bool(self.username and self.password)
            or bool(self.client_secret)
            or bool(self.device_id)
        )


class GrantRequest(BaseModel):
    """A token endpoint request body for the selected grant."""

    grant_type: GrantType = Field(..., description="OAuth grant type")
    form: Dict[str, str] = Field(default_factory=dict, description="Form-encoded request fields")

    @property
    def label(self) -> str:
        """Short grant name for logs and metrics."""
        if self.grant_type == GrantType.INSTALLED_CLIENT.value:
            return "installed_client"
        return str(self.grant_type)


class AuthTokens(BaseModel):
    """Token endpoint response model."""

    access_token: str = Field(..., min_length=1, description="Access token")
    expires_in: float = Field(..., gt=0, description="Token lifetime in seconds")
    token_type: str = Field(default="bearer", description="Token type")
    scope: Optional[str] = Field(None, description="Token scope")

    @validator("token_type")
    def validate_token_type(cls, v):
        """Validate token type."""
        return v.lower()


class TokenCache(BaseModel):
    """Cached bearer token for one upstream identity.

    Starts empty and is superseded, never cleared, on each successful
    acquisition.
    """

    token: Optional[str] = Field(None, description="Current bearer token")
    expires_at_ms: int = Field(default=0, description="Expiry as epoch milliseconds")

    def is_valid(self, now_ms: int, margin_ms: int) -> bool:
        """Check if the token can be used without refreshing.

        Args:
            now_ms: Current time as epoch milliseconds.
            margin_ms: Refresh margin subtracted from the expiry.

        Returns:
            bool: True while now is before expiry minus the margin.
        """
        return bool(self.token) and now_ms < self.expires_at_ms - margin_ms

    def store(self, token: str, expires_in: float, now_ms: int) -> None:
        """Replace the cached token."""
        self.token = token
        self.expires_at_ms = now_ms + int(expires_in * 1000)
