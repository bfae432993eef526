"""Proxy-related data models.

This module contains Pydantic models for proxy requests and responses.
The types are independent of the hosting transport; adapters translate
their native request/response shapes into and out of them.
"""

from typing import Dict, Optional, Union

from pydantic import ConfigDict, Field, validator

from .common import BaseModel


class ProxyRequest(BaseModel):
    """A validated proxy request, immutable for the lifetime of one call."""

    model_config = ConfigDict(frozen=True)

    target_url: str = Field(..., description="Absolute target URL")
    host: str = Field(..., description="Lowercased target hostname")
    debug: bool = Field(default=False, description="Return diagnostic snippets on upstream failure")
    client_authorization: Optional[str] = Field(None, description="Inbound Authorization header")
    client_headers: Dict[str, str] = Field(default_factory=dict, description="Inbound request headers")

    @validator("client_headers")
    def normalize_headers(cls, v):
        """Normalize header names to lowercase."""
        return {key.lower(): value for key, value in v.items()}


class UpstreamResponse(BaseModel):
    """Raw response received from the upstream host."""

    status_code: int = Field(..., description="HTTP status code")
    reason_phrase: str = Field(default="", description="HTTP reason phrase")
    headers: Dict[str, str] = Field(default_factory=dict, description="Response headers")
    body: bytes = Field(default=b"", description="Response body")
    elapsed_time: float = Field(default=0.0, description="Request duration in seconds")

    @validator("headers")
    def normalize_headers(cls, v):
        """Normalize header names to lowercase."""
        return {key.lower(): value for key, value in v.items()}

    @property
    def is_success(self) -> bool:
        """Check if upstream returned a 2xx status."""
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        """Upstream content type, empty when absent."""
        return self.headers.get("content-type", "")


class ProxyResponse(BaseModel):
    """Response returned to the caller."""

    status_code: int = Field(..., description="HTTP status code")
    headers: Dict[str, str] = Field(default_factory=dict, description="Response headers")
    body: Union[bytes, str] = Field(default=b"", description="Response body")
    binary_encoded: bool = Field(default=False, description="Whether body is base64 encoded")

    @validator("headers")
    def normalize_headers(cls, v):
        """Normalize header names to lowercase."""
        return {key.lower(): value for key, value in v.items()}

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes, for transports that carry raw bytes."""
        if isinstance(self.body, bytes):
            return self.body
        return self.body.encode("utf-8")
