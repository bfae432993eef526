"""Pydantic models for the application.

This module contains all data models used throughout the application
for request/response validation and serialization.
"""

from .auth import (
    AuthTokens,
    GrantRequest,
    GrantType,
    OAuthCredentials,
    TokenCache,
)
from .proxy import ProxyRequest, ProxyResponse, UpstreamResponse
from .common import BaseModel, ErrorResponse, HealthResponse

__all__ = [
    # Auth models
    "AuthTokens",
    "GrantRequest",
    "GrantType",
    "OAuthCredentials",
    "TokenCache",
    # Proxy models
    "ProxyRequest",
    "ProxyResponse",
    "UpstreamResponse",
    # Common models
    "BaseModel",
    "ErrorResponse",
    "HealthResponse",
]
