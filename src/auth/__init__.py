"""Authentication module.

This module provides server-side OAuth 2.0 token acquisition for the
upstream API and the process-wide token cache.
"""

from .client import RedditOAuthClient
from .service import CredentialManager, select_grant

__all__ = [
    "CredentialManager",
    "RedditOAuthClient",
    "select_grant",
]
