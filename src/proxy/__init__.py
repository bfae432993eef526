"""Proxy module.

This module provides request forwarding to allowlisted media and feed
hosts, with server-side credentials attached where configured.
"""

from .allowlist import Allowlist
from .client import UpstreamFetcher
from .router import router
from .service import ProxyService
from .translator import ResponseTranslator

__all__ = [
    "Allowlist",
    "ProxyService",
    "ResponseTranslator",
    "UpstreamFetcher",
    "router",
]
