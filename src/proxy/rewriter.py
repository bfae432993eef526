"""Target URL rewriting for server-authenticated requests."""

from typing import Iterable
from urllib.parse import urlsplit, urlunsplit


def rewrite_for_oauth(target_url: str, web_hosts: Iterable[str], oauth_host: str) -> str:
    """Point a web-host URL at the upstream's OAuth API host.

    Bearer tokens are only honoured on the OAuth host, so a request that
    carries a server-acquired token for ``www.reddit.com`` must go to
    ``https://oauth.reddit.com``, whatever scheme the caller used. Path and query are kept byte for
    byte. URLs on any other host, the OAuth host included, are returned
    unchanged.

    Only call this when the token was acquired by the server; a client
    supplied Authorization header keeps the client's target.
    """
    parts = urlsplit(target_url)
    host = (parts.hostname or "").lower()
    if host == oauth_host.lower() or host not in {h.lower() for h in web_hosts}:
        return target_url
    return urlunsplit(parts._replace(scheme="https", netloc=oauth_host))
