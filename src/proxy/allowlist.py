"""Host allowlist."""

from typing import Iterable, Optional


class Allowlist:
    """Static set of hostnames and domain suffixes the proxy may contact.

    A host matches an entry when it equals the entry or ends with
    ``"." + entry``, so ``reddit.com`` admits ``www.reddit.com`` but not
    ``notreddit.com``.
    """

    def __init__(self, entries: Iterable[str]) -> None:
        self.entries = frozenset(
            entry.strip().lower().rstrip(".") for entry in entries if entry.strip()
        )

    def __contains__(self, host: str) -> bool:
        return self.is_allowed(host)

    def __len__(self) -> int:
        return len(self.entries)

    def match(self, host: str) -> Optional[str]:
        """Return the most specific entry admitting host, if any."""
        if not host:
            return None
        host = host.lower().rstrip(".")
        matches = [entry for entry in self.entries if host == entry or host.endswith("." + entry)]
        return max(matches, key=len) if matches else None

    def is_allowed(self, host: str) -> bool:
        """Check host against the allowlist."""
        return self.match(host) is not None
