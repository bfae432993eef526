"""Tests for outbound header building and forwarded header filtering."""

from core.logging import REDACTED, redact_headers
from models.proxy import ProxyRequest
from proxy.headers import (
    DEFAULT_ACCEPT_LANGUAGE,
    HOP_BY_HOP_HEADERS,
    build_outbound_headers,
    strip_hop_by_hop,
    target_origin,
)

FALLBACK_UA = "media-feed-proxy/test"


def make_request(target="https://www.reddit.com/r/pics/hot.json", **headers):
    lowered = {key.lower().replace("_", "-"): value for key, value in headers.items()}
    return ProxyRequest(
        target_url=target,
        host="www.reddit.com",
        client_authorization=lowered.get("authorization"),
        client_headers=lowered,
    )


class TestBuildOutboundHeaders:
    """Test outbound header construction."""

    def test_defaults_without_client_headers(self):
        """Test defaults are filled when the client sends nothing."""
        headers = build_outbound_headers(make_request(), FALLBACK_UA)

        assert headers == {
            "User-Agent": FALLBACK_UA,
            "Accept": "*/*",
            "Accept-Language": DEFAULT_ACCEPT_LANGUAGE,
            "Referer": "https://www.reddit.com",
        }

    def test_client_values_are_used(self):
        """Test client Authorization, User-Agent and Accept are forwarded."""
        request = make_request(
            authorization="Bearer client-token",
            user_agent="Mozilla/5.0",
            accept="application/json",
        )
        headers = build_outbound_headers(request, FALLBACK_UA)

        assert headers["Authorization"] == "Bearer client-token"
        assert headers["User-Agent"] == "Mozilla/5.0"
        assert headers["Accept"] == "application/json"

    def test_other_client_headers_are_dropped(self):
        """Test cookies and other inbound headers are not forwarded."""
        request = make_request(cookie="session=abc", x_forwarded_for="1.2.3.4", origin="https://app")
        headers = build_outbound_headers(request, FALLBACK_UA)

        lowered = {key.lower() for key in headers}
        assert "cookie" not in lowered
        assert "x-forwarded-for" not in lowered
        assert "origin" not in lowered

    def test_client_language_and_referer_suppress_defaults(self):
        """Test defaults only apply when the client did not send a value."""
        request = make_request(accept_language="de-DE", referer="https://app.example/")
        headers = build_outbound_headers(request, FALLBACK_UA)

        assert "Accept-Language" not in headers
        assert "Referer" not in headers

    def test_no_authorization_without_client_value(self):
        """Test no Authorization header is invented."""
        headers = build_outbound_headers(make_request(), FALLBACK_UA)
        assert "Authorization" not in headers


class TestTargetOrigin:
    """Test origin extraction."""

    def test_origin_keeps_port_and_drops_credentials(self):
        """Test userinfo and path are removed."""
        assert target_origin("https://user:pw@i.imgur.com:8443/a.png?x=1") == "https://i.imgur.com:8443"

    def test_origin_without_port(self):
        """Test a URL without an explicit port."""
        assert target_origin("http://i.redd.it/a.png") == "http://i.redd.it"


class TestStripHopByHop:
    """Test forwarded header filtering."""

    def test_hop_by_hop_headers_are_removed(self):
        """Test every hop-by-hop header is dropped, any casing."""
        upstream = {name.title(): "x" for name in HOP_BY_HOP_HEADERS}
        upstream["Content-Type"] = "image/png"
        upstream["ETag"] = '"abc"'

        headers = strip_hop_by_hop(upstream)

        assert headers == {"content-type": "image/png", "etag": '"abc"'}

    def test_decoded_representation_headers_are_removed(self):
        """Test encoding and length of the compressed body are dropped."""
        headers = strip_hop_by_hop({"Content-Encoding": "gzip", "Content-Length": "10", "Vary": "Accept"})
        assert headers == {"vary": "Accept"}


class TestRedactHeaders:
    """Test header redaction for logs."""

    def test_credentials_are_redacted(self):
        """Test authorization-bearing values are masked."""
        headers = redact_headers({
            "Authorization": "Bearer secret",
            "Set-Cookie": "session=1",
            "Content-Type": "text/html",
        })

        assert headers == {
            "Authorization": REDACTED,
            "Set-Cookie": REDACTED,
            "Content-Type": "text/html",
        }
