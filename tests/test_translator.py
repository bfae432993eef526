"""Tests for upstream response translation."""

import base64

import pytest

from models.proxy import UpstreamResponse
from proxy.headers import HOP_BY_HOP_HEADERS
from proxy.translator import ResponseTranslator, is_binary, status_line

PNG = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


def upstream(status_code=200, content_type="application/json", body=b"{}", **headers):
    all_headers = {"content-type": content_type}
    all_headers.update({key.replace("_", "-"): value for key, value in headers.items()})
    return UpstreamResponse(status_code=status_code, headers=all_headers, body=body)


@pytest.fixture
def translator():
    return ResponseTranslator(cache_max_age=3600, snippet_chars=100)


class TestHeaders:
    """Test forwarded response headers."""

    @pytest.mark.parametrize("status_code", [200, 404, 503])
    def test_hop_by_hop_headers_never_forwarded(self, translator, status_code):
        """Test hop-by-hop headers are stripped regardless of status."""
        response = upstream(status_code=status_code, **{name: "x" for name in HOP_BY_HOP_HEADERS})

        result = translator.translate(response)

        assert not HOP_BY_HOP_HEADERS & set(result.headers)
        assert result.headers["content-type"] == "application/json"

    def test_cors_header_on_success(self, translator):
        """Test successful responses are readable cross-origin."""
        result = translator.translate(upstream())
        assert result.headers["access-control-allow-origin"] == "*"

    @pytest.mark.parametrize("content_type", ["image/png", "video/mp4", "audio/mpeg"])
    def test_media_gets_cache_hint(self, translator, content_type):
        """Test successful media responses get a cache hint."""
        result = translator.translate(upstream(content_type=content_type, body=PNG))
        assert result.headers["cache-control"] == "public, max-age=3600"

    def test_upstream_cache_control_is_kept(self, translator):
        """Test an upstream cache-control is not overwritten."""
        result = translator.translate(upstream(content_type="image/jpeg", cache_control="max-age=60"))
        assert result.headers["cache-control"] == "max-age=60"

    def test_no_cache_hint_for_json_or_errors(self, translator):
        """Test the hint is limited to successful media."""
        assert "cache-control" not in translator.translate(upstream()).headers
        assert "cache-control" not in translator.translate(
            upstream(status_code=404, content_type="image/png")
        ).headers


class TestBodyEncoding:
    """Test transport-dependent body encoding."""

    @pytest.mark.parametrize("content_type", ["image/png", "video/mp4"])
    def test_media_is_base64_on_text_transport(self, translator, content_type):
        """Test binary bodies are encoded and flagged for text-only transports."""
        result = translator.translate(upstream(content_type=content_type, body=PNG), binary_safe=False)

        assert result.binary_encoded is True
        assert base64.b64decode(result.body) == PNG

    def test_json_is_text_on_text_transport(self, translator):
        """Test text bodies are passed as strings."""
        result = translator.translate(upstream(body=b'{"ok": true}'), binary_safe=False)

        assert result.binary_encoded is False
        assert result.body == '{"ok": true}'

    def test_attachment_is_binary(self, translator):
        """Test content-disposition attachments count as binary."""
        response = upstream(
            content_type="application/octet-stream",
            body=b"\x00\x01",
            content_disposition='attachment; filename="a.bin"',
        )
        result = translator.translate(response, binary_safe=False)

        assert result.binary_encoded is True
        assert is_binary(response.headers)

    def test_raw_bytes_on_binary_transport(self, translator):
        """Test byte-capable transports get the body unmodified."""
        result = translator.translate(upstream(content_type="image/png", body=PNG), binary_safe=True)

        assert result.binary_encoded is False
        assert result.body == PNG


class TestUpstreamErrors:
    """Test non-2xx handling with and without debug."""

    def test_error_forwarded_in_full(self, translator):
        """Test the caller sees the real upstream error."""
        body = b"<html>" + b"x" * 500 + b"</html>"
        response = upstream(status_code=404, content_type="text/html", body=body, x_request_id="abc")

        result = translator.translate(response)

        assert result.status_code == 404
        assert result.body == body
        assert result.headers["x-request-id"] == "abc"

    def test_debug_returns_snippet(self, translator):
        """Test debug mode returns a short snippet led by the status code."""
        body = b"<html>" + b"x" * 500 + b"</html>"
        response = upstream(status_code=404, content_type="text/html", body=body)

        result = translator.translate(response, debug=True)

        assert result.status_code == 404
        assert result.headers["content-type"] == "text/plain; charset=utf-8"
        assert result.body.startswith("404")
        assert result.body.endswith("<html>" + "x" * 94)

    def test_debug_ignored_on_success(self, translator):
        """Test debug mode leaves successful responses alone."""
        result = translator.translate(upstream(body=b'{"ok": true}'), debug=True)
        assert result.body == b'{"ok": true}'


class TestStatusLine:
    """Test the status line used in debug snippets."""

    def test_known_code(self):
        assert status_line(404) == "404 Not Found"

    def test_upstream_reason_wins(self):
        assert status_line(429, "Slow Down") == "429 Slow Down"

    def test_unknown_code(self):
        assert status_line(599) == "599"
