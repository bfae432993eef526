"""Tests for the serverless function adapter."""

import base64
import json

import httpx
import pytest

from adapters.serverless import handle_event

LISTING = "https://www.reddit.com/r/earth/hot.json?limit=25"


def event(method="GET", headers=None, **params):
    return {
        "httpMethod": method,
        "queryStringParameters": params or None,
        "headers": headers or {},
    }


class TestHandleEvent:
    """Test event translation in both directions."""

    @pytest.mark.asyncio
    async def test_json_is_returned_as_text(self, settings, upstream, make_service):
        """Test text bodies are not base64 encoded."""
        result = await handle_event(event(url=LISTING), make_service(settings))

        assert result["statusCode"] == 200
        assert result["isBase64Encoded"] is False
        assert result["body"] == upstream.content.decode()
        assert result["headers"]["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_image_is_base64_encoded(self, settings, upstream, make_service):
        """Test binary bodies are encoded and flagged."""
        upstream.headers = {"content-type": "image/png", "connection": "keep-alive"}
        upstream.content = b"\x89PNG\r\n\x1a\n\xff"

        result = await handle_event(event(url="https://i.redd.it/a.png"), make_service(settings))

        assert result["isBase64Encoded"] is True
        assert base64.b64decode(result["body"]) == upstream.content
        assert "connection" not in result["headers"]

    @pytest.mark.asyncio
    async def test_client_authorization_forwarded(self, credentialed_settings, upstream, make_service):
        """Test event headers reach the upstream request."""
        await handle_event(
            event(url=LISTING, headers={"authorization": "Bearer client"}),
            make_service(credentialed_settings),
        )

        assert upstream.fetch_requests[0].headers["authorization"] == "Bearer client"
        assert upstream.token_requests == []

    @pytest.mark.asyncio
    async def test_rejections(self, settings, upstream, make_service):
        """Test validation failures map to 400 and 403."""
        service = make_service(settings)

        missing = await handle_event(event(), service)
        forbidden = await handle_event(event(url="https://evil.example/"), service)

        assert missing["statusCode"] == 400
        assert forbidden["statusCode"] == 403
        assert "evil.example" in json.loads(forbidden["body"])["detail"]
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_method_not_allowed(self, settings, make_service):
        """Test non-GET events are refused."""
        result = await handle_event(event(method="POST", url=LISTING), make_service(settings))
        assert result["statusCode"] == 405

    @pytest.mark.asyncio
    async def test_network_failure(self, settings, upstream, make_service):
        """Test unreachable upstreams return 502."""
        upstream.error = lambda request: httpx.ConnectTimeout("timed out", request=request)

        result = await handle_event(event(url=LISTING), make_service(settings))

        assert result["statusCode"] == 502
        assert json.loads(result["body"])["type"] == "upstream_fetch_error"

    @pytest.mark.asyncio
    async def test_unexpected_error(self, settings, upstream, make_service):
        """Test unexpected exceptions collapse to a generic 500."""
        upstream.error = lambda request: KeyError("client_secret")

        result = await handle_event(event(url=LISTING), make_service(settings))

        assert result["statusCode"] == 500
        assert "client_secret" not in result["body"]
