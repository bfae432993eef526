"""Tests for OAuth host rewriting."""

import pytest

from proxy.rewriter import rewrite_for_oauth

WEB_HOSTS = ["reddit.com", "www.reddit.com", "old.reddit.com"]
OAUTH_HOST = "oauth.reddit.com"


class TestRewriteForOAuth:
    """Test target rewriting."""

    @pytest.mark.parametrize("host", WEB_HOSTS)
    def test_web_hosts_move_to_oauth_host(self, host):
        """Test web hosts are rewritten with path and query intact."""
        url = f"https://{host}/r/pics/hot.json?limit=25&after=t3_abc%2Fdef"
        assert rewrite_for_oauth(url, WEB_HOSTS, OAUTH_HOST) == (
            "https://oauth.reddit.com/r/pics/hot.json?limit=25&after=t3_abc%2Fdef"
        )

    def test_oauth_host_is_unchanged(self):
        """Test URLs already on the OAuth host are left alone."""
        url = "https://oauth.reddit.com/api/v1/me"
        assert rewrite_for_oauth(url, WEB_HOSTS, OAUTH_HOST) == url

    def test_media_hosts_are_unchanged(self):
        """Test non-web hosts are left alone."""
        url = "https://i.redd.it/abc.jpg"
        assert rewrite_for_oauth(url, WEB_HOSTS, OAUTH_HOST) == url

    def test_host_case_is_ignored(self):
        """Test host comparison is case-insensitive."""
        url = "https://WWW.Reddit.com/r/earth.json"
        assert rewrite_for_oauth(url, WEB_HOSTS, OAUTH_HOST) == "https://oauth.reddit.com/r/earth.json"

    def test_plain_http_is_upgraded(self):
        """Test a rewritten URL always uses https."""
        url = "http://www.reddit.com/r/pics.json"
        assert rewrite_for_oauth(url, WEB_HOSTS, OAUTH_HOST) == "https://oauth.reddit.com/r/pics.json"
