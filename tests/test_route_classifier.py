"""Request classification tests.

Covers: method/scheme exclusion, API prefix precedence, navigation
heuristic, static-asset allow-list, dynamic default, determinism.
"""

import pytest

from offline_router.services.route_classifier import Route, classify, path_extension


# ═══════════════════════════════════════════════════════════════════════════
# 1.  Exclusions
# ═══════════════════════════════════════════════════════════════════════════

class TestSkip:
    """Non-GET and non-http(s) requests are never routed."""

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"])
    def test_non_get_is_skipped(self, method):
        assert classify(method, "/api/v1/events") == Route.SKIP
        assert classify(method, "/main.js") == Route.SKIP

    def test_post_to_any_url_is_skipped(self):
        for url in ("/", "/index.html", "/logo.png", "https://x.test/api/v1/x"):
            assert classify("POST", url) == Route.SKIP

    @pytest.mark.parametrize("url", [
        "chrome-extension://abc/script.js",
        "data:text/plain,hello",
        "ws://example.test/socket",
    ])
    def test_non_http_scheme_is_skipped(self, url):
        assert classify("GET", url) == Route.SKIP

    def test_method_is_case_insensitive(self):
        assert classify("get", "/api/v1/events") == Route.API


# ═══════════════════════════════════════════════════════════════════════════
# 2.  Route kinds
# ═══════════════════════════════════════════════════════════════════════════

class TestRoutes:
    """Each kind of URL lands on its route."""

    def test_api_prefix(self):
        assert classify("GET", "/api/v1/events") == Route.API
        assert classify("GET", "https://church.test/api/v1/members?page=2") == Route.API

    def test_api_wins_over_extension(self):
        assert classify("GET", "/api/v1/x.json") == Route.API
        assert classify("GET", "/api/v1/avatar.png") == Route.API

    def test_custom_api_prefix(self):
        assert classify("GET", "/backend/items", api_prefix="/backend/") == Route.API
        assert classify("GET", "/api/v1/items", api_prefix="/backend/") == Route.NAVIGATION

    @pytest.mark.parametrize("url", ["/", "/events", "/events/42", "/about.html", "https://church.test/"])
    def test_navigation(self, url):
        assert classify("GET", url) == Route.NAVIGATION

    @pytest.mark.parametrize("url", [
        "/main.abc123.js", "/assets/app.css", "/logo.png", "/photo.JPEG",
        "/favicon.ico", "/fonts/inter.woff2", "/icons/icon.svg",
    ])
    def test_static_asset(self, url):
        assert classify("GET", url) == Route.STATIC_ASSET

    @pytest.mark.parametrize("url", ["/manifest.json", "/robots.txt", "/data/report.pdf"])
    def test_dynamic_default(self, url):
        assert classify("GET", url) == Route.DYNAMIC

    def test_query_string_ignored(self):
        assert classify("GET", "/main.js?v=3") == Route.STATIC_ASSET


class TestDeterminism:
    """Classification is a pure function of its input."""

    def test_repeated_calls_agree(self):
        urls = ["/", "/api/v1/x", "/main.js", "/manifest.json", "/events/1"]
        first = [classify("GET", u) for u in urls]
        for _ in range(5):
            assert [classify("GET", u) for u in urls] == first


class TestPathExtension:

    def test_extension_of_last_segment_only(self):
        assert path_extension("/v1.2/events") is None
        assert path_extension("/a/b.Min.JS") == "js"
        assert path_extension("/trailing.") is None
