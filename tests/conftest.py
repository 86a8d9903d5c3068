"""
Shared pytest fixtures for the offline gateway test suite.

Provides:
    - storage: fresh in-memory cache storage (function-scoped)
    - network: scripted fake upstream (function-scoped)
    - make_router: factory for routers of any version sharing storage/network
    - router: router for version "2" with prefix "app"
    - app / client: Flask app + test client wired to that router
"""

import json

import pytest

from offline_router import create_app
from offline_router.core.exceptions import FetchError
from offline_router.models.http import Request, Response
from offline_router.services.cache_storage import MemoryCacheStorage
from offline_router.services.clients import ClientRegistry
from offline_router.services.push import PushManager
from offline_router.services.router import OfflineRouter

TEST_PREFIX = "app"
TEST_MANIFEST = ["/", "/index.html", "/manifest.json", "/offline.html"]


class FakeNetwork:
    """Scripted upstream.

    ``routes`` maps a URL to a Response (served) or an Exception (raised).
    Unknown URLs raise FetchError, the way an offline browser fails a fetch.
    Every call is recorded in ``calls``.
    """

    def __init__(self):
        self.routes: dict = {}
        self.calls: list[Request] = []
        self.offline = False

    def serve(self, url, body="ok", status=200, headers=None):
        self.routes[url] = Response(status=status, headers=headers or {"Content-Type": "text/plain"},
                                    body=body, url=url)

    def fail(self, url, reason="TypeError: Failed to fetch"):
        self.routes[url] = FetchError(url, reason=reason)

    def fetch(self, request):
        self.calls.append(request)
        if self.offline:
            raise FetchError(request.url, reason="TypeError: Failed to fetch")
        outcome = self.routes.get(request.url)
        if outcome is None:
            raise FetchError(request.url, reason="TypeError: Failed to fetch")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome.clone()

    def post_json(self, path, payload):
        return self.fetch(Request("POST", path, headers={"Content-Type": "application/json"},
                                  body=json.dumps(payload).encode("utf-8")))

    def urls_called(self):
        return [c.url for c in self.calls]


@pytest.fixture
def storage():
    return MemoryCacheStorage()


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def clients():
    return ClientRegistry()


@pytest.fixture
def make_router(storage, network, clients):
    """Build a router for *version*; all routers share storage and network."""

    def _make(version="2", **kwargs):
        kwargs.setdefault("prefix", TEST_PREFIX)
        kwargs.setdefault("clients", clients)
        kwargs.setdefault("manifest", TEST_MANIFEST)
        kwargs.setdefault("push_manager", PushManager())
        return OfflineRouter(version, storage, network, **kwargs)

    return _make


@pytest.fixture
def router(make_router):
    return make_router("2")


@pytest.fixture
def app(router):
    """Flask app in testing mode, bound to the fixture router."""
    return create_app("testing", router=router)


@pytest.fixture
def client(app):
    return app.test_client()
