"""
Strategy Executor

Two caching strategies plus the offline stand-ins they fall back to.

network_first(request, kind, route)
    live fetch → 2xx: write a clone through to the bucket, return live
               → other status: return live, not cached
               → FetchError: hit in the route's bucket, then in the current
                 static bucket (pre-cached shell), else offline stand-in
    Never raises a network error.

cache_first(request, kind)
    bucket hit → return it, no network call
    miss       → live fetch, cache a clone on 2xx, return live
    FetchError → pre-cached offline page if present, else re-raise

A failed cache write (quota, backend error) is logged and the live response
is still returned.
"""

import logging

from offline_router.core.exceptions import CacheStorageError, FetchError
from offline_router.models.http import SOURCE_OFFLINE, Request, Response
from offline_router.services.route_classifier import Route

logger = logging.getLogger(__name__)

OFFLINE_ERROR = "Offline"
OFFLINE_MESSAGE = "No internet connection"


def offline_sentinel(url: str | None = None) -> Response:
    """503 JSON envelope for API requests made while offline."""
    return Response.json_response(
        {"error": OFFLINE_ERROR, "message": OFFLINE_MESSAGE},
        status=503,
        url=url,
        source=SOURCE_OFFLINE,
    )


def offline_text(url: str | None = None) -> Response:
    return Response(
        status=503,
        headers={"Content-Type": "text/plain; charset=utf-8"},
        body=OFFLINE_MESSAGE,
        url=url,
        source=SOURCE_OFFLINE,
    )


class StrategyExecutor:
    """Runs strategies against the lifecycle manager's current buckets."""

    def __init__(self, storage, network, lifecycle, offline_page: str | None = None) -> None:
        self.storage = storage
        self.network = network
        self.lifecycle = lifecycle
        self.offline_page = offline_page

    # ── Strategies ───────────────────────────────────────────────────────────

    def network_first(self, request: Request, kind: str, route: Route = Route.DYNAMIC) -> Response:
        cache_name = self.lifecycle.cache_name(kind)
        try:
            response = self.network.fetch(request)
        except FetchError as exc:
            logger.info("Network failed for %s, trying %s: %s", request.url, cache_name, exc.reason,
                        extra={"route": route.value, "cache_name": cache_name})
            cached = self._lookup(request, *self._fallback_names(kind))
            if cached is not None:
                return cached
            return self._offline_response(request, route)

        if response.ok:
            self._store(request, response, cache_name)
        return response

    def cache_first(self, request: Request, kind: str) -> Response:
        cache_name = self.lifecycle.cache_name(kind)
        cached = self._lookup(request, cache_name)
        if cached is not None:
            return cached

        try:
            response = self.network.fetch(request)
        except FetchError:
            fallback = self.offline_page_response()
            if fallback is not None:
                logger.info("Serving offline page for %s", request.url,
                            extra={"cache_name": cache_name, "source": SOURCE_OFFLINE})
                return fallback
            raise

        if response.ok:
            self._store(request, response, cache_name)
        return response

    # ── Offline stand-ins ────────────────────────────────────────────────────

    def offline_page_response(self) -> Response | None:
        """The pre-cached offline document from the static bucket, if any."""
        if not self.offline_page:
            return None
        page = self._lookup(Request("GET", self.offline_page), self.lifecycle.cache_name("static"))
        if page is None:
            return None
        return page.clone(source=SOURCE_OFFLINE)

    def _offline_response(self, request: Request, route: Route) -> Response:
        if route == Route.API:
            return offline_sentinel(request.url)
        if route == Route.NAVIGATION:
            page = self.offline_page_response()
            if page is not None:
                return page
        return offline_text(request.url)

    # ── Storage helpers ──────────────────────────────────────────────────────

    def _fallback_names(self, kind: str) -> list[str]:
        """Current-version buckets read when a network-first fetch fails."""
        names = [self.lifecycle.cache_name(kind)]
        static = self.lifecycle.cache_name("static")
        if static not in names:
            names.append(static)
        return names

    def _lookup(self, request: Request, *cache_names: str) -> Response | None:
        try:
            return self.storage.match(request, cache_names)
        except CacheStorageError as exc:
            logger.warning("Cache lookup failed: %s", exc, extra={"cache_name": ",".join(cache_names)})
            return None

    def _store(self, request: Request, response: Response, cache_name: str) -> None:
        try:
            self.storage.open(cache_name).put(request, response)
        except CacheStorageError as exc:
            logger.warning("Cache write skipped: %s", exc, extra={"cache_name": cache_name})
