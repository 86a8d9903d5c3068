"""
Upstream Network Gateway

All live fetches to the upstream web application go through this class.
Strategies never call `requests` directly.

  - Relative URLs ("/api/v1/events") are resolved against ORIGIN_URL
  - Timeout: explicit per-gateway timeout (FETCH_TIMEOUT_SECONDS); a timeout
    is a transient network failure, same as a refused connection or a DNS error
  - Any transport-level failure is raised as FetchError; an HTTP error status
    is NOT a failure — the response is returned to the strategy as-is

Testability: pass a mock `session` to NetworkGateway() in tests instead of
letting it create a real requests.Session internally.
"""

from __future__ import annotations

import json
import logging
import time
from urllib.parse import urljoin

import requests

from offline_router.core.exceptions import FetchError
from offline_router.models.http import SOURCE_NETWORK, Request, Response

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10

# Response headers that describe the upstream transport, not the payload.
# requests has already decoded the body, so these must not be replayed.
HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "content-encoding",
    "content-length",
})


def strip_hop_by_hop(headers) -> dict:
    return {k: v for k, v in dict(headers).items() if k.lower() not in HOP_BY_HOP_HEADERS}


class NetworkGateway:
    """HTTP client for the upstream origin.

    Usage:
        gateway = NetworkGateway("https://church.example.org", timeout=10)
        response = gateway.fetch(Request("GET", "/api/v1/events"))
    """

    def __init__(
        self,
        origin_url: str,
        timeout: float = _DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.origin_url = origin_url.rstrip("/") + "/"
        self.timeout = timeout
        # Inject custom session for testing; create real one lazily otherwise.
        self._session: requests.Session | None = session

    @property
    def session(self) -> requests.Session:
        """Return (or lazily create) the requests.Session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def resolve(self, url: str) -> str:
        """Absolute URL for *url*, relative paths resolved against the origin."""
        return urljoin(self.origin_url, url)

    def fetch(self, request: Request) -> Response:
        """Perform the live fetch.

        Raises:
            FetchError: connection refused, DNS failure, timeout, or any
                        other transport-level error.
        """
        url = self.resolve(request.url)
        t0 = time.perf_counter()
        try:
            resp = self.session.request(
                request.method,
                url,
                headers=strip_hop_by_hop(request.headers),
                data=request.body,
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.Timeout as exc:
            raise FetchError(url, reason=f"timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise FetchError(url, reason=str(exc)) from exc

        duration_ms = (time.perf_counter() - t0) * 1000
        logger.debug("Fetched %s %s → %d", request.method, url, resp.status_code,
                     extra={"duration_ms": duration_ms, "source": SOURCE_NETWORK})
        return Response(
            status=resp.status_code,
            headers=strip_hop_by_hop(resp.headers),
            body=resp.content,
            url=request.url,
            source=SOURCE_NETWORK,
        )

    def post_json(self, path: str, payload) -> Response:
        """POST *payload* as JSON to *path* on the origin."""
        return self.fetch(Request(
            "POST",
            path,
            headers={"Content-Type": "application/json"},
            body=json.dumps(payload).encode("utf-8"),
        ))
