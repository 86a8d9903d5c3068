"""
Church App Offline Gateway
HTTP request / response snapshots.

Models:
    - Request:  method + URL identity of an intercepted request
    - Response: status, headers and body bytes, stored by value in buckets

Responses are never shared between a bucket and a caller: ``clone()`` copies
the header map and the body, and every storage backend hands out clones.
"""

from __future__ import annotations

import base64
import json

# ── Constants ────────────────────────────────────────────────────────────────

SOURCE_NETWORK = "network"
SOURCE_CACHE = "cache"
SOURCE_OFFLINE = "offline"

JSON_CONTENT_TYPE = "application/json"


class Request:
    """An intercepted request.

    Only GET requests are ever read from or written to a bucket, so the
    cache identity is always ``"GET <url>"``.
    """

    def __init__(
        self,
        method: str,
        url: str,
        headers: dict | None = None,
        body: bytes | None = None,
    ) -> None:
        self.method = (method or "GET").upper()
        self.url = url
        self.headers = dict(headers or {})
        self.body = body

    @property
    def cache_key(self) -> str:
        return f"{self.method} {self.url}"

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.url}>"


class Response:
    """A response snapshot (live, cached or synthetic).

    Attributes:
        status:  HTTP status code.
        headers: Header map (plain dict, case preserved).
        body:    Raw body bytes.
        url:     URL the response was produced for.
        source:  Where the response came from — network, cache or offline.
    """

    def __init__(
        self,
        status: int = 200,
        headers: dict | None = None,
        body: bytes | str | None = b"",
        url: str | None = None,
        source: str = SOURCE_NETWORK,
    ) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.status = status
        self.headers = dict(headers or {})
        self.body = body or b""
        self.url = url
        self.source = source

    # ── Accessors ────────────────────────────────────────────────────────────

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str | None:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return None

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self):
        return json.loads(self.body)

    def clone(self, source: str | None = None) -> "Response":
        """Return an independent copy, optionally re-labelled with *source*."""
        return Response(
            status=self.status,
            headers=dict(self.headers),
            body=bytes(self.body),
            url=self.url,
            source=source or self.source,
        )

    # ── Serialisation (Redis backend) ────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "headers": self.headers,
            "body": base64.b64encode(self.body).decode("ascii"),
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, data: dict, source: str = SOURCE_CACHE) -> "Response":
        return cls(
            status=data["status"],
            headers=data.get("headers") or {},
            body=base64.b64decode(data.get("body") or ""),
            url=data.get("url"),
            source=source,
        )

    # ── Synthetic responses ──────────────────────────────────────────────────

    @classmethod
    def json_response(cls, payload, status: int = 200, url: str | None = None,
                      source: str = SOURCE_NETWORK) -> "Response":
        return cls(
            status=status,
            headers={"Content-Type": JSON_CONTENT_TYPE},
            body=json.dumps(payload),
            url=url,
            source=source,
        )

    @classmethod
    def network_error(cls, url: str | None = None) -> "Response":
        """Stand-in for a failed fetch that no strategy could recover."""
        return cls(
            status=502,
            headers={"Content-Type": "text/plain; charset=utf-8"},
            body="Network error",
            url=url,
            source=SOURCE_OFFLINE,
        )

    def __repr__(self) -> str:
        return f"<Response {self.status} {self.url} ({self.source})>"
