"""
Request classification.

Maps (method, URL) to exactly one route. Pure function: no I/O, no state.

Order of checks (first match wins):
    1. non-GET or non-http(s) scheme   → SKIP
    2. path under the API prefix        → API
    3. "/", extension-less, or .html    → NAVIGATION
    4. extension in STATIC_EXTENSIONS   → STATIC_ASSET
    5. anything else                    → DYNAMIC

The API check runs before the extension checks, so "/api/v1/feed.json" is
API traffic, not a static asset.
"""

from enum import Enum
from urllib.parse import urlsplit

DEFAULT_API_PREFIX = "/api/"

STATIC_EXTENSIONS = frozenset({
    # scripts / styles
    "js", "mjs", "css",
    # images / icons
    "png", "jpg", "jpeg", "gif", "svg", "webp", "ico",
    # fonts
    "woff", "woff2", "ttf", "otf", "eot",
})

_CACHEABLE_SCHEMES = frozenset({"", "http", "https"})


class Route(str, Enum):
    SKIP = "skip"
    API = "api"
    NAVIGATION = "navigation"
    STATIC_ASSET = "static_asset"
    DYNAMIC = "dynamic"


def path_extension(path: str) -> str | None:
    """Lower-cased extension of the last path segment, or None."""
    segment = path.rsplit("/", 1)[-1]
    if "." not in segment:
        return None
    ext = segment.rsplit(".", 1)[-1].lower()
    return ext or None


def classify(method: str, url: str, api_prefix: str = DEFAULT_API_PREFIX) -> Route:
    """Classify a request. Path-only URLs count as same-origin http(s)."""
    if (method or "").upper() != "GET":
        return Route.SKIP

    parts = urlsplit(url)
    if parts.scheme.lower() not in _CACHEABLE_SCHEMES:
        return Route.SKIP

    path = parts.path or "/"

    if path.startswith(api_prefix) or path == api_prefix.rstrip("/"):
        return Route.API

    ext = path_extension(path)
    if path == "/" or ext is None or ext == "html":
        return Route.NAVIGATION

    if ext in STATIC_EXTENSIONS:
        return Route.STATIC_ASSET

    return Route.DYNAMIC
