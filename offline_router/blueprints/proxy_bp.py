"""
Fetch interception blueprint.

Every path outside /_sw/ lands here. GET requests go through the router's
strategies; everything the router declines (non-GET, non-http) passes
straight through to the origin without touching any bucket.

Responses carry X-Cache-Source: network | cache | offline.
"""

import logging

from flask import Blueprint, Response as FlaskResponse, abort, g, request

from offline_router import get_router
from offline_router.core.exceptions import FetchError
from offline_router.models import Request, Response
from offline_router.services.route_classifier import Route
from offline_router.utils.errors import E, api_error

logger = logging.getLogger(__name__)

proxy_bp = Blueprint("proxy_bp", __name__)

CONTROL_PREFIX = "/_sw/"

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _incoming_request() -> Request:
    """Snapshot the Flask request. The URL is origin-relative: path + query."""
    url = request.full_path if request.query_string else request.path
    headers = {k: v for k, v in request.headers.items() if k.lower() != "host"}
    return Request(request.method, url, headers=headers, body=request.get_data() or None)


def _to_flask(response: Response) -> FlaskResponse:
    out = FlaskResponse(response.body, status=response.status)
    for name, value in response.headers.items():
        out.headers[name] = value
    out.headers["X-Cache-Source"] = response.source
    return out


@proxy_bp.route("/", defaults={"path": ""}, methods=_ALL_METHODS)
@proxy_bp.route("/<path:path>", methods=_ALL_METHODS)
def intercept(path):
    if request.path.startswith(CONTROL_PREFIX):
        abort(404)  # control paths are never proxied

    router = get_router()
    incoming = _incoming_request()
    route = router.classify(incoming)
    g.route = route.value

    if route != Route.SKIP:
        return _to_flask(router.handle_fetch(incoming))

    # Not ours to cache: plain pass-through
    try:
        return _to_flask(router.network.fetch(incoming))
    except FetchError as exc:
        logger.warning("Pass-through failed for %s %s: %s", incoming.method, incoming.url, exc.reason,
                       extra={"route": route.value})
        return api_error(E.UPSTREAM_UNREACHABLE, "Upstream unreachable", details={"url": incoming.url})
