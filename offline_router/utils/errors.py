"""JSON error envelopes for the gateway's own endpoints.

Proxied responses are never wrapped: an upstream 404 reaches the page as the
upstream sent it. Only failures of the gateway itself (bad control payloads,
unknown clients, unreachable origin on pass-through, dead cache storage) use
this envelope:

    {"error": "<human message>", "code": "ERR_...", "details": {...}}

Usage
-----
    from offline_router.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Client not found")
    return api_error(E.STORAGE, "Cache storage unavailable", details={"operation": "keys"})
"""

from __future__ import annotations

from flask import jsonify


class E:
    """Machine-readable error codes (``ERR_`` prefix)."""

    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"   # 400
    NOT_FOUND = "ERR_NOT_FOUND"                     # 404
    UPSTREAM_UNREACHABLE = "ERR_UPSTREAM_UNREACHABLE"  # 502
    STORAGE = "ERR_CACHE_STORAGE"                   # 500


_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_INVALID: 400,
    E.NOT_FOUND: 404,
    E.UPSTREAM_UNREACHABLE: 502,
    E.STORAGE: 500,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """``(jsonify(envelope), status)`` for a Flask view to return.

    *status* overrides the code's default; unknown codes default to 400.
    """
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or _DEFAULT_STATUS.get(code, 400)
