"""
Health check blueprint.

Endpoints:
    GET /_sw/health/ready  — simple 200 for load balancers
    GET /_sw/health/live   — cache storage + upstream origin status
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from offline_router import get_router
from offline_router.core.exceptions import FetchError
from offline_router.models.http import Request

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/_sw/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe — always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Detailed liveness check with dependency status."""
    router = get_router()
    checks = {}
    overall = True

    # ── Cache storage ────────────────────────────────────────────────
    try:
        t0 = time.perf_counter()
        router.storage.ping()
        storage_ms = (time.perf_counter() - t0) * 1000
        checks["cache_storage"] = {
            "status": "ok",
            "backend": router.storage.backend_name,
            "latency_ms": round(storage_ms, 1),
        }
    except Exception as exc:
        checks["cache_storage"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check — cache storage failed: %s", exc)

    # ── Upstream origin (optional: offline is what we are built for) ─
    try:
        t0 = time.perf_counter()
        resp = router.network.fetch(Request("GET", "/"))
        origin_ms = (time.perf_counter() - t0) * 1000
        checks["origin"] = {"status": "ok" if resp.status < 500 else "degraded",
                            "http_status": resp.status, "latency_ms": round(origin_ms, 1)}
    except FetchError as exc:
        checks["origin"] = {"status": "unreachable", "detail": exc.reason}

    checks["app"] = {
        "version": router.version,
        "state": router.state,
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    status_code = 200 if overall else 503
    return jsonify({
        "status": "healthy" if overall else "degraded",
        "checks": checks,
    }), status_code
