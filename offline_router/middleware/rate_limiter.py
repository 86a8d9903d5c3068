"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in offline_router/__init__.py with no
default limits; this module applies limits per blueprint.

Usage:
    from offline_router.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

DEFAULT_CONTROL_LIMIT = "120/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to the gateway blueprints.

    Limits (per remote IP):
        - Control endpoints (/_sw/*): CONTROL_RATE_LIMIT, default 120/minute
        - Proxied traffic:  exempt (it is the application itself)
        - Health check:     exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    rate = app.config.get("CONTROL_RATE_LIMIT", DEFAULT_CONTROL_LIMIT)
    bp = app.blueprints.get("sw_bp")
    if bp:
        limiter.limit(rate)(bp)

    for bp_name in ("proxy_bp", "health_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.exempt(bp)

    app.logger.info("Rate limiter configured — control: %s, proxy/health: exempt", rate)
