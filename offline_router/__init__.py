"""
Church App Offline Gateway
Flask Application Factory.

Usage:
    from offline_router import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, current_app
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from offline_router.config import config
from offline_router.core.exceptions import CacheStorageError
from offline_router.middleware.logging_config import configure_logging
from offline_router.middleware.rate_limiter import init_rate_limits
from offline_router.middleware.timing import init_request_timing
from offline_router.services.cache_storage import create_cache_storage
from offline_router.services.clients import ClientRegistry
from offline_router.services.network import NetworkGateway
from offline_router.services.push import PushManager
from offline_router.services.router import OfflineRouter
from offline_router.utils.errors import E, api_error

logger = logging.getLogger(__name__)

EXTENSION_KEY = "offline_router"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit, applied per-blueprint
    storage_uri=os.getenv("REDIS_URL", "memory://"),  # Redis in production, memory for dev
)


def build_router(app_config, *, storage=None, network=None, clients=None, push_manager=None):
    """Construct the router for the configured build version.

    Collaborators may be injected (tests pass in-memory fakes); anything not
    given is built from the config.
    """
    if storage is None:
        storage = create_cache_storage(app_config.get("CACHE_STORAGE_URL"))
    if network is None:
        network = NetworkGateway(
            app_config["ORIGIN_URL"],
            timeout=app_config.get("FETCH_TIMEOUT_SECONDS", 10),
        )
    if push_manager is None:
        push_manager = PushManager(app_config.get("VAPID_PUBLIC_KEY"))
    return OfflineRouter(
        app_config["BUILD_VERSION"],
        storage,
        network,
        prefix=app_config["CACHE_PREFIX"],
        clients=clients if clients is not None else ClientRegistry(),
        push_manager=push_manager,
        manifest=app_config.get("PRECACHE_MANIFEST", ()),
        offline_page=app_config.get("OFFLINE_PAGE"),
        api_prefix=app_config.get("API_PREFIX", "/api/"),
        subscribe_path=app_config.get("PUSH_SUBSCRIBE_PATH", "/api/v1/push/subscribe"),
    )


def get_router() -> OfflineRouter:
    """The router bound to the current Flask app."""
    return current_app.extensions[EXTENSION_KEY]


def create_app(config_name=None, router=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.
        router: Pre-built OfflineRouter (tests); built from config otherwise.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True, static_folder=None)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*").strip()
    if cors_origins == "*":
        CORS(app, resources={r"/_sw/*": {"origins": "*"}})
    else:
        # Empty list: no cross-origin access
        CORS(app, resources={r"/_sw/*": {"origins": [o.strip() for o in cors_origins.split(",") if o.strip()]}})

    app.extensions[EXTENSION_KEY] = router if router is not None else build_router(app.config)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Blueprints (proxy last: it owns the catch-all) ───────────────────
    from offline_router.blueprints.health_bp import health_bp
    from offline_router.blueprints.sw_bp import sw_bp
    from offline_router.blueprints.proxy_bp import proxy_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(sw_bp)
    app.register_blueprint(proxy_bp)

    init_rate_limits(app, limiter)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("sw-install")
    def sw_install_cmd():
        """Pre-cache the manifest into the current static bucket."""
        result = get_router().handle_install()
        click.echo(f"Installed {result.version}: "
                   f"{len(result.items_with('cached'))} cached, {len(result.failures)} failed")

    @app.cli.command("sw-activate")
    def sw_activate_cmd():
        """Delete stale buckets and notify open clients."""
        result = get_router().handle_activate()
        click.echo(f"Activated {result.version}: {len(result.items_with('deleted'))} buckets removed")

    @app.cli.command("sw-clear-cache")
    def sw_clear_cache_cmd():
        """Delete every application bucket, any version."""
        reply = get_router().handle_message({"type": "CLEAR_CACHE"})
        click.echo(f"Cleared {len(reply['result']['outcomes'])} buckets")

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(CacheStorageError)
    def storage_error(e):
        logger.error("Cache storage failure: %s", e, exc_info=True)
        return api_error(E.STORAGE, "Cache storage unavailable", details={"operation": e.operation})

    @app.errorhandler(404)
    def not_found(e):
        return api_error(E.NOT_FOUND, "Not found")

    return app
