"""
Church App Offline Gateway
Offline cache router — the one object every platform event is handed to.

    handle_install()                    → LifecycleResult
    handle_activate()                   → LifecycleResult
    handle_fetch(request)               → Response | None (None = not intercepted)
    handle_message(message)             → dict | None
    handle_push_subscription_change()   → dict (clients asked to re-subscribe)
    handle_push_subscribe(subscription) → dict (registered, forwarded)
    handle_push(payload)                → notification dict | None
    handle_notification_click(data, action) → dict
    handle_notification_close(data)

The version is a constructor argument, never read from ambient state, so two
routers for two builds can share one storage (that is how a deploy looks).
"""

import logging

from offline_router.core.exceptions import FetchError
from offline_router.models import Request, Response
from offline_router.services import push as push_service
from offline_router.services.clients import ClientRegistry
from offline_router.services.lifecycle import CacheLifecycleManager
from offline_router.services.push import PushManager
from offline_router.services.route_classifier import DEFAULT_API_PREFIX, Route, classify
from offline_router.services.strategies import StrategyExecutor

logger = logging.getLogger(__name__)

# Message channel commands
MSG_SKIP_WAITING = "SKIP_WAITING"
MSG_CLEAR_CACHE = "CLEAR_CACHE"

# Router states, in lifecycle order
STATE_PARSED = "parsed"
STATE_INSTALLED = "installed"
STATE_ACTIVATED = "activated"

DEFAULT_MANIFEST = ("/", "/index.html", "/manifest.json", "/offline.html")
DEFAULT_OFFLINE_PAGE = "/offline.html"
DEFAULT_SUBSCRIBE_PATH = "/api/v1/push/subscribe"

# route → (strategy, bucket kind)
ROUTE_STRATEGIES = {
    Route.API: ("network_first", "api"),
    Route.NAVIGATION: ("network_first", "dynamic"),
    Route.STATIC_ASSET: ("cache_first", "static"),
    Route.DYNAMIC: ("network_first", "dynamic"),
}


class OfflineRouter:
    """Cache lifecycle + request routing + strategy execution for one build."""

    def __init__(
        self,
        version: str,
        storage,
        network,
        *,
        prefix: str = "church-app",
        clients: ClientRegistry | None = None,
        push_manager: PushManager | None = None,
        manifest=DEFAULT_MANIFEST,
        offline_page: str | None = DEFAULT_OFFLINE_PAGE,
        api_prefix: str = DEFAULT_API_PREFIX,
        subscribe_path: str = DEFAULT_SUBSCRIBE_PATH,
    ) -> None:
        self.version = version
        self.storage = storage
        self.network = network
        self.clients = clients if clients is not None else ClientRegistry()
        self.push_manager = push_manager if push_manager is not None else PushManager()
        self.api_prefix = api_prefix
        self.subscribe_path = subscribe_path
        self.lifecycle = CacheLifecycleManager(storage, network, prefix, version, manifest)
        self.strategies = StrategyExecutor(storage, network, self.lifecycle, offline_page)
        self.state = STATE_PARSED
        self.skip_waiting_requested = False

    @property
    def cache_names(self) -> dict[str, str]:
        return self.lifecycle.cache_names

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def skip_waiting(self) -> None:
        """Activate without waiting for the previous build's pages. Idempotent."""
        if not self.skip_waiting_requested:
            logger.info("Skip-waiting requested for version %s", self.version)
        self.skip_waiting_requested = True

    def handle_install(self):
        result = self.lifecycle.install()
        self.state = STATE_INSTALLED
        self.skip_waiting()
        return result

    def handle_activate(self):
        result = self.lifecycle.activate(self.clients)
        self.state = STATE_ACTIVATED
        return result

    # ── Fetch ────────────────────────────────────────────────────────────────

    def classify(self, request: Request) -> Route:
        return classify(request.method, request.url, api_prefix=self.api_prefix)

    def handle_fetch(self, request: Request) -> Response | None:
        """Serve *request* through its strategy; None for skipped requests."""
        route = self.classify(request)
        if route == Route.SKIP:
            return None

        strategy_name, kind = ROUTE_STRATEGIES[route]
        strategy = getattr(self.strategies, strategy_name)
        try:
            if strategy_name == "network_first":
                return strategy(request, kind, route)
            return strategy(request, kind)
        except FetchError as exc:
            logger.warning("No fallback for %s: %s", request.url, exc,
                           extra={"route": route.value})
            return Response.network_error(request.url)

    # ── Message channel ──────────────────────────────────────────────────────

    def handle_message(self, message) -> dict | None:
        """Run a page command. Unknown or malformed messages are ignored."""
        msg_type = message.get("type") if isinstance(message, dict) else None
        if msg_type == MSG_SKIP_WAITING:
            self.skip_waiting()
            return {"type": msg_type, "skipWaiting": True}
        if msg_type == MSG_CLEAR_CACHE:
            result = self.lifecycle.clear_all()
            return {"type": msg_type, "result": result.to_dict()}
        logger.debug("Ignoring message of type %r", msg_type)
        return None

    # ── Push ─────────────────────────────────────────────────────────────────

    def handle_push_subscription_change(self) -> dict:
        """Invalidate the subscription and ask open pages for a new one."""
        logger.info("Push subscription changed")
        asked = push_service.handle_subscription_change(self.push_manager, self.clients)
        return {"clients_asked": asked, "options": dict(self.push_manager.options)}

    def handle_push_subscribe(self, subscription) -> dict:
        """Record a page-reported subscription; forward it if it renews one.

        Raises:
            SubscriptionError: malformed, or the invalidated endpoint again.
        """
        forwarded = False
        if self.push_manager.register(subscription):
            forwarded = push_service.forward_subscription(
                self.network, self.subscribe_path, subscription,
            )
        return {"registered": True, "forwarded": forwarded}

    def handle_push(self, payload) -> dict | None:
        notification = push_service.build_notification(payload)
        if notification is not None:
            logger.info("Push notification received: %s", notification["title"])
        return notification

    def handle_notification_click(self, data: dict | None, action: str | None = None) -> dict:
        """Focus an open page and navigate it, or ask for a new window."""
        tag = (data or {}).get("tag")
        logger.info("Notification clicked: %s", tag)
        url = push_service.resolve_notification_url(data, action)
        if url is None:
            return {"outcome": "dismissed", "url": None}

        for client in self.clients.match_all():
            client.focus()
            if client.url != url:
                client.navigate(url)
            return {"outcome": "focused", "client_id": client.id, "url": url}
        return {"outcome": "open_window", "url": url}

    def handle_notification_close(self, data: dict | None) -> None:
        logger.info("Notification dismissed: %s", (data or {}).get("tag"))

    # ── Introspection ────────────────────────────────────────────────────────

    def status(self) -> dict:
        return {
            "version": self.version,
            "state": self.state,
            "skip_waiting": self.skip_waiting_requested,
            "caches": self.cache_names,
            "entries": self.lifecycle.entry_counts(),
            "storage": self.storage.backend_name,
            "clients": len(self.clients.match_all()),
            "push": {
                "subscribed": self.push_manager.subscription is not None,
                "resubscribe_pending": self.push_manager.resubscribe_pending,
            },
        }
