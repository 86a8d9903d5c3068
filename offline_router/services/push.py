"""
Push handling on the gateway side.

Covers the agent's part of push only — delivery infrastructure (signing,
sending) lives on the API server.

    handle_subscription_change()  invalidate the old subscription and ask open
                                  pages to re-subscribe with the same options
    forward_subscription(...)     POST the renewed subscription to the server
    build_notification(payload)   push payload → notification options
    resolve_notification_url(...) notification data + action → URL to open

Subscription-change failures are logged only: no retry, nothing raised.
"""

import logging
from threading import Lock

from offline_router.core.exceptions import FetchError, SubscriptionError

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Church App"
DEFAULT_BODY = "New notification"
DEFAULT_ICON = "/icons/icon-192x192.png"
DEFAULT_BADGE = "/icons/badge-72x72.png"
URGENT_VIBRATION = [200, 100, 200]

RESUBSCRIBE_MESSAGE_TYPE = "PUSH_RESUBSCRIBE"


class PushManager:
    """Tracks the page-reported push subscription and the options it was made with.

    Browsers perform the actual subscribe call, so re-subscribing means asking
    the open pages to subscribe again with ``options`` and waiting for one of
    them to report the result through ``register``.

    States:
        no subscription      → register() stores it
        current              → register() replaces it
        invalidated          → register() of the invalidated endpoint raises;
                               any other endpoint becomes current and is
                               returned as due for forwarding to the server
    """

    def __init__(self, application_server_key: str | None = None) -> None:
        self.options = {"userVisibleOnly": True}
        if application_server_key:
            self.options["applicationServerKey"] = application_server_key
        self._subscription: dict | None = None
        self._invalidated_endpoint: str | None = None
        self._resubscribe_pending = False
        self._lock = Lock()

    @property
    def subscription(self) -> dict | None:
        with self._lock:
            return dict(self._subscription) if self._subscription else None

    @property
    def resubscribe_pending(self) -> bool:
        return self._resubscribe_pending

    def invalidate(self) -> str | None:
        """Drop the current subscription; returns its endpoint, if any."""
        with self._lock:
            if self._subscription is not None:
                self._invalidated_endpoint = self._subscription.get("endpoint")
            self._subscription = None
            self._resubscribe_pending = True
            return self._invalidated_endpoint

    def register(self, subscription: dict) -> bool:
        """Store a page-reported subscription.

        Returns True when it answers a pending re-subscription and must be
        forwarded to the server.

        Raises:
            SubscriptionError: not an object with an endpoint, or the endpoint
                               the push service has already invalidated.
        """
        if not isinstance(subscription, dict) or not subscription.get("endpoint"):
            raise SubscriptionError("Subscription must be an object with an endpoint")
        with self._lock:
            if subscription["endpoint"] == self._invalidated_endpoint:
                raise SubscriptionError("Subscription endpoint was invalidated by the push service")
            self._subscription = dict(subscription)
            due = self._resubscribe_pending
            self._resubscribe_pending = False
        return due


def handle_subscription_change(push_manager, clients) -> int:
    """Invalidate the old subscription and ask open pages to re-subscribe.

    Every open client gets ``{"type": "PUSH_RESUBSCRIBE", "options": ...}``
    carrying the options the previous subscription was made with. Returns the
    number of clients asked.
    """
    old_endpoint = push_manager.invalidate()
    message = {"type": RESUBSCRIBE_MESSAGE_TYPE, "options": dict(push_manager.options)}

    asked = 0
    for client in clients.match_all():
        try:
            client.post_message(message)
            asked += 1
        except Exception as exc:
            logger.warning("Re-subscribe request to client %s failed: %s", client.id, exc)

    if asked:
        logger.info("Push subscription %s invalidated; asked %d clients to re-subscribe",
                    old_endpoint, asked)
    else:
        logger.error("Failed to re-subscribe to push notifications: no open client to subscribe")
    return asked


def forward_subscription(network, subscribe_path: str, subscription: dict) -> bool:
    """POST a renewed subscription to the server. Returns True on success."""
    try:
        response = network.post_json(subscribe_path, subscription)
    except FetchError as exc:
        logger.error("Failed to forward push subscription: %s", exc)
        return False

    if not response.ok:
        logger.error("Push subscription rejected by server: HTTP %d", response.status)
        return False
    logger.info("Re-subscribed to push notifications")
    return True


def build_notification(payload) -> dict | None:
    """Notification title + options for a push payload, or None to show nothing."""
    if not payload:
        logger.info("Push event but no data")
        return None
    if not isinstance(payload, dict):
        logger.error("Error showing push notification: payload is not an object")
        return None

    options = {
        "body": payload.get("body") or DEFAULT_BODY,
        "icon": payload.get("icon") or DEFAULT_ICON,
        "badge": payload.get("badge") or DEFAULT_BADGE,
        "tag": payload.get("tag") or "default",
        "data": payload.get("data") or {},
        "actions": payload.get("actions") or [],
        "requireInteraction": bool(payload.get("requireInteraction", False)),
        "silent": bool(payload.get("silent", False)),
    }
    if payload.get("priority") == "high" or payload.get("type") == "urgent":
        options["vibrate"] = list(URGENT_VIBRATION)

    return {"title": payload.get("title") or DEFAULT_TITLE, "options": options}


def resolve_notification_url(data: dict | None, action: str | None = None) -> str | None:
    """URL a notification click should open. None means just close it."""
    data = data or {}
    kind = data.get("type")

    if kind == "event":
        url = f"/events/{data['eventId']}" if data.get("eventId") else "/events"
    elif kind == "announcement":
        url = f"/announcements/{data['announcementId']}" if data.get("announcementId") else "/announcements"
    elif kind == "message":
        url = f"/messages/{data['messageId']}" if data.get("messageId") else "/messages"
    else:
        url = data.get("url") or "/"

    if action == "dismiss":
        return None
    if action == "rsvp" and data.get("eventId"):
        url = f"/events/{data['eventId']}/rsvp"
    return url
