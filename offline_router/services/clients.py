"""
Open application pages ("clients") known to the gateway.

Pages register once (POST /_sw/clients) and poll their message queue.
The registry is owned by the app, not by the router: the router only claims
clients on activation and posts messages to them.

Threading: every mutation goes through the registry lock; each client keeps
its own queue lock so a slow poller never blocks a broadcast.
"""

import logging
import uuid
from threading import Lock

logger = logging.getLogger(__name__)


class Client:
    """One open window/tab."""

    def __init__(self, client_id: str, url: str = "/") -> None:
        self.id = client_id
        self.url = url
        self.controller: str | None = None   # version that claimed this client
        self.focused = False
        self.navigated_to: str | None = None
        self._messages: list[dict] = []
        self._lock = Lock()

    def post_message(self, message: dict) -> None:
        with self._lock:
            self._messages.append(dict(message))

    def drain_messages(self) -> list[dict]:
        with self._lock:
            messages, self._messages = self._messages, []
        return messages

    def pending_messages(self) -> list[dict]:
        with self._lock:
            return list(self._messages)

    def focus(self) -> None:
        self.focused = True

    def navigate(self, url: str) -> None:
        self.navigated_to = url
        self.url = url
        self.post_message({"type": "NAVIGATE", "url": url})

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "controller": self.controller,
            "focused": self.focused,
            "pending": len(self.pending_messages()),
        }

    def __repr__(self) -> str:
        return f"<Client {self.id} {self.url}>"


class ClientRegistry:
    """In-memory set of open clients."""

    def __init__(self) -> None:
        self._clients: dict[str, Client] = {}
        self._lock = Lock()

    def register(self, url: str = "/", client_id: str | None = None) -> Client:
        client = Client(client_id or uuid.uuid4().hex, url)
        with self._lock:
            self._clients[client.id] = client
        logger.debug("Client registered: %s (%s)", client.id, url)
        return client

    def unregister(self, client_id: str) -> bool:
        with self._lock:
            return self._clients.pop(client_id, None) is not None

    def get(self, client_id: str) -> Client | None:
        with self._lock:
            return self._clients.get(client_id)

    def match_all(self) -> list[Client]:
        with self._lock:
            return list(self._clients.values())

    def claim(self, version: str) -> list[Client]:
        """Make *version* the controller of every open client."""
        clients = self.match_all()
        for client in clients:
            client.controller = version
        return clients
