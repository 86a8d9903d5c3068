"""
Versioned Cache Storage

Named buckets of (request → response) snapshots, mirroring the browser
CacheStorage surface the router is written against:

  storage.open(name)     → Cache (created if missing)
  storage.has(name)      → bool
  storage.delete(name)   → bool (True if a bucket was removed)
  storage.keys()         → list of bucket names
  storage.match(request, names) → first hit in the named buckets, in order
  cache.match(request)   → Response | None
  cache.put(request, response)
  cache.keys()           → list of cached request identities

Uses Redis in production (via REDIS_URL), falls back to a lock-guarded
in-memory store for development/testing. Only GET requests are stored.
Every read returns a clone so callers never share a bucket's snapshot.
"""

import json
import logging
from threading import Lock

import redis

from offline_router.core.exceptions import CacheStorageError
from offline_router.models.http import SOURCE_CACHE, Request, Response

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "offline-router"


class Cache:
    """Handle on one named bucket. Holds no state of its own."""

    def __init__(self, storage: "CacheStorage", name: str) -> None:
        self.storage = storage
        self.name = name

    def match(self, request: Request) -> Response | None:
        if request.method != "GET":
            return None
        return self.storage._get_entry(self.name, request.cache_key)

    def put(self, request: Request, response: Response) -> None:
        if request.method != "GET":
            raise ValueError(f"Only GET requests can be cached, got {request.method}")
        self.storage._put_entry(self.name, request.cache_key, response.clone(source=SOURCE_CACHE))

    def keys(self) -> list[str]:
        return self.storage._entry_keys(self.name)

    def __repr__(self) -> str:
        return f"<Cache {self.name}>"


class CacheStorage:
    """Backend-agnostic bucket registry. Subclasses implement the ``_`` hooks."""

    backend_name = "abstract"

    def open(self, name: str) -> Cache:
        self._create(name)
        return Cache(self, name)

    def match(self, request: Request, cache_names) -> Response | None:
        """First hit for *request* among *cache_names*, searched in the given order.

        Only the named buckets are read; missing ones are skipped, not created.
        """
        for name in cache_names:
            if not self.has(name):
                continue
            hit = Cache(self, name).match(request)
            if hit is not None:
                return hit
        return None

    def has(self, name: str) -> bool:
        raise NotImplementedError

    def delete(self, name: str) -> bool:
        raise NotImplementedError

    def keys(self) -> list[str]:
        raise NotImplementedError

    def ping(self) -> bool:
        return True

    # ── Backend hooks ────────────────────────────────────────────────────────

    def _create(self, name: str) -> None:
        raise NotImplementedError

    def _get_entry(self, name: str, key: str) -> Response | None:
        raise NotImplementedError

    def _put_entry(self, name: str, key: str, response: Response) -> None:
        raise NotImplementedError

    def _entry_keys(self, name: str) -> list[str]:
        raise NotImplementedError


# ── In-memory backend ────────────────────────────────────────────────────


class MemoryCacheStorage(CacheStorage):
    """Dict-of-dicts storage for dev/testing."""

    backend_name = "memory"

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, Response]] = {}
        self._lock = Lock()

    def has(self, name):
        with self._lock:
            return name in self._buckets

    def delete(self, name):
        with self._lock:
            return self._buckets.pop(name, None) is not None

    def keys(self):
        with self._lock:
            return list(self._buckets)

    def _create(self, name):
        with self._lock:
            self._buckets.setdefault(name, {})

    def _get_entry(self, name, key):
        with self._lock:
            entry = self._buckets.get(name, {}).get(key)
        return entry.clone() if entry is not None else None

    def _put_entry(self, name, key, response):
        with self._lock:
            self._buckets.setdefault(name, {})[key] = response

    def _entry_keys(self, name):
        with self._lock:
            return list(self._buckets.get(name, {}))


# ── Redis backend ────────────────────────────────────────────────────────


class RedisCacheStorage(CacheStorage):
    """Redis storage: one hash per bucket plus a set of bucket names.

    Keys:
        {namespace}:buckets          SET of bucket names
        {namespace}:bucket:{name}    HASH of request identity → response JSON
    """

    backend_name = "redis"

    def __init__(self, client, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.client = client
        self.namespace = namespace

    def _names_key(self):
        return f"{self.namespace}:buckets"

    def _bucket_key(self, name):
        return f"{self.namespace}:bucket:{name}"

    def _call(self, operation, name, fn, *args):
        try:
            return fn(*args)
        except redis.RedisError as exc:
            raise CacheStorageError(operation, cache_name=name, detail=str(exc)) from exc

    def has(self, name):
        return bool(self._call("has", name, self.client.sismember, self._names_key(), name))

    def delete(self, name):
        removed = self._call("delete", name, self.client.srem, self._names_key(), name)
        self._call("delete", name, self.client.delete, self._bucket_key(name))
        return bool(removed)

    def keys(self):
        return sorted(self._call("keys", None, self.client.smembers, self._names_key()))

    def ping(self):
        return bool(self._call("ping", None, self.client.ping))

    def _create(self, name):
        self._call("open", name, self.client.sadd, self._names_key(), name)

    def _get_entry(self, name, key):
        raw = self._call("match", name, self.client.hget, self._bucket_key(name), key)
        if raw is None:
            return None
        try:
            return Response.from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError):
            logger.warning("Discarding unreadable cache entry %s in %s", key, name)
            return None

    def _put_entry(self, name, key, response):
        self._call("put", name, self.client.sadd, self._names_key(), name)
        self._call("put", name, self.client.hset, self._bucket_key(name), key,
                   json.dumps(response.to_dict()))

    def _entry_keys(self, name):
        return list(self._call("keys", name, self.client.hkeys, self._bucket_key(name)))


# ── Factory ──────────────────────────────────────────────────────────────


def create_cache_storage(url: str | None, namespace: str = DEFAULT_NAMESPACE) -> CacheStorage:
    """Return Redis storage for a redis:// URL, in-memory storage otherwise.

    An unreachable Redis falls back to memory with a warning, so a dev box
    without Redis still serves traffic.
    """
    if url and not url.startswith("memory://"):
        try:
            client = redis.from_url(url, decode_responses=True)
            client.ping()
            logger.info("Cache storage: using Redis at %s", url.split("@")[-1])
            return RedisCacheStorage(client, namespace=namespace)
        except Exception as exc:
            logger.warning("Redis unavailable (%s) — falling back to memory cache storage", exc)
    return MemoryCacheStorage()
