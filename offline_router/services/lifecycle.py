"""
Cache Lifecycle Manager

Owns the three current-version buckets and removes everything else that
belongs to this application:

    install()       → open the static bucket and pre-cache the manifest
    activate(...)   → delete stale buckets  ∥  claim clients + broadcast update
    clear_all()     → delete every application bucket regardless of version

Bucket names: "{prefix}-static-v{version}", "{prefix}-dynamic-v{version}",
"{prefix}-api-v{version}". Buckets of other applications (names without our
prefix) are never touched.

Every per-item failure (one manifest path, one bucket, one client) is logged
and recorded as an ItemOutcome; it never aborts the rest of the operation.
Only a failure to enumerate or open the storage itself propagates.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from offline_router.core.exceptions import CacheStorageError, FetchError
from offline_router.models.http import Request
from offline_router.models.lifecycle import (
    OUTCOME_CACHED,
    OUTCOME_CLAIMED,
    OUTCOME_DELETED,
    OUTCOME_FAILED,
    OUTCOME_KEPT,
    OUTCOME_NOTIFIED,
    ItemOutcome,
    LifecycleResult,
)

logger = logging.getLogger(__name__)

BUCKET_KINDS = ("static", "dynamic", "api")

UPDATE_MESSAGE_TYPE = "SW_UPDATED"


def bucket_name(prefix: str, kind: str, version: str) -> str:
    return f"{prefix}-{kind}-v{version}"


class CacheLifecycleManager:
    """Creates, versions and garbage-collects the application's buckets."""

    def __init__(self, storage, network, prefix: str, version: str, manifest=None) -> None:
        self.storage = storage
        self.network = network
        self.prefix = prefix
        self.version = version
        self.manifest = list(manifest or [])

    # ── Names ────────────────────────────────────────────────────────────────

    @property
    def cache_names(self) -> dict[str, str]:
        return {kind: bucket_name(self.prefix, kind, self.version) for kind in BUCKET_KINDS}

    def cache_name(self, kind: str) -> str:
        return self.cache_names[kind]

    def owns(self, name: str) -> bool:
        """True if *name* is one of this application's buckets (any version)."""
        return name.startswith(f"{self.prefix}-")

    def entry_counts(self) -> dict[str, int]:
        """Number of cached entries per current bucket kind (0 if not created yet)."""
        counts = {}
        for kind, name in self.cache_names.items():
            counts[kind] = len(self.storage.open(name).keys()) if self.storage.has(name) else 0
        return counts

    # ── Install ──────────────────────────────────────────────────────────────

    def install(self) -> LifecycleResult:
        """Open the static bucket and pre-cache the manifest, best effort."""
        result = LifecycleResult("install", self.version)
        cache = self.storage.open(self.cache_name("static"))
        logger.info("Installing version %s: pre-caching %d paths into %s",
                    self.version, len(self.manifest), cache.name,
                    extra={"version": self.version, "cache_name": cache.name})

        for path in self.manifest:
            request = Request("GET", path)
            try:
                response = self.network.fetch(request)
                if not response.ok:
                    raise FetchError(path, reason=f"HTTP {response.status}")
                cache.put(request, response)
                result.add(path, OUTCOME_CACHED)
            except (FetchError, CacheStorageError) as exc:
                logger.warning("Pre-cache skipped for %s: %s", path, exc,
                               extra={"cache_name": cache.name})
                result.add(path, OUTCOME_FAILED, str(exc))

        logger.info("Install finished: %d cached, %d failed",
                    len(result.items_with(OUTCOME_CACHED)), len(result.failures),
                    extra={"version": self.version})
        return result

    # ── Activate ─────────────────────────────────────────────────────────────

    def activate(self, clients) -> LifecycleResult:
        """Delete stale buckets while claiming and notifying open clients.

        The two halves run concurrently; both finish before this returns.
        """
        result = LifecycleResult("activate", self.version)
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="sw-activate") as pool:
            cleanup = pool.submit(self.delete_stale_buckets)
            claim = pool.submit(self.claim_and_notify, clients)
            # .result() re-raises storage-level failures from either half
            result.extend(cleanup.result())
            result.extend(claim.result())

        logger.info("Activated version %s (%d stale buckets removed)",
                    self.version, len(result.items_with(OUTCOME_DELETED)),
                    extra={"version": self.version})
        return result

    def delete_stale_buckets(self) -> list[ItemOutcome]:
        current = set(self.cache_names.values())
        outcomes = []
        for name in self.storage.keys():
            if not self.owns(name):
                continue
            if name in current:
                outcomes.append(ItemOutcome(name, OUTCOME_KEPT))
                continue
            outcomes.append(self._delete_bucket(name))
        return outcomes

    def claim_and_notify(self, clients) -> list[ItemOutcome]:
        outcomes = []
        claimed = clients.claim(self.version)
        message = {"type": UPDATE_MESSAGE_TYPE, "version": self.version}
        for client in claimed:
            outcomes.append(ItemOutcome(client.id, OUTCOME_CLAIMED))
            try:
                client.post_message(message)
                outcomes.append(ItemOutcome(client.id, OUTCOME_NOTIFIED))
            except Exception as exc:
                logger.warning("Update notification to client %s failed: %s", client.id, exc)
                outcomes.append(ItemOutcome(client.id, OUTCOME_FAILED, str(exc)))
        return outcomes

    # ── Clear ────────────────────────────────────────────────────────────────

    def clear_all(self) -> LifecycleResult:
        """Delete every bucket owned by this application, any version."""
        result = LifecycleResult("clear", self.version)
        for name in self.storage.keys():
            if self.owns(name):
                result.outcomes.append(self._delete_bucket(name))
        logger.info("Cleared %d application buckets",
                    len(result.items_with(OUTCOME_DELETED)))
        return result

    def _delete_bucket(self, name: str) -> ItemOutcome:
        try:
            self.storage.delete(name)
        except CacheStorageError as exc:
            logger.error("Could not delete bucket %s: %s", name, exc, extra={"cache_name": name})
            return ItemOutcome(name, OUTCOME_FAILED, str(exc))
        logger.info("Deleted bucket %s", name, extra={"cache_name": name})
        return ItemOutcome(name, OUTCOME_DELETED)
