"""Cache lifecycle tests — install, activate, clear.

Covers:
    - bucket naming for any version
    - best-effort manifest pre-caching (partial failure still installs)
    - stale bucket cleanup across versions, unrelated caches untouched
    - client claim + SW_UPDATED broadcast on activate
    - per-bucket delete failures do not stop activation
    - storage enumeration failure propagates
"""

import pytest

from offline_router.core.exceptions import CacheStorageError
from offline_router.models.http import Request
from offline_router.services.cache_storage import MemoryCacheStorage
from offline_router.services.lifecycle import CacheLifecycleManager, bucket_name
from offline_router.services.router import OfflineRouter


def _seed_buckets(storage, names):
    for name in names:
        storage.open(name)


# ═══════════════════════════════════════════════════════════════════════════
# 1.  Naming
# ═══════════════════════════════════════════════════════════════════════════

class TestBucketNames:

    @pytest.mark.parametrize("version", ["1", "1718000000000", "2024.06.1-rc"])
    def test_names_follow_prefix_kind_version(self, make_router, version):
        router = make_router(version)
        assert router.cache_names == {
            "static": f"app-static-v{version}",
            "dynamic": f"app-dynamic-v{version}",
            "api": f"app-api-v{version}",
        }

    def test_bucket_name_helper(self):
        assert bucket_name("church-app", "api", "42") == "church-app-api-v42"


# ═══════════════════════════════════════════════════════════════════════════
# 2.  Install
# ═══════════════════════════════════════════════════════════════════════════

class TestInstall:

    def test_static_bucket_contains_every_fetchable_path(self, router, network, storage):
        for path in ("/", "/index.html", "/manifest.json", "/offline.html"):
            network.serve(path, body=f"body of {path}")

        result = router.handle_install()

        assert storage.has("app-static-v2")
        cache = storage.open("app-static-v2")
        assert sorted(cache.keys()) == sorted(
            f"GET {p}" for p in ("/", "/index.html", "/manifest.json", "/offline.html")
        )
        assert result.failures == []

    def test_partial_failure_still_installs(self, router, network, storage):
        network.serve("/", body="shell")
        network.serve("/offline.html", body="offline")
        network.fail("/index.html")
        network.fail("/manifest.json")

        result = router.handle_install()

        cache = storage.open("app-static-v2")
        assert sorted(cache.keys()) == ["GET /", "GET /offline.html"]
        assert sorted(result.items_with("cached")) == ["/", "/offline.html"]
        assert sorted(o.item for o in result.failures) == ["/index.html", "/manifest.json"]

    def test_http_error_is_not_precached(self, router, network, storage):
        network.serve("/", body="shell")
        network.serve("/manifest.json", body="missing", status=404)

        result = router.handle_install()

        assert storage.open("app-static-v2").match(Request("GET", "/manifest.json")) is None
        assert "/manifest.json" in [o.item for o in result.failures]

    def test_bucket_exists_even_if_everything_fails(self, router, network, storage):
        network.offline = True
        router.handle_install()
        assert storage.has("app-static-v2")
        assert storage.open("app-static-v2").keys() == []

    def test_install_requests_skip_waiting(self, router, network):
        network.offline = True
        assert router.skip_waiting_requested is False
        router.handle_install()
        assert router.skip_waiting_requested is True
        assert router.state == "installed"

    def test_only_static_bucket_created_on_install(self, router, network, storage):
        network.offline = True
        router.handle_install()
        assert storage.keys() == ["app-static-v2"]


# ═══════════════════════════════════════════════════════════════════════════
# 3.  Activate
# ═══════════════════════════════════════════════════════════════════════════

class TestActivate:

    def test_stale_versions_removed(self, make_router, storage):
        _seed_buckets(storage, [
            "app-static-v1", "app-dynamic-v1", "app-api-v1",
            "app-static-v2", "app-dynamic-v2", "app-api-v2",
        ])
        router = make_router("2")

        result = router.handle_activate()

        assert sorted(storage.keys()) == ["app-api-v2", "app-dynamic-v2", "app-static-v2"]
        assert sorted(result.items_with("deleted")) == ["app-api-v1", "app-dynamic-v1", "app-static-v1"]
        assert router.state == "activated"

    def test_unrelated_caches_survive(self, make_router, storage):
        _seed_buckets(storage, ["app-static-v1", "other-app-static-v1", "workbox-precache"])
        make_router("2").handle_activate()
        assert sorted(storage.keys()) == ["other-app-static-v1", "workbox-precache"]

    def test_old_and_new_router_side_by_side(self, make_router, network, storage):
        network.serve("/", body="v1 shell")
        old = make_router("1")
        old.handle_install()
        old.handle_activate()
        assert storage.keys() == ["app-static-v1"]

        network.serve("/", body="v2 shell")
        new = make_router("2")
        new.handle_install()
        assert sorted(storage.keys()) == ["app-static-v1", "app-static-v2"]

        new.handle_activate()
        assert storage.keys() == ["app-static-v2"]
        assert storage.open("app-static-v2").match(Request("GET", "/")).text() == "v2 shell"

    def test_clients_claimed_and_notified(self, router, clients):
        a = clients.register("/events")
        b = clients.register("/members")

        result = router.handle_activate()

        for c in (a, b):
            assert c.controller == "2"
            assert c.drain_messages() == [{"type": "SW_UPDATED", "version": "2"}]
        assert sorted(result.items_with("notified")) == sorted([a.id, b.id])

    def test_notification_failure_is_not_fatal(self, router, clients, storage):
        _seed_buckets(storage, ["app-api-v1"])
        good = clients.register("/")
        bad = clients.register("/")

        def _broken(message):
            raise RuntimeError("port closed")

        bad.post_message = _broken

        result = router.handle_activate()

        assert good.drain_messages() == [{"type": "SW_UPDATED", "version": "2"}]
        assert [o.item for o in result.failures] == [bad.id]
        assert storage.keys() == []

    def test_delete_failure_for_one_bucket_does_not_stop_others(self, network, clients):
        class FlakyStorage(MemoryCacheStorage):
            def delete(self, name):
                if name == "app-dynamic-v1":
                    raise CacheStorageError("delete", cache_name=name, detail="quota")
                return super().delete(name)

        storage = FlakyStorage()
        _seed_buckets(storage, ["app-static-v1", "app-dynamic-v1", "app-api-v1"])
        router = OfflineRouter("2", storage, network, prefix="app", clients=clients)

        result = router.handle_activate()

        assert storage.keys() == ["app-dynamic-v1"]
        assert [o.item for o in result.failures] == ["app-dynamic-v1"]
        assert router.state == "activated"

    def test_storage_unavailable_propagates(self, network, clients):
        class DeadStorage(MemoryCacheStorage):
            def keys(self):
                raise CacheStorageError("keys", detail="connection refused")

        router = OfflineRouter("2", DeadStorage(), network, prefix="app", clients=clients)
        with pytest.raises(CacheStorageError):
            router.handle_activate()


# ═══════════════════════════════════════════════════════════════════════════
# 4.  Clear
# ═══════════════════════════════════════════════════════════════════════════

class TestClearAll:

    def test_clear_removes_every_app_bucket(self, storage, network):
        _seed_buckets(storage, ["app-static-v2", "app-dynamic-v2", "app-api-v2",
                                "app-static-v1", "unrelated-other-cache"])
        manager = CacheLifecycleManager(storage, network, "app", "2")

        result = manager.clear_all()

        assert storage.keys() == ["unrelated-other-cache"]
        assert len(result.items_with("deleted")) == 4
