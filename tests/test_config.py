"""Configuration guards and CORS wiring."""

import pytest

from offline_router import create_app
from offline_router.config import ProductionConfig, TestingConfig


@pytest.fixture
def production_env(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "BUILD_VERSION", "1718000000500")
    monkeypatch.setenv("ORIGIN_URL", "https://app.example.org")
    monkeypatch.setattr(ProductionConfig, "CORS_ORIGINS", "https://app.example.org")


class TestProductionConfig:

    def test_complete_environment_accepted(self, production_env):
        assert ProductionConfig().CORS_ORIGINS == "https://app.example.org"

    @pytest.mark.parametrize("origins", ["", "   "])
    def test_empty_cors_origins_rejected(self, production_env, monkeypatch, origins):
        monkeypatch.setattr(ProductionConfig, "CORS_ORIGINS", origins)
        with pytest.raises(RuntimeError, match="CORS_ORIGINS"):
            ProductionConfig()

    def test_explicit_wildcard_allowed(self, production_env, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "CORS_ORIGINS", "*")
        assert ProductionConfig().CORS_ORIGINS == "*"

    def test_unstamped_build_rejected(self, production_env, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "BUILD_VERSION", "dev")
        with pytest.raises(RuntimeError, match="BUILD_VERSION"):
            ProductionConfig()


class TestCorsWiring:

    def _allow_origin(self, router, monkeypatch, origins):
        monkeypatch.setattr(TestingConfig, "CORS_ORIGINS", origins)
        client = create_app("testing", router=router).test_client()
        resp = client.get("/_sw/health/live", headers={"Origin": "https://evil.example"})
        return resp.headers.get("Access-Control-Allow-Origin")

    def test_empty_origins_grant_nothing(self, router, monkeypatch):
        assert self._allow_origin(router, monkeypatch, "") is None

    def test_listed_origins_exclude_others(self, router, monkeypatch):
        assert self._allow_origin(router, monkeypatch, "https://app.example.org") is None

    def test_wildcard_grants_any(self, router, monkeypatch):
        assert self._allow_origin(router, monkeypatch, "*") == "https://evil.example"
