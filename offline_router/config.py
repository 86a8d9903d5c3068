"""
Church App Offline Gateway
Configuration classes for Flask App Factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])
"""

import os

from offline_router.services.versioning import read_build_version

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

# Written by scripts/stamp_build_version.py at build time
BUILD_VERSION_FILE = os.path.join(basedir, "instance", "BUILD_VERSION")


class Config:
    """Base configuration shared across all environments."""

    DEBUG = False
    TESTING = False

    # Bucket naming: "{CACHE_PREFIX}-{kind}-v{BUILD_VERSION}"
    CACHE_PREFIX = os.getenv("CACHE_PREFIX", "church-app")
    BUILD_VERSION = os.getenv("BUILD_VERSION") or read_build_version(BUILD_VERSION_FILE) or "dev"

    # Upstream web application
    ORIGIN_URL = os.getenv("ORIGIN_URL", "http://localhost:5173")
    API_PREFIX = os.getenv("API_PREFIX", "/api/")
    FETCH_TIMEOUT_SECONDS = float(os.getenv("FETCH_TIMEOUT_SECONDS", "10"))

    # Critical paths pre-cached into the static bucket on install
    PRECACHE_MANIFEST = ["/", "/index.html", "/manifest.json", "/offline.html"]
    OFFLINE_PAGE = "/offline.html"

    # Cache storage: Redis in production, in-memory for dev/testing
    CACHE_STORAGE_URL = os.getenv("REDIS_URL", "memory://")

    # Push
    PUSH_SUBSCRIBE_PATH = "/api/v1/push/subscribe"
    VAPID_PUBLIC_KEY = os.getenv("VAPID_PUBLIC_KEY")

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Rate limiting (control endpoints)
    RATELIMIT_ENABLED = True
    CONTROL_RATE_LIMIT = os.getenv("CONTROL_RATE_LIMIT", "120/minute")


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True


class TestingConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    BUILD_VERSION = "test"
    ORIGIN_URL = "http://origin.test"
    CACHE_STORAGE_URL = "memory://"
    FETCH_TIMEOUT_SECONDS = 1.0
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")  # Must be set explicitly in production

    def __init__(self):
        if self.BUILD_VERSION == "dev":
            raise RuntimeError("BUILD_VERSION must be stamped or set in production")
        if not os.getenv("ORIGIN_URL"):
            raise RuntimeError("ORIGIN_URL environment variable is required in production")
        if not self.CORS_ORIGINS.strip():
            raise RuntimeError("CORS_ORIGINS must list allowed origins (or \"*\") in production")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
