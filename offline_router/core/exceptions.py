"""
Gateway-wide exception hierarchy.

Services raise these types; strategies and blueprints decide where they are
recovered. The rule of thumb:

  - FetchError never escapes request handling — strategies fall back to the
    cache or to an offline stand-in.
  - CacheStorageError during a single write or delete is logged and skipped;
    during lifecycle bucket enumeration it propagates (storage unavailable).
  - SubscriptionError is logged by the push handler and never retried.

Usage:
    from offline_router.core.exceptions import FetchError, CacheStorageError

    raise FetchError(url, reason="connection refused")
    raise CacheStorageError("put", cache_name="church-app-api-v1")
"""


class GatewayError(Exception):
    """Base class for all errors raised by the offline gateway."""


class FetchError(GatewayError):
    """Raised when a live network fetch fails (offline, DNS failure, timeout).

    Args:
        url: The URL that was being fetched.
        reason: Short human-readable cause, included in logs.
    """

    def __init__(self, url: str, reason: str | None = None) -> None:
        self.url = url
        self.reason = reason
        msg = f"Fetch failed for {url}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class CacheStorageError(GatewayError):
    """Raised when the cache storage cannot open, read, write or delete.

    Args:
        operation: The storage operation that failed ("open", "put", "delete", "keys", ...).
        cache_name: Bucket involved, if any.
        detail: Underlying error text.
    """

    def __init__(self, operation: str, cache_name: str | None = None, detail: str | None = None) -> None:
        self.operation = operation
        self.cache_name = cache_name
        self.detail = detail
        msg = f"Cache storage {operation} failed"
        if cache_name:
            msg += f" for {cache_name}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class SubscriptionError(GatewayError):
    """Raised when push re-subscription is not possible."""


class ValidationError(GatewayError):
    """Raised when a command or message payload is malformed.

    Maps to HTTP 400 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)
