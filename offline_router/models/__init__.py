"""
Church App Offline Gateway
Plain value models shared by the router, strategies and storage backends.
"""

from offline_router.models.http import Request, Response  # noqa: F401
from offline_router.models.lifecycle import ItemOutcome, LifecycleResult  # noqa: F401
