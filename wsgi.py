"""
WSGI entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi sw-install      # pre-cache the manifest for this build
    flask --app wsgi sw-activate     # drop stale buckets, notify pages
"""

from offline_router import create_app

app = create_app()
