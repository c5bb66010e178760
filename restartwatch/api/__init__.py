"""Status API for restartwatch.

Exposes:
    create_app -- FastAPI application factory.
"""

from restartwatch.api.app import create_app

__all__ = ["create_app"]
