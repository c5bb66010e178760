"""FastAPI application factory for the restartwatch status endpoint.

Usage::

    from restartwatch.api.app import create_app

    app = create_app(poll_loop=poll_loop)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI
from prometheus_client import make_asgi_app

from restartwatch.api.routes import router

if TYPE_CHECKING:
    from restartwatch.poller import PollLoop

_API_PREFIX = "/api/v1"


def create_app(poll_loop: PollLoop) -> FastAPI:
    """Create the status API bound to *poll_loop*.

    Routes read the ledger through its locked accessors only.
    """
    from restartwatch import __version__

    app = FastAPI(
        title="restartwatch",
        summary="Kubernetes container restart watcher",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=f"{_API_PREFIX}/openapi.json",
    )
    app.state.poll_loop = poll_loop
    app.include_router(router, prefix=_API_PREFIX)
    app.mount("/metrics", make_asgi_app())
    return app
