"""Application bootstrap for restartwatch.

Startup order: config -> logging -> K8s client -> detector -> notifications
              -> poll loop -> REST

A ConfigError or ClientConstructionError aborts startup with exit status 1.
Shutdown stops the poll loop first, then the REST server, then closes the
Kubernetes client.  A shutdown requested while startup is still in progress
is remembered and honoured as soon as the poll loop exists.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING, Any

import structlog

from restartwatch.config import load_config
from restartwatch.errors import ClientConstructionError, ConfigError, FetchError
from restartwatch.models.config import RestartWatchConfig
from restartwatch.observability.logging import setup_logging

if TYPE_CHECKING:
    from restartwatch.collector.snapshot_provider import KubernetesSnapshotProvider
    from restartwatch.poller import PollLoop

_log = structlog.get_logger(component="app")

_SHUTDOWN_GRACE_SECONDS = 15


class RestartWatchApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started (or already stopped)
    is safe.
    """

    def __init__(self) -> None:
        self.config: RestartWatchConfig | None = None
        self.poll_loop: PollLoop | None = None

        self._provider: KubernetesSnapshotProvider | None = None
        self._rest_server: Any = None
        self._background_tasks: list[asyncio.Task[None]] = []
        self._started = False
        self._shutdown_requested = False

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    async def start(self) -> None:
        """Build every component.

        Raises:
            ConfigError: configuration is missing or invalid.
            ClientConstructionError: the Kubernetes client cannot be built.
        """
        # Logging is set up with defaults first so a ConfigError is still
        # rendered as structured output.
        setup_logging()
        self.config = load_config()
        setup_logging(self.config.log.level)
        self._started = True
        _log.info("restartwatch starting", version=_restartwatch_version())

        from restartwatch.collector.snapshot_provider import build_kubernetes_provider
        from restartwatch.ledger.detector import DeltaDetector
        from restartwatch.notifications import build_notification_dispatcher
        from restartwatch.poller import PollLoop

        self._provider = await build_kubernetes_provider(self.config.poller)

        poller_cfg = self.config.poller
        self.poll_loop = PollLoop(
            provider=self._provider,
            detector=DeltaDetector(),
            dispatcher=build_notification_dispatcher(self.config.notifications),
            interval_seconds=poller_cfg.interval_seconds,
            fetch_failure_policy=poller_cfg.fetch_failure_policy,
            prune_missing=poller_cfg.prune_missing,
        )
        if self._shutdown_requested:
            _log.info("shutdown requested during startup")
            self.poll_loop.stop()
            return

        if self.config.api.enabled:
            self._start_rest()

    def _start_rest(self) -> None:
        """Serve the status API with uvicorn as a background task."""
        assert self.config is not None
        assert self.poll_loop is not None
        try:
            import uvicorn

            from restartwatch.api import create_app

            uv_config = uvicorn.Config(
                app=create_app(poll_loop=self.poll_loop),
                host="0.0.0.0",
                port=self.config.api.port,
                log_config=None,  # routed through structlog by setup_logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(_serve_rest(server, self.config.api.port), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
        except Exception as exc:
            _log.warning("rest_api_failed", port=self.config.api.port, error=str(exc))
            self._rest_server = None

    async def run(self) -> None:
        """Run the poll loop until it is stopped."""
        assert self.poll_loop is not None
        await self.poll_loop.run()

    def request_shutdown(self) -> None:
        """Ask the app to stop; safe to call at any point, including mid-startup."""
        self._shutdown_requested = True
        if self.poll_loop is not None:
            self.poll_loop.stop()

    async def stop(self) -> None:
        """Stop the poll loop, the REST server and the Kubernetes client."""
        if not self._started:
            return
        self._started = False
        _log.info("restartwatch shutting down")

        if self.poll_loop is not None:
            self.poll_loop.stop()

        if self._rest_server is not None:
            self._rest_server.should_exit = True
        if self._background_tasks:
            _, pending = await asyncio.wait(self._background_tasks, timeout=_SHUTDOWN_GRACE_SECONDS)
            for task in pending:
                task.cancel()
        self._background_tasks.clear()

        if self._provider is not None:
            try:
                await self._provider.close()
            except Exception as exc:
                _log.debug("k8s client close raised (non-fatal)", error=str(exc))
            self._provider = None

        _log.info("restartwatch stopped")


async def _serve_rest(server: Any, port: int) -> None:
    """Run uvicorn, containing its startup failures.

    uvicorn calls ``sys.exit`` when it cannot bind; the status API is
    optional, so that must not end the process.
    """
    try:
        await server.serve()
    except SystemExit as exc:
        _log.error("rest_api_failed", port=port, exit_code=exc.code)
    except Exception as exc:
        _log.error("rest_api_failed", port=port, error=str(exc))


def _restartwatch_version() -> str:
    from restartwatch import __version__

    return __version__


async def main() -> None:
    """Create the app, register OS signals, poll until shutdown is requested."""
    app = RestartWatchApp()
    loop = asyncio.get_running_loop()

    signals = (signal.SIGTERM, signal.SIGINT)
    for sig in signals:
        loop.add_signal_handler(sig, app.request_shutdown)

    try:
        await app.start()
        await app.run()
    except (ConfigError, ClientConstructionError) as exc:
        _log.critical("fatal startup error", error_type=type(exc).__name__, error=str(exc))
        raise SystemExit(1) from exc
    except FetchError as exc:
        _log.critical("fatal snapshot fetch error", error=str(exc))
        raise SystemExit(1) from exc
    finally:
        await app.stop()
        for sig in signals:
            loop.remove_signal_handler(sig)


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())
