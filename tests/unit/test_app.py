"""Tests for the process lifecycle in restartwatch.app: exit codes and shutdown."""

from __future__ import annotations

import asyncio
import os
import signal
import socket
from collections.abc import Iterator
from unittest.mock import MagicMock

import pytest

from restartwatch import app as app_module
from restartwatch.app import RestartWatchApp, _serve_rest, main
from restartwatch.errors import ClientConstructionError, FetchError
from restartwatch.models.config import PollerConfig
from restartwatch.models.restarts import ContainerIdentity, ContainerStatusSnapshot

_BUILDER = "restartwatch.collector.snapshot_provider.build_kubernetes_provider"


class _StubProvider:
    def __init__(self, error: Exception | None = None) -> None:
        self._error = error
        self.fetches = 0
        self.closed = False

    async def fetch_snapshots(self) -> list[ContainerStatusSnapshot]:
        self.fetches += 1
        if self._error is not None:
            raise self._error
        return [ContainerStatusSnapshot(ContainerIdentity("ns", "pod", "app"), 0)]

    async def close(self) -> None:
        self.closed = True


def _builder(provider: _StubProvider, delay: float = 0.0):
    async def build(config: PollerConfig) -> _StubProvider:
        if delay:
            await asyncio.sleep(delay)
        return provider

    return build


@pytest.fixture(autouse=True)
def _env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("RESTARTWATCH_") or key == "DISCORD_WEBHOOK_URL":
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DISCORD_WEBHOOK_URL", "https://discord.example/api/webhooks/1/t")
    monkeypatch.setenv("RESTARTWATCH_API_ENABLED", "false")
    # Keep the test session's logging configuration untouched.
    monkeypatch.setattr(app_module, "setup_logging", lambda level="info": None)


def _sigterm_after(delay: float) -> asyncio.TimerHandle:
    return asyncio.get_running_loop().call_later(delay, os.kill, os.getpid(), signal.SIGTERM)


@pytest.fixture
def busy_port() -> Iterator[int]:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("0.0.0.0", 0))
    sock.listen(1)
    try:
        yield sock.getsockname()[1]
    finally:
        sock.close()


class TestFatalExits:
    async def test_missing_destination_exits_1(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DISCORD_WEBHOOK_URL")
        with pytest.raises(SystemExit) as excinfo:
            await main()
        assert excinfo.value.code == 1

    async def test_client_construction_failure_exits_1(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def fail(config: PollerConfig) -> None:
            raise ClientConstructionError("no kubeconfig")

        monkeypatch.setattr(_BUILDER, fail)
        with pytest.raises(SystemExit) as excinfo:
            await main()
        assert excinfo.value.code == 1

    async def test_fetch_error_under_fatal_policy_exits_1(self, monkeypatch: pytest.MonkeyPatch) -> None:
        provider = _StubProvider(error=FetchError("pod list failed with status 401: Unauthorized"))
        monkeypatch.setattr(_BUILDER, _builder(provider))
        monkeypatch.setenv("RESTARTWATCH_FETCH_FAILURE_POLICY", "fatal")
        with pytest.raises(SystemExit) as excinfo:
            await asyncio.wait_for(main(), timeout=5.0)
        assert excinfo.value.code == 1
        assert provider.fetches == 1
        assert provider.closed


class TestSignalShutdown:
    async def test_sigterm_while_polling_stops_cleanly(self, monkeypatch: pytest.MonkeyPatch) -> None:
        provider = _StubProvider(error=FetchError("transient"))
        monkeypatch.setattr(_BUILDER, _builder(provider))
        handle = _sigterm_after(0.2)
        try:
            await asyncio.wait_for(main(), timeout=5.0)
        finally:
            handle.cancel()
        assert provider.fetches >= 1
        assert provider.closed

    async def test_sigterm_during_startup_is_honoured(self, monkeypatch: pytest.MonkeyPatch) -> None:
        provider = _StubProvider()
        monkeypatch.setattr(_BUILDER, _builder(provider, delay=0.5))
        handle = _sigterm_after(0.05)
        try:
            await asyncio.wait_for(main(), timeout=5.0)
        finally:
            handle.cancel()
        assert provider.fetches == 0
        assert provider.closed

    async def test_request_shutdown_before_start_prevents_polling(self, monkeypatch: pytest.MonkeyPatch) -> None:
        provider = _StubProvider()
        monkeypatch.setattr(_BUILDER, _builder(provider))
        app = RestartWatchApp()
        app.request_shutdown()
        await app.start()
        await asyncio.wait_for(app.run(), timeout=2.0)
        await app.stop()
        assert app.shutdown_requested
        assert provider.fetches == 0


class TestRestApiFailure:
    async def test_serve_contains_uvicorn_startup_exit(self) -> None:
        server = MagicMock()

        async def serve() -> None:
            raise SystemExit(3)

        server.serve = serve
        await _serve_rest(server, 8080)

    async def test_busy_api_port_does_not_stop_polling(
        self, monkeypatch: pytest.MonkeyPatch, busy_port: int
    ) -> None:
        provider = _StubProvider()
        monkeypatch.setattr(_BUILDER, _builder(provider))
        monkeypatch.setenv("RESTARTWATCH_API_ENABLED", "true")
        monkeypatch.setenv("RESTARTWATCH_API_PORT", str(busy_port))
        monkeypatch.setenv("RESTARTWATCH_POLL_INTERVAL", "1")

        handle = _sigterm_after(1.5)
        try:
            await asyncio.wait_for(main(), timeout=10.0)
        finally:
            handle.cancel()
        assert provider.fetches >= 2
