"""Shared fixtures for restartwatch integration tests.

Provides a scripted snapshot provider and recording notifiers so the full
fetch -> detect -> dispatch pipeline runs without a cluster or network.
"""

from __future__ import annotations

from collections.abc import Iterable

import pytest

from restartwatch.errors import DeliveryError, FetchError
from restartwatch.ledger.detector import DeltaDetector
from restartwatch.models.restarts import ContainerIdentity, ContainerStatusSnapshot, RestartEvent
from restartwatch.notifications.manager import NotificationDispatcher, Notifier
from restartwatch.poller import PollLoop

C1 = ContainerIdentity("ns", "pod", "c1")
C2 = ContainerIdentity("ns", "pod", "c2")


def snap(identity: ContainerIdentity, restarts: int, reason: str | None = None) -> ContainerStatusSnapshot:
    return ContainerStatusSnapshot(identity=identity, restart_count=restarts, last_termination_reason=reason)


class ScriptedProvider:
    """Returns one pre-scripted snapshot set (or raises) per fetch."""

    def __init__(self, cycles: Iterable[list[ContainerStatusSnapshot] | Exception] = ()) -> None:
        self._cycles = list(cycles)
        self.fetches = 0

    def add(self, cycle: list[ContainerStatusSnapshot] | Exception) -> None:
        self._cycles.append(cycle)

    async def fetch_snapshots(self) -> list[ContainerStatusSnapshot]:
        self.fetches += 1
        if not self._cycles:
            return []
        cycle = self._cycles.pop(0)
        if isinstance(cycle, Exception):
            raise cycle
        return cycle


class RecordingNotifier(Notifier):
    def __init__(self, name: str = "recording") -> None:
        self._name = name
        self.events: list[RestartEvent] = []

    @property
    def channel_name(self) -> str:
        return self._name

    async def send(self, event: RestartEvent) -> None:
        self.events.append(event)


class FailingNotifier(Notifier):
    def __init__(self, name: str = "failing") -> None:
        self._name = name
        self.attempts = 0

    @property
    def channel_name(self) -> str:
        return self._name

    async def send(self, event: RestartEvent) -> None:
        self.attempts += 1
        raise DeliveryError(self._name, "received non-OK response: 500", status_code=500)


def fetch_failure() -> FetchError:
    return FetchError("pod list failed with status 503: Service Unavailable")


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def recorder() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def poll_loop(provider: ScriptedProvider, recorder: RecordingNotifier) -> PollLoop:
    return PollLoop(
        provider=provider,
        detector=DeltaDetector(),
        dispatcher=NotificationDispatcher([recorder]),
        interval_seconds=0.01,
    )
