"""Restart tracking data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from restartwatch.errors import DeliveryError


@dataclass(frozen=True)
class ContainerIdentity:
    """Stable key for one container: namespace, pod and container name."""

    namespace: str
    pod_name: str
    container_name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.pod_name}/{self.container_name}"


@dataclass(frozen=True)
class ContainerStatusSnapshot:
    """A single observation of a container's restart state.

    Produced fresh by the snapshot provider on every poll; never mutated.
    """

    identity: ContainerIdentity
    restart_count: int
    last_termination_reason: str | None = None

    def __post_init__(self) -> None:
        if self.restart_count < 0:
            raise ValueError(f"restart_count must be non-negative, got {self.restart_count}")


@dataclass(frozen=True)
class RestartEvent:
    """Emitted by the delta detector, consumed by the notifiers."""

    identity: ContainerIdentity
    new_restart_count: int
    reason: str
    detected_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def namespace(self) -> str:
        return self.identity.namespace

    @property
    def pod_name(self) -> str:
        return self.identity.pod_name

    @property
    def container_name(self) -> str:
        return self.identity.container_name


@dataclass(frozen=True)
class NotificationOutcome:
    """Result of delivering one event through one notifier."""

    channel: str
    event: RestartEvent
    error: DeliveryError | None = None

    @property
    def success(self) -> bool:
        return self.error is None
