"""Core data structures for restartwatch."""

from restartwatch.models.config import (
    APIConfig,
    DiscordStyle,
    FetchFailurePolicy,
    LogConfig,
    NotificationConfig,
    PollerConfig,
    RestartWatchConfig,
)
from restartwatch.models.restarts import (
    ContainerIdentity,
    ContainerStatusSnapshot,
    NotificationOutcome,
    RestartEvent,
)

__all__ = [
    "APIConfig",
    "ContainerIdentity",
    "ContainerStatusSnapshot",
    "DiscordStyle",
    "FetchFailurePolicy",
    "LogConfig",
    "NotificationConfig",
    "NotificationOutcome",
    "PollerConfig",
    "RestartEvent",
    "RestartWatchConfig",
]
