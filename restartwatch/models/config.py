"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class FetchFailurePolicy(StrEnum):
    """What the poll loop does when a snapshot fetch fails."""

    SKIP = "skip"
    FATAL = "fatal"


class DiscordStyle(StrEnum):
    """Presentation style for Discord webhook messages."""

    EMBED = "embed"
    CONTENT = "content"


@dataclass
class NotificationConfig:
    """Notification destinations."""

    discord_webhook_urls: list[str] = field(default_factory=list)
    discord_style: DiscordStyle = DiscordStyle.EMBED
    webhook_urls: list[str] = field(default_factory=list)
    webhook_headers: dict[str, str] = field(default_factory=dict)
    delivery_timeout: float = 10.0

    @property
    def has_destination(self) -> bool:
        return bool(self.discord_webhook_urls or self.webhook_urls)


@dataclass
class PollerConfig:
    """Poll loop and snapshot provider configuration."""

    interval_seconds: float = 60.0
    fetch_timeout: float = 30.0
    fetch_failure_policy: FetchFailurePolicy = FetchFailurePolicy.SKIP
    namespace: str = ""
    include_init_containers: bool = False
    prune_missing: bool = False


@dataclass
class APIConfig:
    """Health/status HTTP endpoint configuration."""

    enabled: bool = True
    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class RestartWatchConfig:
    """Top-level restartwatch configuration."""

    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    poller: PollerConfig = field(default_factory=PollerConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
