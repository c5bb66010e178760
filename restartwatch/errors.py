"""Error taxonomy for restartwatch.

ConfigError and ClientConstructionError are fatal before the poll loop
starts.  FetchError is fatal or skipped depending on the configured
fetch-failure policy.  DeliveryError is always recovered per notifier.
"""

from __future__ import annotations


class RestartWatchError(Exception):
    """Base class for all restartwatch errors."""


class ConfigError(RestartWatchError):
    """Required settings are missing or invalid."""


class ClientConstructionError(RestartWatchError):
    """Cluster access could not be established."""


class FetchError(RestartWatchError):
    """Container status snapshot could not be retrieved."""


class DeliveryError(RestartWatchError):
    """One notifier failed to deliver one event."""

    def __init__(self, channel: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{channel}: {message}")
        self.channel = channel
        self.status_code = status_code
