"""Notification system for restartwatch.

Delivers RestartEvent instances to every registered notifier.

Exports:
    Notifier               -- Abstract base for all backends.
    NotificationDispatcher -- Sends an event to all notifiers, isolating failures.
    DiscordWebhookNotifier -- Discord webhook backend (embed or content style).
    WebhookNotifier        -- Generic JSON POST webhook backend.
    build_notifiers        -- Factory used by the application bootstrap.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from restartwatch.notifications.discord import DiscordWebhookNotifier
from restartwatch.notifications.discord import default_channel_name as discord_channel_name
from restartwatch.notifications.manager import NotificationDispatcher, Notifier
from restartwatch.notifications.webhook import WebhookNotifier
from restartwatch.notifications.webhook import default_channel_name as webhook_channel_name

if TYPE_CHECKING:
    from restartwatch.models.config import NotificationConfig

_log = structlog.get_logger(component="notifications")

__all__ = [
    "DiscordWebhookNotifier",
    "NotificationDispatcher",
    "Notifier",
    "WebhookNotifier",
    "build_notification_dispatcher",
    "build_notifiers",
]


def build_notifiers(config: NotificationConfig) -> list[Notifier]:
    """Create one notifier per configured destination URL.

    Channel names are unique so that outcomes, metrics and logs can tell
    destinations apart.
    """
    notifiers: list[Notifier] = []
    seen: set[str] = set()

    for url in config.discord_webhook_urls:
        name = _unique_name(discord_channel_name(url), seen)
        notifiers.append(
            DiscordWebhookNotifier(url=url, style=config.discord_style, name=name, timeout=config.delivery_timeout)
        )
        _log.info("discord_channel_enabled", channel=name, style=config.discord_style.value)

    for url in config.webhook_urls:
        name = _unique_name(webhook_channel_name(url), seen)
        notifiers.append(
            WebhookNotifier(url=url, headers=config.webhook_headers, name=name, timeout=config.delivery_timeout)
        )
        _log.info("webhook_channel_enabled", channel=name, headers=sorted(config.webhook_headers))

    if not notifiers:
        _log.warning("no_notification_channels_configured")
    return notifiers


def _unique_name(name: str, seen: set[str]) -> str:
    """Suffix ``#2``, ``#3``... when two destinations share a derived name."""
    candidate = name
    suffix = 2
    while candidate in seen:
        candidate = f"{name}#{suffix}"
        suffix += 1
    seen.add(candidate)
    return candidate


def build_notification_dispatcher(config: NotificationConfig) -> NotificationDispatcher:
    return NotificationDispatcher(build_notifiers(config), timeout=config.delivery_timeout)
