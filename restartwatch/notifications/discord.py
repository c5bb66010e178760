"""Discord webhook notification backend.

Two presentation styles share one delivery path:

* ``embed``   -- a single rich embed with namespace, pod, container,
                 restart count and reason fields.
* ``content`` -- a flat one-line ``content`` message.
"""

from __future__ import annotations

from urllib.parse import urlsplit

import httpx
import structlog

from restartwatch.errors import DeliveryError
from restartwatch.models.config import DiscordStyle
from restartwatch.models.restarts import RestartEvent
from restartwatch.notifications.manager import Notifier

_log = structlog.get_logger(component="notifications.discord")

# Red
_EMBED_COLOR = 16711680


class DiscordWebhookNotifier(Notifier):
    """Delivers restart events to a Discord channel webhook.

    Args:
        url:       Discord webhook URL.
        style:     Message presentation style.
        name:      Channel name for logs and metrics. Derived from the
                   webhook id when omitted; the token is never included.
        timeout:   HTTP request timeout in seconds. Defaults to 10.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        url: str,
        style: DiscordStyle = DiscordStyle.EMBED,
        name: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url:
            raise ValueError("Discord webhook url must not be empty")
        self._url = url
        self._style = DiscordStyle(style)
        self._timeout = timeout
        self._transport = transport
        self._name = name or default_channel_name(url)

    @property
    def channel_name(self) -> str:
        return self._name

    @property
    def style(self) -> DiscordStyle:
        return self._style

    async def send(self, event: RestartEvent) -> None:
        """POST *event* to the webhook.  Raises DeliveryError on failure."""
        payload = self.build_payload(event)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, json=payload)
        except httpx.TimeoutException as exc:
            raise DeliveryError(self.channel_name, "request timed out") from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(self.channel_name, f"http error: {exc}") from exc

        if not response.is_success:
            _log.debug("discord_non_2xx_response", status_code=response.status_code, body=response.text[:200])
            raise DeliveryError(
                self.channel_name,
                f"received non-OK response: {response.status_code}",
                status_code=response.status_code,
            )

    def build_payload(self, event: RestartEvent) -> dict[str, object]:
        if self._style is DiscordStyle.CONTENT:
            return {"content": _content_line(event)}
        return {"embeds": [_embed(event)]}


def default_channel_name(url: str) -> str:
    """``discord:<webhook id>`` for /api/webhooks/<id>/<token> URLs, else the host."""
    parts = urlsplit(url)
    segments = [s for s in parts.path.split("/") if s]
    if "webhooks" in segments:
        index = segments.index("webhooks")
        if index + 1 < len(segments):
            return f"discord:{segments[index + 1]}"
    return f"discord:{parts.hostname or 'unknown'}"


def _embed(event: RestartEvent) -> dict[str, object]:
    return {
        "title": f"Pod Restarted `{event.pod_name}`",
        "description": "",
        "color": _EMBED_COLOR,
        "fields": [
            {"name": "Namespace", "value": event.namespace, "inline": True},
            {"name": "Container", "value": event.container_name, "inline": True},
            {"name": "Restart Count", "value": str(event.new_restart_count), "inline": True},
            {"name": "Reason", "value": event.reason, "inline": True},
        ],
        "timestamp": event.detected_at.isoformat(timespec="seconds"),
    }


def _content_line(event: RestartEvent) -> str:
    return (
        f"Pod `{event.pod_name}` (container `{event.container_name}`) in namespace "
        f"`{event.namespace}` restarted. Restart count: {event.new_restart_count}. "
        f"Reason: {event.reason}"
    )
