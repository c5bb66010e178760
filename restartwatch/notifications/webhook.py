"""Generic JSON webhook notification backend.

Posts RestartEvent fields as a flat JSON body so that consumers can parse it
without restartwatch-specific knowledge.
"""

from __future__ import annotations

from urllib.parse import urlsplit

import httpx
import structlog

from restartwatch.errors import DeliveryError
from restartwatch.models.restarts import RestartEvent
from restartwatch.notifications.manager import Notifier

_log = structlog.get_logger(component="notifications.webhook")


def default_channel_name(url: str) -> str:
    """``webhook:<host>``; path and query may carry secrets and are left out."""
    return f"webhook:{urlsplit(url).hostname or 'unknown'}"


class WebhookNotifier(Notifier):
    """Delivers events by POSTing a JSON payload to a configurable URL.

    Args:
        url:       Full endpoint URL.
        headers:   Optional extra headers (e.g. Authorization).
        name:      Channel name for logs and metrics. Defaults to
                   ``webhook:<host>``; path and query are left out.
        timeout:   HTTP request timeout in seconds. Defaults to 10.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        name: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url:
            raise ValueError("Webhook url must not be empty")
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout
        self._transport = transport
        self._name = name or default_channel_name(url)

    @property
    def channel_name(self) -> str:
        return self._name

    async def send(self, event: RestartEvent) -> None:
        request_headers = {
            "Content-Type": "application/json",
            **self._headers,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, json=self.build_payload(event), headers=request_headers)
        except httpx.TimeoutException as exc:
            raise DeliveryError(self.channel_name, "request timed out") from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(self.channel_name, f"http error: {exc}") from exc

        if not response.is_success:
            _log.debug("webhook_non_2xx_response", status_code=response.status_code, body=response.text[:200])
            raise DeliveryError(
                self.channel_name,
                f"received non-2xx response: {response.status_code}",
                status_code=response.status_code,
            )

    def build_payload(self, event: RestartEvent) -> dict[str, object]:
        """Serialise *event* to a plain dict for JSON encoding."""
        return {
            "namespace": event.namespace,
            "pod": event.pod_name,
            "container": event.container_name,
            "restart_count": event.new_restart_count,
            "reason": event.reason,
            "detected_at": event.detected_at.isoformat(),
        }
