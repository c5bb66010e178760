"""Notifier contract and fan-out dispatcher for restartwatch.

Notifier               -- ABC every backend must implement.
NotificationDispatcher -- Sends one event to every registered notifier;
                          a failure in one notifier never blocks the others
                          or the poll loop.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence

import structlog

from restartwatch.errors import DeliveryError
from restartwatch.models.restarts import NotificationOutcome, RestartEvent
from restartwatch.observability.metrics import notifications_total

_log = structlog.get_logger(component="notifications.manager")


class Notifier(ABC):
    """Abstract base class for all notification backends.

    ``send`` delivers exactly one event with one outbound call and raises
    DeliveryError on failure.  Backends do not retry.
    """

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Human-readable channel identifier used in metrics and logs."""

    @abstractmethod
    async def send(self, event: RestartEvent) -> None:
        """Deliver *event* via this channel.

        Raises:
            DeliveryError: transport failure or non-success response.
        """


class NotificationDispatcher:
    """Fan-out dispatcher that sends an event to every registered notifier.

    * Never raises: every failure becomes a failed NotificationOutcome.
    * Each delivery is bounded by *timeout* seconds.
    """

    def __init__(self, notifiers: Sequence[Notifier], timeout: float = 10.0) -> None:
        self._notifiers = list(notifiers)
        self._timeout = timeout

    @property
    def notifiers(self) -> list[Notifier]:
        return list(self._notifiers)

    async def dispatch(self, event: RestartEvent) -> list[NotificationOutcome]:
        """Deliver *event* to every notifier concurrently.

        Outcomes are returned in notifier registration order.
        """
        return list(await asyncio.gather(*(self._send_one(n, event) for n in self._notifiers)))

    async def _send_one(self, notifier: Notifier, event: RestartEvent) -> NotificationOutcome:
        channel = notifier.channel_name
        error: DeliveryError | None = None
        try:
            await asyncio.wait_for(notifier.send(event), timeout=self._timeout)
        except DeliveryError as exc:
            error = exc
        except TimeoutError:
            error = DeliveryError(channel, f"delivery timed out after {self._timeout}s")
        except Exception as exc:  # noqa: BLE001
            _log.error(
                "notification_channel_unexpected_error",
                channel=channel,
                container=str(event.identity),
                error=str(exc),
            )
            error = DeliveryError(channel, f"unexpected error: {exc}")

        label = "true" if error is None else "false"
        notifications_total.labels(channel=channel, success=label).inc()

        if error is None:
            _log.info(
                "notification_sent",
                channel=channel,
                container=str(event.identity),
                restart_count=event.new_restart_count,
            )
        else:
            _log.warning(
                "notification_failed",
                channel=channel,
                container=str(event.identity),
                status_code=error.status_code,
                error=str(error),
            )
        return NotificationOutcome(channel=channel, event=event, error=error)
