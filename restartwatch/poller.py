"""Poll loop: fetch snapshots, detect restarts, dispatch notifications.

Cycles run strictly sequentially.  Between cycles the loop waits for the
configured interval; ``stop()`` interrupts that wait.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from restartwatch.collector.snapshot_provider import SnapshotProvider
from restartwatch.errors import FetchError
from restartwatch.ledger.detector import DeltaDetector
from restartwatch.models.config import FetchFailurePolicy
from restartwatch.models.restarts import NotificationOutcome, RestartEvent
from restartwatch.notifications.manager import NotificationDispatcher
from restartwatch.observability.metrics import poll_cycles_total

_log = structlog.get_logger(component="poller")


@dataclass
class CycleResult:
    """What one poll cycle produced."""

    events: list[RestartEvent] = field(default_factory=list)
    outcomes: list[NotificationOutcome] = field(default_factory=list)
    fetch_error: FetchError | None = None

    @property
    def failed_deliveries(self) -> list[NotificationOutcome]:
        return [o for o in self.outcomes if not o.success]


class PollLoop:
    """Drives detection cycles on a fixed interval until stopped.

    Args:
        provider:             Source of container status snapshots.
        detector:             Delta detector owning the restart ledger.
        dispatcher:           Fan-out to the registered notifiers.
        interval_seconds:     Wait between cycles. Defaults to 60.
        fetch_failure_policy: ``skip`` logs a failed fetch and waits for the
                              next tick; ``fatal`` re-raises FetchError and
                              ends the loop.
        prune_missing:        Drop ledger entries for containers that no
                              longer appear in the snapshot.
    """

    def __init__(
        self,
        provider: SnapshotProvider,
        detector: DeltaDetector,
        dispatcher: NotificationDispatcher,
        interval_seconds: float = 60.0,
        fetch_failure_policy: FetchFailurePolicy = FetchFailurePolicy.SKIP,
        prune_missing: bool = False,
    ) -> None:
        self._provider = provider
        self._detector = detector
        self._dispatcher = dispatcher
        self._interval = interval_seconds
        self._policy = FetchFailurePolicy(fetch_failure_policy)
        self._prune_missing = prune_missing
        self._stop_event = asyncio.Event()

        self.cycles = 0
        self.last_cycle_at: datetime | None = None
        self.last_error: str | None = None

    @property
    def detector(self) -> DeltaDetector:
        return self._detector

    @property
    def dispatcher(self) -> NotificationDispatcher:
        return self._dispatcher

    async def run_once(self) -> CycleResult:
        """Run one fetch -> detect -> dispatch cycle.

        Raises:
            FetchError: only under the ``fatal`` fetch-failure policy.
        """
        try:
            snapshots = await self._provider.fetch_snapshots()
        except FetchError as exc:
            self._finish_cycle(error=str(exc))
            poll_cycles_total.labels(result="fetch_error").inc()
            if self._policy is FetchFailurePolicy.FATAL:
                _log.error("snapshot_fetch_failed", error=str(exc), policy=self._policy.value)
                raise
            _log.warning("snapshot_fetch_failed_skipping_cycle", error=str(exc))
            return CycleResult(fetch_error=exc)

        events = self._detector.detect(snapshots)
        if self._prune_missing:
            self._detector.prune(snapshots)

        result = CycleResult(events=events)
        for event in events:
            result.outcomes.extend(await self._dispatcher.dispatch(event))

        self._finish_cycle(error=None)
        poll_cycles_total.labels(result="ok").inc()
        _log.debug(
            "poll_cycle_complete",
            containers=len(snapshots),
            events=len(events),
            failed_deliveries=len(result.failed_deliveries),
        )
        return result

    async def run(self) -> None:
        """Run cycles until ``stop()`` is called."""
        _log.info(
            "poll_loop_started",
            interval_seconds=self._interval,
            fetch_failure_policy=self._policy.value,
            notifiers=[n.channel_name for n in self._dispatcher.notifiers],
        )
        while not self._stop_event.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except TimeoutError:
                continue
        _log.info("poll_loop_stopped", cycles=self.cycles)

    def stop(self) -> None:
        self._stop_event.set()

    def _finish_cycle(self, error: str | None) -> None:
        self.cycles += 1
        self.last_cycle_at = datetime.now(tz=UTC)
        self.last_error = error
