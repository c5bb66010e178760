"""Delta detection: turns fresh container snapshots into RestartEvents."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from restartwatch.ledger.restart_ledger import LedgerChange, RestartLedger
from restartwatch.models.restarts import ContainerStatusSnapshot, RestartEvent
from restartwatch.observability.metrics import ledger_size, restarts_detected_total

_log = structlog.get_logger(component="ledger.detector")

UNKNOWN_REASON = "Unknown"


def extract_reason(snapshot: ContainerStatusSnapshot) -> str:
    """Return the recorded termination reason verbatim, or ``"Unknown"``."""
    return snapshot.last_termination_reason or UNKNOWN_REASON


class DeltaDetector:
    """Compares snapshots against a RestartLedger and emits new restarts.

    The detector is the only writer of its ledger.  A container seen for the
    first time is baselined at its current count; only restarts observed
    after that produce events.

    Args:
        ledger: The ledger to read and update.  A fresh one is created when
                omitted.
    """

    def __init__(self, ledger: RestartLedger | None = None) -> None:
        self._ledger = ledger if ledger is not None else RestartLedger()

    @property
    def ledger(self) -> RestartLedger:
        return self._ledger

    def detect(self, snapshots: Sequence[ContainerStatusSnapshot]) -> list[RestartEvent]:
        """Return events for every snapshot whose restart count went up.

        Events are in the same order as *snapshots*.
        """
        events: list[RestartEvent] = []
        for decision in self._ledger.apply(snapshots):
            snapshot = decision.snapshot
            if decision.change is LedgerChange.INCREASED:
                event = RestartEvent(
                    identity=snapshot.identity,
                    new_restart_count=snapshot.restart_count,
                    reason=extract_reason(snapshot),
                )
                restarts_detected_total.labels(namespace=event.namespace).inc()
                _log.info(
                    "restart_detected",
                    container=str(snapshot.identity),
                    previous_count=decision.previous_count,
                    restart_count=snapshot.restart_count,
                    reason=event.reason,
                )
                events.append(event)
            elif decision.change is LedgerChange.BASELINE:
                _log.debug(
                    "container_baselined",
                    container=str(snapshot.identity),
                    restart_count=snapshot.restart_count,
                )
            elif decision.change is LedgerChange.RESET:
                _log.info(
                    "restart_count_reset",
                    container=str(snapshot.identity),
                    previous_count=decision.previous_count,
                    restart_count=snapshot.restart_count,
                )

        ledger_size.set(len(self._ledger))
        return events

    def prune(self, snapshots: Sequence[ContainerStatusSnapshot]) -> int:
        """Forget identities that are missing from *snapshots*."""
        removed = self._ledger.prune(s.identity for s in snapshots)
        if removed:
            _log.info("ledger_pruned", removed=removed, remaining=len(self._ledger))
        ledger_size.set(len(self._ledger))
        return removed
