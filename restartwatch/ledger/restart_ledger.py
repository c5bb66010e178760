"""In-memory restart ledger.

The ledger maps each ContainerIdentity to the last restart count that has
already been notified on.  Entries are created lazily on first observation
and are only removed by an explicit ``prune`` call.  All access goes
through a single ``threading.Lock``; the lock is never held across an
``await``.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from restartwatch.models.restarts import ContainerIdentity, ContainerStatusSnapshot


class LedgerChange(StrEnum):
    """How one snapshot affected the ledger."""

    BASELINE = "baseline"
    INCREASED = "increased"
    UNCHANGED = "unchanged"
    RESET = "reset"


@dataclass(frozen=True)
class LedgerDecision:
    """Outcome of applying one snapshot to the ledger."""

    snapshot: ContainerStatusSnapshot
    change: LedgerChange
    previous_count: int | None


class RestartLedger:
    """Last notified restart count per container identity."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[ContainerIdentity, int] = {}

    def apply(self, snapshots: Iterable[ContainerStatusSnapshot]) -> list[LedgerDecision]:
        """Apply a full snapshot set atomically and return one decision per snapshot.

        * unseen identity    -> recorded at its current count (BASELINE)
        * count above stored -> stored count raised (INCREASED)
        * count equal        -> no change (UNCHANGED)
        * count below stored -> stored count lowered to observed (RESET)

        Identities absent from *snapshots* are left untouched.
        """
        decisions: list[LedgerDecision] = []
        with self._lock:
            for snapshot in snapshots:
                identity = snapshot.identity
                current = snapshot.restart_count
                previous = self._counts.get(identity)

                if previous is None:
                    change = LedgerChange.BASELINE
                elif current > previous:
                    change = LedgerChange.INCREASED
                elif current < previous:
                    change = LedgerChange.RESET
                else:
                    change = LedgerChange.UNCHANGED

                if change is not LedgerChange.UNCHANGED:
                    self._counts[identity] = current
                decisions.append(LedgerDecision(snapshot=snapshot, change=change, previous_count=previous))
        return decisions

    def prune(self, active: Iterable[ContainerIdentity]) -> int:
        """Drop every identity not in *active*.  Returns the number removed."""
        keep = set(active)
        with self._lock:
            stale = [identity for identity in self._counts if identity not in keep]
            for identity in stale:
                del self._counts[identity]
        return len(stale)

    def get(self, identity: ContainerIdentity) -> int | None:
        with self._lock:
            return self._counts.get(identity)

    def as_dict(self) -> dict[ContainerIdentity, int]:
        """Return a point-in-time copy of the ledger."""
        with self._lock:
            return dict(self._counts)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._counts

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)
