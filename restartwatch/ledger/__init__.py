"""Restart ledger for restartwatch.

Holds the last notified restart count per container identity and decides
which fresh observations represent new restarts.

Submodules:
    restart_ledger -- Lock-guarded in-memory map of identity -> restart count.
    detector       -- DeltaDetector turning snapshots into RestartEvents.
"""

from restartwatch.ledger.detector import UNKNOWN_REASON, DeltaDetector, extract_reason
from restartwatch.ledger.restart_ledger import LedgerChange, LedgerDecision, RestartLedger

__all__ = [
    "UNKNOWN_REASON",
    "DeltaDetector",
    "LedgerChange",
    "LedgerDecision",
    "RestartLedger",
    "extract_reason",
]
