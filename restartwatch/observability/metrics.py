"""Prometheus metrics for restartwatch."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

restarts_detected_total = Counter(
    "restartwatch_restarts_detected_total",
    "Container restarts detected since process start",
    ["namespace"],
)

notifications_total = Counter(
    "restartwatch_notifications_total",
    "Notification delivery attempts by channel and outcome",
    ["channel", "success"],
)

poll_cycles_total = Counter(
    "restartwatch_poll_cycles_total",
    "Completed poll cycles by result",
    ["result"],
)

ledger_size = Gauge(
    "restartwatch_ledger_size",
    "Number of container identities tracked in the restart ledger",
)
