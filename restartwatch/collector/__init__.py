"""Collector package for restartwatch.

Submodules
----------
snapshot_provider -- KubernetesSnapshotProvider: lists pods and flattens
                     their container statuses into ContainerStatusSnapshots.
"""

from restartwatch.collector.snapshot_provider import (
    KubernetesSnapshotProvider,
    SnapshotProvider,
    build_kubernetes_provider,
    snapshots_from_pods,
)

__all__ = [
    "KubernetesSnapshotProvider",
    "SnapshotProvider",
    "build_kubernetes_provider",
    "snapshots_from_pods",
]
