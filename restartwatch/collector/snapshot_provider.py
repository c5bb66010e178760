"""Container status snapshots from the Kubernetes API.

The provider performs a single list call per poll and converts every
container status into an immutable ContainerStatusSnapshot.  A fetch either
returns the complete set or raises FetchError; partial results are never
returned.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any, Protocol

import aiohttp
import structlog
from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio import config as k8s_config  # type: ignore[import-untyped]
from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

from restartwatch.errors import ClientConstructionError, FetchError
from restartwatch.models.config import PollerConfig
from restartwatch.models.restarts import ContainerIdentity, ContainerStatusSnapshot

_log = structlog.get_logger(component="collector.snapshot_provider")


class SnapshotProvider(Protocol):
    """Anything that can return the current container statuses."""

    async def fetch_snapshots(self) -> list[ContainerStatusSnapshot]: ...


def _termination_reason(status: Any) -> str | None:
    last_state = getattr(status, "last_state", None)
    terminated = getattr(last_state, "terminated", None) if last_state is not None else None
    if terminated is None:
        return None
    return getattr(terminated, "reason", None)


def snapshots_from_pods(
    pods: Iterable[Any],
    include_init_containers: bool = False,
) -> list[ContainerStatusSnapshot]:
    """Flatten V1Pod objects into snapshots, in pod then container order."""
    snapshots: list[ContainerStatusSnapshot] = []
    for pod in pods:
        metadata = pod.metadata
        status = pod.status
        if metadata is None or status is None:
            continue
        statuses = list(status.container_statuses or [])
        if include_init_containers:
            statuses = list(status.init_container_statuses or []) + statuses
        for container_status in statuses:
            snapshots.append(
                ContainerStatusSnapshot(
                    identity=ContainerIdentity(
                        namespace=metadata.namespace or "",
                        pod_name=metadata.name or "",
                        container_name=container_status.name,
                    ),
                    restart_count=container_status.restart_count or 0,
                    last_termination_reason=_termination_reason(container_status),
                )
            )
    return snapshots


class KubernetesSnapshotProvider:
    """Lists pods through CoreV1Api and returns their container snapshots.

    Args:
        core_v1:                 A kubernetes_asyncio ``CoreV1Api``.
        namespace:               Namespace to watch; empty means all.
        timeout:                 Upper bound on one list call, in seconds.
        include_init_containers: Also report init container statuses.
    """

    def __init__(
        self,
        core_v1: Any,
        namespace: str = "",
        timeout: float = 30.0,
        include_init_containers: bool = False,
    ) -> None:
        self._core_v1 = core_v1
        self._namespace = namespace
        self._timeout = timeout
        self._include_init_containers = include_init_containers

    async def fetch_snapshots(self) -> list[ContainerStatusSnapshot]:
        """Return a complete snapshot of every monitored container.

        Raises:
            FetchError: on API, transport or timeout failure.
        """
        try:
            if self._namespace:
                call = self._core_v1.list_namespaced_pod(self._namespace)
            else:
                call = self._core_v1.list_pod_for_all_namespaces()
            pod_list = await asyncio.wait_for(call, timeout=self._timeout)
        except TimeoutError as exc:
            raise FetchError(f"pod list timed out after {self._timeout}s") from exc
        except ApiException as exc:
            raise FetchError(f"pod list failed with status {exc.status}: {exc.reason}") from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise FetchError(f"pod list transport error: {exc}") from exc

        snapshots = snapshots_from_pods(pod_list.items or [], self._include_init_containers)
        _log.debug("snapshots_fetched", pods=len(pod_list.items or []), containers=len(snapshots))
        return snapshots

    async def close(self) -> None:
        api_client = getattr(self._core_v1, "api_client", None)
        if api_client is not None:
            await api_client.close()


async def build_kubernetes_provider(config: PollerConfig) -> KubernetesSnapshotProvider:
    """Configure cluster access and return a provider.

    In-cluster service-account configuration is tried first, then the local
    kubeconfig.

    Raises:
        ClientConstructionError: neither configuration source is usable.
    """
    try:
        try:
            # load_incluster_config() is synchronous in kubernetes-asyncio
            k8s_config.load_incluster_config()
            _log.info("k8s client configured from in-cluster service account")
        except k8s_config.ConfigException:
            await k8s_config.load_kube_config()
            _log.info("k8s client configured from kubeconfig")
        core_v1 = k8s_client.CoreV1Api(k8s_client.ApiClient())
    except Exception as exc:
        raise ClientConstructionError(f"cannot configure Kubernetes client: {exc}") from exc

    return KubernetesSnapshotProvider(
        core_v1,
        namespace=config.namespace,
        timeout=config.fetch_timeout,
        include_init_containers=config.include_init_containers,
    )
