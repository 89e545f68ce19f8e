"""In-memory backend for logs collector orchestration tests."""

from __future__ import annotations

from typing import Any

import pytest
from kubernetes.client import (
    V1DaemonSet,
    V1DaemonSetSpec,
    V1LabelSelector,
    V1ObjectMeta,
    V1PodTemplateSpec,
)

from logs_collector_manager.integrations.kubernetes.exceptions import KubernetesNotFoundError
from logs_collector_manager.integrations.kubernetes.models import (
    ConfigMapSummary,
    ContainerStatus,
    DaemonSetSummary,
    NamespaceSummary,
    OwnerReference,
    PodSummary,
    RoleBindingSummary,
    RoleSummary,
    ServiceAccountSummary,
)
from logs_collector_manager.services.logs_collector import LogsCollectorConfig
from logs_collector_manager.services.logs_collector.config import PollingConfig


class FakeCluster:
    """Shared state of the fake backend: live objects, calls and injected failures."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.objects: set[tuple[str, str, str | None]] = set()
        self.failures: dict[str, Exception] = {}

    def record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if method in self.failures:
            raise self.failures[method]

    def add(self, kind: str, name: str, namespace: str | None = None) -> None:
        self.objects.add((kind, name, namespace))

    def remove(self, kind: str, name: str, namespace: str | None = None) -> None:
        if (kind, name, namespace) not in self.objects:
            raise KubernetesNotFoundError(
                resource_type=kind, resource_name=name, namespace=namespace
            )
        self.objects.remove((kind, name, namespace))

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]


class _FakeManager:
    def __init__(self, cluster: FakeCluster) -> None:
        self._cluster = cluster


class FakeNamespaces(_FakeManager):
    def create_namespace(self, name: str, *, labels: Any = None, annotations: Any = None) -> Any:
        self._cluster.record("create_namespace", name)
        self._cluster.add("Namespace", name)
        return NamespaceSummary(name=name, labels=labels, annotations=annotations)

    def delete_namespace(self, name: str) -> None:
        self._cluster.record("delete_namespace", name)
        self._cluster.remove("Namespace", name)


class FakeRBAC(_FakeManager):
    def create_service_account(
        self,
        name: str,
        namespace: str | None = None,
        *,
        labels: Any = None,
        annotations: Any = None,
    ) -> Any:
        self._cluster.record("create_service_account", name, namespace)
        self._cluster.add("ServiceAccount", name, namespace)
        return ServiceAccountSummary(name=name, namespace=namespace, labels=labels)

    def delete_service_account(self, name: str, namespace: str | None = None) -> None:
        self._cluster.record("delete_service_account", name, namespace)
        self._cluster.remove("ServiceAccount", name, namespace)

    def create_cluster_role(
        self, name: str, *, rules: Any = None, labels: Any = None, annotations: Any = None
    ) -> Any:
        self._cluster.record("create_cluster_role", name)
        self._cluster.add("ClusterRole", name)
        self.rules = rules
        return RoleSummary(name=name, labels=labels)

    def delete_cluster_role(self, name: str) -> None:
        self._cluster.record("delete_cluster_role", name)
        self._cluster.remove("ClusterRole", name)

    def create_cluster_role_binding(
        self,
        name: str,
        *,
        cluster_role_name: str,
        service_account_name: str,
        service_account_namespace: str,
        labels: Any = None,
        annotations: Any = None,
    ) -> Any:
        self._cluster.record(
            "create_cluster_role_binding",
            name,
            cluster_role_name,
            service_account_name,
            service_account_namespace,
        )
        self._cluster.add("ClusterRoleBinding", name)
        return RoleBindingSummary(name=name, role_ref_name=cluster_role_name)

    def delete_cluster_role_binding(self, name: str) -> None:
        self._cluster.record("delete_cluster_role_binding", name)
        self._cluster.remove("ClusterRoleBinding", name)


class FakeConfiguration(_FakeManager):
    data: dict[str, str] | None = None

    def create_config_map(
        self,
        name: str,
        namespace: str | None = None,
        *,
        data: dict[str, str] | None = None,
        labels: Any = None,
        annotations: Any = None,
    ) -> Any:
        self._cluster.record("create_config_map", name, namespace)
        self._cluster.add("ConfigMap", name, namespace)
        self.data = data
        return ConfigMapSummary(name=name, namespace=namespace, data_keys=sorted(data or {}))

    def delete_config_map(self, name: str, namespace: str | None = None) -> None:
        self._cluster.record("delete_config_map", name, namespace)
        self._cluster.remove("ConfigMap", name, namespace)


class FakeWorkloads(_FakeManager):
    """Daemon set and pod operations.

    ``pod_batches`` are returned one per listing; the last batch repeats.
    """

    def __init__(self, cluster: FakeCluster) -> None:
        super().__init__(cluster)
        self.pod_batches: list[list[PodSummary]] = [[]]
        self.pod_spec: Any = None
        self.node_selectors: list[dict[str, str] | None] = []

    def create_daemon_set(
        self,
        name: str,
        namespace: str | None = None,
        *,
        pod_spec: Any,
        pod_labels: dict[str, str],
        labels: Any = None,
        annotations: Any = None,
    ) -> DaemonSetSummary:
        self._cluster.record("create_daemon_set", name, namespace)
        self._cluster.add("DaemonSet", name, namespace)
        self.pod_spec = pod_spec
        return DaemonSetSummary.from_k8s_object(
            V1DaemonSet(
                metadata=V1ObjectMeta(name=name, namespace=namespace, labels=labels),
                spec=V1DaemonSetSpec(
                    selector=V1LabelSelector(match_labels=pod_labels),
                    template=V1PodTemplateSpec(
                        metadata=V1ObjectMeta(labels=pod_labels), spec=pod_spec
                    ),
                ),
            )
        )

    def delete_daemon_set(self, name: str, namespace: str | None = None) -> None:
        self._cluster.record("delete_daemon_set", name, namespace)
        self._cluster.remove("DaemonSet", name, namespace)

    def list_pods_for_daemon_set(self, name: str, namespace: str | None = None) -> list[PodSummary]:
        self._cluster.record("list_pods_for_daemon_set", name, namespace)
        if len(self.pod_batches) > 1:
            return self.pod_batches.pop(0)
        return self.pod_batches[0]

    def set_daemon_set_node_selector(
        self, name: str, namespace: str | None = None, *, node_selector: dict[str, str] | None
    ) -> None:
        self._cluster.record("set_daemon_set_node_selector", name, namespace)
        self.node_selectors.append(node_selector)

    def wait_for_pod_termination(
        self, name: str, namespace: str | None = None, **kwargs: Any
    ) -> None:
        self._cluster.record("wait_for_pod_termination", name, namespace)
        self.termination_policy = kwargs["policy"]


class FakeNodes(_FakeManager):
    def remove_dir_contents_on_node(
        self, node_name: str, dir_path: str, namespace: str | None = None, **kwargs: Any
    ) -> None:
        self._cluster.record("remove_dir_contents_on_node", node_name, dir_path, namespace)
        self.image = kwargs["image"]


class FakeBackend:
    """Stands in for KubernetesBackend with the same manager attributes."""

    def __init__(self) -> None:
        self.cluster = FakeCluster()
        self.namespaces = FakeNamespaces(self.cluster)
        self.rbac = FakeRBAC(self.cluster)
        self.configuration = FakeConfiguration(self.cluster)
        self.workloads = FakeWorkloads(self.cluster)
        self.nodes = FakeNodes(self.cluster)


def _make_pod(
    name: str,
    node: str,
    *,
    ready: bool = True,
    daemon_set: str = "logs-collector",
    namespace: str = "lcm-logs-collector-abc",
) -> PodSummary:
    """A daemon set pod summary."""
    return PodSummary(
        name=name,
        namespace=namespace,
        phase="Running",
        node_name=node,
        containers=[ContainerStatus(name="fluent-bit", ready=ready)],
        owner_references=[OwnerReference(kind="DaemonSet", name=daemon_set)],
    )


@pytest.fixture
def make_pod() -> Any:
    """Factory for daemon set pod summaries."""
    return _make_pod


@pytest.fixture
def fake_backend() -> FakeBackend:
    """An empty in-memory cluster."""
    return FakeBackend()


@pytest.fixture
def fast_config() -> LogsCollectorConfig:
    """Config with short waits."""
    return LogsCollectorConfig(
        readiness=PollingConfig(interval=1, max_attempts=30),
        termination=PollingConfig(interval=1, max_attempts=5),
        node_command=PollingConfig(interval=1, max_attempts=5),
    )


@pytest.fixture
def no_sleep() -> list[float]:
    """Collects requested sleeps; pass ``no_sleep.append`` as the sleep function."""
    return []
