"""Kubernetes backend facade.

Groups the per-kind managers behind one object so orchestration code
receives a single collaborator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from logs_collector_manager.services.kubernetes.configuration_manager import (
    ConfigurationManager,
)
from logs_collector_manager.services.kubernetes.namespace_manager import NamespaceManager
from logs_collector_manager.services.kubernetes.node_manager import NodeCommandManager
from logs_collector_manager.services.kubernetes.rbac_manager import RBACManager
from logs_collector_manager.services.kubernetes.workload_manager import WorkloadManager

if TYPE_CHECKING:
    from logs_collector_manager.integrations.kubernetes.client import KubernetesClient

logger = structlog.get_logger()


class KubernetesBackend:
    """All resource operations needed to run the logs collector.

    Example:
        >>> backend = KubernetesBackend(client)
        >>> backend.namespaces.create_namespace("lcm-0a1b")
        >>> backend.workloads.list_pods_for_daemon_set("fluent-bit", "lcm-0a1b")
    """

    def __init__(self, client: KubernetesClient) -> None:
        self._client = client
        self.namespaces = NamespaceManager(client)
        self.rbac = RBACManager(client)
        self.configuration = ConfigurationManager(client)
        self.workloads = WorkloadManager(client)
        self.nodes = NodeCommandManager(client)
        logger.debug("kubernetes_backend_initialized", context=client.current_context)

    @property
    def client(self) -> KubernetesClient:
        """The underlying API client."""
        return self._client

    def close(self) -> None:
        """Close the underlying client."""
        self._client.close()

    def __enter__(self) -> KubernetesBackend:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
