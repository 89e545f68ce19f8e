"""Kubernetes resource managers.

Per-kind managers over ``KubernetesClient`` and the ``KubernetesBackend``
facade that groups them.
"""

from logs_collector_manager.services.kubernetes.backend import KubernetesBackend
from logs_collector_manager.services.kubernetes.base import K8sBaseManager
from logs_collector_manager.services.kubernetes.configuration_manager import (
    ConfigurationManager,
)
from logs_collector_manager.services.kubernetes.namespace_manager import NamespaceManager
from logs_collector_manager.services.kubernetes.node_manager import NodeCommandManager
from logs_collector_manager.services.kubernetes.rbac_manager import RBACManager
from logs_collector_manager.services.kubernetes.workload_manager import WorkloadManager

__all__ = [
    "ConfigurationManager",
    "K8sBaseManager",
    "KubernetesBackend",
    "NamespaceManager",
    "NodeCommandManager",
    "RBACManager",
    "WorkloadManager",
]
