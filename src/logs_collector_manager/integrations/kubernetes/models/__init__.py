"""Summary models for the Kubernetes resources the collector manages."""

from logs_collector_manager.integrations.kubernetes.models.base import (
    K8sEntityBase,
    OwnerReference,
)
from logs_collector_manager.integrations.kubernetes.models.cluster import NamespaceSummary
from logs_collector_manager.integrations.kubernetes.models.configuration import (
    ConfigMapSummary,
)
from logs_collector_manager.integrations.kubernetes.models.rbac import (
    PolicyRule,
    RoleBindingSummary,
    RoleSummary,
    ServiceAccountSummary,
    Subject,
)
from logs_collector_manager.integrations.kubernetes.models.workloads import (
    ContainerPortSummary,
    ContainerStatus,
    DaemonSetSummary,
    PodSummary,
)

__all__ = [
    "ConfigMapSummary",
    "ContainerPortSummary",
    "ContainerStatus",
    "DaemonSetSummary",
    "K8sEntityBase",
    "NamespaceSummary",
    "OwnerReference",
    "PodSummary",
    "PolicyRule",
    "RoleBindingSummary",
    "RoleSummary",
    "ServiceAccountSummary",
    "Subject",
]
