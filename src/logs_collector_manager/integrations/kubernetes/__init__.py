"""Kubernetes integration - API client and configuration models."""

from logs_collector_manager.integrations.kubernetes.client import KubernetesClient
from logs_collector_manager.integrations.kubernetes.config import (
    ClusterConfig,
    KubernetesAuthConfig,
    KubernetesDefaultsConfig,
    KubernetesPluginConfig,
)
from logs_collector_manager.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)

__all__ = [
    "ClusterConfig",
    "KubernetesAuthConfig",
    "KubernetesAuthError",
    "KubernetesClient",
    "KubernetesConflictError",
    "KubernetesConnectionError",
    "KubernetesDefaultsConfig",
    "KubernetesError",
    "KubernetesNotFoundError",
    "KubernetesPluginConfig",
    "KubernetesTimeoutError",
    "KubernetesValidationError",
]
