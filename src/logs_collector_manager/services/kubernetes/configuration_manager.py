"""Kubernetes ConfigMap manager."""

from __future__ import annotations

from logs_collector_manager.integrations.kubernetes.models.configuration import (
    ConfigMapSummary,
)
from logs_collector_manager.services.kubernetes.base import K8sBaseManager


class ConfigurationManager(K8sBaseManager):
    """Create, read and delete ConfigMaps."""

    _entity_name = "configmap"

    def get_config_map(self, name: str, namespace: str | None = None) -> ConfigMapSummary:
        """Get a configmap by name."""
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_configmap", name=name, namespace=ns)
        try:
            result = self._client.core_v1.read_namespaced_config_map(name=name, namespace=ns)
            return ConfigMapSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "ConfigMap", name, ns)

    def get_config_map_data(self, name: str, namespace: str | None = None) -> dict[str, str]:
        """Get the data payload of a configmap."""
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_configmap_data", name=name, namespace=ns)
        try:
            result = self._client.core_v1.read_namespaced_config_map(name=name, namespace=ns)
            return dict(result.data or {})
        except Exception as e:
            self._handle_api_error(e, "ConfigMap", name, ns)

    def create_config_map(
        self,
        name: str,
        namespace: str | None = None,
        *,
        data: dict[str, str] | None = None,
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
    ) -> ConfigMapSummary:
        """Create a configmap.

        Args:
            name: ConfigMap name.
            namespace: Target namespace.
            data: Key-value payload.
            labels: ConfigMap labels.
            annotations: ConfigMap annotations.

        Returns:
            Created configmap summary.
        """
        from kubernetes.client import V1ConfigMap, V1ObjectMeta

        ns = self._resolve_namespace(namespace)
        body = V1ConfigMap(
            metadata=V1ObjectMeta(
                name=name, namespace=ns, labels=labels, annotations=annotations
            ),
            data=data,
        )

        self._log.info("creating_configmap", name=name, namespace=ns, keys=sorted(data or {}))
        try:
            result = self._client.core_v1.create_namespaced_config_map(namespace=ns, body=body)
            self._log.info("created_configmap", name=name, namespace=ns)
            return ConfigMapSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "ConfigMap", name, ns)

    def delete_config_map(self, name: str, namespace: str | None = None) -> None:
        """Delete a configmap."""
        ns = self._resolve_namespace(namespace)
        self._log.info("deleting_configmap", name=name, namespace=ns)
        try:
            self._client.core_v1.delete_namespaced_config_map(name=name, namespace=ns)
            self._log.info("deleted_configmap", name=name, namespace=ns)
        except Exception as e:
            self._handle_api_error(e, "ConfigMap", name, ns)
