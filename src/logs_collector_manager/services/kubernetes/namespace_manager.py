"""Kubernetes namespace manager."""

from __future__ import annotations

from logs_collector_manager.integrations.kubernetes.models.cluster import NamespaceSummary
from logs_collector_manager.services.kubernetes.base import K8sBaseManager


class NamespaceManager(K8sBaseManager):
    """Create, read and delete namespaces."""

    _entity_name = "namespace"

    def get_namespace(self, name: str) -> NamespaceSummary:
        """Get a namespace by name.

        Args:
            name: Namespace name.

        Returns:
            Namespace summary.
        """
        self._log.debug("getting_namespace", name=name)
        try:
            result = self._client.core_v1.read_namespace(name=name)
            return NamespaceSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "Namespace", name, None)

    def create_namespace(
        self,
        name: str,
        *,
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
    ) -> NamespaceSummary:
        """Create a namespace.

        Args:
            name: Namespace name.
            labels: Namespace labels.
            annotations: Namespace annotations.

        Returns:
            Created namespace summary.
        """
        from kubernetes.client import V1Namespace, V1ObjectMeta

        body = V1Namespace(
            metadata=V1ObjectMeta(name=name, labels=labels, annotations=annotations),
        )

        self._log.info("creating_namespace", name=name)
        try:
            result = self._client.core_v1.create_namespace(body=body)
            self._log.info("created_namespace", name=name)
            return NamespaceSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "Namespace", name, None)

    def delete_namespace(self, name: str) -> None:
        """Delete a namespace and everything left inside it.

        Args:
            name: Namespace name.
        """
        self._log.info("deleting_namespace", name=name)
        try:
            self._client.core_v1.delete_namespace(name=name)
            self._log.info("deleted_namespace", name=name)
        except Exception as e:
            self._handle_api_error(e, "Namespace", name, None)
