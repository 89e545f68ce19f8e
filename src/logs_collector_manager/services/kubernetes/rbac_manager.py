"""Kubernetes RBAC resource manager.

Manages ServiceAccounts, ClusterRoles and ClusterRoleBindings.
"""

from __future__ import annotations

from typing import Any

from logs_collector_manager.integrations.kubernetes.models.rbac import (
    RoleBindingSummary,
    RoleSummary,
    ServiceAccountSummary,
)
from logs_collector_manager.services.kubernetes.base import K8sBaseManager

RBAC_API_GROUP = "rbac.authorization.k8s.io"


class RBACManager(K8sBaseManager):
    """Manager for the RBAC resources a cluster-wide agent needs."""

    _entity_name = "rbac"

    # =========================================================================
    # ServiceAccount Operations
    # =========================================================================

    def get_service_account(self, name: str, namespace: str | None = None) -> ServiceAccountSummary:
        """Get a service account by name."""
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_service_account", name=name, namespace=ns)
        try:
            result = self._client.core_v1.read_namespaced_service_account(name=name, namespace=ns)
            return ServiceAccountSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "ServiceAccount", name, ns)

    def create_service_account(
        self,
        name: str,
        namespace: str | None = None,
        *,
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
    ) -> ServiceAccountSummary:
        """Create a service account.

        Args:
            name: ServiceAccount name.
            namespace: Target namespace.
            labels: ServiceAccount labels.
            annotations: ServiceAccount annotations.

        Returns:
            Created service account summary.
        """
        from kubernetes.client import V1ObjectMeta, V1ServiceAccount

        ns = self._resolve_namespace(namespace)
        body = V1ServiceAccount(
            metadata=V1ObjectMeta(
                name=name, namespace=ns, labels=labels, annotations=annotations
            ),
        )

        self._log.info("creating_service_account", name=name, namespace=ns)
        try:
            result = self._client.core_v1.create_namespaced_service_account(
                namespace=ns, body=body
            )
            self._log.info("created_service_account", name=name, namespace=ns)
            return ServiceAccountSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "ServiceAccount", name, ns)

    def delete_service_account(self, name: str, namespace: str | None = None) -> None:
        """Delete a service account."""
        ns = self._resolve_namespace(namespace)
        self._log.info("deleting_service_account", name=name, namespace=ns)
        try:
            self._client.core_v1.delete_namespaced_service_account(name=name, namespace=ns)
            self._log.info("deleted_service_account", name=name, namespace=ns)
        except Exception as e:
            self._handle_api_error(e, "ServiceAccount", name, ns)

    # =========================================================================
    # ClusterRole Operations
    # =========================================================================

    def get_cluster_role(self, name: str) -> RoleSummary:
        """Get a cluster role by name."""
        self._log.debug("getting_cluster_role", name=name)
        try:
            result = self._client.rbac_v1.read_cluster_role(name=name)
            return RoleSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "ClusterRole", name, None)

    def create_cluster_role(
        self,
        name: str,
        *,
        rules: list[dict[str, Any]] | None = None,
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
    ) -> RoleSummary:
        """Create a cluster role.

        Args:
            name: ClusterRole name.
            rules: Policy rules as dicts with 'verbs', 'api_groups', 'resources'.
            labels: ClusterRole labels.
            annotations: ClusterRole annotations.

        Returns:
            Created role summary.
        """
        from kubernetes.client import V1ClusterRole, V1ObjectMeta, V1PolicyRule

        policy_rules = [
            V1PolicyRule(
                verbs=r.get("verbs", []),
                api_groups=r.get("api_groups", [""]),
                resources=r.get("resources", []),
                resource_names=r.get("resource_names"),
            )
            for r in (rules or [])
        ]

        body = V1ClusterRole(
            metadata=V1ObjectMeta(name=name, labels=labels, annotations=annotations),
            rules=policy_rules or None,
        )

        self._log.info("creating_cluster_role", name=name, rules=len(policy_rules))
        try:
            result = self._client.rbac_v1.create_cluster_role(body=body)
            self._log.info("created_cluster_role", name=name)
            return RoleSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "ClusterRole", name, None)

    def delete_cluster_role(self, name: str) -> None:
        """Delete a cluster role."""
        self._log.info("deleting_cluster_role", name=name)
        try:
            self._client.rbac_v1.delete_cluster_role(name=name)
            self._log.info("deleted_cluster_role", name=name)
        except Exception as e:
            self._handle_api_error(e, "ClusterRole", name, None)

    # =========================================================================
    # ClusterRoleBinding Operations
    # =========================================================================

    def get_cluster_role_binding(self, name: str) -> RoleBindingSummary:
        """Get a cluster role binding by name."""
        self._log.debug("getting_cluster_role_binding", name=name)
        try:
            result = self._client.rbac_v1.read_cluster_role_binding(name=name)
            return RoleBindingSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "ClusterRoleBinding", name, None)

    def create_cluster_role_binding(
        self,
        name: str,
        *,
        cluster_role_name: str,
        service_account_name: str,
        service_account_namespace: str,
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
    ) -> RoleBindingSummary:
        """Bind a cluster role to a single service account.

        Args:
            name: ClusterRoleBinding name.
            cluster_role_name: Name of the ClusterRole being granted.
            service_account_name: Subject service account.
            service_account_namespace: Namespace of the subject service account.
            labels: ClusterRoleBinding labels.
            annotations: ClusterRoleBinding annotations.

        Returns:
            Created cluster role binding summary.
        """
        from kubernetes.client import (
            RbacV1Subject,
            V1ClusterRoleBinding,
            V1ObjectMeta,
            V1RoleRef,
        )

        body = V1ClusterRoleBinding(
            metadata=V1ObjectMeta(name=name, labels=labels, annotations=annotations),
            role_ref=V1RoleRef(
                kind="ClusterRole",
                name=cluster_role_name,
                api_group=RBAC_API_GROUP,
            ),
            subjects=[
                RbacV1Subject(
                    kind="ServiceAccount",
                    name=service_account_name,
                    namespace=service_account_namespace,
                ),
            ],
        )

        self._log.info(
            "creating_cluster_role_binding",
            name=name,
            cluster_role=cluster_role_name,
            service_account=service_account_name,
        )
        try:
            result = self._client.rbac_v1.create_cluster_role_binding(body=body)
            self._log.info("created_cluster_role_binding", name=name)
            return RoleBindingSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "ClusterRoleBinding", name, None)

    def delete_cluster_role_binding(self, name: str) -> None:
        """Delete a cluster role binding."""
        self._log.info("deleting_cluster_role_binding", name=name)
        try:
            self._client.rbac_v1.delete_cluster_role_binding(name=name)
            self._log.info("deleted_cluster_role_binding", name=name)
        except Exception as e:
            self._handle_api_error(e, "ClusterRoleBinding", name, None)
