"""Kubernetes workload resource manager.

Manages DaemonSets and the Pods they own, including node-selector
rescheduling and bounded waits on pod termination.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from logs_collector_manager.integrations.kubernetes.exceptions import (
    KubernetesNotFoundError,
    KubernetesTimeoutError,
)
from logs_collector_manager.integrations.kubernetes.models.workloads import (
    DaemonSetSummary,
    PodSummary,
)
from logs_collector_manager.services.kubernetes.base import K8sBaseManager
from logs_collector_manager.utils.polling import PollTimeoutError, RetryPolicy, poll_until

if TYPE_CHECKING:
    from kubernetes.client import V1PodSpec


class WorkloadManager(K8sBaseManager):
    """Manager for DaemonSets and their pods."""

    _entity_name = "workload"

    # =========================================================================
    # Pod Operations
    # =========================================================================

    def list_pods(
        self,
        namespace: str | None = None,
        *,
        label_selector: str | None = None,
    ) -> list[PodSummary]:
        """List pods in a namespace.

        Args:
            namespace: Target namespace (uses default if None).
            label_selector: Filter by label selector (e.g., 'app=fluent-bit').

        Returns:
            List of pod summaries.
        """
        ns = self._resolve_namespace(namespace)
        self._log.debug("listing_pods", namespace=ns, label_selector=label_selector)
        try:
            kwargs: dict[str, Any] = {}
            if label_selector:
                kwargs["label_selector"] = label_selector
            result = self._client.core_v1.list_namespaced_pod(namespace=ns, **kwargs)
            pods = [PodSummary.from_k8s_object(pod) for pod in result.items]
            self._log.debug("listed_pods", count=len(pods))
            return pods
        except Exception as e:
            self._handle_api_error(e, "Pod", None, ns)

    def get_pod(self, name: str, namespace: str | None = None) -> PodSummary:
        """Get a single pod by name."""
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_pod", name=name, namespace=ns)
        try:
            result = self._client.core_v1.read_namespaced_pod(name=name, namespace=ns)
            return PodSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "Pod", name, ns)

    def wait_for_pod_termination(
        self,
        name: str,
        namespace: str | None = None,
        *,
        policy: RetryPolicy,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        """Block until a pod no longer exists.

        Args:
            name: Pod name.
            namespace: Pod namespace.
            policy: Polling bounds.
            cancel_event: Set to abandon the wait.
            sleep: Sleep override for tests.

        Raises:
            KubernetesTimeoutError: The pod still existed when the policy ran out.
            OperationCancelledError: ``cancel_event`` was set.
        """
        ns = self._resolve_namespace(namespace)

        def _gone() -> bool:
            try:
                self.get_pod(name, ns)
            except KubernetesNotFoundError:
                return True
            return False

        self._log.info("waiting_for_pod_termination", name=name, namespace=ns)
        try:
            poll_until(
                _gone,
                policy,
                description=f"termination of pod '{name}'",
                cancel_event=cancel_event,
                sleep=sleep,
            )
        except PollTimeoutError as e:
            raise KubernetesTimeoutError(
                message=f"Pod '{name}' was not terminated",
                timeout_seconds=e.timeout,
                resource_type="Pod",
                resource_name=name,
                namespace=ns,
            ) from e
        self._log.info("pod_terminated", name=name, namespace=ns)

    # =========================================================================
    # DaemonSet Operations
    # =========================================================================

    def get_daemon_set(self, name: str, namespace: str | None = None) -> DaemonSetSummary:
        """Get a single daemonset by name."""
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_daemonset", name=name, namespace=ns)
        try:
            result = self._client.apps_v1.read_namespaced_daemon_set(name=name, namespace=ns)
            return DaemonSetSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "DaemonSet", name, ns)

    def create_daemon_set(
        self,
        name: str,
        namespace: str | None = None,
        *,
        pod_spec: V1PodSpec,
        pod_labels: dict[str, str],
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
    ) -> DaemonSetSummary:
        """Create a daemonset running the given pod spec on every eligible node.

        Args:
            name: DaemonSet name.
            namespace: Target namespace.
            pod_spec: Pod template spec.
            pod_labels: Labels for the pod template; also the match selector.
            labels: Labels for the daemonset object.
            annotations: Annotations for the daemonset object.

        Returns:
            Created daemonset summary.
        """
        from kubernetes.client import (
            V1DaemonSet,
            V1DaemonSetSpec,
            V1LabelSelector,
            V1ObjectMeta,
            V1PodTemplateSpec,
        )

        ns = self._resolve_namespace(namespace)
        body = V1DaemonSet(
            metadata=V1ObjectMeta(
                name=name, namespace=ns, labels=labels or pod_labels, annotations=annotations
            ),
            spec=V1DaemonSetSpec(
                selector=V1LabelSelector(match_labels=pod_labels),
                template=V1PodTemplateSpec(
                    metadata=V1ObjectMeta(labels=pod_labels),
                    spec=pod_spec,
                ),
            ),
        )

        self._log.info("creating_daemonset", name=name, namespace=ns)
        try:
            result = self._client.apps_v1.create_namespaced_daemon_set(namespace=ns, body=body)
            self._log.info("created_daemonset", name=name, namespace=ns)
            return DaemonSetSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "DaemonSet", name, ns)

    def delete_daemon_set(self, name: str, namespace: str | None = None) -> None:
        """Delete a daemonset."""
        ns = self._resolve_namespace(namespace)
        self._log.info("deleting_daemonset", name=name, namespace=ns)
        try:
            self._client.apps_v1.delete_namespaced_daemon_set(name=name, namespace=ns)
            self._log.info("deleted_daemonset", name=name, namespace=ns)
        except Exception as e:
            self._handle_api_error(e, "DaemonSet", name, ns)

    def set_daemon_set_node_selector(
        self,
        name: str,
        namespace: str | None = None,
        *,
        node_selector: dict[str, str] | None,
    ) -> DaemonSetSummary:
        """Replace the pod template node selector of a daemonset.

        The daemonset is re-read and replaced as a whole; a merge patch can add
        selector keys but cannot clear them. An empty or None selector lets the
        daemonset schedule on every eligible node again.

        Args:
            name: DaemonSet name.
            namespace: Target namespace.
            node_selector: New node selector.

        Returns:
            Updated daemonset summary.
        """
        ns = self._resolve_namespace(namespace)
        self._log.info(
            "setting_daemonset_node_selector",
            name=name,
            namespace=ns,
            node_selector=node_selector,
        )
        try:
            current = self._client.apps_v1.read_namespaced_daemon_set(name=name, namespace=ns)
            current.spec.template.spec.node_selector = node_selector or None
            result = self._client.apps_v1.replace_namespaced_daemon_set(
                name=name, namespace=ns, body=current
            )
            self._log.info("set_daemonset_node_selector", name=name, namespace=ns)
            return DaemonSetSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "DaemonSet", name, ns)

    def list_pods_for_daemon_set(
        self, name: str, namespace: str | None = None
    ) -> list[PodSummary]:
        """List the pods currently managed by a daemonset.

        Pods are selected by the daemonset's match labels and then narrowed
        to those whose owner reference names the daemonset.

        Args:
            name: DaemonSet name.
            namespace: Target namespace.

        Returns:
            Managed pod summaries.
        """
        ns = self._resolve_namespace(namespace)
        daemon_set = self.get_daemon_set(name, ns)
        pods = self.list_pods(ns, label_selector=daemon_set.label_selector or None)
        managed = [p for p in pods if p.is_owned_by("DaemonSet", name)]
        self._log.debug(
            "listed_daemonset_pods", name=name, namespace=ns, count=len(managed)
        )
        return managed
