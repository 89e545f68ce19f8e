"""Run privileged commands directly on cluster nodes.

A short-lived helper pod is pinned to the target node with the host
directory mounted, runs one command to completion and is deleted.
"""

from __future__ import annotations

import shlex
import threading
from collections.abc import Callable
from typing import Any

from logs_collector_manager.integrations.kubernetes.exceptions import (
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
)
from logs_collector_manager.services.kubernetes.base import K8sBaseManager
from logs_collector_manager.utils.polling import PollTimeoutError, RetryPolicy, poll_until

HELPER_POD_PREFIX = "lcm-node-command-"
HELPER_CONTAINER_NAME = "node-command"
HOST_VOLUME_NAME = "host-dir"
TERMINAL_PHASES = frozenset({"Succeeded", "Failed"})


class NodeCommandManager(K8sBaseManager):
    """Executes commands against a node's filesystem through helper pods."""

    _entity_name = "node"

    def remove_dir_contents_on_node(
        self,
        node_name: str,
        dir_path: str,
        namespace: str | None = None,
        *,
        image: str,
        policy: RetryPolicy,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        """Delete everything inside a directory on a node's filesystem.

        The directory itself is kept.

        Args:
            node_name: Node to run on.
            dir_path: Absolute host path.
            namespace: Namespace the helper pod is created in.
            image: Helper image providing ``sh`` and ``rm``.
            policy: Bounds for waiting on the helper pod to finish.
            cancel_event: Set to abandon the wait.
            sleep: Sleep override for tests.
        """
        command = ["sh", "-c", f"rm -rf {shlex.quote(dir_path.rstrip('/'))}/*"]
        self.run_privileged_command_on_node(
            node_name,
            command,
            host_path=dir_path,
            namespace=namespace,
            image=image,
            policy=policy,
            cancel_event=cancel_event,
            sleep=sleep,
        )

    def run_privileged_command_on_node(
        self,
        node_name: str,
        command: list[str],
        *,
        host_path: str,
        namespace: str | None = None,
        image: str,
        policy: RetryPolicy,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        """Run a command in a privileged pod on ``node_name``.

        ``host_path`` is mounted at the same path inside the container. The
        helper pod is always deleted afterwards.

        Raises:
            KubernetesError: The helper pod could not be created or the
                command exited non-zero.
            KubernetesTimeoutError: The command did not finish within ``policy``.
            OperationCancelledError: ``cancel_event`` was set.
        """
        ns = self._resolve_namespace(namespace)
        body = self._build_helper_pod(node_name, command, host_path, ns, image)

        self._log.info("creating_node_command_pod", node=node_name, namespace=ns)
        try:
            created = self._client.core_v1.create_namespaced_pod(namespace=ns, body=body)
        except Exception as e:
            self._handle_api_error(e, "Pod", HELPER_POD_PREFIX, ns)
        pod_name = created.metadata.name

        try:
            phase = self._wait_for_completion(pod_name, ns, policy, cancel_event, sleep)
            if phase != "Succeeded":
                raise KubernetesError(
                    message=f"Command {command!r} failed on node '{node_name}'",
                    resource_type="Pod",
                    resource_name=pod_name,
                    namespace=ns,
                )
            self._log.info("node_command_succeeded", node=node_name, pod=pod_name)
        finally:
            self._delete_helper_pod(pod_name, ns)

    def _wait_for_completion(
        self,
        pod_name: str,
        namespace: str,
        policy: RetryPolicy,
        cancel_event: threading.Event | None,
        sleep: Callable[[float], Any] | None,
    ) -> str:
        phase = "Unknown"

        def _finished() -> bool:
            nonlocal phase
            try:
                pod = self._client.core_v1.read_namespaced_pod(name=pod_name, namespace=namespace)
            except Exception as e:
                self._handle_api_error(e, "Pod", pod_name, namespace)
            phase = (pod.status.phase if pod.status else None) or "Unknown"
            return phase in TERMINAL_PHASES

        try:
            poll_until(
                _finished,
                policy,
                description=f"completion of pod '{pod_name}'",
                cancel_event=cancel_event,
                sleep=sleep,
            )
        except PollTimeoutError as e:
            raise KubernetesTimeoutError(
                message=f"Node command pod '{pod_name}' did not complete",
                timeout_seconds=e.timeout,
                resource_type="Pod",
                resource_name=pod_name,
                namespace=namespace,
            ) from e
        return phase

    def _delete_helper_pod(self, pod_name: str, namespace: str) -> None:
        try:
            self._client.core_v1.delete_namespaced_pod(name=pod_name, namespace=namespace)
            self._log.debug("deleted_node_command_pod", pod=pod_name, namespace=namespace)
        except Exception as e:
            error = self._client.translate_api_exception(e, "Pod", pod_name, namespace)
            if isinstance(error, KubernetesNotFoundError):
                return
            self._log.error(
                "manual_removal_required",
                message=f"ACTION REQUIRED: delete pod '{pod_name}' in namespace '{namespace}'",
                kind="Pod",
                name=pod_name,
                namespace=namespace,
                error=str(error),
            )

    @staticmethod
    def _build_helper_pod(
        node_name: str,
        command: list[str],
        host_path: str,
        namespace: str,
        image: str,
    ) -> Any:
        from kubernetes.client import (
            V1Container,
            V1HostPathVolumeSource,
            V1ObjectMeta,
            V1Pod,
            V1PodSpec,
            V1SecurityContext,
            V1Toleration,
            V1Volume,
            V1VolumeMount,
        )

        return V1Pod(
            metadata=V1ObjectMeta(
                generate_name=HELPER_POD_PREFIX,
                namespace=namespace,
                labels={"app.kubernetes.io/component": "node-command"},
            ),
            spec=V1PodSpec(
                node_name=node_name,
                restart_policy="Never",
                tolerations=[V1Toleration(operator="Exists")],
                containers=[
                    V1Container(
                        name=HELPER_CONTAINER_NAME,
                        image=image,
                        command=command,
                        security_context=V1SecurityContext(privileged=True),
                        volume_mounts=[
                            V1VolumeMount(name=HOST_VOLUME_NAME, mount_path=host_path)
                        ],
                    )
                ],
                volumes=[
                    V1Volume(
                        name=HOST_VOLUME_NAME,
                        host_path=V1HostPathVolumeSource(path=host_path),
                    )
                ],
            ),
        )
