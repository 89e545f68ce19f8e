"""Provision and tear down logs collector deployments.

A deployment is six objects created strictly in dependency order:
namespace, service account, cluster role, cluster role binding, config map
and daemon set. Each creation registers its removal on a rollback stack.
If any creation fails, or no replica becomes ready, the stack is unwound
and nothing is left behind. Only after readiness is confirmed is the stack
disarmed and the teardown handed to the caller.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from logs_collector_manager.integrations.kubernetes.exceptions import KubernetesConflictError
from logs_collector_manager.services.logs_collector.attributes import (
    DefaultObjectAttributesProvider,
    ObjectAttributesProvider,
    build_resource_set,
)
from logs_collector_manager.services.logs_collector.config import LogsCollectorConfig
from logs_collector_manager.services.logs_collector.constants import HTTP_HEALTH_CHECK_ENDPOINT
from logs_collector_manager.services.logs_collector.exceptions import (
    IdentityGenerationError,
    ProvisionError,
)
from logs_collector_manager.services.logs_collector.models import (
    DaemonHealth,
    ProvisionParameters,
    ProvisionResult,
    ResourceHandle,
    ResourceKind,
    ResourceSet,
)
from logs_collector_manager.services.logs_collector.pod_template import (
    COLLECTOR_CLUSTER_ROLE_RULES,
    collector_pod_spec,
)
from logs_collector_manager.services.logs_collector.readiness import ReadinessWaiter
from logs_collector_manager.services.logs_collector.renderer import render_config_files
from logs_collector_manager.services.logs_collector.rollback import (
    Compensation,
    RollbackStack,
    Teardown,
)

if TYPE_CHECKING:
    from logs_collector_manager.services.kubernetes.backend import KubernetesBackend

logger = structlog.get_logger()

READINESS_STEP = "readiness"


def _new_guid() -> str:
    return uuid.uuid4().hex


class LogsCollectorProvisioner:
    """Creates, inspects and removes logs collector deployments.

    Example:
        >>> provisioner = LogsCollectorProvisioner(backend, LogsCollectorConfig())
        >>> result = provisioner.provision(
        ...     ProvisionParameters(aggregator_host="agg.local", aggregator_port=9000)
        ... )
        >>> result.teardown()
    """

    def __init__(
        self,
        backend: KubernetesBackend,
        config: LogsCollectorConfig | None = None,
        *,
        attributes_provider: ObjectAttributesProvider | None = None,
        id_factory: Callable[[], str] = _new_guid,
        readiness_waiter: ReadinessWaiter | None = None,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        self._backend = backend
        self._config = config or LogsCollectorConfig()
        self._attributes = attributes_provider or DefaultObjectAttributesProvider()
        self._id_factory = id_factory
        self._waiter = readiness_waiter or ReadinessWaiter(
            backend.workloads, self._config.readiness.to_policy(), sleep=sleep
        )
        self._log = logger.bind(service="logs_collector")

    @property
    def http_health_endpoint(self) -> str:
        """HTTP path the collector answers health checks on."""
        return HTTP_HEALTH_CHECK_ENDPOINT

    # =========================================================================
    # Provisioning
    # =========================================================================

    def provision(
        self,
        params: ProvisionParameters,
        *,
        cancel_event: threading.Event | None = None,
    ) -> ProvisionResult:
        """Create a new deployment and wait for it to become ready.

        Args:
            params: Aggregator endpoint, listening ports and collector rules.
            cancel_event: Set to abandon the readiness wait; the deployment
                is then rolled back.

        Returns:
            The committed deployment and its teardown.

        Raises:
            IdentityGenerationError: No identity could be generated; nothing
                was created.
            ProvisionError: A step failed; everything created was removed
                except the objects listed in ``orphaned_resources``.
        """
        guid = self._new_identity()
        resource_set = self.resource_set_for(guid)
        log = self._log.bind(logs_collector_guid=guid)
        stack = RollbackStack(log)
        step = str(ResourceKind.NAMESPACE)
        created: dict[ResourceKind, Any] = {}

        log.info("provisioning_logs_collector", namespace=resource_set.namespace.name)
        try:
            for handle in resource_set.handles():
                step = str(handle.kind)
                created[handle.kind] = self._create(handle, resource_set, params)
                stack.push(handle, self._remover(handle))

            step = READINESS_STEP
            health = self._waiter.wait_until_ready(
                resource_set.daemon_set.name,
                resource_set.namespace.name,
                cancel_event=cancel_event,
            )
        except Exception as e:
            log.error("provisioning_failed", step=step, error=str(e))
            orphans = stack.unwind()
            raise ProvisionError(
                "Failed to provision logs collector",
                cause=e,
                step=step,
                guid=guid,
                orphaned_resources=orphans,
            ) from e

        teardown = stack.disarm()
        log.info("provisioned_logs_collector", ready_pods=health.ready_pod_count)
        return ProvisionResult(
            resource_set=resource_set,
            teardown=teardown,
            daemon_set=created[ResourceKind.DAEMON_SET],
            health=health,
            http_health_endpoint=self.http_health_endpoint,
        )

    def _new_identity(self) -> str:
        try:
            guid = self._id_factory()
        except Exception as e:
            raise IdentityGenerationError(f"Failed to generate logs collector guid: {e}") from e
        if not guid:
            raise IdentityGenerationError("Generated logs collector guid is empty")
        return guid

    def _create(
        self, handle: ResourceHandle, resource_set: ResourceSet, params: ProvisionParameters
    ) -> Any:
        backend = self._backend
        meta: dict[str, Any] = {"labels": handle.labels, "annotations": handle.annotations}

        match handle.kind:
            case ResourceKind.NAMESPACE:
                return backend.namespaces.create_namespace(handle.name, **meta)
            case ResourceKind.SERVICE_ACCOUNT:
                return backend.rbac.create_service_account(handle.name, handle.namespace, **meta)
            case ResourceKind.CLUSTER_ROLE:
                return backend.rbac.create_cluster_role(
                    handle.name, rules=COLLECTOR_CLUSTER_ROLE_RULES, **meta
                )
            case ResourceKind.CLUSTER_ROLE_BINDING:
                return backend.rbac.create_cluster_role_binding(
                    handle.name,
                    cluster_role_name=resource_set.cluster_role.name,
                    service_account_name=resource_set.service_account.name,
                    service_account_namespace=resource_set.namespace.name,
                    **meta,
                )
            case ResourceKind.CONFIG_MAP:
                data = render_config_files(
                    http_port=params.http_port_number,
                    aggregator_host=params.aggregator_host,
                    aggregator_port=params.aggregator_port,
                    filters=params.filters,
                    parsers=params.parsers,
                )
                self._log.debug(
                    "rendered_collector_config",
                    filters=len(params.filters),
                    parsers=len(params.parsers),
                    sizes={key: len(text) for key, text in data.items()},
                )
                return backend.configuration.create_config_map(
                    handle.name, handle.namespace, data=data, **meta
                )
            case ResourceKind.DAEMON_SET:
                pod_spec = collector_pod_spec(
                    image=self._config.collector_image,
                    service_account_name=resource_set.service_account.name,
                    config_map_name=resource_set.config_map.name,
                    port_specs=params.port_specs(),
                )
                return backend.workloads.create_daemon_set(
                    handle.name,
                    handle.namespace,
                    pod_spec=pod_spec,
                    pod_labels=handle.labels,
                    **meta,
                )
        raise ValueError(f"Unknown resource kind {handle.kind}")

    def _remover(self, handle: ResourceHandle) -> Callable[[], None]:
        backend = self._backend
        match handle.kind:
            case ResourceKind.NAMESPACE:
                return lambda: self._remove_namespace(handle.name)
            case ResourceKind.SERVICE_ACCOUNT:
                return lambda: backend.rbac.delete_service_account(handle.name, handle.namespace)
            case ResourceKind.CLUSTER_ROLE:
                return lambda: backend.rbac.delete_cluster_role(handle.name)
            case ResourceKind.CLUSTER_ROLE_BINDING:
                return lambda: backend.rbac.delete_cluster_role_binding(handle.name)
            case ResourceKind.CONFIG_MAP:
                return lambda: backend.configuration.delete_config_map(
                    handle.name, handle.namespace
                )
            case ResourceKind.DAEMON_SET:
                return lambda: backend.workloads.delete_daemon_set(handle.name, handle.namespace)
        raise ValueError(f"Unknown resource kind {handle.kind}")

    def _remove_namespace(self, name: str) -> None:
        try:
            self._backend.namespaces.delete_namespace(name)
        except KubernetesConflictError:
            # Already terminating
            self._log.debug("namespace_already_terminating", name=name)

    # =========================================================================
    # Existing deployments
    # =========================================================================

    def resource_set_for(self, guid: str) -> ResourceSet:
        """Resolve the objects of the deployment identified by ``guid``."""
        return build_resource_set(self._attributes, guid)

    def build_teardown(self, resource_set: ResourceSet) -> Teardown:
        """A teardown for a deployment created earlier, possibly by another process."""
        log = self._log.bind(logs_collector_guid=resource_set.guid)
        return Teardown(
            [Compensation(h, self._remover(h)) for h in resource_set.handles()],
            log,
        )

    def get_health(self, resource_set: ResourceSet) -> DaemonHealth:
        """Current health of a deployment's daemon set."""
        return self._waiter.health(resource_set.daemon_set.name, resource_set.namespace.name)
