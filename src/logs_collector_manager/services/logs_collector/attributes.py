"""Names, labels and annotations for the objects of a deployment."""

from __future__ import annotations

import re
from typing import Protocol

from logs_collector_manager.services.logs_collector.constants import (
    COMPONENT_LABEL,
    COMPONENT_VALUE,
    GUID_LABEL,
    LABEL_PREFIX,
    MANAGED_BY_LABEL,
    MANAGED_BY_VALUE,
    RESOURCE_TYPE_LABEL,
)
from logs_collector_manager.services.logs_collector.models import (
    ObjectAttributes,
    ResourceHandle,
    ResourceKind,
    ResourceSet,
)

_GUID_PATTERN = re.compile(r"^[a-z0-9]{1,32}$")

# Resource-type label values
_ROLE_VALUES = {
    ResourceKind.NAMESPACE: "logs-collector-namespace",
    ResourceKind.SERVICE_ACCOUNT: "logs-collector-service-account",
    ResourceKind.CLUSTER_ROLE: "logs-collector-cluster-role",
    ResourceKind.CLUSTER_ROLE_BINDING: "logs-collector-cluster-role-binding",
    ResourceKind.CONFIG_MAP: "logs-collector-config",
    ResourceKind.DAEMON_SET: "logs-collector",
}


class ObjectAttributesProvider(Protocol):
    """Derives deterministic object attributes from a deployment identity."""

    def attributes_for(self, kind: ResourceKind, guid: str) -> ObjectAttributes: ...


class DefaultObjectAttributesProvider:
    """Default naming scheme.

    Cluster-scoped objects and the namespace carry the guid in their name so
    two deployments never collide; objects inside the namespace use fixed
    names.
    """

    def __init__(self, prefix: str = "lcm") -> None:
        self._prefix = prefix

    def attributes_for(self, kind: ResourceKind, guid: str) -> ObjectAttributes:
        if not _GUID_PATTERN.match(guid):
            raise ValueError(f"Invalid logs collector guid '{guid}'")

        if kind is ResourceKind.NAMESPACE:
            name = f"{self._prefix}-logs-collector-{guid}"
        elif kind.namespaced:
            name = _ROLE_VALUES[kind]
        else:
            name = f"{self._prefix}-{_ROLE_VALUES[kind]}-{guid}"

        labels = {
            MANAGED_BY_LABEL: MANAGED_BY_VALUE,
            COMPONENT_LABEL: COMPONENT_VALUE,
            GUID_LABEL: guid,
            RESOURCE_TYPE_LABEL: _ROLE_VALUES[kind],
        }
        annotations = {f"{LABEL_PREFIX}/object-kind": str(kind)}
        return ObjectAttributes(name=name, labels=labels, annotations=annotations)


def build_resource_set(provider: ObjectAttributesProvider, guid: str) -> ResourceSet:
    """Resolve every handle of the deployment identified by ``guid``."""
    namespace_attrs = provider.attributes_for(ResourceKind.NAMESPACE, guid)
    handles: dict[ResourceKind, ResourceHandle] = {}
    for kind in ResourceKind:
        attrs = provider.attributes_for(kind, guid)
        handles[kind] = ResourceHandle(
            kind=kind,
            name=attrs.name,
            namespace=namespace_attrs.name if kind.namespaced else None,
            labels=attrs.labels,
            annotations=attrs.annotations,
        )
    return ResourceSet(
        guid=guid,
        namespace=handles[ResourceKind.NAMESPACE],
        service_account=handles[ResourceKind.SERVICE_ACCOUNT],
        cluster_role=handles[ResourceKind.CLUSTER_ROLE],
        cluster_role_binding=handles[ResourceKind.CLUSTER_ROLE_BINDING],
        config_map=handles[ResourceKind.CONFIG_MAP],
        daemon_set=handles[ResourceKind.DAEMON_SET],
    )
