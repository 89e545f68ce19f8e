"""Data models for logs collector deployments."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

if TYPE_CHECKING:
    from logs_collector_manager.integrations.kubernetes.models.workloads import (
        DaemonSetSummary,
        PodSummary,
    )
    from logs_collector_manager.services.logs_collector.rollback import Teardown

# IANA_SVC_NAME: what Kubernetes accepts as a container port name
_PORT_ID_PATTERN = re.compile(r"^(?=.*[a-z])[a-z0-9]([a-z0-9-]*[a-z0-9])?$")
PORT_ID_MAX_LENGTH = 15


def validate_port_id(port_id: str) -> str:
    """Check that ``port_id`` is usable as a Kubernetes container port name."""
    if (
        len(port_id) > PORT_ID_MAX_LENGTH
        or not _PORT_ID_PATTERN.match(port_id)
        or "--" in port_id
    ):
        raise ValueError(
            f"Port id '{port_id}' must be at most {PORT_ID_MAX_LENGTH} characters of "
            "lowercase letters, digits and single '-', containing at least one letter"
        )
    return port_id


# =============================================================================
# Collector rules
# =============================================================================


def _single_line(value: str) -> str:
    # Rule values are written verbatim into config stanzas
    if "\n" in value or "\r" in value:
        raise ValueError("must not contain line breaks")
    return value


class FilterParam(BaseModel):
    """One ``key value`` line of a filter stanza."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1)
    value: str

    @field_validator("key", "value")
    @classmethod
    def validate_single_line(cls, v: str) -> str:
        """Reject values that would break out of the stanza line."""
        return _single_line(v)


class Filter(BaseModel):
    """A collector filter applied to matching records, in declaration order."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Filter plugin name, e.g. 'grep'")
    match: str = Field(default="*", description="Tag pattern the filter applies to")
    params: list[FilterParam] = Field(default_factory=list)

    @field_validator("name", "match")
    @classmethod
    def validate_single_line(cls, v: str) -> str:
        """Reject values that would break out of the stanza line."""
        return _single_line(v)


class Parser(BaseModel):
    """A collector parser definition.

    Only ``name`` is required; every other field is passed through as a
    parser setting (``format``, ``regex``, ``time_key`` ...).

    Example:
        >>> Parser(name="json", format="json").settings()
        [('Name', 'json'), ('Format', 'json')]
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    name: str = Field(min_length=1)

    @model_validator(mode="after")
    def validate_single_line_settings(self) -> Parser:
        """Every setting key and value must fit on one stanza line."""
        _single_line(self.name)
        for key, value in (self.model_extra or {}).items():
            _single_line(key)
            _single_line(str(value))
        return self

    def settings(self) -> list[tuple[str, str]]:
        """The parser's settings as ``(Key, value)`` pairs, ``Name`` first."""
        pairs = [("Name", self.name)]
        for key, value in (self.model_extra or {}).items():
            pairs.append((_setting_key(key), str(value)))
        return pairs


def _setting_key(key: str) -> str:
    return "_".join(part.capitalize() for part in key.split("_"))


# =============================================================================
# Ports
# =============================================================================


class TransportProtocol(StrEnum):
    """Transport protocols a container port can use."""

    TCP = "TCP"
    UDP = "UDP"
    SCTP = "SCTP"


class PortSpec(BaseModel):
    """A port the collector listens on."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1, le=65535)
    transport_protocol: TransportProtocol = TransportProtocol.TCP
    application_protocol: str | None = "http"
    wait: float | None = Field(default=None, description="Availability wait, None to skip")


# =============================================================================
# Provisioning inputs
# =============================================================================


class ProvisionParameters(BaseModel):
    """Everything needed to provision one logs collector deployment."""

    model_config = ConfigDict(frozen=True)

    aggregator_host: str = Field(min_length=1)
    aggregator_port: int = Field(ge=1, le=65535)
    http_port_number: int = Field(default=2020, ge=1, le=65535)
    tcp_port_number: int = Field(default=24224, ge=1, le=65535)
    http_port_id: str = "http"
    tcp_port_id: str = "tcp"
    filters: list[Filter] = Field(default_factory=list)
    parsers: list[Parser] = Field(default_factory=list)

    @field_validator("http_port_id", "tcp_port_id")
    @classmethod
    def validate_port_ids(cls, v: str) -> str:
        """Validate port ids are valid container port names."""
        return validate_port_id(v)

    @model_validator(mode="after")
    def validate_distinct_ports(self) -> ProvisionParameters:
        """The two listening ports must differ in both number and id."""
        if self.http_port_number == self.tcp_port_number:
            raise ValueError("http and tcp port numbers must differ")
        if self.http_port_id == self.tcp_port_id:
            raise ValueError("http and tcp port ids must differ")
        return self

    def port_specs(self) -> dict[str, PortSpec]:
        """Both listening ports keyed by port id, TCP first."""
        return {
            self.tcp_port_id: PortSpec(number=self.tcp_port_number),
            self.http_port_id: PortSpec(number=self.http_port_number),
        }


class ObjectAttributes(BaseModel):
    """Name, labels and annotations for one Kubernetes object."""

    model_config = ConfigDict(frozen=True)

    name: str
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)


# =============================================================================
# Resource handles
# =============================================================================


class ResourceKind(StrEnum):
    """The kinds of object a deployment consists of, in creation order."""

    NAMESPACE = "Namespace"
    SERVICE_ACCOUNT = "ServiceAccount"
    CLUSTER_ROLE = "ClusterRole"
    CLUSTER_ROLE_BINDING = "ClusterRoleBinding"
    CONFIG_MAP = "ConfigMap"
    DAEMON_SET = "DaemonSet"

    @property
    def namespaced(self) -> bool:
        """True for kinds that live inside a namespace."""
        return self in _NAMESPACED_KINDS


_NAMESPACED_KINDS = frozenset(
    {ResourceKind.SERVICE_ACCOUNT, ResourceKind.CONFIG_MAP, ResourceKind.DAEMON_SET}
)


class ResourceHandle(BaseModel):
    """Identifies one object in the target cluster."""

    model_config = ConfigDict(frozen=True)

    kind: ResourceKind
    name: str
    namespace: str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)

    @property
    def ref(self) -> str:
        """``Kind/name`` with the namespace appended for namespaced kinds."""
        ref = f"{self.kind}/{self.name}"
        if self.namespace:
            ref += f" in {self.namespace}"
        return ref


class ResourceSet(BaseModel):
    """The six objects making up one logs collector deployment."""

    model_config = ConfigDict(frozen=True)

    guid: str
    namespace: ResourceHandle
    service_account: ResourceHandle
    cluster_role: ResourceHandle
    cluster_role_binding: ResourceHandle
    config_map: ResourceHandle
    daemon_set: ResourceHandle

    def handles(self) -> tuple[ResourceHandle, ...]:
        """All handles in creation (dependency) order."""
        return (
            self.namespace,
            self.service_account,
            self.cluster_role,
            self.cluster_role_binding,
            self.config_map,
            self.daemon_set,
        )


# =============================================================================
# Diagnostic records
# =============================================================================


class OrphanedResource(BaseModel):
    """An object that could not be removed and must be deleted by hand."""

    model_config = ConfigDict(frozen=True)

    kind: str
    name: str
    namespace: str | None = None
    cause: str

    @property
    def ref(self) -> str:
        """``Kind/name`` with the namespace appended for namespaced kinds."""
        ref = f"{self.kind}/{self.name}"
        if self.namespace:
            ref += f" in {self.namespace}"
        return ref

    @classmethod
    def from_handle(cls, handle: ResourceHandle, cause: BaseException) -> OrphanedResource:
        return cls(
            kind=str(handle.kind),
            name=handle.name,
            namespace=handle.namespace,
            cause=str(cause),
        )


class ManualAction(BaseModel):
    """An operator step needed after an interrupted cleanup."""

    model_config = ConfigDict(frozen=True)

    kind: str
    name: str
    namespace: str | None = None
    action: str
    cause: str


# =============================================================================
# Outcomes
# =============================================================================


class DaemonHealth(BaseModel):
    """Health of a daemon set derived from its live pods."""

    daemon_set: str
    namespace: str
    pod_count: int = 0
    ready_pod_count: int = 0
    nodes: list[str] = Field(default_factory=list)

    @property
    def ready(self) -> bool:
        """True once at least one pod has a ready container."""
        return self.ready_pod_count > 0

    @classmethod
    def from_pods(cls, daemon_set: str, namespace: str, pods: list[PodSummary]) -> DaemonHealth:
        """Summarize the pods managed by ``daemon_set``."""
        return cls(
            daemon_set=daemon_set,
            namespace=namespace,
            pod_count=len(pods),
            ready_pod_count=sum(1 for p in pods if p.has_ready_container),
            nodes=sorted({p.node_name for p in pods if p.node_name}),
        )


@dataclass
class ProvisionResult:
    """A committed deployment.

    Attributes:
        resource_set: The six live objects, now owned by the caller.
        teardown: Removes every object in reverse creation order; safe to call
            more than once.
        daemon_set: The daemon set as returned by the cluster at creation.
        health: Health observed when readiness was confirmed.
        http_health_endpoint: Path of the collector's HTTP health check.
    """

    resource_set: ResourceSet
    teardown: Teardown
    daemon_set: DaemonSetSummary
    health: DaemonHealth
    http_health_endpoint: str

    @property
    def guid(self) -> str:
        return self.resource_set.guid

