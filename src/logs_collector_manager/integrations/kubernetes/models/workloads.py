"""Kubernetes workload resource summary models."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from logs_collector_manager.integrations.kubernetes.models.base import (
    K8sEntityBase,
    OwnerReference,
    _metadata_fields,
    _safe_get,
)


class ContainerStatus(K8sEntityBase):
    """Container status within a pod."""

    _entity_name: ClassVar[str] = "container"

    image: str | None = Field(default=None, description="Container image")
    ready: bool = Field(default=False, description="Whether container is ready")
    restart_count: int = Field(default=0, description="Number of restarts")
    state: str = Field(default="unknown", description="Current state")

    @classmethod
    def from_k8s_object(cls, obj: Any) -> ContainerStatus:
        """Create from a kubernetes V1ContainerStatus object."""
        state = "unknown"
        if obj_state := getattr(obj, "state", None):
            if getattr(obj_state, "running", None):
                state = "running"
            elif getattr(obj_state, "waiting", None):
                state = str(_safe_get(obj_state, "waiting", "reason", default="Waiting"))
            elif getattr(obj_state, "terminated", None):
                state = str(_safe_get(obj_state, "terminated", "reason", default="Terminated"))

        return cls(
            name=getattr(obj, "name", "") or "",
            image=getattr(obj, "image", None),
            ready=bool(getattr(obj, "ready", False)),
            restart_count=getattr(obj, "restart_count", 0) or 0,
            state=state,
        )


class PodSummary(K8sEntityBase):
    """Pod summary."""

    _entity_name: ClassVar[str] = "pod"

    phase: str = Field(default="Unknown", description="Pod phase")
    node_name: str | None = Field(default=None, description="Node the pod is scheduled on")
    containers: list[ContainerStatus] = Field(
        default_factory=list, description="Container statuses"
    )
    owner_references: list[OwnerReference] = Field(
        default_factory=list, description="Owner references"
    )

    @property
    def has_ready_container(self) -> bool:
        """True if at least one container status reports ready."""
        return any(c.ready for c in self.containers)

    def is_owned_by(self, kind: str, name: str) -> bool:
        """True if an owner reference points at ``kind/name``."""
        return any(ref.kind == kind and ref.name == name for ref in self.owner_references)

    @classmethod
    def from_k8s_object(cls, obj: Any) -> PodSummary:
        """Create from a kubernetes V1Pod object."""
        container_statuses = _safe_get(obj, "status", "container_statuses") or []
        owner_refs = _safe_get(obj, "metadata", "owner_references") or []
        return cls(
            **_metadata_fields(obj),
            phase=_safe_get(obj, "status", "phase", default="Unknown"),
            node_name=_safe_get(obj, "spec", "node_name"),
            containers=[ContainerStatus.from_k8s_object(cs) for cs in container_statuses],
            owner_references=[OwnerReference.from_k8s_object(ref) for ref in owner_refs],
        )


class ContainerPortSummary(BaseModel):
    """Port declared by a pod template container."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    container_port: int
    protocol: str = "TCP"


class DaemonSetSummary(K8sEntityBase):
    """DaemonSet summary, including the pod template shape."""

    _entity_name: ClassVar[str] = "daemonset"

    desired_number_scheduled: int = Field(default=0, description="Desired pods")
    current_number_scheduled: int = Field(default=0, description="Current pods")
    number_ready: int = Field(default=0, description="Ready pods")
    node_selector: dict[str, str] | None = Field(default=None, description="Node selector")
    selector: dict[str, str] = Field(default_factory=dict, description="Pod match labels")
    service_account_name: str | None = Field(default=None, description="Pod service account")
    container_ports: list[ContainerPortSummary] = Field(
        default_factory=list, description="Ports of the pod template containers"
    )
    volume_mounts: list[str] = Field(
        default_factory=list, description="Mount paths of the pod template containers"
    )

    @property
    def label_selector(self) -> str:
        """The match labels rendered as a label selector string."""
        return ",".join(f"{k}={v}" for k, v in sorted(self.selector.items()))

    @classmethod
    def from_k8s_object(cls, obj: Any) -> DaemonSetSummary:
        """Create from a kubernetes V1DaemonSet object."""
        pod_spec = _safe_get(obj, "spec", "template", "spec")
        node_selector = _safe_get(pod_spec, "node_selector")
        match_labels = _safe_get(obj, "spec", "selector", "match_labels") or {}

        ports: list[ContainerPortSummary] = []
        mounts: list[str] = []
        for container in _safe_get(pod_spec, "containers") or []:
            for port in getattr(container, "ports", None) or []:
                ports.append(
                    ContainerPortSummary(
                        name=getattr(port, "name", None),
                        container_port=port.container_port,
                        protocol=getattr(port, "protocol", None) or "TCP",
                    )
                )
            mounts.extend(m.mount_path for m in getattr(container, "volume_mounts", None) or [])

        return cls(
            **_metadata_fields(obj),
            desired_number_scheduled=_safe_get(obj, "status", "desired_number_scheduled", default=0)
            or 0,
            current_number_scheduled=_safe_get(obj, "status", "current_number_scheduled", default=0)
            or 0,
            number_ready=_safe_get(obj, "status", "number_ready", default=0) or 0,
            node_selector=dict(node_selector) if node_selector else None,
            selector=dict(match_labels),
            service_account_name=_safe_get(pod_spec, "service_account_name"),
            container_ports=ports,
            volume_mounts=mounts,
        )
