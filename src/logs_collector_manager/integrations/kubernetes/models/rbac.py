"""Kubernetes RBAC resource summary models."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from logs_collector_manager.integrations.kubernetes.models.base import (
    K8sEntityBase,
    _metadata_fields,
    _safe_get,
)


class Subject(BaseModel):
    """RBAC subject (user, group, or service account)."""

    model_config = ConfigDict(extra="ignore")

    kind: str = Field(description="Subject kind (User, Group, ServiceAccount)")
    name: str = Field(description="Subject name")
    namespace: str | None = Field(default=None, description="Subject namespace")

    @classmethod
    def from_k8s_object(cls, obj: Any) -> Subject:
        """Create from a kubernetes RbacV1Subject object."""
        return cls(
            kind=getattr(obj, "kind", "") or "",
            name=getattr(obj, "name", "") or "",
            namespace=getattr(obj, "namespace", None),
        )


class PolicyRule(BaseModel):
    """RBAC policy rule."""

    model_config = ConfigDict(extra="ignore")

    verbs: list[str] = Field(default_factory=list, description="Allowed verbs")
    api_groups: list[str] = Field(default_factory=list, description="API groups")
    resources: list[str] = Field(default_factory=list, description="Resources")

    @classmethod
    def from_k8s_object(cls, obj: Any) -> PolicyRule:
        """Create from a kubernetes V1PolicyRule object."""
        return cls(
            verbs=list(getattr(obj, "verbs", []) or []),
            api_groups=list(getattr(obj, "api_groups", []) or []),
            resources=list(getattr(obj, "resources", []) or []),
        )


class ServiceAccountSummary(K8sEntityBase):
    """ServiceAccount summary."""

    _entity_name: ClassVar[str] = "serviceaccount"

    @classmethod
    def from_k8s_object(cls, obj: Any) -> ServiceAccountSummary:
        """Create from a kubernetes V1ServiceAccount object."""
        return cls(**_metadata_fields(obj))


class RoleSummary(K8sEntityBase):
    """ClusterRole summary."""

    _entity_name: ClassVar[str] = "clusterrole"

    rules: list[PolicyRule] = Field(default_factory=list, description="Policy rules")

    @classmethod
    def from_k8s_object(cls, obj: Any) -> RoleSummary:
        """Create from a kubernetes V1ClusterRole object."""
        rules_raw = getattr(obj, "rules", None) or []
        return cls(
            **_metadata_fields(obj),
            rules=[PolicyRule.from_k8s_object(r) for r in rules_raw],
        )


class RoleBindingSummary(K8sEntityBase):
    """ClusterRoleBinding summary."""

    _entity_name: ClassVar[str] = "clusterrolebinding"

    role_ref_kind: str | None = Field(default=None, description="Role reference kind")
    role_ref_name: str | None = Field(default=None, description="Role reference name")
    subjects: list[Subject] = Field(default_factory=list, description="Binding subjects")

    @classmethod
    def from_k8s_object(cls, obj: Any) -> RoleBindingSummary:
        """Create from a kubernetes V1ClusterRoleBinding object."""
        role_ref = getattr(obj, "role_ref", None)
        subjects_raw = getattr(obj, "subjects", None) or []
        return cls(
            **_metadata_fields(obj),
            role_ref_kind=_safe_get(role_ref, "kind"),
            role_ref_name=_safe_get(role_ref, "name"),
            subjects=[Subject.from_k8s_object(s) for s in subjects_raw],
        )
