"""Kubernetes configuration resource summary models."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field

from logs_collector_manager.integrations.kubernetes.models.base import (
    K8sEntityBase,
    _metadata_fields,
)


class ConfigMapSummary(K8sEntityBase):
    """ConfigMap summary.

    Only key names are kept; rendered collector config can be large.
    """

    _entity_name: ClassVar[str] = "configmap"

    data_keys: list[str] = Field(default_factory=list, description="Data key names")

    @classmethod
    def from_k8s_object(cls, obj: Any) -> ConfigMapSummary:
        """Create from a kubernetes V1ConfigMap object."""
        data = getattr(obj, "data", None) or {}
        return cls(**_metadata_fields(obj), data_keys=sorted(data.keys()))
