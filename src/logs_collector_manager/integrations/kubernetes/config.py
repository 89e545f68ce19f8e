"""Kubernetes connection configuration models."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator


class ClusterConfig(BaseModel):
    """Connection settings for one named cluster."""

    model_config = ConfigDict(extra="forbid")

    context: str = ""
    kubeconfig: str = "~/.kube/config"
    namespace: str = "default"

    @field_validator("kubeconfig")
    @classmethod
    def validate_kubeconfig(cls, v: str) -> str:
        """Expand ~ in kubeconfig path."""
        return str(Path(v).expanduser())


class KubernetesAuthConfig(BaseModel):
    """Kubernetes authentication configuration."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["kubeconfig", "token", "service_account"] = "kubeconfig"
    token: str | None = None


class KubernetesDefaultsConfig(BaseModel):
    """Connection settings shared by every cluster."""

    model_config = ConfigDict(extra="forbid")

    retry_attempts: int = 3

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        """Validate retry_attempts is at least one."""
        if v < 1:
            raise ValueError("retry_attempts must be at least 1")
        return v


class KubernetesPluginConfig(BaseModel):
    """Complete Kubernetes connection configuration.

    A single target cluster is active at a time; ``clusters`` only names the
    candidates.
    """

    model_config = ConfigDict(extra="forbid")

    clusters: dict[str, ClusterConfig] = {}
    active_cluster: str | None = None
    defaults: KubernetesDefaultsConfig = KubernetesDefaultsConfig()
    auth: KubernetesAuthConfig = KubernetesAuthConfig()

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> KubernetesPluginConfig:
        """Create configuration with environment variable overrides.

        Environment variables take precedence over base_config values.

        Supported environment variables:
            LCM_K8S_CONTEXT: Active kubeconfig context or named cluster
            LCM_K8S_NAMESPACE: Namespace override for every configured cluster
            LCM_K8S_KUBECONFIG: Kubeconfig path override for every configured cluster
            LCM_K8S_TOKEN: Bearer token for authentication
            LCM_K8S_RETRIES: Connection retries per API request
        """
        config_dict = dict(base_config) if base_config else {}
        config_dict["defaults"] = dict(config_dict.get("defaults", {}))
        config_dict["auth"] = dict(config_dict.get("auth", {}))
        config_dict.setdefault("clusters", {})

        if context := os.environ.get("LCM_K8S_CONTEXT"):
            config_dict["active_cluster"] = context

        if token := os.environ.get("LCM_K8S_TOKEN"):
            config_dict["auth"]["token"] = token
            if config_dict["auth"].get("type", "kubeconfig") == "kubeconfig":
                config_dict["auth"]["type"] = "token"

        if retries := os.environ.get("LCM_K8S_RETRIES"):
            config_dict["defaults"]["retry_attempts"] = retries

        instance = cls.model_validate(config_dict)

        if kubeconfig := os.environ.get("LCM_K8S_KUBECONFIG"):
            for cluster_cfg in instance.clusters.values():
                cluster_cfg.kubeconfig = str(Path(kubeconfig).expanduser())

        if namespace := os.environ.get("LCM_K8S_NAMESPACE"):
            for cluster_cfg in instance.clusters.values():
                cluster_cfg.namespace = namespace

        return instance

    def _active_cluster_config(self) -> ClusterConfig | None:
        if self.active_cluster and self.active_cluster in self.clusters:
            return self.clusters[self.active_cluster]
        if self.clusters and not self.active_cluster:
            return next(iter(self.clusters.values()))
        return None

    def get_active_context(self) -> str | None:
        """Get the kubeconfig context to load.

        A named cluster resolves to its context; an unknown active_cluster is
        treated as a raw context name.
        """
        if cluster := self._active_cluster_config():
            return cluster.context or None
        return self.active_cluster

    def get_active_kubeconfig(self) -> str | None:
        """Get the kubeconfig path for the active cluster, if configured."""
        if cluster := self._active_cluster_config():
            return cluster.kubeconfig
        return None

    def get_active_namespace(self) -> str:
        """Get the default namespace for the active cluster."""
        if cluster := self._active_cluster_config():
            return cluster.namespace
        return "default"

