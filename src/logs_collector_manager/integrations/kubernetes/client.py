"""Kubernetes API client wrapper.

Wraps the official kubernetes Python client with kubeconfig / in-cluster
loading, lazy API group initialization, connection retries and consistent
error translation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from logs_collector_manager.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)

if TYPE_CHECKING:
    from kubernetes.client import (
        AppsV1Api,
        CoreV1Api,
        RbacAuthorizationV1Api,
    )

    from logs_collector_manager.integrations.kubernetes.config import KubernetesPluginConfig

logger = structlog.get_logger()


class KubernetesClient:
    """Kubernetes API client for a single target cluster.

    Example:
        ```python
        from logs_collector_manager.integrations.kubernetes import (
            KubernetesClient,
            KubernetesPluginConfig,
        )

        with KubernetesClient(KubernetesPluginConfig.from_env()) as client:
            pods = client.core_v1.list_namespaced_pod("logging")
        ```
    """

    def __init__(self, plugin_config: KubernetesPluginConfig) -> None:
        """Initialize the client and load the cluster configuration.

        Args:
            plugin_config: Connection configuration.

        Raises:
            KubernetesConnectionError: If neither a kubeconfig nor an
                in-cluster configuration can be loaded.
        """
        self._config = plugin_config
        self._current_context: str | None = None

        self._core_v1: CoreV1Api | None = None
        self._apps_v1: AppsV1Api | None = None
        self._rbac_v1: RbacAuthorizationV1Api | None = None

        self._load_config()

        logger.info(
            "kubernetes_client_initialized",
            context=self._current_context,
            default_namespace=plugin_config.get_active_namespace(),
        )

    def _load_config(self) -> None:
        """Load Kubernetes configuration from kubeconfig or in-cluster."""
        from kubernetes import config
        from kubernetes.config import ConfigException

        active_context = self._config.get_active_context()
        kubeconfig_path = self._config.get_active_kubeconfig()

        try:
            config.load_kube_config(config_file=kubeconfig_path, context=active_context)
            self._current_context = active_context or "current-context"
            logger.debug("loaded_kubeconfig", context=active_context, kubeconfig=kubeconfig_path)
        except ConfigException:
            try:
                config.load_incluster_config()
                self._current_context = "in-cluster"
                logger.debug("loaded_incluster_config")
            except ConfigException as e:
                raise KubernetesConnectionError(
                    message="Cannot load Kubernetes configuration. "
                    "Ensure kubeconfig exists or running inside a cluster.",
                    original_error=e,
                ) from e

        self._apply_client_defaults()
        self._invalidate_api_cache()

    def _apply_client_defaults(self) -> None:
        """Set connection retries and bearer token on the default API configuration."""
        from kubernetes.client import Configuration

        configuration = Configuration.get_default_copy()
        # urllib3 retries connect and read failures before the API call fails
        configuration.retries = self._config.defaults.retry_attempts
        if self._config.auth.type == "token" and self._config.auth.token:
            configuration.api_key = {"authorization": f"Bearer {self._config.auth.token}"}
            logger.debug("applied_bearer_token")
        Configuration.set_default(configuration)

    def _invalidate_api_cache(self) -> None:
        self._core_v1 = None
        self._apps_v1 = None
        self._rbac_v1 = None

    # =========================================================================
    # Lazy API Group Accessors
    # =========================================================================

    @property
    def core_v1(self) -> CoreV1Api:
        """CoreV1Api (namespaces, service accounts, config maps, pods)."""
        if self._core_v1 is None:
            from kubernetes.client import CoreV1Api

            self._core_v1 = CoreV1Api()
        return self._core_v1

    @property
    def apps_v1(self) -> AppsV1Api:
        """AppsV1Api (daemon sets)."""
        if self._apps_v1 is None:
            from kubernetes.client import AppsV1Api

            self._apps_v1 = AppsV1Api()
        return self._apps_v1

    @property
    def rbac_v1(self) -> RbacAuthorizationV1Api:
        """RbacAuthorizationV1Api (cluster roles, cluster role bindings)."""
        if self._rbac_v1 is None:
            from kubernetes.client import RbacAuthorizationV1Api

            self._rbac_v1 = RbacAuthorizationV1Api()
        return self._rbac_v1

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Translate a kubernetes ApiException to a KubernetesError subclass.

        The resource identity is carried on every translated error so an
        operator can find the object the failing call was about.

        Args:
            e: The original exception.
            resource_type: Kind of resource being operated on.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.

        Returns:
            An appropriate KubernetesError subclass.
        """
        from kubernetes.client import ApiException

        if isinstance(e, KubernetesError):
            return e

        identity: dict[str, Any] = {
            "resource_type": resource_type,
            "resource_name": resource_name,
            "namespace": namespace,
        }

        if not isinstance(e, ApiException):
            return KubernetesError(message=str(e), **identity)

        status = e.status

        if status in (401, 403):
            return KubernetesAuthError(
                message=e.reason or "Authentication/authorization failed",
                status_code=status,
                reason=e.reason,
                **identity,
            )

        if status == 404:
            return KubernetesNotFoundError(**identity)

        if status == 409:
            return KubernetesConflictError(**identity)

        if status in (400, 422):
            return KubernetesValidationError(
                message=e.reason or "Validation failed",
                status_code=status,
                **identity,
            )

        return KubernetesError(
            message=e.reason or f"Kubernetes API error: {status}",
            status_code=status,
            **identity,
        )

    # =========================================================================
    # Properties / Lifecycle
    # =========================================================================

    @property
    def current_context(self) -> str:
        """The loaded context name, or 'in-cluster' inside a pod."""
        return self._current_context or "unknown"

    @property
    def default_namespace(self) -> str:
        """Default namespace from config."""
        return self._config.get_active_namespace()

    def close(self) -> None:
        """Release cached API instances."""
        self._invalidate_api_cache()
        logger.debug("kubernetes_client_closed")

    def __enter__(self) -> KubernetesClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
