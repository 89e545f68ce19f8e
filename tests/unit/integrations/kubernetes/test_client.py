"""Unit tests for Kubernetes client."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client import ApiException, Configuration

from logs_collector_manager.integrations.kubernetes.client import KubernetesClient
from logs_collector_manager.integrations.kubernetes.config import (
    ClusterConfig,
    KubernetesAuthConfig,
    KubernetesDefaultsConfig,
    KubernetesPluginConfig,
)
from logs_collector_manager.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)


@pytest.fixture(autouse=True)
def _restore_default_configuration() -> Iterator[None]:
    """Keep the process-wide API configuration unchanged between tests."""
    original = Configuration.get_default_copy()
    yield
    Configuration.set_default(original)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestKubernetesClientInitialization:
    """Test KubernetesClient initialization."""

    @patch("kubernetes.config")
    def test_init_with_default_config(self, mock_config: MagicMock) -> None:
        """Test client initialization with default config."""
        plugin_config = KubernetesPluginConfig()
        client = KubernetesClient(plugin_config)

        assert Configuration.get_default_copy().retries == 3
        assert client.default_namespace == "default"
        mock_config.load_kube_config.assert_called_once_with(config_file=None, context=None)

    @patch("kubernetes.config")
    def test_init_with_cluster_config(self, mock_config: MagicMock) -> None:
        """Test client initialization with a named cluster."""
        plugin_config = KubernetesPluginConfig(
            clusters={
                "test": ClusterConfig(
                    context="test-context", kubeconfig="/path/to/config", namespace="logging"
                )
            },
            active_cluster="test",
        )
        client = KubernetesClient(plugin_config)

        mock_config.load_kube_config.assert_called_once_with(
            config_file="/path/to/config",
            context="test-context",
        )
        assert client.current_context == "test-context"
        assert client.default_namespace == "logging"

    @patch("kubernetes.config")
    def test_init_fallback_to_incluster(self, mock_config: MagicMock) -> None:
        """Test client falls back to in-cluster config."""
        from kubernetes.config import ConfigException

        mock_config.load_kube_config.side_effect = ConfigException("Not found")

        client = KubernetesClient(KubernetesPluginConfig())

        mock_config.load_incluster_config.assert_called_once()
        assert client.current_context == "in-cluster"

    @patch("kubernetes.config")
    def test_init_connection_error(self, mock_config: MagicMock) -> None:
        """Test client raises KubernetesConnectionError when no config loads."""
        from kubernetes.config import ConfigException

        mock_config.load_kube_config.side_effect = ConfigException("No config")
        mock_config.load_incluster_config.side_effect = ConfigException("Not in cluster")

        with pytest.raises(KubernetesConnectionError) as exc_info:
            KubernetesClient(KubernetesPluginConfig())

        assert isinstance(exc_info.value.original_error, ConfigException)

    @patch("kubernetes.config")
    def test_token_auth_applied(self, mock_config: MagicMock) -> None:
        """Test a bearer token is applied for token auth."""
        plugin_config = KubernetesPluginConfig(
            auth=KubernetesAuthConfig(type="token", token="secret")
        )
        KubernetesClient(plugin_config)

        assert Configuration.get_default_copy().api_key == {"authorization": "Bearer secret"}

    @patch("kubernetes.config")
    def test_retry_attempts_applied(self, mock_config: MagicMock) -> None:
        """Test connection retries are set on the API configuration."""
        plugin_config = KubernetesPluginConfig(
            defaults=KubernetesDefaultsConfig(retry_attempts=5)
        )
        KubernetesClient(plugin_config)

        assert Configuration.get_default_copy().retries == 5


@pytest.mark.unit
@pytest.mark.kubernetes
class TestTranslateApiException:
    """Test ApiException translation."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, KubernetesAuthError),
            (403, KubernetesAuthError),
            (404, KubernetesNotFoundError),
            (409, KubernetesConflictError),
            (422, KubernetesValidationError),
            (500, KubernetesError),
        ],
    )
    def test_status_mapping(self, status: int, expected: type[KubernetesError]) -> None:
        error = KubernetesClient.translate_api_exception(
            ApiException(status=status, reason="boom"),
            resource_type="DaemonSet",
            resource_name="logs-collector",
            namespace="logging",
        )

        assert type(error) is expected
        assert error.resource_type == "DaemonSet"
        assert error.resource_name == "logs-collector"
        assert error.namespace == "logging"

    def test_not_found_message_names_resource(self) -> None:
        error = KubernetesClient.translate_api_exception(
            ApiException(status=404), "ConfigMap", "logs-collector-config", "logging"
        )

        assert "ConfigMap 'logs-collector-config' not found in namespace 'logging'" in str(error)

    def test_kubernetes_error_passes_through(self) -> None:
        original = KubernetesNotFoundError(resource_type="Pod", resource_name="p")

        assert KubernetesClient.translate_api_exception(original, "DaemonSet") is original

    def test_other_exception_keeps_identity(self) -> None:
        error = KubernetesClient.translate_api_exception(
            RuntimeError("socket closed"), "Namespace", "lcm-1", None
        )

        assert type(error) is KubernetesError
        assert error.resource_ref == "Namespace/lcm-1"
        assert "socket closed" in str(error)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestClientLifecycle:
    """Test client lifecycle."""

    @patch("kubernetes.config")
    def test_context_manager_clears_api_cache(self, mock_config: MagicMock) -> None:
        with KubernetesClient(KubernetesPluginConfig()) as client:
            client._core_v1 = MagicMock()

        assert client._core_v1 is None
