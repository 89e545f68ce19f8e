"""Unit tests for K8sBaseManager."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from kubernetes.client import ApiException

from logs_collector_manager.integrations.kubernetes.exceptions import (
    KubernetesConflictError,
    KubernetesError,
)
from logs_collector_manager.services.kubernetes.base import K8sBaseManager


class _Manager(K8sBaseManager):
    _entity_name = "test"


@pytest.mark.unit
@pytest.mark.kubernetes
class TestK8sBaseManager:
    """Tests for the shared manager behaviour."""

    def test_resolve_namespace_uses_client_default(self, mock_k8s_client: MagicMock) -> None:
        manager = _Manager(mock_k8s_client)

        assert manager._resolve_namespace(None) == "default"
        assert manager._resolve_namespace("logging") == "logging"

    def test_handle_api_error_translates_and_chains(self, mock_k8s_client: MagicMock) -> None:
        manager = _Manager(mock_k8s_client)
        original = ApiException(status=409)

        with pytest.raises(KubernetesConflictError) as exc_info:
            manager._handle_api_error(original, "Namespace", "lcm-1", None)

        assert exc_info.value.__cause__ is original
        assert exc_info.value.resource_ref == "Namespace/lcm-1"

    def test_handle_api_error_uses_client_translation(self) -> None:
        client = MagicMock()
        client.translate_api_exception.return_value = KubernetesError("translated")

        with pytest.raises(KubernetesError, match="translated"):
            _Manager(client)._handle_api_error(RuntimeError("x"), "Pod", "p", "ns")

        assert client.translate_api_exception.call_args.kwargs == {
            "resource_type": "Pod",
            "resource_name": "p",
            "namespace": "ns",
        }
