"""Shared fixtures for Kubernetes service tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest
from kubernetes.client import ApiException

from logs_collector_manager.integrations.kubernetes.client import KubernetesClient


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Create a mock Kubernetes client with API sub-mocks.

    Error translation is the real one so managers raise the same
    KubernetesError subclasses they would against a cluster.
    """
    mock_client = MagicMock()
    mock_client.default_namespace = "default"
    mock_client.translate_api_exception.side_effect = KubernetesClient.translate_api_exception
    return mock_client


@pytest.fixture
def not_found() -> ApiException:
    """A 404 from the API server."""
    return ApiException(status=404, reason="Not Found")


@pytest.fixture
def echo_body() -> Callable[..., Any]:
    """side_effect for create calls: the server returns what it was sent."""

    def _echo(**kwargs: Any) -> Any:
        return kwargs["body"]

    return _echo
