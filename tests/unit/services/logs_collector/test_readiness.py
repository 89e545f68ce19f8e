"""Unit tests for ReadinessWaiter."""

from __future__ import annotations

import threading
from typing import Any

import pytest

from logs_collector_manager.integrations.kubernetes.exceptions import KubernetesError
from logs_collector_manager.services.logs_collector.exceptions import ReadinessTimeoutError
from logs_collector_manager.services.logs_collector.readiness import ReadinessWaiter
from logs_collector_manager.utils.polling import OperationCancelledError, RetryPolicy


@pytest.fixture
def waiter(fake_backend: Any, no_sleep: list[float]) -> ReadinessWaiter:
    return ReadinessWaiter(fake_backend.workloads, RetryPolicy(), sleep=no_sleep.append)


@pytest.mark.unit
class TestReadinessWaiter:
    """Tests for wait_until_ready."""

    def test_ready_after_a_few_checks(
        self, waiter: ReadinessWaiter, fake_backend: Any, make_pod: Any, no_sleep: list[float]
    ) -> None:
        fake_backend.workloads.pod_batches = [
            [],
            [make_pod("p1", "node-a", ready=False)],
            [make_pod("p1", "node-a"), make_pod("p2", "node-b", ready=False)],
        ]

        health = waiter.wait_until_ready("logs-collector", "ns")

        assert health.ready_pod_count == 1
        assert health.pod_count == 2
        assert no_sleep == [1.0, 1.0]

    def test_times_out_after_thirty_checks(
        self, waiter: ReadinessWaiter, fake_backend: Any, make_pod: Any
    ) -> None:
        fake_backend.workloads.pod_batches = [[make_pod("p1", "node-a", ready=False)]]

        with pytest.raises(ReadinessTimeoutError) as exc_info:
            waiter.wait_until_ready("logs-collector", "ns")

        assert exc_info.value.attempts == 30
        assert exc_info.value.timeout == 30.0
        assert fake_backend.cluster.methods().count("list_pods_for_daemon_set") == 30

    def test_backend_error_is_not_a_timeout(
        self, waiter: ReadinessWaiter, fake_backend: Any
    ) -> None:
        fake_backend.cluster.failures["list_pods_for_daemon_set"] = KubernetesError("forbidden")

        with pytest.raises(KubernetesError, match="forbidden"):
            waiter.wait_until_ready("logs-collector", "ns")

        assert fake_backend.cluster.methods() == ["list_pods_for_daemon_set"]

    def test_cancelled(self, waiter: ReadinessWaiter, fake_backend: Any) -> None:
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(OperationCancelledError):
            waiter.wait_until_ready("logs-collector", "ns", cancel_event=cancel)

        assert fake_backend.cluster.calls == []

    def test_health_snapshot(
        self, waiter: ReadinessWaiter, fake_backend: Any, make_pod: Any
    ) -> None:
        fake_backend.workloads.pod_batches = [[make_pod("p1", "node-a", ready=False)]]

        health = waiter.health("logs-collector", "ns")

        assert not health.ready
        assert health.nodes == ["node-a"]
        assert waiter.policy == RetryPolicy()
