"""Wait for a daemon set to have at least one ready replica."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from logs_collector_manager.services.logs_collector.exceptions import ReadinessTimeoutError
from logs_collector_manager.services.logs_collector.models import DaemonHealth
from logs_collector_manager.utils.polling import PollTimeoutError, RetryPolicy, poll_until

if TYPE_CHECKING:
    from logs_collector_manager.services.kubernetes.workload_manager import WorkloadManager

logger = structlog.get_logger()


class ReadinessWaiter:
    """Polls the pods of a daemon set until one reports a ready container.

    Backend errors are not retried: they abort the wait and propagate as
    they are, distinct from ``ReadinessTimeoutError``.
    """

    def __init__(
        self,
        workloads: WorkloadManager,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        self._workloads = workloads
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def health(self, daemon_set: str, namespace: str) -> DaemonHealth:
        """Current health of ``daemon_set`` from its live pods."""
        pods = self._workloads.list_pods_for_daemon_set(daemon_set, namespace)
        return DaemonHealth.from_pods(daemon_set, namespace, pods)

    def wait_until_ready(
        self,
        daemon_set: str,
        namespace: str,
        *,
        cancel_event: threading.Event | None = None,
    ) -> DaemonHealth:
        """Block until at least one pod of ``daemon_set`` is ready.

        Returns:
            The health observed on the first ready check.

        Raises:
            ReadinessTimeoutError: The attempt or time budget ran out.
            OperationCancelledError: ``cancel_event`` was set.
            KubernetesError: Listing pods failed.
        """
        log = logger.bind(daemon_set=daemon_set, namespace=namespace)
        observed: DaemonHealth | None = None

        def _ready() -> bool:
            nonlocal observed
            observed = self.health(daemon_set, namespace)
            return observed.ready

        log.info(
            "waiting_for_daemonset_ready",
            interval=self._policy.interval,
            max_attempts=self._policy.max_attempts,
        )
        try:
            attempts = poll_until(
                _ready,
                self._policy,
                description=f"a ready pod of daemon set '{daemon_set}'",
                cancel_event=cancel_event,
                sleep=self._sleep,
            )
        except PollTimeoutError as e:
            log.warning("daemonset_not_ready", attempts=e.attempts)
            raise ReadinessTimeoutError(daemon_set, namespace, e.attempts, e.timeout) from e

        assert observed is not None
        log.info("daemonset_ready", attempts=attempts, ready_pods=observed.ready_pod_count)
        return observed
