"""Clear the collector's per-node checkpoint databases.

The checkpoint database can only be removed while no collector replica has
it mounted. The sequence evicts every replica with an unsatisfiable node
selector, waits for the pods to terminate, clears the directory on each
node through a privileged helper pod, restores scheduling and waits for a
ready replica again.

If a step after eviction fails the daemon set is left evicted; the raised
``CleanupError`` lists the manual actions needed to restore it.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any

import structlog

from logs_collector_manager.services.logs_collector.config import LogsCollectorConfig
from logs_collector_manager.services.logs_collector.constants import (
    CHECKPOINT_DB_PATH,
    EVICTION_NODE_SELECTOR,
)
from logs_collector_manager.services.logs_collector.exceptions import (
    CleanupError,
    CleanupSequenceError,
)
from logs_collector_manager.services.logs_collector.models import (
    DaemonHealth,
    ManualAction,
    ResourceKind,
)
from logs_collector_manager.services.logs_collector.readiness import ReadinessWaiter

if TYPE_CHECKING:
    from logs_collector_manager.integrations.kubernetes.models.workloads import PodSummary
    from logs_collector_manager.services.kubernetes.backend import KubernetesBackend

logger = structlog.get_logger()


class CleanupStep(IntEnum):
    """Cleanup steps; each may only run once its predecessor has completed."""

    DISCOVER = 1
    EVICT = 2
    AWAIT_TERMINATION = 3
    REMOVE_CHECKPOINTS = 4
    RESTORE = 5
    VERIFY = 6

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass
class CleanupSession:
    """State carried through one cleanup run.

    Pods and nodes are captured once at discovery and never refreshed.
    """

    daemon_set: str
    namespace: str
    eviction_selector: dict[str, str] = field(default_factory=lambda: dict(EVICTION_NODE_SELECTOR))
    pods: list[PodSummary] = field(default_factory=list)
    completed: CleanupStep | None = None
    terminated_pods: set[str] = field(default_factory=set)
    cleaned_nodes: list[str] = field(default_factory=list)

    @property
    def nodes(self) -> list[str]:
        """Distinct nodes that hosted a replica at discovery, in pod order."""
        return list(dict.fromkeys(p.node_name for p in self.pods if p.node_name))

    @property
    def evicted(self) -> bool:
        """True while replicas are kept off every node."""
        return self.completed is not None and (
            CleanupStep.EVICT <= self.completed < CleanupStep.RESTORE
        )

    def begin(self, step: CleanupStep) -> None:
        """Check that ``step`` is the next one in the sequence.

        Raises:
            CleanupSequenceError: A preceding step has not completed.
        """
        expected = CleanupStep.DISCOVER if self.completed is None else self.completed + 1
        if step != expected:
            done = self.completed.label if self.completed else "nothing"
            raise CleanupSequenceError(
                f"Cannot run cleanup step '{step.label}' for daemon set '{self.daemon_set}' "
                f"after '{done}'"
            )

    def complete(self, step: CleanupStep) -> None:
        self.completed = step

    def mark_terminated(self, pod_name: str) -> None:
        self.terminated_pods.add(pod_name)

    def require_terminated(self, node_name: str) -> None:
        """Reject node work while a pod discovered on that node may still run.

        Raises:
            CleanupSequenceError: A pod on ``node_name`` was not observed terminated.
        """
        pending = [
            p.name
            for p in self.pods
            if p.node_name == node_name and p.name not in self.terminated_pods
        ]
        if pending:
            raise CleanupSequenceError(
                f"Pods {pending} on node '{node_name}' have not been observed terminated"
            )


class CleanupChoreographer:
    """Runs the checkpoint cleanup sequence against a running daemon set.

    Example:
        >>> choreographer = CleanupChoreographer(backend, LogsCollectorConfig())
        >>> choreographer.clean("logs-collector", "lcm-logs-collector-0a1b")
    """

    def __init__(
        self,
        backend: KubernetesBackend,
        config: LogsCollectorConfig | None = None,
        *,
        readiness_waiter: ReadinessWaiter | None = None,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        self._backend = backend
        self._config = config or LogsCollectorConfig()
        self._sleep = sleep
        self._waiter = readiness_waiter or ReadinessWaiter(
            backend.workloads, self._config.readiness.to_policy(), sleep=sleep
        )

    def clean(
        self,
        daemon_set: str,
        namespace: str,
        *,
        cancel_event: threading.Event | None = None,
    ) -> DaemonHealth:
        """Run the full sequence.

        Returns:
            Health of the daemon set once a replica is ready again.

        Raises:
            CleanupError: A step failed; ``manual_actions`` says how to recover.
        """
        session = CleanupSession(daemon_set=daemon_set, namespace=namespace)
        log = logger.bind(daemon_set=daemon_set, namespace=namespace)
        log.info("cleaning_logs_collector")

        step = CleanupStep.DISCOVER
        try:
            self.discover(session)
            step = CleanupStep.EVICT
            self.evict(session)
            step = CleanupStep.AWAIT_TERMINATION
            self.await_termination(session, cancel_event=cancel_event)
            step = CleanupStep.REMOVE_CHECKPOINTS
            self.remove_checkpoints(session, cancel_event=cancel_event)
            step = CleanupStep.RESTORE
            self.restore(session)
            step = CleanupStep.VERIFY
            health = self.verify(session, cancel_event=cancel_event)
        except CleanupError:
            raise
        except Exception as e:
            raise self._abort(session, step, e) from e

        log.info("cleaned_logs_collector", nodes=session.cleaned_nodes)
        return health

    # =========================================================================
    # Steps
    # =========================================================================

    def discover(self, session: CleanupSession) -> None:
        """Record the pods currently managed by the daemon set and their nodes.

        Raises:
            CleanupError: The daemon set has no pods.
        """
        session.begin(CleanupStep.DISCOVER)
        pods = self._backend.workloads.list_pods_for_daemon_set(
            session.daemon_set, session.namespace
        )
        if not pods:
            raise CleanupError(
                f"No pods found for logs collector daemon set '{session.daemon_set}' "
                f"in namespace '{session.namespace}'",
                step=CleanupStep.DISCOVER.label,
            )
        session.pods = list(pods)
        session.complete(CleanupStep.DISCOVER)
        logger.info(
            "discovered_logs_collector_pods",
            daemon_set=session.daemon_set,
            pods=len(pods),
            nodes=session.nodes,
        )

    def evict(self, session: CleanupSession) -> None:
        """Apply a node selector no node satisfies so every replica is removed."""
        session.begin(CleanupStep.EVICT)
        self._backend.workloads.set_daemon_set_node_selector(
            session.daemon_set,
            session.namespace,
            node_selector=session.eviction_selector,
        )
        session.complete(CleanupStep.EVICT)

    def await_termination(
        self, session: CleanupSession, *, cancel_event: threading.Event | None = None
    ) -> None:
        """Wait until every discovered pod is gone."""
        session.begin(CleanupStep.AWAIT_TERMINATION)
        for pod in session.pods:
            self._backend.workloads.wait_for_pod_termination(
                pod.name,
                pod.namespace or session.namespace,
                policy=self._config.termination.to_policy(),
                cancel_event=cancel_event,
                sleep=self._sleep,
            )
            session.mark_terminated(pod.name)
        session.complete(CleanupStep.AWAIT_TERMINATION)

    def remove_checkpoints(
        self, session: CleanupSession, *, cancel_event: threading.Event | None = None
    ) -> None:
        """Clear the checkpoint directory on every discovered node."""
        session.begin(CleanupStep.REMOVE_CHECKPOINTS)
        for node in session.nodes:
            session.require_terminated(node)
            self._backend.nodes.remove_dir_contents_on_node(
                node,
                CHECKPOINT_DB_PATH,
                session.namespace,
                image=self._config.helper_image,
                policy=self._config.node_command.to_policy(),
                cancel_event=cancel_event,
                sleep=self._sleep,
            )
            session.cleaned_nodes.append(node)
            logger.info("removed_checkpoint_db", node=node, path=CHECKPOINT_DB_PATH)
        session.complete(CleanupStep.REMOVE_CHECKPOINTS)

    def restore(self, session: CleanupSession) -> None:
        """Clear the node selector so replicas are scheduled again.

        The daemon set is re-read before it is replaced.
        """
        session.begin(CleanupStep.RESTORE)
        self._backend.workloads.set_daemon_set_node_selector(
            session.daemon_set, session.namespace, node_selector={}
        )
        session.complete(CleanupStep.RESTORE)

    def verify(
        self, session: CleanupSession, *, cancel_event: threading.Event | None = None
    ) -> DaemonHealth:
        """Wait for a replica to be ready again."""
        session.begin(CleanupStep.VERIFY)
        health = self._waiter.wait_until_ready(
            session.daemon_set, session.namespace, cancel_event=cancel_event
        )
        session.complete(CleanupStep.VERIFY)
        return health

    # =========================================================================
    # Failure reporting
    # =========================================================================

    def _abort(self, session: CleanupSession, step: CleanupStep, cause: Exception) -> CleanupError:
        actions: list[ManualAction] = []
        if session.evicted:
            actions.append(
                ManualAction(
                    kind=str(ResourceKind.DAEMON_SET),
                    name=session.daemon_set,
                    namespace=session.namespace,
                    action="restore node selector to {} so replicas are scheduled again",
                    cause=str(cause),
                )
            )
        elif step is CleanupStep.VERIFY:
            actions.append(
                ManualAction(
                    kind=str(ResourceKind.DAEMON_SET),
                    name=session.daemon_set,
                    namespace=session.namespace,
                    action="investigate why no replica became ready",
                    cause=str(cause),
                )
            )

        for action in actions:
            logger.error(
                "manual_action_required",
                message=f"ACTION REQUIRED: {action.action} on "
                f"{action.kind}/{action.name} in {action.namespace}",
                step=step.label,
                error=action.cause,
            )
        if not actions:
            logger.error("cleanup_failed", step=step.label, error=str(cause))

        return CleanupError(
            f"Cleaning logs collector daemon set '{session.daemon_set}' failed",
            step=step.label,
            cause=cause,
            manual_actions=actions,
        )
