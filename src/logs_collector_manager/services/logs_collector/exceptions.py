"""Exceptions raised while provisioning or cleaning a logs collector."""

from __future__ import annotations

from logs_collector_manager.services.logs_collector.models import ManualAction, OrphanedResource


class LogsCollectorError(Exception):
    """Base exception for logs collector operations."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class IdentityGenerationError(LogsCollectorError):
    """A unique deployment identity could not be generated.

    Raised before any object exists, so there is nothing to roll back.
    """


class ProvisionError(LogsCollectorError):
    """Provisioning failed and everything created so far was rolled back.

    Attributes:
        cause: The failure that aborted provisioning.
        step: The step that failed (a resource kind or ``"readiness"``).
        guid: Identity of the aborted deployment.
        orphaned_resources: Objects the rollback could not remove.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException,
        step: str,
        guid: str,
        orphaned_resources: list[OrphanedResource] | None = None,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.step = step
        self.guid = guid
        self.orphaned_resources = orphaned_resources or []

    @property
    def fully_rolled_back(self) -> bool:
        """True if no object was left behind."""
        return not self.orphaned_resources

    def __str__(self) -> str:
        text = f"{self.message} (step: {self.step}): {self.cause}"
        if self.orphaned_resources:
            refs = ", ".join(o.ref for o in self.orphaned_resources)
            text += f"; manual removal required for {refs}"
        return text


class ReadinessTimeoutError(LogsCollectorError):
    """No pod of the daemon set became ready within the policy's bounds."""

    def __init__(self, daemon_set: str, namespace: str, attempts: int, timeout: float) -> None:
        super().__init__(
            f"No pod of daemon set '{daemon_set}' in namespace '{namespace}' became ready "
            f"after {attempts} attempt(s) (budget {timeout:g}s)"
        )
        self.daemon_set = daemon_set
        self.namespace = namespace
        self.attempts = attempts
        self.timeout = timeout


class CleanupError(LogsCollectorError):
    """The checkpoint cleanup sequence stopped before completing.

    Attributes:
        step: The step that failed.
        cause: The underlying failure, if any.
        manual_actions: What an operator must do to recover.
    """

    def __init__(
        self,
        message: str,
        *,
        step: str,
        cause: BaseException | None = None,
        manual_actions: list[ManualAction] | None = None,
    ) -> None:
        super().__init__(message)
        self.step = step
        self.cause = cause
        self.manual_actions = manual_actions or []

    def __str__(self) -> str:
        text = f"{self.message} (step: {self.step})"
        if self.cause is not None:
            text += f": {self.cause}"
        return text


class CleanupSequenceError(LogsCollectorError):
    """A cleanup step was attempted before the steps it depends on."""
