"""Compensating actions for multi-object provisioning.

Each successfully created object pushes a removal action. On failure the
stack is unwound in reverse order; on success it is disarmed and its
actions move into a ``Teardown`` the caller keeps.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import structlog

from logs_collector_manager.integrations.kubernetes.exceptions import KubernetesNotFoundError
from logs_collector_manager.services.logs_collector.models import (
    OrphanedResource,
    ResourceHandle,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class Compensation:
    """Removal of one created object."""

    handle: ResourceHandle
    remove: Callable[[], Any]


def run_compensations(
    compensations: Iterable[Compensation], log: Any = None
) -> list[OrphanedResource]:
    """Run removals in the given order.

    An object that is already gone counts as removed. Any other failure is
    logged with an operator call to action and reported, never retried.

    Returns:
        The objects that could not be removed.
    """
    log = log or logger
    orphans: list[OrphanedResource] = []
    for compensation in compensations:
        handle = compensation.handle
        try:
            compensation.remove()
        except KubernetesNotFoundError:
            log.debug("rollback_resource_already_gone", kind=handle.kind, name=handle.name)
            continue
        except Exception as e:
            orphan = OrphanedResource.from_handle(handle, e)
            log.error(
                "manual_removal_required",
                message=f"ACTION REQUIRED: manually remove {orphan.ref}",
                kind=orphan.kind,
                name=orphan.name,
                namespace=orphan.namespace,
                error=orphan.cause,
            )
            orphans.append(orphan)
            continue
        log.info(
            "rollback_removed_resource",
            kind=handle.kind,
            name=handle.name,
            namespace=handle.namespace,
        )
    return orphans


class Teardown:
    """Removes a committed deployment, newest object first.

    Calling it again is harmless: objects already removed are skipped.
    """

    def __init__(self, compensations: Iterable[Compensation], log: Any = None) -> None:
        self._compensations = tuple(compensations)
        self._log = log or logger

    @property
    def handles(self) -> list[ResourceHandle]:
        """Handles in removal order."""
        return [c.handle for c in reversed(self._compensations)]

    def __call__(self) -> list[OrphanedResource]:
        self._log.info("tearing_down", resources=len(self._compensations))
        orphans = run_compensations(reversed(self._compensations), self._log)
        self._log.info("torn_down", orphaned=len(orphans))
        return orphans


class RollbackStack:
    """LIFO stack of compensating actions with an explicit commit point.

    Example:
        >>> stack = RollbackStack()
        >>> stack.push(namespace_handle, lambda: namespaces.delete_namespace(name))
        >>> teardown = stack.disarm()  # commit
    """

    def __init__(self, log: Any = None) -> None:
        self._entries: list[Compensation] = []
        self._armed = True
        self._log = log or logger

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def armed(self) -> bool:
        """False once committed; a disarmed stack never unwinds."""
        return self._armed

    def push(self, handle: ResourceHandle, remove: Callable[[], Any]) -> None:
        """Register the removal of an object that was just created."""
        if not self._armed:
            raise RuntimeError("Cannot push onto a disarmed rollback stack")
        self._entries.append(Compensation(handle, remove))

    def unwind(self) -> list[OrphanedResource]:
        """Remove every registered object, newest first, and empty the stack.

        Returns:
            Objects that could not be removed.
        """
        if not self._armed:
            return []
        entries, self._entries = self._entries, []
        self._log.warning("rolling_back", resources=len(entries))
        return run_compensations(reversed(entries), self._log)

    def disarm(self) -> Teardown:
        """Commit: stop rolling back and hand the removals to the caller."""
        self._armed = False
        entries, self._entries = self._entries, []
        return Teardown(entries, self._log)
