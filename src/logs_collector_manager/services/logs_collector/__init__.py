"""Provisioning and maintenance of the cluster-wide logs collector."""

from logs_collector_manager.services.logs_collector.cleaner import (
    CleanupChoreographer,
    CleanupSession,
    CleanupStep,
)
from logs_collector_manager.services.logs_collector.config import (
    CollectorRules,
    LogsCollectorConfig,
)
from logs_collector_manager.services.logs_collector.exceptions import (
    CleanupError,
    CleanupSequenceError,
    IdentityGenerationError,
    LogsCollectorError,
    ProvisionError,
    ReadinessTimeoutError,
)
from logs_collector_manager.services.logs_collector.models import (
    DaemonHealth,
    Filter,
    FilterParam,
    ManualAction,
    OrphanedResource,
    Parser,
    PortSpec,
    ProvisionParameters,
    ProvisionResult,
    ResourceHandle,
    ResourceKind,
    ResourceSet,
)
from logs_collector_manager.services.logs_collector.provisioner import LogsCollectorProvisioner
from logs_collector_manager.services.logs_collector.readiness import ReadinessWaiter
from logs_collector_manager.services.logs_collector.rollback import RollbackStack, Teardown

__all__ = [
    "CleanupChoreographer",
    "CleanupError",
    "CleanupSequenceError",
    "CleanupSession",
    "CleanupStep",
    "CollectorRules",
    "DaemonHealth",
    "Filter",
    "FilterParam",
    "IdentityGenerationError",
    "LogsCollectorConfig",
    "LogsCollectorError",
    "LogsCollectorProvisioner",
    "ManualAction",
    "OrphanedResource",
    "Parser",
    "PortSpec",
    "ProvisionError",
    "ProvisionParameters",
    "ProvisionResult",
    "ReadinessTimeoutError",
    "ReadinessWaiter",
    "ResourceHandle",
    "ResourceKind",
    "ResourceSet",
    "RollbackStack",
    "Teardown",
]
