"""
Entidades del dominio.
"""
from datasync.domain.entities.sync import (
    AlertDefinition,
    ExternalConnection,
    RecoveryAction,
    SyncExecution,
    SyncExecutionResult,
    SyncSchedule,
    TargetDataModel,
    ValidationRule,
)
from datasync.domain.entities.alerts import (
    AlertContext,
    AlertRegistry,
    AlertRule,
    AlertSeverity,
    SyncAlert,
)

__all__ = [
    "AlertDefinition",
    "ExternalConnection",
    "RecoveryAction",
    "SyncExecution",
    "SyncExecutionResult",
    "SyncSchedule",
    "TargetDataModel",
    "ValidationRule",
    "AlertContext",
    "AlertRegistry",
    "AlertRule",
    "AlertSeverity",
    "SyncAlert",
]
