"""
Configuración de base de datos.

Importa todos los modelos para que se registren con Base
antes de crear las tablas.
"""
from datasync.infrastructure.database.models import (
    AlertHistoryModel,
    AlertModel,
    DataModelAttributeModel,
    DataModelModel,
    DataRecordModel,
    DataRecordValueModel,
    ExternalConnectionModel,
    RecoveryActionModel,
    SyncExecutionModel,
    SyncScheduleModel,
    ValidationRuleModel,
    WorkflowModel,
    WorkflowScheduleModel,
    WorkflowTriggerModel,
)
