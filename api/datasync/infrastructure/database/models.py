"""
Modelos de base de datos (ORM).

Tres grupos:
- Store EAV destino: data_models, data_model_attributes, data_records, data_record_values.
- Configuracion de sync: external_connections, data_sync_schedules y sus reglas,
  acciones de recuperacion y alertas.
- Historial append-only: data_sync_executions, data_sync_alert_history.
"""
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from datasync.infrastructure.database.session import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class DataModelModel(Base):
    """Modelo de datos destino (esquema dinamico)."""

    __tablename__ = "data_models"

    id = Column(String(36), primary_key=True, default=_uuid)
    space_id = Column(String(36), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    external_schema = Column(String(255), nullable=True)
    external_table = Column(String(255), nullable=True)
    external_primary_key = Column(String(255), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    sync_status = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    attributes = relationship("DataModelAttributeModel", back_populates="data_model", lazy="selectin")

    def __repr__(self):
        return f"<DataModel(id={self.id}, name={self.name})>"


class DataModelAttributeModel(Base):
    """Atributo nombrado y tipado de un modelo de datos."""

    __tablename__ = "data_model_attributes"

    id = Column(String(36), primary_key=True, default=_uuid)
    data_model_id = Column(String(36), ForeignKey("data_models.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False, default="text")
    is_active = Column(Boolean, default=True)

    data_model = relationship("DataModelModel", back_populates="attributes")

    def __repr__(self):
        return f"<DataModelAttribute(id={self.id}, name={self.name}, type={self.type})>"


class DataRecordModel(Base):
    """Registro logico del store EAV."""

    __tablename__ = "data_records"

    id = Column(String(36), primary_key=True, default=_uuid)
    data_model_id = Column(String(36), ForeignKey("data_models.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    values = relationship(
        "DataRecordValueModel",
        back_populates="record",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<DataRecord(id={self.id}, data_model_id={self.data_model_id})>"


class DataRecordValueModel(Base):
    """Valor (texto) de un atributo para un registro."""

    __tablename__ = "data_record_values"
    __table_args__ = (
        UniqueConstraint("data_record_id", "attribute_id", name="uq_record_attribute"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    data_record_id = Column(String(36), ForeignKey("data_records.id", ondelete="CASCADE"), nullable=False, index=True)
    attribute_id = Column(String(36), ForeignKey("data_model_attributes.id", ondelete="CASCADE"), nullable=False, index=True)
    value = Column(Text, nullable=True)

    record = relationship("DataRecordModel", back_populates="values")

    def __repr__(self):
        return f"<DataRecordValue(record={self.data_record_id}, attribute={self.attribute_id})>"


class ExternalConnectionModel(Base):
    """Conexion externa: base de datos o API HTTP."""

    __tablename__ = "external_connections"

    id = Column(String(36), primary_key=True, default=_uuid)
    space_id = Column(String(36), nullable=True, index=True)
    name = Column(String(255), nullable=False, default="")
    connection_type = Column(String(20), nullable=False)

    # Base de datos
    db_type = Column(String(50), nullable=True)
    host = Column(String(255), nullable=True)
    port = Column(Integer, nullable=True)
    database = Column(String(255), nullable=True)
    username = Column(String(255), nullable=True)
    password = Column(String(255), nullable=True)

    # API
    api_url = Column(Text, nullable=True)
    api_method = Column(String(10), nullable=True)
    api_headers = Column(JSON, nullable=True)
    api_auth_type = Column(String(20), nullable=True)
    api_auth_token = Column(Text, nullable=True)
    api_auth_username = Column(String(255), nullable=True)
    api_auth_password = Column(String(255), nullable=True)
    api_auth_apikey_name = Column(String(255), nullable=True)
    api_auth_apikey_value = Column(Text, nullable=True)
    api_body = Column(Text, nullable=True)
    api_response_path = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ExternalConnection(id={self.id}, type={self.connection_type})>"


class SyncScheduleModel(Base):
    """
    Schedule de sincronizacion.

    Estados de last_run_status:
    - PENDING: nunca corrio
    - RUNNING: corrida en curso (señal de lock para el invocador)
    - COMPLETED / FAILED: resultado de la ultima corrida terminal
    """

    __tablename__ = "data_sync_schedules"

    id = Column(String(36), primary_key=True, default=_uuid)
    space_id = Column(String(36), nullable=False, index=True)
    data_model_id = Column(String(36), ForeignKey("data_models.id"), nullable=False, index=True)
    external_connection_id = Column(String(36), ForeignKey("external_connections.id"), nullable=False)
    name = Column(String(255), nullable=False)

    schedule_type = Column(String(20), nullable=False, default="MANUAL")
    schedule_config = Column(JSON, nullable=True)
    sync_strategy = Column(String(20), nullable=False, default="FULL_REFRESH")
    incremental_key = Column(String(255), nullable=True)
    incremental_timestamp_column = Column(String(255), nullable=True)
    clear_existing_data = Column(Boolean, default=False)
    source_query = Column(Text, nullable=True)
    data_mapping = Column(JSON, nullable=True)
    max_records_per_sync = Column(Integer, nullable=True)
    rate_limit_per_minute = Column(Integer, nullable=True)

    # Politica de reintentos
    retry_enabled = Column(Boolean, nullable=True)
    max_retries = Column(Integer, nullable=True)
    retry_delay_seconds = Column(Float, nullable=True)
    retry_backoff_multiplier = Column(Float, nullable=True)
    current_retry_count = Column(Integer, default=0)

    # Notificaciones
    notify_on_success = Column(Boolean, nullable=True)
    notify_on_failure = Column(Boolean, nullable=True)
    notification_emails = Column(JSON, nullable=True)

    # Estado
    is_active = Column(Boolean, default=True)
    last_run_status = Column(String(20), default="PENDING", index=True)
    last_run_error = Column(Text, nullable=True)
    last_run_at = Column(DateTime(timezone=True), nullable=True)
    next_run_at = Column(DateTime(timezone=True), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    connection = relationship("ExternalConnectionModel", lazy="joined")
    data_model = relationship("DataModelModel", lazy="joined")

    def __repr__(self):
        return f"<SyncSchedule(id={self.id}, name={self.name}, status={self.last_run_status})>"


class ValidationRuleModel(Base):
    """Regla de validacion por campo para un schedule."""

    __tablename__ = "data_sync_validation_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sync_schedule_id = Column(String(36), ForeignKey("data_sync_schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    field_name = Column(String(255), nullable=False)
    rule_type = Column(String(20), nullable=False)
    rule_config = Column(JSON, nullable=True)
    error_message = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class RecoveryActionModel(Base):
    """Accion de recuperacion ante un patron de error."""

    __tablename__ = "data_sync_recovery_actions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sync_schedule_id = Column(String(36), ForeignKey("data_sync_schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    error_pattern = Column(Text, nullable=True)
    recovery_action = Column(String(30), nullable=False)
    recovery_config = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AlertModel(Base):
    """Definicion de alerta configurada para un schedule."""

    __tablename__ = "data_sync_alerts"

    id = Column(String(36), primary_key=True, default=_uuid)
    sync_schedule_id = Column(String(36), ForeignKey("data_sync_schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    alert_type = Column(String(50), nullable=False)
    alert_config = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AlertHistoryModel(Base):
    """Alerta disparada (append-only)."""

    __tablename__ = "data_sync_alert_history"

    id = Column(String(36), primary_key=True, default=_uuid)
    alert_id = Column(String(36), nullable=False, index=True)
    sync_schedule_id = Column(String(36), nullable=False, index=True)
    alert_type = Column(String(50), nullable=False)
    severity = Column(String(20), nullable=False)
    message = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SyncExecutionModel(Base):
    """Registro de auditoria de una corrida (inmutable una vez creado)."""

    __tablename__ = "data_sync_executions"

    id = Column(String(36), primary_key=True, default=_uuid)
    sync_schedule_id = Column(String(36), nullable=False, index=True)
    status = Column(String(20), nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=False)
    records_fetched = Column(Integer, default=0)
    records_processed = Column(Integer, default=0)
    records_inserted = Column(Integer, default=0)
    records_updated = Column(Integer, default=0)
    records_deleted = Column(Integer, default=0)
    records_failed = Column(Integer, default=0)
    error_message = Column(Text, nullable=True)
    error_details = Column(JSON, nullable=True)
    execution_log = Column(JSON, nullable=True)
    duration_ms = Column(Integer, default=0)

    def __repr__(self):
        return f"<SyncExecution(id={self.id}, schedule={self.sync_schedule_id}, status={self.status})>"


class WorkflowModel(Base):
    """Workflow del motor externo (solo lo necesario para resolver triggers)."""

    __tablename__ = "workflows"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    data_model_id = Column(String(36), nullable=True, index=True)
    is_active = Column(Boolean, default=True)
    status = Column(String(20), default="ACTIVE")


class WorkflowTriggerModel(Base):
    """Vinculo explicito schedule -> workflow."""

    __tablename__ = "data_sync_workflow_triggers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    workflow_id = Column(String(36), ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False)
    sync_schedule_id = Column(String(36), nullable=False, index=True)
    trigger_on_success = Column(Boolean, default=True)
    trigger_on_failure = Column(Boolean, default=False)


class WorkflowScheduleModel(Base):
    """Workflow que se dispara tras cualquier sync de su modelo de datos."""

    __tablename__ = "workflow_schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    workflow_id = Column(String(36), ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False)
    trigger_on_sync = Column(Boolean, default=False)
    # NULL = cualquier schedule del modelo de datos del workflow
    trigger_on_sync_schedule_id = Column(String(36), nullable=True)
