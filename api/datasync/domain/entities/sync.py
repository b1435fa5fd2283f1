"""
Entidades del dominio de sincronizacion.

Son dataclasses sin I/O: los repositorios las construyen a partir de los
modelos ORM y el orquestador solo trabaja con ellas.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from datasync.shared.constants.sync_constants import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_SECONDS,
    DB_TYPE_ALIASES,
    ConnectionType,
    DbType,
    RunStatus,
    SyncStrategy,
)


@dataclass(frozen=True)
class ExternalConnection:
    """
    Conexion externa (base de datos o API).

    Inmutable durante una corrida; la administra la capa de administracion.
    """

    id: str
    connection_type: str
    # Base de datos
    db_type: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    # API
    api_url: Optional[str] = None
    api_method: Optional[str] = None
    api_headers: Dict[str, str] = field(default_factory=dict)
    api_auth_type: Optional[str] = None
    api_auth_token: Optional[str] = None
    api_auth_username: Optional[str] = None
    api_auth_password: Optional[str] = None
    api_auth_apikey_name: Optional[str] = None
    api_auth_apikey_value: Optional[str] = None
    api_body: Optional[Any] = None
    api_response_path: Optional[str] = None

    @property
    def is_api(self) -> bool:
        return self.connection_type == ConnectionType.API.value

    @property
    def sql_dialect(self) -> str:
        """Motor de la fuente SQL; db_type nulo se trata como postgres."""
        db_type = (self.db_type or DbType.POSTGRES.value).strip().lower()
        return DB_TYPE_ALIASES.get(db_type, db_type)


@dataclass(frozen=True)
class TargetDataModel:
    """Modelo de datos destino y su tabla de origen (para fuentes SQL)."""

    id: str
    name: str = ""
    external_schema: Optional[str] = None
    external_table: Optional[str] = None
    external_primary_key: Optional[str] = None


@dataclass(frozen=True)
class SyncSchedule:
    """
    Schedule de sincronizacion con su conexion y modelo destino ya cargados.

    Los campos last_run_* reflejan el estado ANTERIOR a la corrida en curso.
    """

    id: str
    space_id: str
    data_model_id: str
    external_connection_id: str
    name: str
    schedule_type: str
    sync_strategy: str
    connection: ExternalConnection
    data_model: TargetDataModel
    schedule_config: Dict[str, Any] = field(default_factory=dict)
    incremental_key: Optional[str] = None
    incremental_timestamp_column: Optional[str] = None
    clear_existing_data: bool = False
    source_query: Optional[str] = None
    data_mapping: Optional[Dict[str, str]] = None
    max_records_per_sync: Optional[int] = None
    rate_limit_per_minute: Optional[int] = None
    retry_enabled: bool = True
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    retry_backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    current_retry_count: int = 0
    notify_on_success: bool = False
    notify_on_failure: bool = True
    notification_emails: List[str] = field(default_factory=list)
    last_run_status: Optional[str] = None
    last_run_error: Optional[str] = None
    next_run_at: Optional[datetime] = None

    @property
    def is_incremental(self) -> bool:
        return self.sync_strategy == SyncStrategy.INCREMENTAL.value

    @property
    def previous_run_failed(self) -> bool:
        return self.last_run_status == RunStatus.FAILED.value and bool(self.last_run_error)


@dataclass(frozen=True)
class ValidationRule:
    """Regla de validacion declarativa para un campo mapeado."""

    field_name: str
    rule_type: str
    rule_config: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None


@dataclass(frozen=True)
class RecoveryAction:
    """Par (patron de error, accion) evaluado en orden; el primero que matchea gana."""

    error_pattern: Optional[str]
    recovery_action: str
    recovery_config: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AlertDefinition:
    """Definicion de alerta configurada para un schedule."""

    id: str
    alert_type: str
    alert_config: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SyncExecutionResult:
    """
    Resultado de una corrida de sincronizacion.

    Es el contrato de salida de `execute_sync` y la base del registro de auditoria.
    """

    success: bool = True
    records_fetched: int = 0
    records_processed: int = 0
    records_inserted: int = 0
    records_updated: int = 0
    records_deleted: int = 0
    records_failed: int = 0
    error: Optional[str] = None
    error_details: Optional[Dict[str, Any]] = None
    execution_log: List[Dict[str, Any]] = field(default_factory=list)
    duration_ms: int = 0
    execution_id: Optional[str] = None

    @classmethod
    def failed(cls, error: str, **kwargs: Any) -> "SyncExecutionResult":
        return cls(success=False, error=error, **kwargs)

    @property
    def status(self) -> str:
        return RunStatus.COMPLETED.value if self.success else RunStatus.FAILED.value

    def to_dict(self) -> Dict[str, Any]:
        """Convierte el resultado a diccionario para persistencia/API."""
        return asdict(self)

    def snapshot(self) -> Dict[str, Any]:
        """Resumen sin el execution_log (para historial de alertas y notificaciones)."""
        data = self.to_dict()
        data.pop("execution_log", None)
        return data


@dataclass(frozen=True)
class SyncExecution:
    """Registro de auditoria de una corrida ya persistida."""

    id: str
    sync_schedule_id: str
    status: str
    started_at: datetime
    completed_at: datetime
    records_fetched: int
    records_processed: int
    records_inserted: int
    records_updated: int
    records_deleted: int
    records_failed: int
    duration_ms: int
    error_message: Optional[str] = None
    error_details: Optional[Dict[str, Any]] = None
    execution_log: Optional[List[Dict[str, Any]]] = None
