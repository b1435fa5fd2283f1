"""
DTOs para corridas de sincronizacion y alertas.

Define las estructuras de datos expuestas por la API REST.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SyncExecutionResultDTO(BaseModel):
    """Resultado de una corrida disparada desde la API."""

    success: bool = Field(..., description="True si la corrida termino COMPLETED")
    records_fetched: int = Field(0, description="Registros leidos de la fuente")
    records_processed: int = Field(0, description="Registros escritos con exito")
    records_inserted: int = Field(0, description="Registros nuevos")
    records_updated: int = Field(0, description="Registros actualizados por clave")
    records_deleted: int = Field(0, description="Registros borrados por full refresh")
    records_failed: int = Field(0, description="Registros rechazados o con error de escritura")
    error: Optional[str] = Field(None, description="Mensaje de error de la corrida")
    error_details: Optional[Dict[str, Any]] = Field(None, description="Detalle estructurado del error")
    execution_log: List[Dict[str, Any]] = Field(default_factory=list, description="Pasos de la corrida")
    duration_ms: int = Field(0, description="Duracion en milisegundos")
    execution_id: Optional[str] = Field(None, description="Id del registro de auditoria")


class SyncExecutionDTO(BaseModel):
    """Registro de auditoria de una corrida."""

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

    class Config:
        from_attributes = True


class SyncExecutionListDTO(BaseModel):
    """Historial de corridas de un schedule."""

    schedule_id: str
    total: int
    executions: List[SyncExecutionDTO]


class AlertHistoryDTO(BaseModel):
    """Alerta disparada por una corrida."""

    id: str
    alert_id: str
    alert_type: str = Field(..., description="failure_threshold, record_count_anomaly, duration_anomaly, error_rate")
    severity: str = Field(..., description="warning, error, critical")
    message: str
    details: Dict[str, Any] = Field(default_factory=dict, description="Snapshot del resultado de la corrida")
    created_at: Optional[str] = None


class AlertHistoryListDTO(BaseModel):
    """Historial de alertas de un schedule."""

    schedule_id: str
    total: int
    alerts: List[AlertHistoryDTO]
