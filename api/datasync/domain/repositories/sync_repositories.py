"""
Interfaces de los repositorios del motor de sincronizacion.
Definen el contrato que debe cumplir cualquier implementación, de modo que
el orquestador sea testeable sin una base de datos real.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from datasync.domain.entities.sync import (
    AlertDefinition,
    RecoveryAction,
    SyncExecution,
    SyncExecutionResult,
    SyncSchedule,
    ValidationRule,
)


class ISyncScheduleRepository(ABC):
    """
    Store de schedules: lectura de configuracion y mutaciones de estado
    que hace el orquestador en cada corrida.
    """

    @abstractmethod
    def get_by_id(self, schedule_id: str) -> Optional[SyncSchedule]:
        """
        Obtiene un schedule activo (no eliminado) con conexion y modelo destino.

        Returns:
            Optional[SyncSchedule]: Schedule encontrado o None
        """
        pass

    @abstractmethod
    def list_due(self, now: datetime) -> List[SyncSchedule]:
        """Schedules activos cuyo next_run_at ya paso y que no estan RUNNING."""
        pass

    @abstractmethod
    def mark_running(self, schedule_id: str, started_at: datetime) -> None:
        """Marca el schedule como RUNNING y estampa last_run_at."""
        pass

    @abstractmethod
    def mark_finished(
        self,
        schedule_id: str,
        status: str,
        error: Optional[str],
        next_run_at: Optional[datetime],
    ) -> None:
        """Persiste el estado terminal de la corrida y el proximo horario."""
        pass

    @abstractmethod
    def schedule_retry(self, schedule_id: str, retry_count: int, next_run_at: datetime) -> None:
        """Guarda el contador de reintentos y adelanta next_run_at."""
        pass

    @abstractmethod
    def reset_retry_count(self, schedule_id: str) -> None:
        """Vuelve el contador de reintentos a cero."""
        pass

    @abstractmethod
    def mark_data_model_synced(self, data_model_id: str, synced_at: datetime) -> None:
        """Actualiza last_synced_at / sync_status del modelo destino."""
        pass

    @abstractmethod
    def get_validation_rules(self, schedule_id: str) -> List[ValidationRule]:
        """Reglas activas del schedule, en orden de declaracion."""
        pass

    @abstractmethod
    def get_recovery_actions(self, schedule_id: str) -> List[RecoveryAction]:
        """Acciones de recuperacion activas, ordenadas por creacion."""
        pass

    @abstractmethod
    def get_alert_definitions(self, schedule_id: str) -> List[AlertDefinition]:
        """Alertas activas configuradas para el schedule."""
        pass


class IDataRecordRepository(ABC):
    """
    Store EAV destino: registros logicos y sus valores por atributo.

    Cada metodo de escritura es atomico (una transaccion por llamada).
    """

    @abstractmethod
    def get_attribute_map(self, data_model_id: str) -> Dict[str, str]:
        """Mapa nombre -> id de los atributos activos del modelo."""
        pass

    @abstractmethod
    def delete_all_records(self, data_model_id: str) -> int:
        """Elimina todos los registros del modelo. Retorna la cantidad borrada."""
        pass

    @abstractmethod
    def find_record_by_value(self, data_model_id: str, attribute_id: str, value: str) -> Optional[str]:
        """Id del primer registro cuyo atributo tiene exactamente ese valor."""
        pass

    @abstractmethod
    def insert_record(self, data_model_id: str, values: Dict[str, str]) -> str:
        """
        Crea un registro y sus valores (attribute_id -> texto).

        Returns:
            str: Id del registro creado
        """
        pass

    @abstractmethod
    def update_record(self, record_id: str, values: Dict[str, str]) -> None:
        """Toca updated_at y hace upsert de cada valor por (record_id, attribute_id)."""
        pass

    @abstractmethod
    def count_records(self, data_model_id: str) -> int:
        """Cantidad de registros del modelo."""
        pass

    @abstractmethod
    def get_record_values(self, record_id: str) -> Dict[str, str]:
        """Valores de un registro como nombre de atributo -> texto."""
        pass


class ISyncExecutionRepository(ABC):
    """Historial append-only de corridas."""

    @abstractmethod
    def save(
        self,
        schedule_id: str,
        result: SyncExecutionResult,
        started_at: datetime,
        completed_at: datetime,
    ) -> str:
        """
        Persiste una corrida terminada.

        Returns:
            str: Id de la ejecucion
        """
        pass

    @abstractmethod
    def get_last_successful_start(self, schedule_id: str) -> Optional[datetime]:
        """started_at de la ultima corrida COMPLETED (cursor incremental)."""
        pass

    @abstractmethod
    def count_failures_since(self, schedule_id: str, since: datetime) -> int:
        """Corridas FAILED con started_at posterior a `since`."""
        pass

    @abstractmethod
    def list_fetched_counts_since(
        self,
        schedule_id: str,
        since: datetime,
        exclude_execution_id: Optional[str] = None,
    ) -> List[int]:
        """records_fetched de las corridas COMPLETED desde `since`."""
        pass

    @abstractmethod
    def list_recent(self, schedule_id: str, limit: int = 50) -> List[SyncExecution]:
        """Ultimas corridas, mas recientes primero."""
        pass


class IAlertHistoryRepository(ABC):
    """Historial append-only de alertas disparadas."""

    @abstractmethod
    def append(
        self,
        alert_id: str,
        schedule_id: str,
        alert_type: str,
        severity: str,
        message: str,
        details: Dict[str, Any],
    ) -> str:
        """Agrega una entrada al historial. Retorna su id."""
        pass

    @abstractmethod
    def list_for_schedule(self, schedule_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Ultimas alertas del schedule, mas recientes primero."""
        pass
