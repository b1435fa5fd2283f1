"""
Excepciones del motor de sincronizacion.

Taxonomia:
- SourceError: falla de conexion/query/HTTP contra la fuente externa (aborta la corrida).
- RecordValidationError: un registro no cumple sus reglas (no fatal, se cuenta como fallido).
- WriteError: falla al persistir un registro en el store EAV (no fatal).
- SyncConfigurationError: el schedule no tiene la configuracion minima para correr.
- SyncTimeoutError: la corrida excedio el tiempo maximo permitido.
- RecoveryExhaustedError: no quedan reintentos ni acciones de recuperacion aplicables.
- ScheduleNotFoundError: el schedule no existe (fatal, sin efectos secundarios).
"""
from typing import Any, Dict, List, Optional

from datasync.shared.exceptions.base import AppException
from datasync.shared.exceptions.domain import EntityNotFoundException


class SyncException(AppException):
    """Excepción base para errores de sincronizacion."""

    def __init__(
        self,
        message: str,
        error_code: str = "SYNC_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            status_code=500,
            error_code=error_code,
            details=details
        )


class SourceError(SyncException):
    """Error al obtener datos desde la fuente externa (base de datos o API)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, error_code="SOURCE_ERROR", details=details)
        self.status_code = 502


class RecordValidationError(SyncException):
    """Un registro mapeado no cumple una o mas reglas de validacion."""

    def __init__(self, errors: List[str]):
        super().__init__(
            message="; ".join(errors) or "Registro invalido",
            error_code="RECORD_VALIDATION_ERROR",
            details={"errors": list(errors)}
        )
        self.errors = list(errors)
        self.status_code = 422


class WriteError(SyncException):
    """Error al persistir un registro en el store EAV."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, error_code="WRITE_ERROR", details=details)


class SyncConfigurationError(SyncException):
    """El schedule o su conexion estan mal configurados."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, error_code="SYNC_CONFIGURATION_ERROR", details=details)
        self.status_code = 400


class SyncTimeoutError(SyncException):
    """La corrida excedio el tiempo maximo configurado."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            message=f"Sync run exceeded timeout of {timeout_seconds:g}s",
            error_code="SYNC_TIMEOUT",
            details={"timeout_seconds": timeout_seconds}
        )
        self.status_code = 504


class RecoveryExhaustedError(SyncException):
    """No quedan reintentos ni recuperaciones aplicables para el error."""

    def __init__(self, schedule_id: str, error: str):
        super().__init__(
            message=f"Recuperacion agotada para schedule {schedule_id}: {error}",
            error_code="RECOVERY_EXHAUSTED",
            details={"schedule_id": schedule_id, "error": error}
        )


class ScheduleNotFoundError(EntityNotFoundException):
    """El schedule de sincronizacion no existe o fue eliminado."""

    def __init__(self, schedule_id: str):
        super().__init__("SyncSchedule", schedule_id)
        self.error_code = "SCHEDULE_NOT_FOUND"
