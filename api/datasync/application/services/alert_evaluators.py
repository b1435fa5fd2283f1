"""
Evaluadores de alertas base del motor de sincronizacion.

Implementa las reglas de alerta iniciales sobre el resultado de una corrida
y el historial de ejecuciones.
Para agregar nuevas alertas, crear clases que implementen AlertRule
y registrarlas via AlertRegistry.
"""
from __future__ import annotations

import statistics
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

from datasync.domain.entities.alerts import (
    AlertContext,
    AlertRegistry,
    AlertSeverity,
    SyncAlert,
)
from datasync.domain.entities.sync import SyncExecutionResult
from datasync.shared.constants.sync_constants import RECORD_COUNT_WINDOW_DAYS, AlertType


def _cfg_float(config: Dict[str, Any], key: str, default: float) -> float:
    """Valor numerico de la config; ausente, cero o invalido cae al default."""
    try:
        value = float(config.get(key) or default)
    except (TypeError, ValueError):
        return default
    return value or default


@dataclass
class FailureThresholdAlert:
    """
    Alerta cuando el schedule acumula demasiadas corridas fallidas.

    Cuenta las ejecuciones FAILED dentro de la ventana, incluida la actual
    (el registro de auditoria se guarda antes de evaluar).
    """

    alert_id: str = "failure_threshold"
    alert_type: str = AlertType.FAILURE_THRESHOLD.value
    threshold: float = 3
    critical_threshold: float = 5
    time_window_hours: float = 24

    @classmethod
    def from_config(cls, alert_id: str, config: Dict[str, Any]) -> "FailureThresholdAlert":
        return cls(
            alert_id=alert_id,
            threshold=_cfg_float(config, "threshold", 3),
            critical_threshold=_cfg_float(config, "critical_threshold", 5),
            time_window_hours=_cfg_float(config, "time_window_hours", 24),
        )

    def evaluate(self, result: SyncExecutionResult, context: AlertContext) -> Optional[SyncAlert]:
        since = context.now - timedelta(hours=self.time_window_hours)
        failure_count = context.executions.count_failures_since(context.schedule_id, since)

        if failure_count < self.threshold:
            return None

        severity = (
            AlertSeverity.CRITICAL
            if failure_count >= self.critical_threshold
            else AlertSeverity.ERROR
        )
        return SyncAlert(
            alert_id=self.alert_id,
            alert_type=self.alert_type,
            severity=severity,
            message=(
                f"Sync has failed {failure_count} times in the last "
                f"{self.time_window_hours:g} hours"
            ),
            value=float(failure_count),
            threshold=float(self.threshold),
            created_at=context.now,
            metadata={"time_window_hours": self.time_window_hours},
        )


@dataclass
class RecordCountAnomalyAlert:
    """
    Alerta cuando la cantidad de registros traidos se desvia de lo habitual.

    z-score contra las corridas COMPLETED de los ultimos 7 dias (sin contar
    la actual). Requiere media > 0 y desviacion estandar > 0.
    """

    alert_id: str = "record_count_anomaly"
    alert_type: str = AlertType.RECORD_COUNT_ANOMALY.value
    deviation_threshold: float = 2.0

    @classmethod
    def from_config(cls, alert_id: str, config: Dict[str, Any]) -> "RecordCountAnomalyAlert":
        return cls(
            alert_id=alert_id,
            deviation_threshold=_cfg_float(config, "deviation_threshold", 2.0),
        )

    def evaluate(self, result: SyncExecutionResult, context: AlertContext) -> Optional[SyncAlert]:
        since = context.now - timedelta(days=RECORD_COUNT_WINDOW_DAYS)
        counts = context.executions.list_fetched_counts_since(
            context.schedule_id, since, exclude_execution_id=context.execution_id
        )
        # stdev muestral necesita al menos dos puntos
        if len(counts) < 2:
            return None

        mean = statistics.mean(counts)
        stdev = statistics.stdev(counts)
        if mean <= 0 or stdev <= 0:
            return None

        deviation = abs(result.records_fetched - mean) / stdev
        if deviation <= self.deviation_threshold:
            return None

        severity = (
            AlertSeverity.CRITICAL
            if deviation > self.deviation_threshold * 2
            else AlertSeverity.WARNING
        )
        return SyncAlert(
            alert_id=self.alert_id,
            alert_type=self.alert_type,
            severity=severity,
            message=(
                f"Record count anomaly: {result.records_fetched} fetched "
                f"(average: {round(mean)}, deviation: {deviation:.2f}σ)"
            ),
            value=deviation,
            threshold=self.deviation_threshold,
            created_at=context.now,
            metadata={"average": mean, "stddev": stdev, "samples": len(counts)},
        )


@dataclass
class DurationAnomalyAlert:
    """Alerta cuando la corrida tarda mas que el maximo configurado."""

    alert_id: str = "duration_anomaly"
    alert_type: str = AlertType.DURATION_ANOMALY.value
    max_duration_ms: float = 300000  # 5 minutos

    @classmethod
    def from_config(cls, alert_id: str, config: Dict[str, Any]) -> "DurationAnomalyAlert":
        return cls(alert_id=alert_id, max_duration_ms=_cfg_float(config, "max_duration_ms", 300000))

    def evaluate(self, result: SyncExecutionResult, context: AlertContext) -> Optional[SyncAlert]:
        if result.duration_ms <= self.max_duration_ms:
            return None

        severity = (
            AlertSeverity.ERROR
            if result.duration_ms > self.max_duration_ms * 2
            else AlertSeverity.WARNING
        )
        return SyncAlert(
            alert_id=self.alert_id,
            alert_type=self.alert_type,
            severity=severity,
            message=(
                f"Sync duration anomaly: {round(result.duration_ms / 1000)}s "
                f"(threshold: {round(self.max_duration_ms / 1000)}s)"
            ),
            value=float(result.duration_ms),
            threshold=self.max_duration_ms,
            created_at=context.now,
        )


@dataclass
class ErrorRateAlert:
    """
    Alerta cuando la proporcion de registros fallidos es alta.

    error_rate = fallidos / max(procesados, 1)
    """

    alert_id: str = "error_rate"
    alert_type: str = AlertType.ERROR_RATE.value
    max_error_rate: float = 0.1  # 10%

    @classmethod
    def from_config(cls, alert_id: str, config: Dict[str, Any]) -> "ErrorRateAlert":
        return cls(alert_id=alert_id, max_error_rate=_cfg_float(config, "max_error_rate", 0.1))

    def evaluate(self, result: SyncExecutionResult, context: AlertContext) -> Optional[SyncAlert]:
        error_rate = result.records_failed / max(result.records_processed, 1)
        if error_rate <= self.max_error_rate:
            return None

        severity = (
            AlertSeverity.ERROR
            if error_rate > self.max_error_rate * 2
            else AlertSeverity.WARNING
        )
        return SyncAlert(
            alert_id=self.alert_id,
            alert_type=self.alert_type,
            severity=severity,
            message=(
                f"High error rate: {error_rate * 100:.1f}% "
                f"({result.records_failed}/{result.records_processed} records failed)"
            ),
            value=error_rate,
            threshold=self.max_error_rate,
            created_at=context.now,
            metadata={
                "records_failed": result.records_failed,
                "records_processed": result.records_processed,
            },
        )


def register_default_alerts() -> None:
    """
    Registra los tipos de alerta base del sistema.

    Debe llamarse una vez al iniciar la aplicacion (en events.py startup).
    """
    if AlertRegistry.is_initialized():
        return

    AlertRegistry.register(AlertType.FAILURE_THRESHOLD.value, FailureThresholdAlert.from_config)
    AlertRegistry.register(AlertType.RECORD_COUNT_ANOMALY.value, RecordCountAnomalyAlert.from_config)
    AlertRegistry.register(AlertType.DURATION_ANOMALY.value, DurationAnomalyAlert.from_config)
    AlertRegistry.register(AlertType.ERROR_RATE.value, ErrorRateAlert.from_config)

    AlertRegistry.mark_initialized()
