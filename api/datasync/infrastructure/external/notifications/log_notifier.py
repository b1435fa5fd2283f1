"""
Notificador por defecto: deja constancia en el log (loguru).

Sirve mientras no haya un transporte real configurado (email, chat...).
"""
from typing import Optional, Sequence

from loguru import logger

from datasync.domain.entities.alerts import AlertSeverity, SyncAlert
from datasync.domain.entities.sync import SyncExecutionResult, SyncSchedule


class LoggingNotifier:
    """Implementación de Notifier que solo escribe en el log."""

    def send_sync_success(
        self,
        *,
        schedule: SyncSchedule,
        recipients: Sequence[str],
        result: SyncExecutionResult,
        execution_id: Optional[str],
    ) -> None:
        logger.info(
            f"[notificacion] Sync '{schedule.name}' completado -> {', '.join(recipients)} | "
            f"fetched={result.records_fetched} inserted={result.records_inserted} "
            f"updated={result.records_updated} failed={result.records_failed} "
            f"execution={execution_id}"
        )

    def send_sync_failure(
        self,
        *,
        schedule: SyncSchedule,
        recipients: Sequence[str],
        result: SyncExecutionResult,
        execution_id: Optional[str],
    ) -> None:
        logger.warning(
            f"[notificacion] Sync '{schedule.name}' fallo -> {', '.join(recipients)} | "
            f"error={result.error} execution={execution_id}"
        )

    def send_alert(
        self,
        *,
        schedule: SyncSchedule,
        recipients: Sequence[str],
        alert: SyncAlert,
    ) -> None:
        message = (
            f"[notificacion] Alerta {alert.severity.value.upper()} en '{schedule.name}' "
            f"-> {', '.join(recipients)} | {alert.message}"
        )
        if alert.severity in (AlertSeverity.ERROR, AlertSeverity.CRITICAL):
            logger.error(message)
        else:
            logger.warning(message)
