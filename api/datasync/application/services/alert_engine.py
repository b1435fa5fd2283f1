"""
Motor de alertas: resuelve las definiciones activas de un schedule,
evalua cada regla y registra/notifica las que se disparan.
"""
from datetime import datetime
from typing import List, Optional, Sequence

from loguru import logger

from datasync.application.interfaces.notifier import Notifier
from datasync.application.services.alert_evaluators import register_default_alerts
from datasync.domain.entities.alerts import AlertContext, AlertRegistry, SyncAlert
from datasync.domain.entities.sync import AlertDefinition, SyncExecutionResult, SyncSchedule
from datasync.domain.repositories.sync_repositories import (
    IAlertHistoryRepository,
    ISyncExecutionRepository,
)
from datasync.shared.constants.sync_constants import AlertType

# En corridas exitosas solo tienen sentido las alertas de anomalia
SUCCESS_ALERT_TYPES = (
    AlertType.RECORD_COUNT_ANOMALY.value,
    AlertType.DURATION_ANOMALY.value,
)


class AlertEngine:
    """Evalua alertas de una corrida terminada."""

    def __init__(
        self,
        executions: ISyncExecutionRepository,
        alert_history: IAlertHistoryRepository,
        notifier: Notifier,
    ):
        self.executions = executions
        self.alert_history = alert_history
        self.notifier = notifier
        register_default_alerts()

    def check_alerts(
        self,
        schedule: SyncSchedule,
        definitions: Sequence[AlertDefinition],
        result: SyncExecutionResult,
        *,
        execution_id: Optional[str],
        now: datetime,
        terminal_failure: bool,
    ) -> List[SyncAlert]:
        """
        Evalua las definiciones contra el resultado.

        Args:
            terminal_failure: True evalua todas las alertas; False solo las de anomalia

        Returns:
            List[SyncAlert]: Alertas disparadas (a lo sumo una por definicion)
        """
        context = AlertContext(
            schedule_id=schedule.id,
            execution_id=execution_id,
            now=now,
            executions=self.executions,
        )
        fired: List[SyncAlert] = []
        fired_ids = set()

        for definition in definitions:
            if definition.id in fired_ids:
                continue
            if not terminal_failure and definition.alert_type not in SUCCESS_ALERT_TYPES:
                continue

            rule = AlertRegistry.build(definition.id, definition.alert_type, definition.alert_config)
            if rule is None:
                logger.warning(f"Tipo de alerta desconocido '{definition.alert_type}' (alerta {definition.id})")
                continue

            try:
                alert = rule.evaluate(result, context)
            except Exception as e:
                logger.error(f"Error evaluando alerta {definition.id} ({definition.alert_type}): {e}")
                continue

            if alert is None:
                continue

            fired_ids.add(definition.id)
            fired.append(alert)
            self._record(schedule, alert, result)

        return fired

    def _record(self, schedule: SyncSchedule, alert: SyncAlert, result: SyncExecutionResult) -> None:
        logger.warning(f"Alerta {alert.alert_type} [{alert.severity.value}] en schedule {schedule.id}: {alert.message}")

        details = result.snapshot()
        details["alert"] = {
            "value": alert.value,
            "threshold": alert.threshold,
            "metadata": alert.metadata,
        }
        self.alert_history.append(
            alert_id=alert.alert_id,
            schedule_id=schedule.id,
            alert_type=alert.alert_type,
            severity=alert.severity.value,
            message=alert.message,
            details=details,
        )

        if schedule.notify_on_failure and schedule.notification_emails:
            self.notifier.send_alert(
                schedule=schedule,
                recipients=schedule.notification_emails,
                alert=alert,
            )
