"""
Caso de uso principal: ejecutar una corrida de sincronizacion.

Flujo de `execute_sync(schedule_id)`:
1. Carga el schedule y lo marca RUNNING.
2. Si la corrida anterior fallo, consulta las acciones de recuperacion
   (un fallback_query reemplaza la query solo para esta corrida).
3. Fetch segun el tipo de conexion; si falla, una recuperacion por
   fallback_query habilita un unico segundo intento.
4. Mapea, valida y escribe cada registro en orden (errores por registro
   se cuentan, no cortan la corrida).
5. Persiste estado, reintentos, auditoria; dispara workflows,
   notificaciones y alertas.

Ninguna excepcion escapa: todo termina en un SyncExecutionResult.
"""
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from loguru import logger
from sqlalchemy.orm import sessionmaker

from datasync.application.interfaces.notifier import Notifier
from datasync.application.interfaces.workflow_trigger import WorkflowTrigger
from datasync.application.services.alert_engine import AlertEngine
from datasync.application.services.eav_writer import UPDATED, EavWriter
from datasync.application.services.rate_limiter import RateLimiter
from datasync.application.services.record_mapper import apply_data_mapping
from datasync.application.services.record_validator import validate_record
from datasync.application.services.retry_policy import RecoveryPolicy, RetryPolicy
from datasync.application.services.sync_strategy import (
    SourceQuery,
    apply_record_cap,
    build_source_query,
    match_key_for,
    should_clear_existing,
)
from datasync.core.config import settings
from datasync.domain.entities.record_values import snapshot
from datasync.domain.entities.sync import SyncExecutionResult, SyncSchedule, ValidationRule
from datasync.domain.repositories.sync_repositories import (
    IAlertHistoryRepository,
    IDataRecordRepository,
    ISyncExecutionRepository,
    ISyncScheduleRepository,
)
from datasync.infrastructure.external.connections.connection_client import ConnectionClient
from datasync.shared.exceptions.base import AppException
from datasync.shared.exceptions.sync import (
    RecordValidationError,
    RecoveryExhaustedError,
    ScheduleNotFoundError,
    SyncTimeoutError,
    WriteError,
)
from datasync.shared.utils.date_utils import calculate_next_run_at
from datasync.shared.utils.datetime_utils import DateTimeUtils


def _error_details(error: Exception) -> Dict[str, Any]:
    if isinstance(error, AppException):
        return {"error_code": error.error_code, "details": error.details}
    return {"error_code": "UNEXPECTED_ERROR", "type": type(error).__name__}


class DataSyncExecutor:
    """
    Orquestador de corridas de sincronizacion.

    Todas las dependencias se inyectan; ver build_sync_executor para el
    armado con SQLAlchemy.
    """

    def __init__(
        self,
        *,
        schedules: ISyncScheduleRepository,
        records: IDataRecordRepository,
        executions: ISyncExecutionRepository,
        alert_history: IAlertHistoryRepository,
        connection_client: ConnectionClient,
        notifier: Notifier,
        workflow_trigger: WorkflowTrigger,
        clock: Callable[[], datetime] = DateTimeUtils.now_utc,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        run_timeout_s: Optional[float] = None,
    ):
        self.schedules = schedules
        self.records = records
        self.executions = executions
        self.connection_client = connection_client
        self.notifier = notifier
        self.workflow_trigger = workflow_trigger
        self.retry_policy = RetryPolicy(schedules)
        self.alert_engine = AlertEngine(executions, alert_history, notifier)
        self._clock = clock
        self._monotonic = monotonic
        self._sleep = sleep
        self.run_timeout_s = settings.SYNC_RUN_TIMEOUT_SECONDS if run_timeout_s is None else run_timeout_s

    # ------------------------------------------------------------------
    # Punto de entrada
    # ------------------------------------------------------------------

    def execute_sync(self, schedule_id: str) -> SyncExecutionResult:
        """
        Ejecuta una corrida completa del schedule.

        Returns:
            SyncExecutionResult: resultado (nunca lanza)
        """
        start_mono = self._monotonic()
        execution_log: List[Dict[str, Any]] = []

        try:
            schedule = self.schedules.get_by_id(schedule_id)
            if schedule is None:
                raise ScheduleNotFoundError(schedule_id)
        except Exception as e:
            # Sin schedule no hay efectos secundarios: ni estado ni auditoria
            logger.error(f"No se pudo cargar el schedule {schedule_id}: {e}")
            return SyncExecutionResult.failed(
                str(e),
                error_details=_error_details(e),
                execution_log=execution_log,
                duration_ms=self._elapsed_ms(start_mono),
            )

        started_at = self._clock()
        execution_log.append({
            "step": "schedule_loaded",
            "timestamp": DateTimeUtils.to_iso_string(started_at),
            "strategy": schedule.sync_strategy,
            "connection_type": schedule.connection.connection_type,
        })
        logger.info(f"Iniciando sync '{schedule.name}' ({schedule.id}) estrategia {schedule.sync_strategy}")

        result = SyncExecutionResult(execution_log=execution_log)
        try:
            self.schedules.mark_running(schedule.id, started_at)
            self._run(schedule, result, start_mono)
        except Exception as e:
            result.success = False
            result.error = str(e)
            result.error_details = _error_details(e)
            execution_log.append({"step": "sync_failed", "error": str(e)})
            if isinstance(e, AppException):
                logger.error(f"Sync '{schedule.name}' fallo: {e}")
            else:
                logger.exception(f"Error inesperado en sync '{schedule.name}': {e}")

        if result.success and result.records_fetched > 0 and result.records_processed == 0 \
                and result.records_failed == result.records_fetched:
            result.success = False
            result.error = f"All {result.records_fetched} fetched records failed processing"
            result.error_details = {"error_code": "ALL_RECORDS_FAILED"}

        result.duration_ms = self._elapsed_ms(start_mono)
        self._finish(schedule, result, started_at)
        return result

    def execute_due(self, now: Optional[datetime] = None) -> List[SyncExecutionResult]:
        """Ejecuta en serie todos los schedules vencidos (omite los RUNNING)."""
        due = self.schedules.list_due(now or self._clock())
        logger.info(f"{len(due)} schedules pendientes de ejecucion")
        return [self.execute_sync(schedule.id) for schedule in due]

    # ------------------------------------------------------------------
    # Corrida
    # ------------------------------------------------------------------

    def _run(self, schedule: SyncSchedule, result: SyncExecutionResult, start_mono: float) -> None:
        deadline = start_mono + self.run_timeout_s if self.run_timeout_s and self.run_timeout_s > 0 else None
        log = result.execution_log

        recovery = RecoveryPolicy(self.schedules.get_recovery_actions(schedule.id))
        query_override: Optional[str] = None
        recovery_applied = False

        # La recuperacion previa usa el estado leido ANTES de marcar RUNNING
        if schedule.previous_run_failed:
            decision = recovery.decide(schedule.last_run_error)
            if decision.matched:
                log.append({"step": "recovery_checked", "phase": "pre_run", **decision.to_log()})
            if decision.reattempt:
                query_override = decision.fallback_query
                recovery_applied = True
                logger.info(f"Recuperacion previa: usando fallback_query para '{schedule.name}'")

        try:
            records = self._fetch(schedule, log, query_override)
        except SyncTimeoutError:
            raise
        except Exception as e:
            if recovery_applied:
                raise
            decision = recovery.decide(str(e))
            if decision.matched:
                log.append({"step": "recovery_checked", "phase": "after_failure", "error": str(e), **decision.to_log()})
            if not decision.reattempt:
                raise
            logger.warning(f"Fetch fallo en '{schedule.name}' ({e}); reintentando con fallback_query")
            records = self._fetch(schedule, log, decision.fallback_query)

        self._check_deadline(deadline)
        rules = self.schedules.get_validation_rules(schedule.id)
        self._process_records(schedule, records, rules, result, deadline)

    def _fetch(
        self,
        schedule: SyncSchedule,
        log: List[Dict[str, Any]],
        query_override: Optional[str],
    ) -> List[Any]:
        connection = schedule.connection

        if connection.is_api:
            log.append({
                "step": "api_sync_started",
                "url": connection.api_url,
                "method": (connection.api_method or "GET").upper(),
            })
            records = self.connection_client.fetch(connection)
            records = apply_record_cap(records, schedule.max_records_per_sync)
            log.append({"step": "api_data_fetched", "record_count": len(records)})
            return records

        log.append({"step": "database_sync_started", "host": connection.host, "database": connection.database})
        last_start = None
        if schedule.is_incremental and not (query_override or schedule.source_query):
            last_start = self.executions.get_last_successful_start(schedule.id)
        source: SourceQuery = build_source_query(
            schedule, last_successful_start=last_start, query_override=query_override
        )
        log.append({
            "step": "database_query_executed",
            "query": source.sql,
            "cursor": DateTimeUtils.to_iso_string(source.cursor),
        })
        records = self.connection_client.fetch(connection, source.sql, source.params)
        log.append({"step": "database_data_fetched", "record_count": len(records)})
        return records

    def _process_records(
        self,
        schedule: SyncSchedule,
        records: Sequence[Any],
        rules: Sequence[ValidationRule],
        result: SyncExecutionResult,
        deadline: Optional[float],
    ) -> None:
        log = result.execution_log
        result.records_fetched = len(records)
        writer = EavWriter(self.records, schedule.data_model_id)

        if should_clear_existing(schedule):
            log.append({"step": "clearing_existing_data"})
            result.records_deleted = writer.clear_existing()

        if not records:
            log.append({"step": "no_data_to_process"})
            return

        limiter = RateLimiter(schedule.rate_limit_per_minute, clock=self._monotonic, sleep=self._sleep)
        match_key = match_key_for(schedule)

        for raw in records:
            self._check_deadline(deadline)

            try:
                mapped = apply_data_mapping(raw, schedule.data_mapping)
                validate_record(mapped, rules)
            except RecordValidationError as e:
                result.records_failed += 1
                log.append({"step": "validation_failed", "record": snapshot(mapped), "errors": e.errors})
                continue
            except Exception as e:
                result.records_failed += 1
                log.append({"step": "record_processing_failed", "record": raw, "error": str(e)})
                continue

            limiter.acquire(deadline=deadline)
            self._check_deadline(deadline)
            try:
                outcome = writer.write(mapped, match_key=match_key)
            except WriteError as e:
                result.records_failed += 1
                log.append({"step": "record_processing_failed", "record": snapshot(mapped), "error": e.message})
                continue

            if outcome == UPDATED:
                result.records_updated += 1
            else:
                result.records_inserted += 1
            result.records_processed += 1

        log.append({
            "step": "sync_completed",
            "summary": {
                "inserted": result.records_inserted,
                "updated": result.records_updated,
                "failed": result.records_failed,
            },
        })

    # ------------------------------------------------------------------
    # Cierre de la corrida
    # ------------------------------------------------------------------

    def _finish(self, schedule: SyncSchedule, result: SyncExecutionResult, started_at: datetime) -> None:
        completed_at = self._clock()
        retried = False

        try:
            next_run_at = calculate_next_run_at(
                schedule.schedule_type, schedule.schedule_config, completed_at, schedule.next_run_at
            )
            self.schedules.mark_finished(schedule.id, result.status, result.error, next_run_at)

            if result.success:
                self.schedules.reset_retry_count(schedule.id)
                self.schedules.mark_data_model_synced(schedule.data_model_id, completed_at)
            else:
                retried = self.retry_policy.schedule_retry(schedule, completed_at)
                if retried:
                    result.execution_log.append({"step": "retry_scheduled", "attempt": schedule.current_retry_count + 1})
                else:
                    exhausted = RecoveryExhaustedError(schedule.id, result.error or "")
                    logger.warning(exhausted.message)
                    result.error_details = {
                        **(result.error_details or {}),
                        "recovery": {**exhausted.details, "retries_used": schedule.current_retry_count},
                    }
        except Exception as e:
            logger.exception(f"Error actualizando estado del schedule {schedule.id}: {e}")

        try:
            result.execution_id = self.executions.save(schedule.id, result, started_at, completed_at)
        except Exception as e:
            logger.exception(f"Error guardando la ejecucion del schedule {schedule.id}: {e}")

        if result.success:
            logger.success(
                f"Sync '{schedule.name}' completado: fetched={result.records_fetched} "
                f"inserted={result.records_inserted} updated={result.records_updated} "
                f"failed={result.records_failed} ({result.duration_ms}ms)"
            )
            self._trigger_workflows(schedule, on_success=True)
            if schedule.notify_on_success and schedule.notification_emails:
                self._notify(
                    self.notifier.send_sync_success,
                    schedule=schedule,
                    recipients=schedule.notification_emails,
                    result=result,
                    execution_id=result.execution_id,
                )
            self._check_alerts(schedule, result, completed_at, terminal_failure=False)
        elif not retried:
            self._trigger_workflows(schedule, on_success=False)
            if schedule.notify_on_failure and schedule.notification_emails:
                self._notify(
                    self.notifier.send_sync_failure,
                    schedule=schedule,
                    recipients=schedule.notification_emails,
                    result=result,
                    execution_id=result.execution_id,
                )
            self._check_alerts(schedule, result, completed_at, terminal_failure=True)

    def _trigger_workflows(self, schedule: SyncSchedule, on_success: bool) -> None:
        try:
            self.workflow_trigger.notify_workflows(schedule.id, on_success)
        except Exception as e:
            logger.error(f"Error disparando workflows del schedule {schedule.id}: {e}")

    def _notify(self, send: Callable[..., None], **kwargs: Any) -> None:
        try:
            send(**kwargs)
        except Exception as e:
            logger.error(f"Error enviando notificacion: {e}")

    def _check_alerts(
        self,
        schedule: SyncSchedule,
        result: SyncExecutionResult,
        now: datetime,
        *,
        terminal_failure: bool,
    ) -> None:
        try:
            definitions = self.schedules.get_alert_definitions(schedule.id)
            self.alert_engine.check_alerts(
                schedule,
                definitions,
                result,
                execution_id=result.execution_id,
                now=now,
                terminal_failure=terminal_failure,
            )
        except Exception as e:
            logger.error(f"Error evaluando alertas del schedule {schedule.id}: {e}")

    # ------------------------------------------------------------------
    # Utilidades
    # ------------------------------------------------------------------

    def _check_deadline(self, deadline: Optional[float]) -> None:
        if deadline is not None and self._monotonic() >= deadline:
            raise SyncTimeoutError(self.run_timeout_s)

    def _elapsed_ms(self, start_mono: float) -> int:
        return int((self._monotonic() - start_mono) * 1000)


def build_sync_executor(
    session_factory: Optional[sessionmaker] = None,
    *,
    notifier: Optional[Notifier] = None,
    workflow_launcher: Optional[Callable[[str], Any]] = None,
    connection_client: Optional[ConnectionClient] = None,
) -> DataSyncExecutor:
    """Arma el orquestador con los repositorios SQLAlchemy y los clientes por defecto."""
    from datasync.infrastructure.database.session import SessionLocal
    from datasync.infrastructure.external.notifications.log_notifier import LoggingNotifier
    from datasync.infrastructure.repositories.alert_history_repository import AlertHistoryRepositoryImpl
    from datasync.infrastructure.repositories.data_record_repository import DataRecordRepositoryImpl
    from datasync.infrastructure.repositories.sync_execution_repository import SyncExecutionRepositoryImpl
    from datasync.infrastructure.repositories.sync_schedule_repository import SyncScheduleRepositoryImpl
    from datasync.infrastructure.repositories.workflow_trigger_repository import (
        SqlWorkflowTrigger,
        log_only_launcher,
    )

    factory = session_factory or SessionLocal
    return DataSyncExecutor(
        schedules=SyncScheduleRepositoryImpl(factory),
        records=DataRecordRepositoryImpl(factory),
        executions=SyncExecutionRepositoryImpl(factory),
        alert_history=AlertHistoryRepositoryImpl(factory),
        connection_client=connection_client or ConnectionClient(),
        notifier=notifier or LoggingNotifier(),
        workflow_trigger=SqlWorkflowTrigger(factory, workflow_launcher or log_only_launcher),
    )
