"""
Implementación del repositorio de schedules usando SQLAlchemy.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.orm import sessionmaker

from datasync.core.config import settings
from datasync.domain.entities.sync import (
    AlertDefinition,
    ExternalConnection,
    RecoveryAction,
    SyncSchedule,
    TargetDataModel,
    ValidationRule,
)
from datasync.domain.repositories.sync_repositories import ISyncScheduleRepository
from datasync.infrastructure.database.models import (
    AlertModel,
    DataModelModel,
    ExternalConnectionModel,
    RecoveryActionModel,
    SyncScheduleModel,
    ValidationRuleModel,
)
from datasync.infrastructure.database.session import SessionLocal, session_scope
from datasync.shared.constants.sync_constants import RunStatus
from datasync.shared.utils.datetime_utils import DateTimeUtils


class SyncScheduleRepositoryImpl(ISyncScheduleRepository):
    """Implementación del repositorio de schedules con SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        """
        Inicializa el repositorio.

        Args:
            session_factory: Factory de sesiones; cada metodo abre su propia transaccion
        """
        self.session_factory = session_factory

    def get_by_id(self, schedule_id: str) -> Optional[SyncSchedule]:
        """Obtiene un schedule no eliminado con su conexion y modelo destino."""
        with session_scope(self.session_factory) as session:
            db_schedule = session.execute(
                select(SyncScheduleModel).where(
                    SyncScheduleModel.id == schedule_id,
                    SyncScheduleModel.deleted_at.is_(None),
                )
            ).unique().scalar_one_or_none()

            if db_schedule is None:
                return None

            return self._to_entity(db_schedule)

    def list_due(self, now: datetime) -> List[SyncSchedule]:
        """
        Schedules activos con next_run_at vencido.

        Un next_run_at anterior al ultimo arranque ya fue consumido por esa
        corrida (MANUAL y CUSTOM_CRON lo conservan sin cambios).
        """
        with session_scope(self.session_factory) as session:
            rows = session.execute(
                select(SyncScheduleModel)
                .where(
                    SyncScheduleModel.is_active.is_(True),
                    SyncScheduleModel.deleted_at.is_(None),
                    SyncScheduleModel.next_run_at.is_not(None),
                    SyncScheduleModel.next_run_at <= now,
                    or_(
                        SyncScheduleModel.last_run_at.is_(None),
                        SyncScheduleModel.next_run_at > SyncScheduleModel.last_run_at,
                    ),
                    SyncScheduleModel.last_run_status != RunStatus.RUNNING.value,
                )
                .order_by(SyncScheduleModel.next_run_at)
            ).unique().scalars().all()
            return [self._to_entity(row) for row in rows]

    def mark_running(self, schedule_id: str, started_at: datetime) -> None:
        self._update(
            schedule_id,
            last_run_status=RunStatus.RUNNING.value,
            last_run_at=started_at,
        )

    def mark_finished(
        self,
        schedule_id: str,
        status: str,
        error: Optional[str],
        next_run_at: Optional[datetime],
    ) -> None:
        self._update(
            schedule_id,
            last_run_status=status,
            last_run_error=error,
            next_run_at=next_run_at,
        )

    def schedule_retry(self, schedule_id: str, retry_count: int, next_run_at: datetime) -> None:
        self._update(schedule_id, current_retry_count=retry_count, next_run_at=next_run_at)

    def reset_retry_count(self, schedule_id: str) -> None:
        self._update(schedule_id, current_retry_count=0)

    def mark_data_model_synced(self, data_model_id: str, synced_at: datetime) -> None:
        with session_scope(self.session_factory) as session:
            session.execute(
                update(DataModelModel)
                .where(DataModelModel.id == data_model_id)
                .values(last_synced_at=synced_at, sync_status=RunStatus.COMPLETED.value)
            )

    def get_validation_rules(self, schedule_id: str) -> List[ValidationRule]:
        with session_scope(self.session_factory) as session:
            rows = session.execute(
                select(ValidationRuleModel)
                .where(
                    ValidationRuleModel.sync_schedule_id == schedule_id,
                    ValidationRuleModel.is_active.is_(True),
                )
                .order_by(ValidationRuleModel.id)
            ).scalars().all()
            return [
                ValidationRule(
                    field_name=row.field_name,
                    rule_type=row.rule_type,
                    rule_config=row.rule_config or {},
                    error_message=row.error_message,
                )
                for row in rows
            ]

    def get_recovery_actions(self, schedule_id: str) -> List[RecoveryAction]:
        with session_scope(self.session_factory) as session:
            rows = session.execute(
                select(RecoveryActionModel)
                .where(
                    RecoveryActionModel.sync_schedule_id == schedule_id,
                    RecoveryActionModel.is_active.is_(True),
                )
                .order_by(RecoveryActionModel.created_at, RecoveryActionModel.id)
            ).scalars().all()
            return [
                RecoveryAction(
                    error_pattern=row.error_pattern,
                    recovery_action=row.recovery_action,
                    recovery_config=row.recovery_config or {},
                )
                for row in rows
            ]

    def get_alert_definitions(self, schedule_id: str) -> List[AlertDefinition]:
        with session_scope(self.session_factory) as session:
            rows = session.execute(
                select(AlertModel)
                .where(
                    AlertModel.sync_schedule_id == schedule_id,
                    AlertModel.is_active.is_(True),
                )
                .order_by(AlertModel.created_at)
            ).scalars().all()
            return [
                AlertDefinition(id=row.id, alert_type=row.alert_type, alert_config=row.alert_config or {})
                for row in rows
            ]

    def _update(self, schedule_id: str, **values) -> None:
        with session_scope(self.session_factory) as session:
            session.execute(
                update(SyncScheduleModel)
                .where(SyncScheduleModel.id == schedule_id)
                .values(**values)
            )

    @staticmethod
    def _connection_to_entity(db_connection: ExternalConnectionModel) -> ExternalConnection:
        return ExternalConnection(
            id=db_connection.id,
            connection_type=db_connection.connection_type,
            db_type=db_connection.db_type,
            host=db_connection.host,
            port=db_connection.port,
            database=db_connection.database,
            username=db_connection.username,
            password=db_connection.password,
            api_url=db_connection.api_url,
            api_method=db_connection.api_method,
            api_headers=dict(db_connection.api_headers or {}),
            api_auth_type=db_connection.api_auth_type,
            api_auth_token=db_connection.api_auth_token,
            api_auth_username=db_connection.api_auth_username,
            api_auth_password=db_connection.api_auth_password,
            api_auth_apikey_name=db_connection.api_auth_apikey_name,
            api_auth_apikey_value=db_connection.api_auth_apikey_value,
            api_body=db_connection.api_body,
            api_response_path=db_connection.api_response_path,
        )

    def _to_entity(self, db_schedule: SyncScheduleModel) -> SyncSchedule:
        """Convierte el modelo de base de datos a entidad de dominio."""
        db_model = db_schedule.data_model

        def _or_default(value, default):
            return default if value is None else value

        return SyncSchedule(
            id=db_schedule.id,
            space_id=db_schedule.space_id,
            data_model_id=db_schedule.data_model_id,
            external_connection_id=db_schedule.external_connection_id,
            name=db_schedule.name,
            schedule_type=db_schedule.schedule_type,
            sync_strategy=db_schedule.sync_strategy,
            connection=self._connection_to_entity(db_schedule.connection),
            data_model=TargetDataModel(
                id=db_model.id,
                name=db_model.name,
                external_schema=db_model.external_schema,
                external_table=db_model.external_table,
                external_primary_key=db_model.external_primary_key,
            ),
            schedule_config=dict(db_schedule.schedule_config or {}),
            incremental_key=db_schedule.incremental_key,
            incremental_timestamp_column=db_schedule.incremental_timestamp_column,
            clear_existing_data=bool(db_schedule.clear_existing_data),
            source_query=db_schedule.source_query,
            data_mapping=db_schedule.data_mapping or None,
            max_records_per_sync=db_schedule.max_records_per_sync,
            rate_limit_per_minute=db_schedule.rate_limit_per_minute,
            retry_enabled=_or_default(db_schedule.retry_enabled, True),
            max_retries=_or_default(db_schedule.max_retries, settings.SYNC_DEFAULT_MAX_RETRIES),
            retry_delay_seconds=_or_default(
                db_schedule.retry_delay_seconds, settings.SYNC_DEFAULT_RETRY_DELAY_SECONDS
            ),
            retry_backoff_multiplier=_or_default(
                db_schedule.retry_backoff_multiplier, settings.SYNC_DEFAULT_BACKOFF_MULTIPLIER
            ),
            current_retry_count=db_schedule.current_retry_count or 0,
            notify_on_success=_or_default(db_schedule.notify_on_success, False),
            notify_on_failure=_or_default(db_schedule.notify_on_failure, True),
            notification_emails=list(db_schedule.notification_emails or []),
            last_run_status=db_schedule.last_run_status,
            last_run_error=db_schedule.last_run_error,
            next_run_at=(
                DateTimeUtils.ensure_utc(db_schedule.next_run_at)
                if db_schedule.next_run_at else None
            ),
        )
