"""
Historial de corridas (append-only).
"""
import json
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from datasync.domain.entities.sync import SyncExecution, SyncExecutionResult
from datasync.domain.repositories.sync_repositories import ISyncExecutionRepository
from datasync.infrastructure.database.models import SyncExecutionModel
from datasync.infrastructure.database.session import SessionLocal, session_scope
from datasync.shared.constants.sync_constants import RunStatus
from datasync.shared.utils.datetime_utils import DateTimeUtils


def to_json_safe(value: Any) -> Any:
    """Normaliza fechas/decimales del log para columnas JSON."""
    if value is None:
        return None
    return json.loads(json.dumps(value, default=str))


class SyncExecutionRepositoryImpl(ISyncExecutionRepository):
    """Implementación del historial de ejecuciones con SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def save(
        self,
        schedule_id: str,
        result: SyncExecutionResult,
        started_at: datetime,
        completed_at: datetime,
    ) -> str:
        db_execution = SyncExecutionModel(
            sync_schedule_id=schedule_id,
            status=result.status,
            started_at=started_at,
            completed_at=completed_at,
            records_fetched=result.records_fetched,
            records_processed=result.records_processed,
            records_inserted=result.records_inserted,
            records_updated=result.records_updated,
            records_deleted=result.records_deleted,
            records_failed=result.records_failed,
            error_message=result.error,
            error_details=to_json_safe(result.error_details),
            execution_log=to_json_safe(result.execution_log),
            duration_ms=result.duration_ms,
        )
        with session_scope(self.session_factory) as session:
            session.add(db_execution)
            session.flush()
            return db_execution.id

    def get_last_successful_start(self, schedule_id: str) -> Optional[datetime]:
        with session_scope(self.session_factory) as session:
            started_at = session.execute(
                select(func.max(SyncExecutionModel.started_at)).where(
                    SyncExecutionModel.sync_schedule_id == schedule_id,
                    SyncExecutionModel.status == RunStatus.COMPLETED.value,
                )
            ).scalar_one_or_none()
        return DateTimeUtils.ensure_utc(started_at) if started_at else None

    def count_failures_since(self, schedule_id: str, since: datetime) -> int:
        with session_scope(self.session_factory) as session:
            return session.execute(
                select(func.count(SyncExecutionModel.id)).where(
                    SyncExecutionModel.sync_schedule_id == schedule_id,
                    SyncExecutionModel.status == RunStatus.FAILED.value,
                    SyncExecutionModel.started_at >= since,
                )
            ).scalar_one()

    def list_fetched_counts_since(
        self,
        schedule_id: str,
        since: datetime,
        exclude_execution_id: Optional[str] = None,
    ) -> List[int]:
        query = select(SyncExecutionModel.records_fetched).where(
            SyncExecutionModel.sync_schedule_id == schedule_id,
            SyncExecutionModel.status == RunStatus.COMPLETED.value,
            SyncExecutionModel.started_at >= since,
        )
        if exclude_execution_id:
            query = query.where(SyncExecutionModel.id != exclude_execution_id)

        with session_scope(self.session_factory) as session:
            return [count or 0 for count in session.execute(query).scalars()]

    def list_recent(self, schedule_id: str, limit: int = 50) -> List[SyncExecution]:
        with session_scope(self.session_factory) as session:
            rows = session.execute(
                select(SyncExecutionModel)
                .where(SyncExecutionModel.sync_schedule_id == schedule_id)
                .order_by(SyncExecutionModel.started_at.desc())
                .limit(limit)
            ).scalars().all()
            return [self._to_entity(row) for row in rows]

    @staticmethod
    def _to_entity(db_execution: SyncExecutionModel) -> SyncExecution:
        return SyncExecution(
            id=db_execution.id,
            sync_schedule_id=db_execution.sync_schedule_id,
            status=db_execution.status,
            started_at=DateTimeUtils.ensure_utc(db_execution.started_at),
            completed_at=DateTimeUtils.ensure_utc(db_execution.completed_at),
            records_fetched=db_execution.records_fetched or 0,
            records_processed=db_execution.records_processed or 0,
            records_inserted=db_execution.records_inserted or 0,
            records_updated=db_execution.records_updated or 0,
            records_deleted=db_execution.records_deleted or 0,
            records_failed=db_execution.records_failed or 0,
            duration_ms=db_execution.duration_ms or 0,
            error_message=db_execution.error_message,
            error_details=db_execution.error_details,
            execution_log=db_execution.execution_log,
        )
