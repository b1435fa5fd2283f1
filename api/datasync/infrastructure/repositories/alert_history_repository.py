"""
Historial de alertas disparadas (append-only).
"""
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from datasync.domain.repositories.sync_repositories import IAlertHistoryRepository
from datasync.infrastructure.database.models import AlertHistoryModel
from datasync.infrastructure.database.session import SessionLocal, session_scope
from datasync.infrastructure.repositories.sync_execution_repository import to_json_safe
from datasync.shared.utils.datetime_utils import DateTimeUtils


class AlertHistoryRepositoryImpl(IAlertHistoryRepository):
    """Implementación del historial de alertas con SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def append(
        self,
        alert_id: str,
        schedule_id: str,
        alert_type: str,
        severity: str,
        message: str,
        details: Dict[str, Any],
    ) -> str:
        db_entry = AlertHistoryModel(
            alert_id=alert_id,
            sync_schedule_id=schedule_id,
            alert_type=alert_type,
            severity=severity,
            message=message,
            details=to_json_safe(details),
            created_at=DateTimeUtils.now_utc(),
        )
        with session_scope(self.session_factory) as session:
            session.add(db_entry)
            session.flush()
            return db_entry.id

    def list_for_schedule(self, schedule_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        with session_scope(self.session_factory) as session:
            rows = session.execute(
                select(AlertHistoryModel)
                .where(AlertHistoryModel.sync_schedule_id == schedule_id)
                .order_by(AlertHistoryModel.created_at.desc())
                .limit(limit)
            ).scalars().all()
            return [
                {
                    "id": row.id,
                    "alert_id": row.alert_id,
                    "alert_type": row.alert_type,
                    "severity": row.severity,
                    "message": row.message,
                    "details": row.details or {},
                    "created_at": DateTimeUtils.to_iso_string(
                        DateTimeUtils.ensure_utc(row.created_at) if row.created_at else None
                    ),
                }
                for row in rows
            ]
