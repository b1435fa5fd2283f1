"""
Dependencias para inyección de repositorios.
"""
from fastapi import Depends
from sqlalchemy.orm import sessionmaker

from datasync.infrastructure.database.session import SessionLocal
from datasync.infrastructure.repositories.alert_history_repository import AlertHistoryRepositoryImpl
from datasync.infrastructure.repositories.sync_execution_repository import SyncExecutionRepositoryImpl
from datasync.infrastructure.repositories.sync_schedule_repository import SyncScheduleRepositoryImpl


def get_session_factory() -> sessionmaker:
    """
    Factory de sesiones usada por los repositorios.
    Los tests la reemplazan via dependency_overrides.
    """
    return SessionLocal


def get_schedule_repository(
    session_factory: sessionmaker = Depends(get_session_factory)
) -> SyncScheduleRepositoryImpl:
    return SyncScheduleRepositoryImpl(session_factory)


def get_execution_repository(
    session_factory: sessionmaker = Depends(get_session_factory)
) -> SyncExecutionRepositoryImpl:
    return SyncExecutionRepositoryImpl(session_factory)


def get_alert_history_repository(
    session_factory: sessionmaker = Depends(get_session_factory)
) -> AlertHistoryRepositoryImpl:
    return AlertHistoryRepositoryImpl(session_factory)
