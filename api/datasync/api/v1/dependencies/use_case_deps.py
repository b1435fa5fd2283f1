"""
Dependencias para inyeccion de casos de uso.
"""
from fastapi import Depends
from sqlalchemy.orm import sessionmaker

from datasync.api.v1.dependencies.repository_deps import get_session_factory
from datasync.application.use_cases.sync_use_cases import DataSyncExecutor, build_sync_executor


def get_sync_executor(
    session_factory: sessionmaker = Depends(get_session_factory)
) -> DataSyncExecutor:
    """
    Dependencia para obtener el orquestador de sincronizacion.

    Args:
        session_factory: Factory de sesiones de base de datos

    Returns:
        DataSyncExecutor: Orquestador armado con repositorios SQLAlchemy
    """
    return build_sync_executor(session_factory)
