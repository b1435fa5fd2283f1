"""
Gestión de sesiones de base de datos.

El motor de sincronizacion hace llamadas bloqueantes (fuente externa y
escrituras por registro), por eso usa el engine sincrono de SQLAlchemy.
Los endpoints lo ejecutan en un thread aparte (asyncio.to_thread).
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from datasync.core.config import settings


# Base para modelos de SQLAlchemy
Base = declarative_base()


def _create_engine_args() -> dict:
    """
    Construye los argumentos del engine segun el tipo de base de datos.
    PostgreSQL usa pool de conexiones, SQLite no lo soporta.
    """
    args = {
        "echo": settings.DEBUG,
        "future": True,
    }

    # Configuracion de pool solo para PostgreSQL
    if "postgresql" in settings.effective_database_url:
        args.update({
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_pre_ping": True,  # Verifica conexion antes de usar
        })

    return args


# Engine de base de datos
engine = create_engine(settings.effective_database_url, **_create_engine_args())

# Session factory
SessionLocal = sessionmaker(
    engine,
    class_=Session,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


@contextmanager
def session_scope(factory: sessionmaker = SessionLocal) -> Iterator[Session]:
    """
    Abre una sesion transaccional: commit al salir, rollback ante error.

    Yields:
        Session: Sesión de base de datos
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Inicializa la base de datos creando todas las tablas."""
    # Registra los modelos en Base.metadata
    from datasync.infrastructure.database import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def close_db() -> None:
    """Cierra las conexiones de la base de datos."""
    engine.dispose()
