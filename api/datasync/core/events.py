"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
from typing import Callable

from fastapi import FastAPI
from loguru import logger

from datasync.application.services.alert_evaluators import register_default_alerts
from datasync.core.config import settings
from datasync.domain.entities.alerts import AlertRegistry
from datasync.infrastructure.database.session import close_db, init_db


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicacion."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            _validate_config()

            # Crea tablas si no existen (en produccion las maneja Alembic)
            init_db()
            logger.info("Base de datos inicializada")

            register_default_alerts()
            logger.info(f"Tipos de alerta registrados: {', '.join(AlertRegistry.get_registered_types())}")

            logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            logger.success("Aplicacion iniciada correctamente")
        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Valida que la configuracion critica sea coherente."""
    warnings = []

    if settings.SYNC_RUN_TIMEOUT_SECONDS < 0:
        warnings.append("SYNC_RUN_TIMEOUT_SECONDS negativo - se ignora (sin limite)")

    if settings.HTTP_MAX_RETRIES < 0:
        warnings.append("HTTP_MAX_RETRIES negativo - las fuentes API no haran requests")

    if not settings.DATABASE_URL:
        warnings.append("DATABASE_URL no configurada - se usan los componentes DATABASE_*")

    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicacion."""
        logger.info("Cerrando aplicacion...")

        close_db()
        logger.info("Conexiones de base de datos cerradas")

        logger.success("Aplicacion cerrada correctamente")

    return shutdown
