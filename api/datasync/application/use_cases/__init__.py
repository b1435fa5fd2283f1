"""
Casos de uso de la aplicacion.
"""
from .sync_use_cases import DataSyncExecutor, build_sync_executor

__all__ = ["DataSyncExecutor", "build_sync_executor"]
