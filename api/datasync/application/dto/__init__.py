"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .sync_dto import (
    AlertHistoryDTO,
    AlertHistoryListDTO,
    SyncExecutionDTO,
    SyncExecutionListDTO,
    SyncExecutionResultDTO,
)

__all__ = [
    "SyncExecutionResultDTO",
    "SyncExecutionDTO",
    "SyncExecutionListDTO",
    "AlertHistoryDTO",
    "AlertHistoryListDTO",
]
